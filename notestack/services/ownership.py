"""
ownership.py: The one place that decides whether a row belongs to a user.

A row that does not exist and a row owned by someone else are reported the
same way (``NotFoundOrForbidden``), so no caller can discover other users'
data.
"""

from sqlalchemy.orm import Session

from notestack.errors import NotFoundOrForbidden, ValidationError
from notestack.models.color import Color
from notestack.models.note import Note
from notestack.models.task import Task

ENTITY_NAMES = {
    "stacks": "Stack",
    "notebooks": "Notebook",
    "notes": "Note",
    "tags": "Tag",
    "files": "File",
    "tasks": "Task",
}


def entity_name(model) -> str:
    return ENTITY_NAMES.get(model.__tablename__, model.__name__)


def _coerce_id(entity_id, name: str) -> int:
    if entity_id is None or entity_id == "":
        raise ValidationError(f"{name} ID is required")
    try:
        return int(entity_id)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name} ID")


def assert_owned(db: Session, model, entity_id, user_id: int):
    """Return the row of ``model`` with ``entity_id`` if ``user_id`` owns it, else raise."""
    name = entity_name(model)
    entity_id = _coerce_id(entity_id, name)

    row = db.query(model).filter(model.id == entity_id).first()
    if row is None:
        raise NotFoundOrForbidden(name)

    if model is Task:
        if row.user_id == user_id:
            return row
        # Rows attached to a note are also owned through that note
        if row.note_id is not None and db.query(Note.id).filter_by(id=row.note_id, user_id=user_id).first():
            return row
        raise NotFoundOrForbidden(name)

    if row.user_id != user_id:
        raise NotFoundOrForbidden(name)
    return row


def validate_color(db: Session, color_id):
    """``None`` is allowed; anything else must be an existing palette color."""
    if color_id is None:
        return None
    try:
        color_id = int(color_id)
    except (TypeError, ValueError):
        raise ValidationError("Invalid color_id")
    if db.get(Color, color_id) is None:
        raise ValidationError("Invalid color_id")
    return color_id
