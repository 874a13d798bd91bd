"""
hierarchy_service.py: Stacks → Notebooks → Notes organization.

Covers default-notebook resolution, append-only ordering inside a parent
scope, moving notebooks between stacks, and deleting parents without
destroying their children.
"""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from notestack.config import DEFAULT_NOTEBOOK_NAME
from notestack.errors import ValidationError, NotFoundOrForbidden
from notestack.models.note import Note
from notestack.models.notebook import Notebook
from notestack.models.stack import Stack
from notestack.services.aggregation_service import AggregationService
from notestack.services.ownership import assert_owned, validate_color

logger = logging.getLogger(__name__)


def _clean(value):
    """Trim a free-text field; empty becomes None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _require_name(data: dict, entity: str) -> str:
    name = data.get("name")
    if not name or not str(name).strip():
        raise ValidationError(f"{entity} name is required")
    return str(name).strip()


def _sort_value(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("sort_order must be an integer")


def next_sort_order(db: Session, model, **scope) -> int:
    """max(sort_order) + 1 within the scope, or 0 when the scope is empty. Collisions are tolerated."""
    current = db.query(func.max(model.sort_order)).filter_by(**scope).scalar()
    return 0 if current is None else current + 1


def reorder(db: Session, model, user_id: int, items, **scope) -> int:
    """
    Apply ``[{id, sort_order}, ...]``. Every id must resolve to a row owned by
    ``user_id`` (and inside ``scope``) before anything is written.
    """
    name = model.__name__
    if not items or not isinstance(items, list):
        raise ValidationError(f"{name}s array is required")

    updates = {}
    for item in items:
        if not isinstance(item, dict) or item.get("id") is None or item.get("sort_order") is None:
            raise ValidationError(f"Each {name.lower()} must have id and sort_order")
        try:
            entity_id = int(item["id"])
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid {name} ID")
        updates[entity_id] = _sort_value(item["sort_order"])

    rows = db.query(model).filter(model.id.in_(list(updates)), model.user_id == user_id).filter_by(**scope).all()
    if len(rows) != len(updates):
        raise NotFoundOrForbidden(name)

    try:
        for row in rows:
            row.sort_order = updates[row.id]
        db.commit()
    except Exception:
        db.rollback()
        raise
    return len(rows)


class HierarchyService:
    # ------------------------------------------------------------------
    # Default notebook
    # ------------------------------------------------------------------
    @staticmethod
    def resolve_notebook(db: Session, user_id: int, notebook_id=None) -> int:
        """
        Return ``notebook_id`` when the user owns it; otherwise the user's
        oldest notebook, creating an "Untitled" one when they have none.
        The new notebook is flushed, not committed: it lands in the caller's
        transaction.
        """
        if notebook_id not in (None, ""):
            try:
                owned = db.query(Notebook.id).filter_by(id=int(notebook_id), user_id=user_id).first()
            except (TypeError, ValueError):
                owned = None
            if owned:
                return owned[0]

        oldest = (
            db.query(Notebook.id)
            .filter_by(user_id=user_id)
            .order_by(Notebook.created_at.asc(), Notebook.id.asc())
            .first()
        )
        if oldest:
            return oldest[0]

        notebook = Notebook(
            user_id=user_id,
            name=DEFAULT_NOTEBOOK_NAME,
            description=None,
            stack_id=None,
            color_id=None,
            sort_order=0,
        )
        db.add(notebook)
        db.flush()
        logger.info(f"Created default notebook {notebook.id} for user {user_id}")
        return notebook.id

    # ------------------------------------------------------------------
    # Stacks
    # ------------------------------------------------------------------
    @staticmethod
    def create_stack(db: Session, user_id: int, data: dict) -> dict:
        name = _require_name(data, "Stack")
        color_id = validate_color(db, data.get("color_id"))
        try:
            if data.get("sort_order") is not None:
                sort_order = _sort_value(data["sort_order"])
            else:
                sort_order = next_sort_order(db, Stack, user_id=user_id)
            stack = Stack(
                user_id=user_id,
                name=name,
                description=_clean(data.get("description")),
                color_id=color_id,
                sort_order=sort_order,
            )
            db.add(stack)
            db.commit()
            db.refresh(stack)
        except Exception:
            db.rollback()
            raise
        return AggregationService.stack_view(db, stack)

    @staticmethod
    def list_stacks(db: Session, user_id: int) -> list[dict]:
        stacks = (
            db.query(Stack)
            .filter_by(user_id=user_id)
            .order_by(Stack.sort_order.asc(), Stack.created_at.asc())
            .all()
        )
        return AggregationService.stack_views(db, stacks)

    @staticmethod
    def get_stack(db: Session, user_id: int, stack_id) -> dict:
        return AggregationService.stack_view(db, assert_owned(db, Stack, stack_id, user_id))

    @staticmethod
    def update_stack(db: Session, user_id: int, stack_id, data: dict) -> dict:
        stack = assert_owned(db, Stack, stack_id, user_id)
        if "name" in data:
            stack_name = _require_name(data, "Stack")
        if "color_id" in data:
            color_id = validate_color(db, data["color_id"])
        try:
            if "name" in data:
                stack.name = stack_name
            if "description" in data:
                stack.description = _clean(data["description"])
            if "color_id" in data:
                stack.color_id = color_id
            if data.get("sort_order") is not None:
                stack.sort_order = _sort_value(data["sort_order"])
            db.commit()
            db.refresh(stack)
        except Exception:
            db.rollback()
            raise
        return AggregationService.stack_view(db, stack)

    @staticmethod
    def delete_stack(db: Session, user_id: int, stack_id) -> int:
        """Unstack child notebooks, then delete the stack. Returns how many notebooks were unstacked."""
        stack = assert_owned(db, Stack, stack_id, user_id)
        try:
            moved = (
                db.query(Notebook)
                .filter_by(stack_id=stack.id)
                .update({Notebook.stack_id: None}, synchronize_session=False)
            )
            db.delete(stack)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Deleted stack {stack_id}; unstacked {moved} notebook(s)")
        return moved

    @staticmethod
    def reorder_stacks(db: Session, user_id: int, items) -> int:
        return reorder(db, Stack, user_id, items)

    @staticmethod
    def stack_notebooks(db: Session, user_id: int, stack_id) -> dict:
        stack = assert_owned(db, Stack, stack_id, user_id)
        notebooks = (
            db.query(Notebook)
            .filter_by(user_id=user_id, stack_id=stack.id)
            .order_by(Notebook.sort_order.asc(), Notebook.created_at.asc())
            .all()
        )
        views = AggregationService.notebook_views(db, notebooks)
        return {"stack": {"id": stack.id, "name": stack.name}, "notebooks": views, "count": len(views)}

    # ------------------------------------------------------------------
    # Notebooks
    # ------------------------------------------------------------------
    @staticmethod
    def create_notebook(db: Session, user_id: int, data: dict) -> dict:
        name = _require_name(data, "Notebook")
        stack_id = data.get("stack_id")
        if stack_id not in (None, ""):
            stack_id = assert_owned(db, Stack, stack_id, user_id).id
        else:
            stack_id = None
        color_id = validate_color(db, data.get("color_id"))
        try:
            if data.get("sort_order") is not None:
                sort_order = _sort_value(data["sort_order"])
            else:
                sort_order = next_sort_order(db, Notebook, user_id=user_id, stack_id=stack_id)
            notebook = Notebook(
                user_id=user_id,
                name=name,
                description=_clean(data.get("description")),
                stack_id=stack_id,
                color_id=color_id,
                sort_order=sort_order,
            )
            db.add(notebook)
            db.commit()
            db.refresh(notebook)
        except Exception:
            db.rollback()
            raise
        return AggregationService.notebook_view(db, notebook)

    @staticmethod
    def list_notebooks(db: Session, user_id: int, stack_id=None) -> list[dict]:
        query = db.query(Notebook).filter_by(user_id=user_id)
        if stack_id not in (None, ""):
            query = query.filter_by(stack_id=int(stack_id))
        notebooks = query.order_by(Notebook.sort_order.asc(), Notebook.created_at.asc()).all()
        return AggregationService.notebook_views(db, notebooks)

    @staticmethod
    def get_notebook(db: Session, user_id: int, notebook_id) -> dict:
        return AggregationService.notebook_view(db, assert_owned(db, Notebook, notebook_id, user_id))

    @staticmethod
    def update_notebook(db: Session, user_id: int, notebook_id, data: dict) -> dict:
        notebook = assert_owned(db, Notebook, notebook_id, user_id)
        if "name" in data:
            notebook_name = _require_name(data, "Notebook")
        if "color_id" in data:
            color_id = validate_color(db, data["color_id"])
        try:
            if "name" in data:
                notebook.name = notebook_name
            if "description" in data:
                notebook.description = _clean(data["description"])
            if "color_id" in data:
                notebook.color_id = color_id
            if data.get("sort_order") is not None:
                notebook.sort_order = _sort_value(data["sort_order"])
            db.commit()
            db.refresh(notebook)
        except Exception:
            db.rollback()
            raise
        return AggregationService.notebook_view(db, notebook)

    @staticmethod
    def delete_notebook(db: Session, user_id: int, notebook_id) -> dict:
        """
        Detach the notebook's notes, delete it, then re-home the detached
        notes in the user's default notebook so no note is left unparented.
        """
        notebook = assert_owned(db, Notebook, notebook_id, user_id)
        try:
            orphan_ids = [row[0] for row in db.query(Note.id).filter_by(notebook_id=notebook.id).all()]
            if orphan_ids:
                db.query(Note).filter(Note.id.in_(orphan_ids)).update(
                    {Note.notebook_id: None}, synchronize_session=False
                )
            db.delete(notebook)
            db.flush()

            new_home = None
            if orphan_ids:
                new_home = HierarchyService.resolve_notebook(db, user_id)
                db.query(Note).filter(Note.id.in_(orphan_ids)).update(
                    {Note.notebook_id: new_home}, synchronize_session=False
                )
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Deleted notebook {notebook_id}; moved {len(orphan_ids)} note(s) to {new_home}")
        return {"moved_notes": len(orphan_ids), "notebook_id": new_home}

    @staticmethod
    def reorder_notebooks(db: Session, user_id: int, items, stack_id=...) -> int:
        """``stack_id`` restricts the reorder to one scope when given (``None`` = unstacked)."""
        if stack_id is ...:
            return reorder(db, Notebook, user_id, items)
        return reorder(db, Notebook, user_id, items, stack_id=stack_id)

    @staticmethod
    def move_notebook_to_stack(db: Session, user_id: int, notebook_id, stack_id) -> dict:
        if stack_id in (None, ""):
            raise ValidationError("Notebook ID and Stack ID are required")
        notebook = assert_owned(db, Notebook, notebook_id, user_id)
        stack = assert_owned(db, Stack, stack_id, user_id)
        try:
            notebook.sort_order = next_sort_order(db, Notebook, user_id=user_id, stack_id=stack.id)
            notebook.stack_id = stack.id
            db.commit()
            db.refresh(notebook)
        except Exception:
            db.rollback()
            raise
        return AggregationService.notebook_view(db, notebook)

    @staticmethod
    def remove_from_stack(db: Session, user_id: int, notebook_id) -> dict:
        notebook = assert_owned(db, Notebook, notebook_id, user_id)
        if notebook.stack_id is None:
            raise ValidationError("Notebook is not in any stack")
        try:
            notebook.sort_order = next_sort_order(db, Notebook, user_id=user_id, stack_id=None)
            notebook.stack_id = None
            db.commit()
            db.refresh(notebook)
        except Exception:
            db.rollback()
            raise
        return AggregationService.notebook_view(db, notebook)

    @staticmethod
    def notebook_notes(db: Session, user_id: int, notebook_id, archived=None, trashed=False) -> dict:
        notebook = assert_owned(db, Notebook, notebook_id, user_id)
        query = db.query(Note).filter_by(user_id=user_id, notebook_id=notebook.id)
        if archived is not None:
            query = query.filter_by(archived=bool(archived))
        if trashed is not None:
            query = query.filter_by(trashed=bool(trashed))
        notes = query.order_by(Note.pinned.desc(), Note.updated_at.desc(), Note.id.desc()).all()
        views = AggregationService.note_views(db, notes)
        return {"notebook": {"id": notebook.id, "name": notebook.name}, "notes": views, "count": len(views)}
