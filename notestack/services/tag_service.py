from sqlalchemy import func
from sqlalchemy.orm import Session

from notestack.errors import ValidationError, DuplicateError
from notestack.models.note_tag import NoteTag
from notestack.models.tag import Tag
from notestack.services.ownership import assert_owned, validate_color


def _tag_dict(tag: Tag, note_count: int = 0) -> dict:
    return {
        "id": tag.id,
        "user_id": tag.user_id,
        "name": tag.name,
        "color_id": tag.color_id,
        "note_count": note_count,
        "created_at": tag.created_at,
    }


def _note_counts(db: Session, tag_ids: list[int]) -> dict[int, int]:
    if not tag_ids:
        return {}
    rows = (
        db.query(NoteTag.tag_id, func.count(NoteTag.id))
        .filter(NoteTag.tag_id.in_(tag_ids))
        .group_by(NoteTag.tag_id)
        .all()
    )
    return dict(rows)


class TagService:
    @staticmethod
    def _check_name(db: Session, user_id: int, name, exclude_id: int | None = None) -> str:
        if not name or not str(name).strip():
            raise ValidationError("Tag name is required")
        name = str(name).strip()
        query = db.query(Tag.id).filter(Tag.user_id == user_id, Tag.name == name)
        if exclude_id is not None:
            query = query.filter(Tag.id != exclude_id)
        if query.first():
            raise DuplicateError("Tag with this name already exists")
        return name

    @staticmethod
    def create(db: Session, user_id: int, data: dict) -> dict:
        name = TagService._check_name(db, user_id, data.get("name"))
        color_id = validate_color(db, data.get("color_id"))
        try:
            tag = Tag(user_id=user_id, name=name, color_id=color_id)
            db.add(tag)
            db.commit()
            db.refresh(tag)
        except Exception:
            db.rollback()
            raise
        return _tag_dict(tag)

    @staticmethod
    def list_tags(db: Session, user_id: int) -> list[dict]:
        tags = db.query(Tag).filter_by(user_id=user_id).order_by(Tag.name.asc()).all()
        counts = _note_counts(db, [t.id for t in tags])
        return [_tag_dict(t, counts.get(t.id, 0)) for t in tags]

    @staticmethod
    def get(db: Session, user_id: int, tag_id) -> dict:
        tag = assert_owned(db, Tag, tag_id, user_id)
        return _tag_dict(tag, _note_counts(db, [tag.id]).get(tag.id, 0))

    @staticmethod
    def update(db: Session, user_id: int, tag_id, data: dict) -> dict:
        tag = assert_owned(db, Tag, tag_id, user_id)
        if "name" in data:
            name = TagService._check_name(db, user_id, data["name"], exclude_id=tag.id)
        if "color_id" in data:
            color_id = validate_color(db, data["color_id"])
        try:
            if "name" in data:
                tag.name = name
            if "color_id" in data:
                tag.color_id = color_id
            db.commit()
            db.refresh(tag)
        except Exception:
            db.rollback()
            raise
        return TagService.get(db, user_id, tag.id)

    @staticmethod
    def delete(db: Session, user_id: int, tag_id) -> None:
        """Removes the tag and every note association it has."""
        tag = assert_owned(db, Tag, tag_id, user_id)
        try:
            db.query(NoteTag).filter_by(tag_id=tag.id).delete(synchronize_session=False)
            db.delete(tag)
            db.commit()
        except Exception:
            db.rollback()
            raise
