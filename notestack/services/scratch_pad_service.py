"""
scratch_pad_service.py: One free-form scratch pad per user.

The pad is created empty on first access; clearing keeps the row.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notestack.errors import ValidationError
from notestack.models.scratch_pad import ScratchPad


def _pad_dict(pad: ScratchPad) -> dict:
    return {"content": pad.content or "", "updated_at": pad.updated_at}


class ScratchPadService:
    @staticmethod
    def _get_or_create(db: Session, user_id: int) -> ScratchPad:
        pad = db.query(ScratchPad).filter_by(user_id=user_id).first()
        if pad is not None:
            return pad
        try:
            pad = ScratchPad(user_id=user_id, content="")
            db.add(pad)
            db.commit()
            db.refresh(pad)
            return pad
        except IntegrityError:
            # Another request created it first
            db.rollback()
            return db.query(ScratchPad).filter_by(user_id=user_id).one()

    @staticmethod
    def _write(db: Session, user_id: int, content: str) -> dict:
        pad = ScratchPadService._get_or_create(db, user_id)
        try:
            pad.content = content
            db.commit()
            db.refresh(pad)
        except Exception:
            db.rollback()
            raise
        return _pad_dict(pad)

    @staticmethod
    def get(db: Session, user_id: int) -> dict:
        return _pad_dict(ScratchPadService._get_or_create(db, user_id))

    @staticmethod
    def update(db: Session, user_id: int, data: dict) -> dict:
        """``content`` must be present; null is stored as an empty pad."""
        if "content" not in data:
            raise ValidationError("Content is required")
        content = data["content"]
        return ScratchPadService._write(db, user_id, "" if content is None else str(content))

    @staticmethod
    def clear(db: Session, user_id: int) -> dict:
        return ScratchPadService._write(db, user_id, "")
