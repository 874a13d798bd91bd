"""
file_service.py: File metadata.

The binary lives in external blob storage; this service only tracks the row
(``storage_path``, name, type, size) and which note, if any, it is attached to.
"""

import logging

from sqlalchemy.orm import Session

from notestack.errors import ValidationError
from notestack.models.file import File
from notestack.models.note import Note
from notestack.services.ownership import assert_owned

logger = logging.getLogger(__name__)


def file_to_dict(f: File) -> dict:
    return {
        "id": f.id,
        "user_id": f.user_id,
        "note_id": f.note_id,
        "storage_path": f.storage_path,
        "filename": f.filename,
        "mime_type": f.mime_type,
        "size": f.size,
        "description": f.description,
        "created_at": f.created_at,
        "updated_at": f.updated_at,
    }


class FileService:
    @staticmethod
    def create(db: Session, user_id: int, data: dict) -> dict:
        """Register an uploaded blob. ``note_id`` is optional."""
        missing = [k for k in ("storage_path", "filename", "mime_type") if not data.get(k)]
        if missing:
            raise ValidationError(f"Required fields are missing: {', '.join(missing)}")
        try:
            size = int(data.get("size") or 0)
        except (TypeError, ValueError):
            raise ValidationError("size must be an integer")
        if size < 0:
            raise ValidationError("size must not be negative")

        note_id = None
        if data.get("note_id") not in (None, ""):
            note_id = assert_owned(db, Note, data["note_id"], user_id).id

        try:
            f = File(
                user_id=user_id,
                note_id=note_id,
                storage_path=str(data["storage_path"]).strip(),
                filename=str(data["filename"]).strip(),
                mime_type=str(data["mime_type"]).strip(),
                size=size,
                description=data.get("description"),
            )
            db.add(f)
            db.commit()
            db.refresh(f)
        except Exception:
            db.rollback()
            raise
        return file_to_dict(f)

    @staticmethod
    def list_files(db: Session, user_id: int, unattached_only: bool = False) -> list[dict]:
        query = db.query(File).filter_by(user_id=user_id)
        if unattached_only:
            query = query.filter(File.note_id.is_(None))
        return [file_to_dict(f) for f in query.order_by(File.created_at.desc(), File.id.desc()).all()]

    @staticmethod
    def get(db: Session, user_id: int, file_id) -> dict:
        return file_to_dict(assert_owned(db, File, file_id, user_id))

    @staticmethod
    def update_meta(db: Session, user_id: int, file_id, data: dict) -> dict:
        f = assert_owned(db, File, file_id, user_id)
        if "filename" in data and not (data["filename"] or "").strip():
            raise ValidationError("filename must not be empty")
        try:
            if "filename" in data:
                f.filename = data["filename"].strip()
            if "description" in data:
                f.description = data["description"]
            db.commit()
            db.refresh(f)
        except Exception:
            db.rollback()
            raise
        return file_to_dict(f)

    @staticmethod
    def delete(db: Session, user_id: int, file_id) -> dict:
        """Drop the row. Returns the storage path so the caller can purge the blob."""
        f = assert_owned(db, File, file_id, user_id)
        storage_path = f.storage_path
        try:
            db.delete(f)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Deleted file {file_id}; blob {storage_path} left for storage cleanup")
        return {"storage_path": storage_path}

    @staticmethod
    def attach(db: Session, user_id: int, file_id, note_id) -> dict:
        f = assert_owned(db, File, file_id, user_id)
        note = assert_owned(db, Note, note_id, user_id)
        try:
            f.note_id = note.id
            db.commit()
            db.refresh(f)
        except Exception:
            db.rollback()
            raise
        return file_to_dict(f)

    @staticmethod
    def detach(db: Session, user_id: int, file_id) -> dict:
        f = assert_owned(db, File, file_id, user_id)
        if f.note_id is None:
            raise ValidationError("File is not attached to any note")
        try:
            f.note_id = None
            db.commit()
            db.refresh(f)
        except Exception:
            db.rollback()
            raise
        return file_to_dict(f)
