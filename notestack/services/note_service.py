"""
note_service.py: Note lifecycle and content binding.

Metadata lives in the ``notes`` table, the body in the content store under
``content_ref``. Lifecycle flags behave like a small state machine:

    active ──pin──▶ pinned ──archive──▶ archived ──trash──▶ trashed
                                                  restore ──▶ active

``archive`` clears ``pinned``; ``trash`` clears both; ``restore`` always lands
on active. Only content saves bump ``version`` and set ``synced``; metadata
edits leave them alone.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from notestack.content_store import ContentStore, empty_document
from notestack.errors import ValidationError, DuplicateError, NotFoundOrForbidden
from notestack.models.file import File
from notestack.models.note import Note
from notestack.models.note_tag import NoteTag
from notestack.models.notebook import Notebook
from notestack.models.tag import Tag
from notestack.models.task import Task
from notestack.services.aggregation_service import AggregationService
from notestack.services.file_service import file_to_dict
from notestack.services.hierarchy_service import HierarchyService
from notestack.services.ownership import assert_owned

logger = logging.getLogger(__name__)

# transition -> flag values it writes
TRANSITIONS = {
    "pin": {"pinned": True},
    "unpin": {"pinned": False},
    "archive": {"archived": True, "pinned": False},
    "unarchive": {"archived": False},
    "trash": {"trashed": True, "pinned": False, "archived": False},
    "restore": {"trashed": False, "pinned": False, "archived": False},
}

CONTENT_FIELDS = ("title", "content")


def _now():
    return datetime.now(timezone.utc)


def _flag(value):
    """Query-string style booleans ("true"/"false") or real bools; None means no filter."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes")


class NoteService:
    # ------------------------------------------------------------------
    @staticmethod
    def _mirror(store: ContentStore, note: Note, fields: dict):
        """Copy metadata into the content document if one exists. Failures are logged, not raised."""
        try:
            if store.get(note.content_ref) is not None:
                store.save(note.content_ref, fields)
        except Exception as e:
            logger.warning(f"Could not mirror {sorted(fields)} into content {note.content_ref}: {e}")

    # ------------------------------------------------------------------
    @staticmethod
    def create(db: Session, store: ContentStore, user_id: int, data: dict) -> dict:
        """Insert the note row, then initialize its content document."""
        title = data.get("title")
        if not title or not str(title).strip():
            raise ValidationError("Note title is required")
        title = str(title).strip()

        content_ref = data.get("content_ref")
        content_ref = str(content_ref).strip() if content_ref not in (None, "") else str(uuid.uuid4())
        if db.query(Note.id).filter_by(content_ref=content_ref).first():
            raise DuplicateError("content_ref is already in use")

        try:
            notebook_id = HierarchyService.resolve_notebook(db, user_id, data.get("notebook_id"))
            note = Note(
                user_id=user_id,
                notebook_id=notebook_id,
                content_ref=content_ref,
                title=title,
                pinned=False,
                archived=False,
                trashed=False,
                version=1,
                synced=False,
            )
            db.add(note)
            db.commit()
            db.refresh(note)
        except Exception:
            db.rollback()
            raise

        # Second, independent write. A failure here leaves the row without a
        # document; readers fall back to empty content.
        try:
            store.initialize(content_ref, {
                "title": note.title,
                "content": "",
                "user_id": user_id,
                "notebook_id": note.notebook_id,
                "is_trashed": False,
            })
        except Exception as e:
            logger.error(f"Note {note.id} created but content {content_ref} was not initialized: {e}")
            raise

        return AggregationService.note_view(db, note)

    @staticmethod
    def list_notes(db: Session, user_id: int, filters: dict | None = None) -> list[dict]:
        """Notes with live counts. Trashed notes only show up when asked for."""
        filters = filters or {}
        query = db.query(Note).filter(Note.user_id == user_id)

        if filters.get("notebook_id") not in (None, ""):
            query = query.filter(Note.notebook_id == int(filters["notebook_id"]))
        for flag in ("pinned", "archived"):
            value = _flag(filters.get(flag))
            if value is not None:
                query = query.filter(getattr(Note, flag).is_(value))
        trashed = _flag(filters.get("trashed"))
        query = query.filter(Note.trashed.is_(bool(trashed)))
        q = (filters.get("q") or "").strip()
        if q:
            query = query.filter(Note.title.ilike(f"%{q}%"))

        notes = query.order_by(Note.pinned.desc(), Note.updated_at.desc(), Note.id.desc()).all()
        return AggregationService.note_views(db, notes)

    @staticmethod
    def get(db: Session, user_id: int, note_id) -> dict:
        return AggregationService.note_view(db, assert_owned(db, Note, note_id, user_id))

    @staticmethod
    def update_meta(db: Session, store: ContentStore, user_id: int, note_id, data: dict) -> dict:
        """Title / notebook edits. Does not touch version or synced."""
        note = assert_owned(db, Note, note_id, user_id)
        if "title" in data:
            title = data["title"]
            if not title or not str(title).strip():
                raise ValidationError("Note title is required")
        if data.get("notebook_id") is not None:
            assert_owned(db, Notebook, data["notebook_id"], user_id)

        try:
            if "title" in data:
                note.title = str(data["title"]).strip()
            if "notebook_id" in data:
                # Explicit null means "back to the default notebook"
                note.notebook_id = HierarchyService.resolve_notebook(db, user_id, data["notebook_id"])
            note.last_modified = _now()
            db.commit()
            db.refresh(note)
        except Exception:
            db.rollback()
            raise

        mirrored = {k: getattr(note, k) for k in ("title", "notebook_id") if k in data}
        if mirrored:
            NoteService._mirror(store, note, mirrored)
        return AggregationService.note_view(db, note)

    @staticmethod
    def move(db: Session, store: ContentStore, user_id: int, note_id, notebook_id) -> dict:
        if notebook_id in (None, ""):
            raise ValidationError("Note ID and notebook ID are required")
        note = assert_owned(db, Note, note_id, user_id)
        notebook = assert_owned(db, Notebook, notebook_id, user_id)
        try:
            note.notebook_id = notebook.id
            note.last_modified = _now()
            db.commit()
            db.refresh(note)
        except Exception:
            db.rollback()
            raise
        NoteService._mirror(store, note, {"notebook_id": note.notebook_id})
        return AggregationService.note_view(db, note)

    @staticmethod
    def transition(db: Session, store: ContentStore, user_id: int, note_id, action: str) -> dict:
        """Apply one of ``TRANSITIONS`` and stamp ``last_modified``."""
        if action not in TRANSITIONS:
            raise ValidationError(f"Unknown note action: {action}")
        note = assert_owned(db, Note, note_id, user_id)
        try:
            for field, value in TRANSITIONS[action].items():
                setattr(note, field, value)
            note.last_modified = _now()
            db.commit()
            db.refresh(note)
        except Exception:
            db.rollback()
            raise
        if action in ("trash", "restore"):
            NoteService._mirror(store, note, {"is_trashed": note.trashed})
        return AggregationService.note_view(db, note)

    @staticmethod
    def mark_synced(db: Session, user_id: int, note_id, version=None) -> dict:
        note = assert_owned(db, Note, note_id, user_id)
        try:
            note.synced = True
            if version is not None:
                note.version = int(version)
            note.last_modified = _now()
            db.commit()
            db.refresh(note)
        except (TypeError, ValueError):
            db.rollback()
            raise ValidationError("version must be an integer")
        except Exception:
            db.rollback()
            raise
        return AggregationService.note_view(db, note)

    @staticmethod
    def delete(db: Session, store: ContentStore, user_id: int, note_id) -> None:
        """Hard delete with tasks and tag links. Files are only detached."""
        note = assert_owned(db, Note, note_id, user_id)
        content_ref = note.content_ref
        try:
            db.query(Task).filter_by(note_id=note.id).delete(synchronize_session=False)
            db.query(NoteTag).filter_by(note_id=note.id).delete(synchronize_session=False)
            db.query(File).filter_by(note_id=note.id).update({File.note_id: None}, synchronize_session=False)
            db.delete(note)
            db.commit()
        except Exception:
            db.rollback()
            raise
        store.delete(content_ref)

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------
    @staticmethod
    def get_content(db: Session, store: ContentStore, user_id: int, note_id) -> dict:
        note = assert_owned(db, Note, note_id, user_id)
        doc = store.get(note.content_ref)
        if doc is None:
            logger.info(f"Content {note.content_ref} missing for note {note.id}; serving empty content")
            doc = empty_document(note)
        return {"note_id": note.id, "content_ref": note.content_ref, "content": doc}

    @staticmethod
    def save_content(db: Session, store: ContentStore, user_id: int, note_id, payload: dict) -> dict:
        """
        Initialize the document if it is missing, merge-update it otherwise.
        Bumps ``version`` and sets ``synced`` only after the store accepted it.
        A title in the payload is written to the note row in the same commit.
        """
        note = assert_owned(db, Note, note_id, user_id)
        if not isinstance(payload, dict):
            raise ValidationError("Content payload must be an object")
        fields = {k: payload[k] for k in CONTENT_FIELDS if k in payload}
        if not fields:
            raise ValidationError("Nothing to save: provide title or content")
        if "title" in fields:
            if not fields["title"] or not str(fields["title"]).strip():
                raise ValidationError("Note title is required")
            fields["title"] = str(fields["title"]).strip()

        if store.get(note.content_ref) is None:
            doc = store.initialize(note.content_ref, {
                "title": note.title,
                "user_id": note.user_id,
                "notebook_id": note.notebook_id,
                "is_trashed": note.trashed,
                **fields,
            })
        else:
            doc = store.save(note.content_ref, fields)

        try:
            # The row and the document carry the same title
            if "title" in fields:
                note.title = fields["title"]
            note.version = (note.version or 0) + 1
            note.synced = True
            note.last_modified = _now()
            db.commit()
            db.refresh(note)
        except Exception:
            db.rollback()
            raise
        return {"note": AggregationService.note_view(db, note), "content": doc}

    # ------------------------------------------------------------------
    # Tags / files on a note
    # ------------------------------------------------------------------
    @staticmethod
    def add_tag(db: Session, user_id: int, note_id, tag_id) -> None:
        note = assert_owned(db, Note, note_id, user_id)
        tag = assert_owned(db, Tag, tag_id, user_id)
        if db.query(NoteTag.id).filter_by(note_id=note.id, tag_id=tag.id).first():
            raise DuplicateError("Tag is already attached to this note")
        try:
            db.add(NoteTag(note_id=note.id, tag_id=tag.id))
            db.commit()
        except Exception:
            db.rollback()
            raise

    @staticmethod
    def remove_tag(db: Session, user_id: int, note_id, tag_id) -> None:
        note = assert_owned(db, Note, note_id, user_id)
        tag = assert_owned(db, Tag, tag_id, user_id)
        link = db.query(NoteTag).filter_by(note_id=note.id, tag_id=tag.id).first()
        if link is None:
            raise NotFoundOrForbidden("Tag attachment")
        try:
            db.delete(link)
            db.commit()
        except Exception:
            db.rollback()
            raise

    @staticmethod
    def note_tags(db: Session, user_id: int, note_id) -> dict:
        note = assert_owned(db, Note, note_id, user_id)
        tags = (
            db.query(Tag)
            .join(NoteTag, NoteTag.tag_id == Tag.id)
            .filter(NoteTag.note_id == note.id)
            .order_by(Tag.name.asc())
            .all()
        )
        return {
            "note": {"id": note.id, "title": note.title},
            "tags": [{"id": t.id, "name": t.name, "color_id": t.color_id} for t in tags],
            "count": len(tags),
        }

    @staticmethod
    def note_files(db: Session, user_id: int, note_id) -> dict:
        note = assert_owned(db, Note, note_id, user_id)
        files = (
            db.query(File)
            .filter_by(note_id=note.id, user_id=user_id)
            .order_by(File.created_at.desc(), File.id.desc())
            .all()
        )
        return {"note": {"id": note.id, "title": note.title}, "files": [file_to_dict(f) for f in files], "count": len(files)}
