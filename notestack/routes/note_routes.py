from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Any, Optional

from notestack.auth import get_current_user
from notestack.content_store import ContentStore, get_content_store
from notestack.database import get_db
from notestack.errors import envelope
from notestack.services.note_service import NoteService
from notestack.services.task_service import TaskService

router = APIRouter(prefix="/api/v1/notes", tags=["Notes"])


class NoteCreate(BaseModel):
    title: Optional[str] = None
    notebook_id: Optional[int] = None
    content_ref: Optional[str] = None


class NoteUpdate(BaseModel):
    title: Optional[str] = None
    notebook_id: Optional[int] = None


class SyncUpdate(BaseModel):
    version: Optional[int] = None


class ContentSave(BaseModel):
    title: Optional[str] = None
    content: Optional[Any] = None


@router.get("")
async def list_notes(notebook_id: Optional[int] = None, pinned: Optional[bool] = None,
                     archived: Optional[bool] = None, trashed: Optional[bool] = None, q: Optional[str] = None,
                     db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    filters = {"notebook_id": notebook_id, "pinned": pinned, "archived": archived, "trashed": trashed, "q": q}
    notes = NoteService.list_notes(db, user_id, filters)
    return envelope(data={"notes": notes, "count": len(notes)})


@router.post("", status_code=201)
async def create_note(body: NoteCreate, db: Session = Depends(get_db),
                      store: ContentStore = Depends(get_content_store), user_id: int = Depends(get_current_user)):
    note = NoteService.create(db, store, user_id, body.model_dump(exclude_unset=True))
    return envelope("Note created successfully", {"note": note})


@router.get("/{note_id}")
async def get_note(note_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data={"note": NoteService.get(db, user_id, note_id)})


@router.put("/{note_id}")
async def update_note(note_id: int, body: NoteUpdate, db: Session = Depends(get_db),
                      store: ContentStore = Depends(get_content_store), user_id: int = Depends(get_current_user)):
    note = NoteService.update_meta(db, store, user_id, note_id, body.model_dump(exclude_unset=True))
    return envelope("Note updated successfully", {"note": note})


@router.delete("/{note_id}")
async def delete_note(note_id: int, db: Session = Depends(get_db),
                      store: ContentStore = Depends(get_content_store), user_id: int = Depends(get_current_user)):
    NoteService.delete(db, store, user_id, note_id)
    return envelope("Note deleted successfully")


@router.put("/{note_id}/notebook/{notebook_id}")
async def move_note(note_id: int, notebook_id: int, db: Session = Depends(get_db),
                    store: ContentStore = Depends(get_content_store), user_id: int = Depends(get_current_user)):
    note = NoteService.move(db, store, user_id, note_id, notebook_id)
    return envelope("Note moved successfully", {"note": note})


def _transition(db, store, user_id, note_id, action, msg):
    note = NoteService.transition(db, store, user_id, note_id, action)
    return envelope(msg, {"note": note})


@router.put("/{note_id}/pin")
async def pin_note(note_id: int, db: Session = Depends(get_db),
                   store: ContentStore = Depends(get_content_store), user_id: int = Depends(get_current_user)):
    return _transition(db, store, user_id, note_id, "pin", "Note pinned successfully")


@router.put("/{note_id}/unpin")
async def unpin_note(note_id: int, db: Session = Depends(get_db),
                     store: ContentStore = Depends(get_content_store), user_id: int = Depends(get_current_user)):
    return _transition(db, store, user_id, note_id, "unpin", "Note unpinned successfully")


@router.put("/{note_id}/archive")
async def archive_note(note_id: int, db: Session = Depends(get_db),
                       store: ContentStore = Depends(get_content_store), user_id: int = Depends(get_current_user)):
    return _transition(db, store, user_id, note_id, "archive", "Note archived successfully")


@router.put("/{note_id}/unarchive")
async def unarchive_note(note_id: int, db: Session = Depends(get_db),
                         store: ContentStore = Depends(get_content_store), user_id: int = Depends(get_current_user)):
    return _transition(db, store, user_id, note_id, "unarchive", "Note unarchived successfully")


@router.put("/{note_id}/trash")
async def trash_note(note_id: int, db: Session = Depends(get_db),
                     store: ContentStore = Depends(get_content_store), user_id: int = Depends(get_current_user)):
    return _transition(db, store, user_id, note_id, "trash", "Note moved to trash")


@router.put("/{note_id}/restore")
async def restore_note(note_id: int, db: Session = Depends(get_db),
                       store: ContentStore = Depends(get_content_store), user_id: int = Depends(get_current_user)):
    return _transition(db, store, user_id, note_id, "restore", "Note restored successfully")


@router.put("/{note_id}/synced")
async def mark_synced(note_id: int, body: Optional[SyncUpdate] = None, db: Session = Depends(get_db),
                      user_id: int = Depends(get_current_user)):
    version = body.version if body else None
    note = NoteService.mark_synced(db, user_id, note_id, version)
    return envelope("Note marked as synced", {"note": note})


@router.get("/{note_id}/content")
async def get_content(note_id: int, db: Session = Depends(get_db),
                      store: ContentStore = Depends(get_content_store), user_id: int = Depends(get_current_user)):
    return envelope(data=NoteService.get_content(db, store, user_id, note_id))


@router.put("/{note_id}/content")
async def save_content(note_id: int, body: ContentSave, db: Session = Depends(get_db),
                       store: ContentStore = Depends(get_content_store), user_id: int = Depends(get_current_user)):
    result = NoteService.save_content(db, store, user_id, note_id, body.model_dump(exclude_unset=True))
    return envelope("Note content saved successfully", result)


@router.get("/{note_id}/tags")
async def note_tags(note_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data=NoteService.note_tags(db, user_id, note_id))


@router.post("/{note_id}/tags/{tag_id}", status_code=201)
async def add_tag(note_id: int, tag_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    NoteService.add_tag(db, user_id, note_id, tag_id)
    return envelope("Tag added to note successfully")


@router.delete("/{note_id}/tags/{tag_id}")
async def remove_tag(note_id: int, tag_id: int, db: Session = Depends(get_db),
                     user_id: int = Depends(get_current_user)):
    NoteService.remove_tag(db, user_id, note_id, tag_id)
    return envelope("Tag removed from note successfully")


@router.get("/{note_id}/files")
async def note_files(note_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data=NoteService.note_files(db, user_id, note_id))


@router.get("/{note_id}/tasks")
async def note_tasks(note_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data=TaskService.note_tasks(db, user_id, note_id))
