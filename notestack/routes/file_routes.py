from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from notestack.auth import get_current_user
from notestack.database import get_db
from notestack.errors import envelope
from notestack.services.file_service import FileService

router = APIRouter(prefix="/api/v1/files", tags=["Files"])


class FileCreate(BaseModel):
    storage_path: Optional[str] = None
    filename: Optional[str] = None
    mime_type: Optional[str] = None
    size: Optional[int] = None
    description: Optional[str] = None
    note_id: Optional[int] = None


class FileUpdate(BaseModel):
    filename: Optional[str] = None
    description: Optional[str] = None


@router.get("")
async def list_files(unattached: bool = False, db: Session = Depends(get_db),
                     user_id: int = Depends(get_current_user)):
    files = FileService.list_files(db, user_id, unattached_only=unattached)
    return envelope(data={"files": files, "count": len(files)})


@router.post("", status_code=201)
async def create_file(body: FileCreate, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    f = FileService.create(db, user_id, body.model_dump(exclude_unset=True))
    return envelope("File registered successfully", {"file": f})


@router.get("/{file_id}")
async def get_file(file_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data={"file": FileService.get(db, user_id, file_id)})


@router.put("/{file_id}")
async def update_file(file_id: int, body: FileUpdate, db: Session = Depends(get_db),
                      user_id: int = Depends(get_current_user)):
    f = FileService.update_meta(db, user_id, file_id, body.model_dump(exclude_unset=True))
    return envelope("File updated successfully", {"file": f})


@router.delete("/{file_id}")
async def delete_file(file_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    result = FileService.delete(db, user_id, file_id)
    return envelope("File deleted successfully", result)


@router.put("/{file_id}/note/{note_id}")
async def attach_file(file_id: int, note_id: int, db: Session = Depends(get_db),
                      user_id: int = Depends(get_current_user)):
    f = FileService.attach(db, user_id, file_id, note_id)
    return envelope("File attached to note successfully", {"file": f})


@router.delete("/{file_id}/note")
async def detach_file(file_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    f = FileService.detach(db, user_id, file_id)
    return envelope("File detached from note successfully", {"file": f})
