from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from notestack.auth import get_current_user
from notestack.database import get_db
from notestack.errors import envelope
from notestack.services.tag_service import TagService

router = APIRouter(prefix="/api/v1/tags", tags=["Tags"])


class TagCreate(BaseModel):
    name: Optional[str] = None
    color_id: Optional[int] = None


@router.get("")
async def list_tags(db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    tags = TagService.list_tags(db, user_id)
    return envelope(data={"tags": tags, "count": len(tags)})


@router.post("", status_code=201)
async def create_tag(body: TagCreate, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    tag = TagService.create(db, user_id, body.model_dump(exclude_unset=True))
    return envelope("Tag created successfully", {"tag": tag})


@router.get("/{tag_id}")
async def get_tag(tag_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data={"tag": TagService.get(db, user_id, tag_id)})


@router.put("/{tag_id}")
async def update_tag(tag_id: int, body: TagCreate, db: Session = Depends(get_db),
                     user_id: int = Depends(get_current_user)):
    tag = TagService.update(db, user_id, tag_id, body.model_dump(exclude_unset=True))
    return envelope("Tag updated successfully", {"tag": tag})


@router.delete("/{tag_id}")
async def delete_tag(tag_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    TagService.delete(db, user_id, tag_id)
    return envelope("Tag deleted successfully")
