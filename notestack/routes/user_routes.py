from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from notestack.auth import get_current_user
from notestack.database import get_db
from notestack.errors import envelope
from notestack.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


class ProfileUpdate(BaseModel):
    email: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


@router.get("/me")
async def get_profile(db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data={"user": UserService.get_profile(db, user_id)})


@router.put("/me")
async def update_profile(body: ProfileUpdate, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    user = UserService.update_profile(db, user_id, body.model_dump(exclude_unset=True))
    return envelope("Profile updated successfully", {"user": user})
