from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from notestack.auth import get_current_user
from notestack.database import get_db
from notestack.errors import envelope
from notestack.services.settings_service import SettingsService

router = APIRouter(prefix="/api/v1/settings", tags=["Settings"])


class SettingsUpdate(BaseModel):
    theme_layout: Optional[str] = None
    theme_color: Optional[str] = None
    corners: Optional[str] = None
    button_style: Optional[str] = None


@router.get("")
async def get_settings(db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data={"settings": SettingsService.get(db, user_id)})


@router.put("")
async def update_settings(body: SettingsUpdate, db: Session = Depends(get_db),
                          user_id: int = Depends(get_current_user)):
    settings = SettingsService.update(db, user_id, body.model_dump(exclude_unset=True, exclude_none=True))
    return envelope("Settings updated successfully", {"settings": settings})
