from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from notestack.auth import get_current_user
from notestack.database import get_db
from notestack.errors import envelope
from notestack.services.color_service import ColorService

router = APIRouter(prefix="/api/v1/colors", tags=["Colors"])


class ColorCreate(BaseModel):
    name: Optional[str] = None
    hex_code: Optional[str] = None


@router.get("")
async def list_colors(db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    colors = ColorService.list_colors(db)
    return envelope(data={"colors": colors, "count": len(colors)})


@router.post("", status_code=201)
async def create_color(body: ColorCreate, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    color = ColorService.create(db, body.model_dump(exclude_unset=True))
    return envelope("Color created successfully", {"color": color})
