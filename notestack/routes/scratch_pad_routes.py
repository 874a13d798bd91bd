from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from notestack.auth import get_current_user
from notestack.database import get_db
from notestack.errors import envelope
from notestack.services.scratch_pad_service import ScratchPadService

router = APIRouter(prefix="/api/v1/scratch-pad", tags=["Scratch Pad"])


class ScratchPadUpdate(BaseModel):
    content: Optional[str] = None


@router.get("")
async def get_scratch_pad(db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data=ScratchPadService.get(db, user_id))


@router.put("")
async def update_scratch_pad(body: ScratchPadUpdate, db: Session = Depends(get_db),
                             user_id: int = Depends(get_current_user)):
    pad = ScratchPadService.update(db, user_id, body.model_dump(exclude_unset=True))
    return envelope("Scratch pad saved", pad)


@router.delete("")
async def clear_scratch_pad(db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope("Scratch pad cleared", ScratchPadService.clear(db, user_id))
