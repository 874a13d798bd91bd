from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import List, Optional

from notestack.auth import get_current_user
from notestack.database import get_db
from notestack.errors import envelope
from notestack.services.hierarchy_service import HierarchyService

router = APIRouter(prefix="/api/v1/stacks", tags=["Stacks"])


class StackCreate(BaseModel):
    name: str
    description: Optional[str] = None
    color_id: Optional[int] = None
    sort_order: Optional[int] = None


class StackUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color_id: Optional[int] = None
    sort_order: Optional[int] = None


class OrderItem(BaseModel):
    id: int
    sort_order: int


class StackReorder(BaseModel):
    stacks: List[OrderItem]


@router.get("")
async def list_stacks(db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    stacks = HierarchyService.list_stacks(db, user_id)
    return envelope(data={"stacks": stacks, "count": len(stacks)})


@router.post("", status_code=201)
async def create_stack(body: StackCreate, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    stack = HierarchyService.create_stack(db, user_id, body.model_dump(exclude_unset=True))
    return envelope("Stack created successfully", {"stack": stack})


@router.put("/reorder")
async def reorder_stacks(body: StackReorder, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    count = HierarchyService.reorder_stacks(db, user_id, [item.model_dump() for item in body.stacks])
    return envelope("Stacks reordered successfully", {"updated_count": count})


@router.get("/{stack_id}")
async def get_stack(stack_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data={"stack": HierarchyService.get_stack(db, user_id, stack_id)})


@router.put("/{stack_id}")
async def update_stack(stack_id: int, body: StackUpdate, db: Session = Depends(get_db),
                       user_id: int = Depends(get_current_user)):
    stack = HierarchyService.update_stack(db, user_id, stack_id, body.model_dump(exclude_unset=True))
    return envelope("Stack updated successfully", {"stack": stack})


@router.delete("/{stack_id}")
async def delete_stack(stack_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    moved = HierarchyService.delete_stack(db, user_id, stack_id)
    return envelope("Stack deleted successfully", {"unstacked_notebooks": moved})


@router.get("/{stack_id}/notebooks")
async def stack_notebooks(stack_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data=HierarchyService.stack_notebooks(db, user_id, stack_id))
