from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import List, Optional

from notestack.auth import get_current_user
from notestack.database import get_db
from notestack.errors import envelope
from notestack.services.hierarchy_service import HierarchyService

router = APIRouter(prefix="/api/v1/notebooks", tags=["Notebooks"])


class NotebookCreate(BaseModel):
    name: str
    description: Optional[str] = None
    stack_id: Optional[int] = None
    color_id: Optional[int] = None
    sort_order: Optional[int] = None


class NotebookUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color_id: Optional[int] = None
    sort_order: Optional[int] = None


class OrderItem(BaseModel):
    id: int
    sort_order: int


class NotebookReorder(BaseModel):
    notebooks: List[OrderItem]
    stack_id: Optional[int] = None


class StackAssignment(BaseModel):
    stack_id: int


@router.get("")
async def list_notebooks(stack_id: Optional[int] = None, db: Session = Depends(get_db),
                         user_id: int = Depends(get_current_user)):
    notebooks = HierarchyService.list_notebooks(db, user_id, stack_id)
    return envelope(data={"notebooks": notebooks, "count": len(notebooks)})


@router.post("", status_code=201)
async def create_notebook(body: NotebookCreate, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    notebook = HierarchyService.create_notebook(db, user_id, body.model_dump(exclude_unset=True))
    return envelope("Notebook created successfully", {"notebook": notebook})


@router.put("/reorder")
async def reorder_notebooks(body: NotebookReorder, db: Session = Depends(get_db),
                            user_id: int = Depends(get_current_user)):
    items = [item.model_dump() for item in body.notebooks]
    if "stack_id" in body.model_fields_set:
        count = HierarchyService.reorder_notebooks(db, user_id, items, stack_id=body.stack_id)
    else:
        count = HierarchyService.reorder_notebooks(db, user_id, items)
    return envelope("Notebooks reordered successfully", {"updated_count": count})


@router.get("/{notebook_id}")
async def get_notebook(notebook_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data={"notebook": HierarchyService.get_notebook(db, user_id, notebook_id)})


@router.put("/{notebook_id}")
async def update_notebook(notebook_id: int, body: NotebookUpdate, db: Session = Depends(get_db),
                          user_id: int = Depends(get_current_user)):
    notebook = HierarchyService.update_notebook(db, user_id, notebook_id, body.model_dump(exclude_unset=True))
    return envelope("Notebook updated successfully", {"notebook": notebook})


@router.delete("/{notebook_id}")
async def delete_notebook(notebook_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    result = HierarchyService.delete_notebook(db, user_id, notebook_id)
    return envelope("Notebook deleted successfully", result)


@router.put("/{notebook_id}/stack")
async def move_to_stack(notebook_id: int, body: StackAssignment, db: Session = Depends(get_db),
                        user_id: int = Depends(get_current_user)):
    notebook = HierarchyService.move_notebook_to_stack(db, user_id, notebook_id, body.stack_id)
    return envelope("Notebook moved to stack successfully", {"notebook": notebook})


@router.delete("/{notebook_id}/stack")
async def remove_from_stack(notebook_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    notebook = HierarchyService.remove_from_stack(db, user_id, notebook_id)
    return envelope("Notebook removed from stack successfully", {"notebook": notebook})


@router.get("/{notebook_id}/notes")
async def notebook_notes(notebook_id: int, archived: Optional[bool] = None, trashed: bool = False,
                         db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data=HierarchyService.notebook_notes(db, user_id, notebook_id, archived, trashed))
