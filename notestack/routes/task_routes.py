from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import List, Optional

from notestack.auth import get_current_user
from notestack.database import get_db
from notestack.errors import envelope
from notestack.services.task_service import TaskService

router = APIRouter(prefix="/api/v1/tasks", tags=["Tasks"])


class TaskCreate(BaseModel):
    label: Optional[str] = None
    description: Optional[str] = None
    note_id: Optional[int] = None
    due_date: Optional[str] = None
    start_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reminder: Optional[str] = None
    assigned_to: Optional[str] = None
    priority: Optional[str] = None
    flagged: Optional[bool] = None
    completed: Optional[bool] = None
    sort_order: Optional[int] = None


class TaskUpdate(BaseModel):
    label: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    start_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reminder: Optional[str] = None
    assigned_to: Optional[str] = None
    priority: Optional[str] = None
    flagged: Optional[bool] = None
    completed: Optional[bool] = None
    sort_order: Optional[int] = None


class OrderItem(BaseModel):
    id: int
    sort_order: int


class TaskReorder(BaseModel):
    tasks: List[OrderItem]


@router.get("")
async def list_tasks(note_id: Optional[int] = None, q: Optional[str] = None, label: Optional[str] = None,
                     assigned_to: Optional[str] = None, priority: Optional[str] = None,
                     status: Optional[str] = None, due_date: Optional[str] = None,
                     sort_by: Optional[str] = None, sort_order: Optional[str] = None,
                     db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    filters = {
        "note_id": note_id, "q": q, "label": label, "assigned_to": assigned_to, "priority": priority,
        "status": status, "due_date": due_date, "sort_by": sort_by, "sort_order": sort_order,
    }
    tasks = TaskService.list_tasks(db, user_id, filters)
    return envelope(data={"tasks": tasks, "count": len(tasks)})


@router.post("", status_code=201)
async def create_task(body: TaskCreate, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    task = TaskService.create(db, user_id, body.model_dump(exclude_unset=True))
    return envelope("Task created successfully", {"task": task})


@router.put("/reorder")
async def reorder_tasks(body: TaskReorder, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    count = TaskService.reorder(db, user_id, [item.model_dump() for item in body.tasks])
    return envelope("Tasks reordered successfully", {"updated_count": count})


@router.get("/calendar")
async def calendar(date: Optional[str] = None, view: str = "day", db: Session = Depends(get_db),
                   user_id: int = Depends(get_current_user)):
    return envelope(data=TaskService.calendar(db, user_id, date, view))


@router.get("/{task_id}")
async def get_task(task_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return envelope(data={"task": TaskService.get(db, user_id, task_id)})


@router.put("/{task_id}")
async def update_task(task_id: int, body: TaskUpdate, db: Session = Depends(get_db),
                      user_id: int = Depends(get_current_user)):
    task = TaskService.update(db, user_id, task_id, body.model_dump(exclude_unset=True))
    return envelope("Task updated successfully", {"task": task})


@router.put("/{task_id}/toggle")
async def toggle_task(task_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    task = TaskService.toggle_complete(db, user_id, task_id)
    return envelope("Task status updated successfully", {"task": task})


@router.delete("/{task_id}")
async def delete_task(task_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    TaskService.delete(db, user_id, task_id)
    return envelope("Task deleted successfully")
