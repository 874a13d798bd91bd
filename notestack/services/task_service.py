"""
task_service.py: Tasks and time-slot scheduling.

A task may carry a date and a ``[start_time, end_time)`` slot. Two slots of
the same user on the same date conflict when they overlap as half-open
intervals, so back-to-back tasks (09:00-10:00, 10:00-11:00) are fine.
Conflicts are a soft rule: callers get ``ConflictAdvisory`` and the API
answers 200 with ``success: false``.
"""

import logging
import re
import threading
from contextlib import contextmanager
from datetime import date as date_cls, datetime, timedelta

from sqlalchemy import or_, select, asc, desc
from sqlalchemy.orm import Session

from notestack.errors import ValidationError, ConflictAdvisory
from notestack.models.note import Note
from notestack.models.task import Task
from notestack.services.hierarchy_service import next_sort_order
from notestack.services.ownership import assert_owned

logger = logging.getLogger(__name__)

TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
SORT_FIELDS = ("label", "start_date", "due_date", "created_at", "updated_at", "sort_order")
PRIORITIES = ("low", "medium", "high")

# Striped advisory locks around check-then-write, keyed by (user, date).
# In-process only: separate worker processes can still race.
_LOCK_STRIPES = 64
_slot_locks = [threading.Lock() for _ in range(_LOCK_STRIPES)]


@contextmanager
def slot_lock(user_id: int, day: str):
    lock = _slot_locks[hash((user_id, day)) % _LOCK_STRIPES]
    with lock:
        yield


# ----------------------------------------------------------------------
# Time helpers
# ----------------------------------------------------------------------
def time_to_minutes(value) -> int | None:
    """Minutes since midnight for "HH:MM", "HH:MM:SS" or a time object. Seconds are ignored."""
    if value is None or value == "":
        return None
    if hasattr(value, "hour") and hasattr(value, "minute"):
        return value.hour * 60 + value.minute
    parts = str(value).strip().split(":")
    try:
        hours = int(parts[0])
        minutes = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    except ValueError:
        return None
    return hours * 60 + minutes


def slots_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and start_b < end_a


def parse_date(value, field: str = "start_date") -> str:
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date().isoformat()
    except ValueError:
        raise ValidationError(f"Invalid {field}: expected YYYY-MM-DD")


def parse_time(value, field: str) -> str:
    text = str(value).strip()
    m = TIME_RE.match(text)
    if not m or int(m.group(1)) > 23 or int(m.group(2)) > 59 or (m.group(3) and int(m.group(3)) > 59):
        raise ValidationError(f"Invalid {field}: expected HH:MM or HH:MM:SS")
    normalized = f"{int(m.group(1)):02d}:{m.group(2)}"
    return normalized + f":{m.group(3)}" if m.group(3) else normalized


def _optional(parser, value, field):
    return None if value in (None, "") else parser(value, field)


def _text(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _bool(value) -> bool:
    return value is True or str(value).lower() == "true"


def task_to_dict(task: Task) -> dict:
    return {
        "id": task.id,
        "user_id": task.user_id,
        "note_id": task.note_id,
        "label": task.label,
        "description": task.description,
        "start_date": task.start_date,
        "start_time": task.start_time,
        "end_time": task.end_time,
        "reminder": task.reminder,
        "assigned_to": task.assigned_to,
        "priority": task.priority,
        "flagged": task.flagged,
        "completed": task.completed,
        "sort_order": task.sort_order,
        "created_at": task.created_at,
        "updated_at": task.updated_at,
        # Compatibility fields
        "due_date": task.start_date,
        "end_date": None,
    }


def _owned_scope(user_id: int):
    """Tasks the user owns: directly, or through one of their notes."""
    note_ids = select(Note.id).where(Note.user_id == user_id)
    return or_(Task.user_id == user_id, Task.note_id.in_(note_ids))


class TaskService:
    # ------------------------------------------------------------------
    # Conflict detection
    # ------------------------------------------------------------------
    @staticmethod
    def has_conflict(db: Session, user_id: int, day, start_time, end_time, exclude_task_id=None) -> bool:
        """
        True when ``[start_time, end_time)`` on ``day`` overlaps one of the
        user's existing slots. An empty or inverted range never conflicts.
        """
        if not day or not start_time or not end_time:
            return False

        new_start = time_to_minutes(start_time)
        new_end = time_to_minutes(end_time)
        if new_start is None or new_end is None:
            return False
        if new_start >= new_end:
            return False

        query = db.query(Task.id, Task.start_time, Task.end_time).filter(
            _owned_scope(user_id),
            Task.start_date == str(day),
            Task.start_time.isnot(None),
            Task.end_time.isnot(None),
        )
        if exclude_task_id is not None:
            query = query.filter(Task.id != int(exclude_task_id))

        for task_id, start, end in query.all():
            existing_start = time_to_minutes(start)
            existing_end = time_to_minutes(end)
            if existing_start is None or existing_end is None:
                continue
            if slots_overlap(new_start, new_end, existing_start, existing_end):
                logger.info(f"Slot {day} {start_time}-{end_time} for user {user_id} overlaps task {task_id}")
                return True
        return False

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    @staticmethod
    def create(db: Session, user_id: int, data: dict) -> dict:
        label = _text(data.get("label"))
        day = data.get("due_date") or data.get("start_date")
        start_time = data.get("start_time")
        end_time = data.get("end_time")
        if not label or not day or not start_time or not end_time:
            raise ValidationError("Required fields are missing")

        day = parse_date(day)
        start_time = parse_time(start_time, "start_time")
        end_time = parse_time(end_time, "end_time")
        priority = _text(data.get("priority"))
        if priority is not None and priority.lower() not in PRIORITIES:
            raise ValidationError("priority must be one of: low, medium, high")

        note_id = None
        if data.get("note_id") not in (None, ""):
            note_id = assert_owned(db, Note, data["note_id"], user_id).id

        with slot_lock(user_id, day):
            if TaskService.has_conflict(db, user_id, day, start_time, end_time):
                raise ConflictAdvisory()

            try:
                if data.get("sort_order") is not None:
                    sort_order = int(data["sort_order"])
                elif note_id is not None:
                    sort_order = next_sort_order(db, Task, note_id=note_id)
                else:
                    sort_order = next_sort_order(db, Task, user_id=user_id, note_id=None)

                task = Task(
                    user_id=user_id,
                    note_id=note_id,
                    label=label,
                    description=_text(data.get("description")),
                    start_date=day,
                    start_time=start_time,
                    end_time=end_time,
                    reminder=_text(data.get("reminder")),
                    assigned_to=_text(data.get("assigned_to")),
                    priority=priority.lower() if priority else None,
                    flagged=_bool(data.get("flagged")),
                    completed=_bool(data.get("completed")),
                    sort_order=sort_order,
                )
                db.add(task)
                db.commit()
                db.refresh(task)
            except (TypeError, ValueError):
                db.rollback()
                raise ValidationError("sort_order must be an integer")
            except Exception:
                db.rollback()
                raise
        return task_to_dict(task)

    @staticmethod
    def get(db: Session, user_id: int, task_id) -> dict:
        return task_to_dict(assert_owned(db, Task, task_id, user_id))

    @staticmethod
    def update(db: Session, user_id: int, task_id, data: dict) -> dict:
        """New values override, missing ones keep the stored value; the slot is re-checked against the others."""
        task = assert_owned(db, Task, task_id, user_id)

        if "label" in data and not _text(data["label"]):
            raise ValidationError("label must not be empty")
        if "priority" in data:
            priority = _text(data["priority"])
            if priority is not None and priority.lower() not in PRIORITIES:
                raise ValidationError("priority must be one of: low, medium, high")

        # due_date is the public name of start_date
        if "due_date" in data:
            new_day = _optional(parse_date, data["due_date"], "due_date")
        elif "start_date" in data:
            new_day = _optional(parse_date, data["start_date"], "start_date")
        else:
            new_day = task.start_date
        new_start = _optional(parse_time, data["start_time"], "start_time") if "start_time" in data else task.start_time
        new_end = _optional(parse_time, data["end_time"], "end_time") if "end_time" in data else task.end_time

        with slot_lock(user_id, new_day or ""):
            if new_day and new_start and new_end:
                if TaskService.has_conflict(db, user_id, new_day, new_start, new_end, exclude_task_id=task.id):
                    raise ConflictAdvisory()

            try:
                task.start_date = new_day
                task.start_time = new_start
                task.end_time = new_end
                if "label" in data:
                    task.label = _text(data["label"])
                if "description" in data:
                    task.description = _text(data["description"])
                if "reminder" in data:
                    task.reminder = _text(data["reminder"])
                if "assigned_to" in data:
                    task.assigned_to = _text(data["assigned_to"])
                if "priority" in data:
                    task.priority = priority.lower() if priority else None
                if "flagged" in data:
                    task.flagged = _bool(data["flagged"])
                if "completed" in data:
                    task.completed = _bool(data["completed"])
                if data.get("sort_order") is not None:
                    task.sort_order = int(data["sort_order"])
                db.commit()
                db.refresh(task)
            except (TypeError, ValueError):
                db.rollback()
                raise ValidationError("sort_order must be an integer")
            except Exception:
                db.rollback()
                raise
        return task_to_dict(task)

    @staticmethod
    def toggle_complete(db: Session, user_id: int, task_id) -> dict:
        task = assert_owned(db, Task, task_id, user_id)
        try:
            task.completed = not task.completed
            db.commit()
            db.refresh(task)
        except Exception:
            db.rollback()
            raise
        return task_to_dict(task)

    @staticmethod
    def delete(db: Session, user_id: int, task_id) -> None:
        task = assert_owned(db, Task, task_id, user_id)
        try:
            db.delete(task)
            db.commit()
        except Exception:
            db.rollback()
            raise

    @staticmethod
    def reorder(db: Session, user_id: int, items) -> int:
        """Every task must be owned before any sort_order is written."""
        if not items or not isinstance(items, list):
            raise ValidationError("Tasks array is required and must not be empty")

        updates = []
        for item in items:
            if not isinstance(item, dict) or item.get("id") is None or item.get("sort_order") is None:
                raise ValidationError("Each task must have id and sort_order")
            try:
                sort_order = int(item["sort_order"])
            except (TypeError, ValueError):
                raise ValidationError("sort_order must be an integer")
            updates.append((assert_owned(db, Task, item["id"], user_id), sort_order))

        try:
            for task, sort_order in updates:
                task.sort_order = sort_order
            db.commit()
        except Exception:
            db.rollback()
            raise
        return len(updates)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @staticmethod
    def list_tasks(db: Session, user_id: int, filters: dict | None = None) -> list[dict]:
        filters = filters or {}
        query = db.query(Task).filter(_owned_scope(user_id))

        if filters.get("note_id") not in (None, ""):
            note = db.query(Note.id).filter_by(id=int(filters["note_id"]), user_id=user_id).first()
            if note is None:
                return []
            query = query.filter(Task.note_id == note[0])

        q = (filters.get("q") or "").strip()
        if q:
            query = query.filter(or_(Task.label.ilike(f"%{q}%"), Task.description.ilike(f"%{q}%")))
        if filters.get("label"):
            query = query.filter(Task.label.ilike(f"%{filters['label'].strip()}%"))
        if filters.get("assigned_to"):
            query = query.filter(Task.assigned_to.ilike(f"%{filters['assigned_to'].strip()}%"))
        if filters.get("priority"):
            query = query.filter(Task.priority == filters["priority"].lower())

        status = (filters.get("status") or "").lower()
        if status == "completed":
            query = query.filter(Task.completed.is_(True))
        elif status == "incomplete":
            query = query.filter(Task.completed.is_(False))

        if filters.get("due_date"):
            query = query.filter(Task.start_date == parse_date(filters["due_date"], "due_date"))

        sort_by = (filters.get("sort_by") or "sort_order").lower()
        if sort_by not in SORT_FIELDS:
            sort_by = "sort_order"
        if sort_by == "due_date":
            sort_by = "start_date"
        direction = desc if (filters.get("sort_order") or "asc").lower() == "desc" else asc
        query = query.order_by(direction(getattr(Task, sort_by)), Task.id.asc())

        return [task_to_dict(t) for t in query.all()]

    @staticmethod
    def note_tasks(db: Session, user_id: int, note_id) -> dict:
        note = assert_owned(db, Note, note_id, user_id)
        tasks = (
            db.query(Task)
            .filter_by(note_id=note.id)
            .order_by(Task.sort_order.asc(), Task.created_at.asc(), Task.id.asc())
            .all()
        )
        return {
            "note": {"id": note.id, "title": note.title},
            "tasks": [task_to_dict(t) for t in tasks],
            "count": len(tasks),
        }

    @staticmethod
    def calendar(db: Session, user_id: int, day, view: str = "day") -> dict:
        """Tasks in the day / ISO week (Mon-Sun) / month around ``day``."""
        if not day:
            raise ValidationError("Date is required")
        target = date_cls.fromisoformat(parse_date(day, "date"))
        view = (view or "day").lower()

        if view == "day":
            start = end = target
        elif view == "week":
            start = target - timedelta(days=target.weekday())
            end = start + timedelta(days=6)
        elif view == "month":
            start = target.replace(day=1)
            next_month = (start.replace(day=28) + timedelta(days=4)).replace(day=1)
            end = next_month - timedelta(days=1)
        else:
            raise ValidationError("Invalid view. Must be 'day', 'week', or 'month'")

        tasks = (
            db.query(Task)
            .filter(
                _owned_scope(user_id),
                Task.start_date >= start.isoformat(),
                Task.start_date <= end.isoformat(),
            )
            .order_by(Task.start_date.asc(), Task.start_time.asc(), Task.id.asc())
            .all()
        )
        events = [task_to_dict(t) for t in tasks]
        return {
            "date": target.isoformat(),
            "view": view,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "tasks": events,
            "count": len(events),
        }
