from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from notestack.database import Base


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    note_id = Column(Integer, ForeignKey("notes.id"), nullable=True, index=True)  # null = standalone
    label = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(String(10), nullable=True, index=True)  # YYYY-MM-DD
    start_time = Column(String(8), nullable=True)  # HH:MM or HH:MM:SS
    end_time = Column(String(8), nullable=True)
    reminder = Column(String(50), nullable=True)
    assigned_to = Column(String(255), nullable=True)
    priority = Column(String(20), nullable=True)  # low/medium/high
    flagged = Column(Boolean, nullable=False, default=False)
    completed = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
