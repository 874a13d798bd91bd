from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from notestack.database import Base


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    notebook_id = Column(Integer, ForeignKey("notebooks.id"), nullable=True)
    content_ref = Column(String(255), unique=True, nullable=False)  # key into the content store, never changes
    title = Column(String(500), nullable=False)
    pinned = Column(Boolean, nullable=False, default=False)
    archived = Column(Boolean, nullable=False, default=False)
    trashed = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False, default=1)
    synced = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    last_modified = Column(DateTime, nullable=True)
