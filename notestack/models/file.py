from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, BigInteger, DateTime, ForeignKey
from notestack.database import Base


class File(Base):
    __tablename__ = "files"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    note_id = Column(Integer, ForeignKey("notes.id"), nullable=True, index=True)  # null = unattached
    storage_path = Column(String(500), nullable=False)  # path in external blob storage
    filename = Column(String(500), nullable=False)
    mime_type = Column(String(100), nullable=False)
    size = Column(BigInteger, nullable=False, default=0)  # bytes
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
