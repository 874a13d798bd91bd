from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from notestack.database import Base


class NoteTag(Base):
    __tablename__ = "note_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    note_id = Column(Integer, ForeignKey("notes.id"), nullable=False, index=True)
    tag_id = Column(Integer, ForeignKey("tags.id"), nullable=False)

    __table_args__ = (
        UniqueConstraint("note_id", "tag_id", name="uq_note_tag"),
    )
