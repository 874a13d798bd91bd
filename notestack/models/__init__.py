# Import all models so they register with SQLAlchemy Base.metadata
# This ensures Base.metadata.create_all() creates all tables

from notestack.models.user import User
from notestack.models.user_setting import UserSetting
from notestack.models.color import Color
from notestack.models.stack import Stack
from notestack.models.notebook import Notebook
from notestack.models.note import Note
from notestack.models.tag import Tag
from notestack.models.note_tag import NoteTag
from notestack.models.file import File
from notestack.models.task import Task
from notestack.models.scratch_pad import ScratchPad

__all__ = [
    "User",
    "UserSetting",
    "Color",
    "Stack",
    "Notebook",
    "Note",
    "Tag",
    "NoteTag",
    "File",
    "Task",
    "ScratchPad",
]
