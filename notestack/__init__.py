"""NoteStack: Stacks, notebooks, notes and time-boxed tasks."""

__version__ = "0.1.0"
