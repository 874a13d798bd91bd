"""
aggregation_service.py: Live child counts for notes, notebooks and stacks.

Nothing is materialized: every view is recomputed from the child rows when it
is read. Collections are aggregated with one GROUP BY query per child table
instead of one query per row, which returns the same numbers.
"""

from sqlalchemy import func, case
from sqlalchemy.orm import Session

from notestack.models.color import Color
from notestack.models.file import File
from notestack.models.note import Note
from notestack.models.note_tag import NoteTag
from notestack.models.notebook import Notebook
from notestack.models.stack import Stack
from notestack.models.task import Task


class AggregationService:
    # ------------------------------------------------------------------
    @staticmethod
    def _colors(db: Session, color_ids) -> dict[int, Color]:
        ids = {c for c in color_ids if c is not None}
        if not ids:
            return {}
        return {c.id: c for c in db.query(Color).filter(Color.id.in_(ids)).all()}

    # ------------------------------------------------------------------
    @staticmethod
    def note_counts(db: Session, note_ids: list[int]) -> dict[int, dict]:
        """tag_count, file_count, task_count and completed_task_count per note id."""
        counts = {
            nid: {"tag_count": 0, "file_count": 0, "task_count": 0, "completed_task_count": 0}
            for nid in note_ids
        }
        if not counts:
            return counts

        tag_rows = (
            db.query(NoteTag.note_id, func.count(NoteTag.id))
            .filter(NoteTag.note_id.in_(note_ids))
            .group_by(NoteTag.note_id)
            .all()
        )
        for nid, n in tag_rows:
            counts[nid]["tag_count"] = n

        file_rows = (
            db.query(File.note_id, func.count(File.id))
            .filter(File.note_id.in_(note_ids))
            .group_by(File.note_id)
            .all()
        )
        for nid, n in file_rows:
            counts[nid]["file_count"] = n

        task_rows = (
            db.query(
                Task.note_id,
                func.count(Task.id),
                func.sum(case((Task.completed.is_(True), 1), else_=0)),
            )
            .filter(Task.note_id.in_(note_ids))
            .group_by(Task.note_id)
            .all()
        )
        for nid, total, done in task_rows:
            counts[nid]["task_count"] = total
            counts[nid]["completed_task_count"] = int(done or 0)

        return counts

    @staticmethod
    def notebook_counts(db: Session, notebook_ids: list[int]) -> dict[int, dict]:
        """note_count, pinned_notes, archived_notes per notebook, over non-trashed notes."""
        counts = {nid: {"note_count": 0, "pinned_notes": 0, "archived_notes": 0} for nid in notebook_ids}
        if not counts:
            return counts

        rows = (
            db.query(
                Note.notebook_id,
                func.count(Note.id),
                func.sum(case((Note.pinned.is_(True), 1), else_=0)),
                func.sum(case((Note.archived.is_(True), 1), else_=0)),
            )
            .filter(Note.notebook_id.in_(notebook_ids), Note.trashed.is_(False))
            .group_by(Note.notebook_id)
            .all()
        )
        for nid, total, pinned, archived in rows:
            counts[nid] = {
                "note_count": total,
                "pinned_notes": int(pinned or 0),
                "archived_notes": int(archived or 0),
            }
        return counts

    @staticmethod
    def stack_counts(db: Session, stack_ids: list[int]) -> dict[int, dict]:
        """notebook_count and total_notes (non-trashed) per stack."""
        counts = {sid: {"notebook_count": 0, "total_notes": 0} for sid in stack_ids}
        if not counts:
            return counts

        nb_rows = (
            db.query(Notebook.stack_id, func.count(Notebook.id))
            .filter(Notebook.stack_id.in_(stack_ids))
            .group_by(Notebook.stack_id)
            .all()
        )
        for sid, n in nb_rows:
            counts[sid]["notebook_count"] = n

        note_rows = (
            db.query(Notebook.stack_id, func.count(Note.id))
            .join(Note, Note.notebook_id == Notebook.id)
            .filter(Notebook.stack_id.in_(stack_ids), Note.trashed.is_(False))
            .group_by(Notebook.stack_id)
            .all()
        )
        for sid, n in note_rows:
            counts[sid]["total_notes"] = n
        return counts

    # ------------------------------------------------------------------
    @staticmethod
    def note_views(db: Session, notes: list[Note]) -> list[dict]:
        """Notes enriched with notebook/stack info and live counts."""
        if not notes:
            return []
        counts = AggregationService.note_counts(db, [n.id for n in notes])

        nb_ids = {n.notebook_id for n in notes if n.notebook_id is not None}
        notebooks = {nb.id: nb for nb in db.query(Notebook).filter(Notebook.id.in_(nb_ids)).all()} if nb_ids else {}
        st_ids = {nb.stack_id for nb in notebooks.values() if nb.stack_id is not None}
        stacks = {s.id: s for s in db.query(Stack).filter(Stack.id.in_(st_ids)).all()} if st_ids else {}
        colors = AggregationService._colors(
            db, [nb.color_id for nb in notebooks.values()] + [s.color_id for s in stacks.values()]
        )

        views = []
        for note in notes:
            nb = notebooks.get(note.notebook_id)
            st = stacks.get(nb.stack_id) if nb else None
            nb_color = colors.get(nb.color_id) if nb else None
            st_color = colors.get(st.color_id) if st else None
            views.append({
                "id": note.id,
                "user_id": note.user_id,
                "notebook_id": note.notebook_id,
                "content_ref": note.content_ref,
                "title": note.title,
                "pinned": note.pinned,
                "archived": note.archived,
                "trashed": note.trashed,
                "version": note.version,
                "synced": note.synced,
                "created_at": note.created_at,
                "updated_at": note.updated_at,
                "last_modified": note.last_modified,
                # Notebook info
                "notebook_name": nb.name if nb else None,
                "notebook_color_id": nb.color_id if nb else None,
                "notebook_color_hex": nb_color.hex_code if nb_color else None,
                # Stack info
                "stack_id": st.id if st else None,
                "stack_name": st.name if st else None,
                "stack_color_hex": st_color.hex_code if st_color else None,
                **counts[note.id],
            })
        return views

    @staticmethod
    def note_view(db: Session, note: Note) -> dict:
        return AggregationService.note_views(db, [note])[0]

    @staticmethod
    def notebook_views(db: Session, notebooks: list[Notebook]) -> list[dict]:
        if not notebooks:
            return []
        counts = AggregationService.notebook_counts(db, [nb.id for nb in notebooks])
        st_ids = {nb.stack_id for nb in notebooks if nb.stack_id is not None}
        stacks = {s.id: s for s in db.query(Stack).filter(Stack.id.in_(st_ids)).all()} if st_ids else {}
        colors = AggregationService._colors(db, [nb.color_id for nb in notebooks])

        views = []
        for nb in notebooks:
            st = stacks.get(nb.stack_id)
            color = colors.get(nb.color_id)
            views.append({
                "id": nb.id,
                "user_id": nb.user_id,
                "stack_id": nb.stack_id,
                "name": nb.name,
                "description": nb.description,
                "color_id": nb.color_id,
                "color_hex": color.hex_code if color else None,
                "color_name": color.name if color else None,
                "sort_order": nb.sort_order,
                "created_at": nb.created_at,
                "updated_at": nb.updated_at,
                "stack_name": st.name if st else None,
                **counts[nb.id],
            })
        return views

    @staticmethod
    def notebook_view(db: Session, notebook: Notebook) -> dict:
        return AggregationService.notebook_views(db, [notebook])[0]

    @staticmethod
    def stack_views(db: Session, stacks: list[Stack]) -> list[dict]:
        if not stacks:
            return []
        counts = AggregationService.stack_counts(db, [s.id for s in stacks])
        colors = AggregationService._colors(db, [s.color_id for s in stacks])

        views = []
        for st in stacks:
            color = colors.get(st.color_id)
            views.append({
                "id": st.id,
                "user_id": st.user_id,
                "name": st.name,
                "description": st.description,
                "color_id": st.color_id,
                "color_hex": color.hex_code if color else None,
                "color_name": color.name if color else None,
                "sort_order": st.sort_order,
                "created_at": st.created_at,
                "updated_at": st.updated_at,
                **counts[st.id],
            })
        return views

    @staticmethod
    def stack_view(db: Session, stack: Stack) -> dict:
        return AggregationService.stack_views(db, [stack])[0]
