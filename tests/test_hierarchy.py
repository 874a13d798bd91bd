import unittest

from tests.support import ALICE, BOB, DatabaseTestCase

from notestack.errors import NotFoundOrForbidden, ValidationError
from notestack.models.note import Note
from notestack.models.notebook import Notebook
from notestack.services.hierarchy_service import HierarchyService
from notestack.services.note_service import NoteService


class TestDefaultNotebook(DatabaseTestCase):
    def test_resolve_creates_untitled_once(self) -> None:
        first = HierarchyService.resolve_notebook(self.db, ALICE)
        self.db.commit()
        second = HierarchyService.resolve_notebook(self.db, ALICE)
        self.assertEqual(first, second)
        notebooks = self.db.query(Notebook).filter_by(user_id=ALICE).all()
        self.assertEqual([nb.name for nb in notebooks], ["Untitled"])
        self.assertEqual(notebooks[0].sort_order, 0)
        self.assertIsNone(notebooks[0].stack_id)

    def test_resolve_prefers_owned_id_then_oldest(self) -> None:
        oldest = HierarchyService.create_notebook(self.db, ALICE, {"name": "Inbox"})
        work = HierarchyService.create_notebook(self.db, ALICE, {"name": "Work"})
        foreign = HierarchyService.create_notebook(self.db, BOB, {"name": "Bob"})

        self.assertEqual(HierarchyService.resolve_notebook(self.db, ALICE, work["id"]), work["id"])
        self.assertEqual(HierarchyService.resolve_notebook(self.db, ALICE, foreign["id"]), oldest["id"])
        self.assertEqual(HierarchyService.resolve_notebook(self.db, ALICE), oldest["id"])

    def test_note_without_notebook_lands_in_default(self) -> None:
        note = NoteService.create(self.db, self.store, ALICE, {"title": "Loose"})
        self.assertEqual(note["notebook_name"], "Untitled")
        again = NoteService.create(self.db, self.store, ALICE, {"title": "Another"})
        self.assertEqual(again["notebook_id"], note["notebook_id"])


class TestStacks(DatabaseTestCase):
    def test_sort_order_appends_per_scope(self) -> None:
        a = HierarchyService.create_stack(self.db, ALICE, {"name": "A"})
        b = HierarchyService.create_stack(self.db, ALICE, {"name": "B"})
        self.assertEqual((a["sort_order"], b["sort_order"]), (0, 1))

        loose = HierarchyService.create_notebook(self.db, ALICE, {"name": "Loose"})
        in_a = HierarchyService.create_notebook(self.db, ALICE, {"name": "In A", "stack_id": a["id"]})
        self.assertEqual(loose["sort_order"], 0)
        self.assertEqual(in_a["sort_order"], 0)

    def test_name_and_color_are_validated(self) -> None:
        with self.assertRaises(ValidationError):
            HierarchyService.create_stack(self.db, ALICE, {"name": "  "})
        with self.assertRaises(ValidationError):
            HierarchyService.create_stack(self.db, ALICE, {"name": "Colored", "color_id": 999})

    def test_delete_stack_unstacks_notebooks(self) -> None:
        stack = HierarchyService.create_stack(self.db, ALICE, {"name": "Projects"})
        nb = HierarchyService.create_notebook(self.db, ALICE, {"name": "Alpha", "stack_id": stack["id"]})
        NoteService.create(self.db, self.store, ALICE, {"title": "Roadmap", "notebook_id": nb["id"]})

        self.assertEqual(HierarchyService.get_stack(self.db, ALICE, stack["id"])["total_notes"], 1)
        self.assertEqual(HierarchyService.delete_stack(self.db, ALICE, stack["id"]), 1)

        survivor = HierarchyService.get_notebook(self.db, ALICE, nb["id"])
        self.assertIsNone(survivor["stack_id"])
        self.assertEqual(survivor["note_count"], 1)

    def test_foreign_stack_looks_missing(self) -> None:
        stack = HierarchyService.create_stack(self.db, BOB, {"name": "Private"})
        with self.assertRaises(NotFoundOrForbidden) as ctx:
            HierarchyService.get_stack(self.db, ALICE, stack["id"])
        self.assertEqual(ctx.exception.msg, "Stack not found")
        with self.assertRaises(NotFoundOrForbidden) as ctx:
            HierarchyService.get_stack(self.db, ALICE, 4242)
        self.assertEqual(ctx.exception.msg, "Stack not found")

    def test_reorder_checks_every_id_first(self) -> None:
        a = HierarchyService.create_stack(self.db, ALICE, {"name": "A"})
        b = HierarchyService.create_stack(self.db, BOB, {"name": "B"})
        with self.assertRaises(NotFoundOrForbidden):
            HierarchyService.reorder_stacks(self.db, ALICE, [
                {"id": a["id"], "sort_order": 5},
                {"id": b["id"], "sort_order": 6},
            ])
        self.assertEqual(HierarchyService.get_stack(self.db, ALICE, a["id"])["sort_order"], 0)


class TestNotebooks(DatabaseTestCase):
    def test_delete_notebook_rehomes_notes(self) -> None:
        keep = HierarchyService.create_notebook(self.db, ALICE, {"name": "Keep"})
        doomed = HierarchyService.create_notebook(self.db, ALICE, {"name": "Doomed"})
        for title in ("One", "Two"):
            NoteService.create(self.db, self.store, ALICE, {"title": title, "notebook_id": doomed["id"]})

        result = HierarchyService.delete_notebook(self.db, ALICE, doomed["id"])
        self.assertEqual(result, {"moved_notes": 2, "notebook_id": keep["id"]})
        homes = {n.notebook_id for n in self.db.query(Note).filter_by(user_id=ALICE).all()}
        self.assertEqual(homes, {keep["id"]})

    def test_deleting_only_notebook_creates_untitled(self) -> None:
        only = HierarchyService.create_notebook(self.db, ALICE, {"name": "Only"})
        NoteService.create(self.db, self.store, ALICE, {"title": "Orphan", "notebook_id": only["id"]})

        result = HierarchyService.delete_notebook(self.db, ALICE, only["id"])
        home = HierarchyService.get_notebook(self.db, ALICE, result["notebook_id"])
        self.assertEqual(home["name"], "Untitled")
        self.assertEqual(home["note_count"], 1)

    def test_move_between_stacks_recomputes_order(self) -> None:
        stack = HierarchyService.create_stack(self.db, ALICE, {"name": "S"})
        HierarchyService.create_notebook(self.db, ALICE, {"name": "Resident", "stack_id": stack["id"]})
        nb = HierarchyService.create_notebook(self.db, ALICE, {"name": "Mover"})

        moved = HierarchyService.move_notebook_to_stack(self.db, ALICE, nb["id"], stack["id"])
        self.assertEqual((moved["stack_id"], moved["sort_order"], moved["stack_name"]), (stack["id"], 1, "S"))

        back = HierarchyService.remove_from_stack(self.db, ALICE, nb["id"])
        self.assertIsNone(back["stack_id"])
        with self.assertRaises(ValidationError):
            HierarchyService.remove_from_stack(self.db, ALICE, nb["id"])

    def test_counts_skip_trashed_notes(self) -> None:
        nb = HierarchyService.create_notebook(self.db, ALICE, {"name": "Counted"})
        pinned = NoteService.create(self.db, self.store, ALICE, {"title": "P", "notebook_id": nb["id"]})
        archived = NoteService.create(self.db, self.store, ALICE, {"title": "A", "notebook_id": nb["id"]})
        trashed = NoteService.create(self.db, self.store, ALICE, {"title": "T", "notebook_id": nb["id"]})
        NoteService.transition(self.db, self.store, ALICE, pinned["id"], "pin")
        NoteService.transition(self.db, self.store, ALICE, archived["id"], "archive")
        NoteService.transition(self.db, self.store, ALICE, trashed["id"], "trash")

        view = HierarchyService.get_notebook(self.db, ALICE, nb["id"])
        self.assertEqual((view["note_count"], view["pinned_notes"], view["archived_notes"]), (2, 1, 1))
        listed = HierarchyService.notebook_notes(self.db, ALICE, nb["id"])
        self.assertEqual(listed["notes"][0]["title"], "P")
        self.assertEqual(listed["count"], 2)


if __name__ == "__main__":
    unittest.main(verbosity=2)
