import unittest

from tests.support import ALICE, BOB, DatabaseTestCase

from notestack.errors import DuplicateError, NotFoundOrForbidden, ValidationError
from notestack.models.file import File
from notestack.models.task import Task
from notestack.services.file_service import FileService
from notestack.services.note_service import NoteService
from notestack.services.tag_service import TagService
from notestack.services.task_service import TaskService


class TestNoteLifecycle(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.note = NoteService.create(self.db, self.store, ALICE, {"title": "Draft"})

    def _apply(self, action):
        return NoteService.transition(self.db, self.store, ALICE, self.note["id"], action)

    def test_new_note_defaults(self) -> None:
        self.assertEqual(self.note["version"], 1)
        self.assertFalse(self.note["synced"])
        self.assertFalse(self.note["pinned"] or self.note["archived"] or self.note["trashed"])
        doc = self.store.get(self.note["content_ref"])
        self.assertEqual((doc["title"], doc["content"], doc["is_trashed"]), ("Draft", "", False))

    def test_archive_unpins(self) -> None:
        self.assertTrue(self._apply("pin")["pinned"])
        view = self._apply("archive")
        self.assertEqual((view["archived"], view["pinned"]), (True, False))

    def test_trash_clears_other_flags_and_restore_lands_active(self) -> None:
        self._apply("pin")
        trashed = self._apply("trash")
        self.assertEqual((trashed["trashed"], trashed["pinned"], trashed["archived"]), (True, False, False))
        self.assertTrue(self.store.get(self.note["content_ref"])["is_trashed"])

        restored = self._apply("restore")
        self.assertEqual((restored["trashed"], restored["pinned"], restored["archived"]), (False, False, False))
        self.assertIsNotNone(restored["last_modified"])

    def test_unknown_action(self) -> None:
        with self.assertRaises(ValidationError):
            self._apply("explode")

    def test_trashed_notes_hidden_by_default(self) -> None:
        self._apply("trash")
        self.assertEqual(NoteService.list_notes(self.db, ALICE), [])
        self.assertEqual(len(NoteService.list_notes(self.db, ALICE, {"trashed": "true"})), 1)

    def test_title_required(self) -> None:
        with self.assertRaises(ValidationError):
            NoteService.create(self.db, self.store, ALICE, {"title": "   "})
        with self.assertRaises(ValidationError):
            NoteService.update_meta(self.db, self.store, ALICE, self.note["id"], {"title": ""})


class TestNoteContent(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.note = NoteService.create(self.db, self.store, ALICE, {"title": "Journal"})

    def test_save_bumps_version_and_syncs(self) -> None:
        result = NoteService.save_content(self.db, self.store, ALICE, self.note["id"], {"content": "<p>hi</p>"})
        self.assertEqual(result["note"]["version"], 2)
        self.assertTrue(result["note"]["synced"])
        self.assertEqual(result["content"]["content"], "<p>hi</p>")
        self.assertEqual(result["content"]["title"], "Journal")

    def test_content_title_updates_the_row(self) -> None:
        result = NoteService.save_content(self.db, self.store, ALICE, self.note["id"], {
            "title": "  Renamed in editor ", "content": "body",
        })
        self.assertEqual(result["note"]["title"], "Renamed in editor")
        self.assertEqual(result["content"]["title"], "Renamed in editor")
        row = NoteService.get(self.db, ALICE, self.note["id"])
        self.assertEqual(row["title"], self.store.get(self.note["content_ref"])["title"])
        with self.assertRaises(ValidationError):
            NoteService.save_content(self.db, self.store, ALICE, self.note["id"], {"title": ""})

    def test_metadata_edit_leaves_version_alone(self) -> None:
        view = NoteService.update_meta(self.db, self.store, ALICE, self.note["id"], {"title": "Renamed"})
        self.assertEqual((view["version"], view["synced"]), (1, False))
        self.assertEqual(self.store.get(self.note["content_ref"])["title"], "Renamed")

    def test_missing_document_reads_as_empty(self) -> None:
        self.store.delete(self.note["content_ref"])
        content = NoteService.get_content(self.db, self.store, ALICE, self.note["id"])
        self.assertEqual(content["content"]["content"], "")
        self.assertEqual(content["content"]["title"], "Journal")

    def test_save_reinitializes_missing_document(self) -> None:
        self.store.delete(self.note["content_ref"])
        result = NoteService.save_content(self.db, self.store, ALICE, self.note["id"], {"content": "again"})
        self.assertEqual(result["content"]["content"], "again")
        self.assertIsNotNone(self.store.get(self.note["content_ref"]))

    def test_explicit_content_ref_must_be_unique(self) -> None:
        NoteService.create(self.db, self.store, ALICE, {"title": "A", "content_ref": "doc-1"})
        with self.assertRaises(DuplicateError):
            NoteService.create(self.db, self.store, BOB, {"title": "B", "content_ref": "doc-1"})

    def test_foreign_note_content_is_not_found(self) -> None:
        with self.assertRaises(NotFoundOrForbidden):
            NoteService.get_content(self.db, self.store, BOB, self.note["id"])

    def test_mark_synced_with_explicit_version(self) -> None:
        view = NoteService.mark_synced(self.db, ALICE, self.note["id"], 9)
        self.assertEqual((view["version"], view["synced"]), (9, True))


class TestNoteAggregation(DatabaseTestCase):
    def test_counts_match_children(self) -> None:
        note = NoteService.create(self.db, self.store, ALICE, {"title": "Hub"})
        for name in ("red", "green", "blue"):
            tag = TagService.create(self.db, ALICE, {"name": name})
            NoteService.add_tag(self.db, ALICE, note["id"], tag["id"])
        for i in range(2):
            FileService.create(self.db, ALICE, {
                "storage_path": f"u1/{i}.png", "filename": f"{i}.png", "mime_type": "image/png",
                "size": 10, "note_id": note["id"],
            })
        for hour in range(4):
            task = TaskService.create(self.db, ALICE, {
                "label": f"T{hour}", "note_id": note["id"], "start_date": "2024-05-01",
                "start_time": f"{8 + hour:02d}:00", "end_time": f"{8 + hour:02d}:30",
            })
            if hour < 2:
                TaskService.toggle_complete(self.db, ALICE, task["id"])

        view = NoteService.get(self.db, ALICE, note["id"])
        self.assertEqual(
            (view["tag_count"], view["file_count"], view["task_count"], view["completed_task_count"]),
            (3, 2, 4, 2),
        )
        self.assertEqual(NoteService.list_notes(self.db, ALICE)[0]["tag_count"], 3)

    def test_tag_attachment_rules(self) -> None:
        note = NoteService.create(self.db, self.store, ALICE, {"title": "Tagged"})
        tag = TagService.create(self.db, ALICE, {"name": "work"})
        NoteService.add_tag(self.db, ALICE, note["id"], tag["id"])
        with self.assertRaises(DuplicateError):
            NoteService.add_tag(self.db, ALICE, note["id"], tag["id"])
        with self.assertRaises(DuplicateError):
            TagService.create(self.db, ALICE, {"name": "work"})
        self.assertEqual(TagService.get(self.db, ALICE, tag["id"])["note_count"], 1)

        NoteService.remove_tag(self.db, ALICE, note["id"], tag["id"])
        with self.assertRaises(NotFoundOrForbidden):
            NoteService.remove_tag(self.db, ALICE, note["id"], tag["id"])

    def test_delete_note_cleans_up(self) -> None:
        note = NoteService.create(self.db, self.store, ALICE, {"title": "Gone"})
        f = FileService.create(self.db, ALICE, {
            "storage_path": "u1/a.pdf", "filename": "a.pdf", "mime_type": "application/pdf", "note_id": note["id"],
        })
        TaskService.create(self.db, ALICE, {
            "label": "T", "note_id": note["id"], "start_date": "2024-05-01", "start_time": "08:00", "end_time": "09:00",
        })

        NoteService.delete(self.db, self.store, ALICE, note["id"])
        self.assertEqual(self.db.query(Task).count(), 0)
        self.assertIsNone(self.db.get(File, f["id"]).note_id)
        self.assertIsNone(self.store.get(note["content_ref"]))


if __name__ == "__main__":
    unittest.main(verbosity=2)
