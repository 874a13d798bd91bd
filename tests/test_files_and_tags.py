import unittest

from tests.support import ALICE, BOB, DatabaseTestCase

from notestack.errors import DuplicateError, NotFoundOrForbidden, ValidationError
from notestack.services.color_service import ColorService, DEFAULT_PALETTE
from notestack.services.file_service import FileService
from notestack.services.note_service import NoteService
from notestack.services.tag_service import TagService

PDF = {"storage_path": "u1/report.pdf", "filename": "report.pdf", "mime_type": "application/pdf", "size": 2048}


class TestFiles(DatabaseTestCase):
    def test_attach_and_detach(self) -> None:
        note = NoteService.create(self.db, self.store, ALICE, {"title": "Report"})
        f = FileService.create(self.db, ALICE, PDF)
        self.assertEqual(len(FileService.list_files(self.db, ALICE, unattached_only=True)), 1)

        attached = FileService.attach(self.db, ALICE, f["id"], note["id"])
        self.assertEqual(attached["note_id"], note["id"])
        self.assertEqual(NoteService.note_files(self.db, ALICE, note["id"])["count"], 1)
        self.assertEqual(FileService.list_files(self.db, ALICE, unattached_only=True), [])

        FileService.detach(self.db, ALICE, f["id"])
        with self.assertRaises(ValidationError):
            FileService.detach(self.db, ALICE, f["id"])

    def test_required_fields_and_size(self) -> None:
        with self.assertRaises(ValidationError):
            FileService.create(self.db, ALICE, {"filename": "x"})
        with self.assertRaises(ValidationError):
            FileService.create(self.db, ALICE, {**PDF, "size": -1})

    def test_cannot_attach_to_foreign_note(self) -> None:
        note = NoteService.create(self.db, self.store, BOB, {"title": "Bob"})
        f = FileService.create(self.db, ALICE, PDF)
        with self.assertRaises(NotFoundOrForbidden):
            FileService.attach(self.db, ALICE, f["id"], note["id"])

    def test_delete_returns_storage_path(self) -> None:
        f = FileService.create(self.db, ALICE, PDF)
        self.assertEqual(FileService.delete(self.db, ALICE, f["id"]), {"storage_path": "u1/report.pdf"})
        with self.assertRaises(NotFoundOrForbidden):
            FileService.get(self.db, ALICE, f["id"])


class TestTagsAndColors(DatabaseTestCase):
    def test_tag_names_unique_per_user(self) -> None:
        TagService.create(self.db, ALICE, {"name": "home"})
        TagService.create(self.db, BOB, {"name": "home"})
        other = TagService.create(self.db, ALICE, {"name": "away"})
        with self.assertRaises(DuplicateError):
            TagService.update(self.db, ALICE, other["id"], {"name": "home"})

    def test_deleting_tag_detaches_notes(self) -> None:
        note = NoteService.create(self.db, self.store, ALICE, {"title": "N"})
        tag = TagService.create(self.db, ALICE, {"name": "gone"})
        NoteService.add_tag(self.db, ALICE, note["id"], tag["id"])
        TagService.delete(self.db, ALICE, tag["id"])
        self.assertEqual(NoteService.get(self.db, ALICE, note["id"])["tag_count"], 0)

    def test_palette_seed_and_color_reference(self) -> None:
        self.assertEqual(ColorService.seed_defaults(self.db), len(DEFAULT_PALETTE))
        self.assertEqual(ColorService.seed_defaults(self.db), 0)
        blue = next(c for c in ColorService.list_colors(self.db) if c["name"] == "Blue")

        tag = TagService.create(self.db, ALICE, {"name": "blue", "color_id": blue["id"]})
        self.assertEqual(tag["color_id"], blue["id"])
        with self.assertRaises(ValidationError):
            TagService.create(self.db, ALICE, {"name": "nope", "color_id": 999})

    def test_color_hex_validated(self) -> None:
        self.assertEqual(ColorService.create(self.db, {"name": "Teal", "hex_code": "#00897b"})["hex_code"], "#00897B")
        with self.assertRaises(ValidationError):
            ColorService.create(self.db, {"name": "Bad", "hex_code": "teal"})


if __name__ == "__main__":
    unittest.main(verbosity=2)
