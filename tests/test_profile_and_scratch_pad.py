import unittest

from fastapi.testclient import TestClient

from tests.support import ALICE, BOB, DatabaseTestCase, auth_headers

from notestack.errors import DuplicateError, NotFoundOrForbidden, ValidationError
from notestack.main import app
from notestack.models.scratch_pad import ScratchPad
from notestack.services.scratch_pad_service import ScratchPadService
from notestack.services.user_service import UserService

GHOST = 99


class TestScratchPad(DatabaseTestCase):
    def test_created_empty_on_first_read(self) -> None:
        self.assertEqual(ScratchPadService.get(self.db, ALICE)["content"], "")
        ScratchPadService.get(self.db, ALICE)
        self.assertEqual(self.db.query(ScratchPad).filter_by(user_id=ALICE).count(), 1)

    def test_update_and_clear(self) -> None:
        saved = ScratchPadService.update(self.db, ALICE, {"content": "call the plumber"})
        self.assertEqual(saved["content"], "call the plumber")
        self.assertIsNotNone(saved["updated_at"])
        self.assertEqual(ScratchPadService.get(self.db, BOB)["content"], "")

        self.assertEqual(ScratchPadService.clear(self.db, ALICE)["content"], "")
        self.assertEqual(ScratchPadService.get(self.db, ALICE)["content"], "")
        self.assertEqual(self.db.query(ScratchPad).filter_by(user_id=ALICE).count(), 1)

    def test_content_is_required(self) -> None:
        with self.assertRaises(ValidationError):
            ScratchPadService.update(self.db, ALICE, {})
        self.assertEqual(ScratchPadService.update(self.db, ALICE, {"content": None})["content"], "")


class TestProfile(DatabaseTestCase):
    def test_get_own_profile(self) -> None:
        profile = UserService.get_profile(self.db, ALICE)
        self.assertEqual((profile["id"], profile["email"], profile["display_name"]), (ALICE, "alice@example.com", "Alice"))

    def test_missing_user(self) -> None:
        with self.assertRaises(NotFoundOrForbidden) as ctx:
            UserService.get_profile(self.db, GHOST)
        self.assertEqual(ctx.exception.msg, "User not found")

    def test_update_fields(self) -> None:
        profile = UserService.update_profile(self.db, ALICE, {
            "display_name": " Alice L. ", "email": "Alice@Example.org", "avatar_url": "https://cdn.example/a.png",
        })
        self.assertEqual(profile["display_name"], "Alice L.")
        self.assertEqual(profile["email"], "alice@example.org")
        self.assertEqual(profile["avatar_url"], "https://cdn.example/a.png")
        self.assertEqual(UserService.get_profile(self.db, BOB)["display_name"], "Bob")

    def test_email_rules(self) -> None:
        with self.assertRaises(DuplicateError):
            UserService.update_profile(self.db, ALICE, {"email": "bob@example.com"})
        with self.assertRaises(ValidationError):
            UserService.update_profile(self.db, ALICE, {"email": "not-an-email"})
        self.assertEqual(UserService.get_profile(self.db, ALICE)["email"], "alice@example.com")


class TestProfileAndScratchPadApi(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = TestClient(app)

    def test_profile_endpoints(self) -> None:
        resp = self.client.get("/api/v1/users/me", headers=auth_headers(ALICE))
        self.assertEqual(resp.json()["data"]["user"]["email"], "alice@example.com")

        resp = self.client.put("/api/v1/users/me", json={"display_name": "Al"}, headers=auth_headers(ALICE))
        self.assertEqual(resp.json()["data"]["user"]["display_name"], "Al")

        missing = self.client.get("/api/v1/users/me", headers=auth_headers(GHOST))
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json(), {"success": False, "msg": "User not found"})

    def test_scratch_pad_endpoints(self) -> None:
        headers = auth_headers(ALICE)
        self.assertEqual(self.client.get("/api/v1/scratch-pad", headers=headers).json()["data"]["content"], "")

        saved = self.client.put("/api/v1/scratch-pad", json={"content": "groceries"}, headers=headers)
        self.assertEqual(saved.json()["data"]["content"], "groceries")

        missing = self.client.put("/api/v1/scratch-pad", json={}, headers=headers)
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.json()["msg"], "Content is required")

        cleared = self.client.delete("/api/v1/scratch-pad", headers=headers)
        self.assertEqual(cleared.json()["data"]["content"], "")


if __name__ == "__main__":
    unittest.main(verbosity=2)
