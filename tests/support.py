import unittest

import notestack.models  # noqa: F401
from notestack.auth import create_token
from notestack.content_store import get_content_store
from notestack.database import Base, SessionLocal, engine
from notestack.models.user import User

ALICE = 1
BOB = 2


def auth_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_token({'user_id': user_id})}"}


class DatabaseTestCase(unittest.TestCase):
    """Fresh schema, an empty content store and two users per test."""

    def setUp(self) -> None:
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        self.store = get_content_store()
        self.store.clear()
        self.db = SessionLocal()
        self.db.add_all([
            User(id=ALICE, email="alice@example.com", display_name="Alice"),
            User(id=BOB, email="bob@example.com", display_name="Bob"),
        ])
        self.db.commit()

    def tearDown(self) -> None:
        self.db.close()
