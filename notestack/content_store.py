"""
content_store.py: Document store for note bodies.

Notes keep their metadata in the relational database and their body in a
separate document store keyed by ``content_ref``. The two writes are
independent, so a note row may point at a document that was never created;
readers must treat a missing document as empty content.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from urllib.parse import quote

import httpx

from notestack.config import (
    CONTENT_STORE_BACKEND,
    CONTENT_STORE_TABLE,
    CONTENT_STORE_TIMEOUT,
    SUPABASE_URL,
    SUPABASE_SERVICE_ROLE_KEY,
)

logger = logging.getLogger(__name__)

DOCUMENT_FIELDS = ("title", "content", "user_id", "notebook_id", "is_trashed", "created_at", "updated_at")


class ContentNotFound(Exception):
    """Raised by ``save`` when the document does not exist."""


def default_document(data: dict | None = None) -> dict:
    doc = {
        "title": "Untitled Note",
        "content": "",  # rich text, HTML, or JSON blocks
        "user_id": None,
        "notebook_id": None,
        "is_trashed": False,
    }
    doc.update(data or {})
    return doc


def empty_document(note) -> dict:
    """Stand-in returned when a note's document was never initialized."""
    return {
        "title": note.title,
        "content": "",
        "user_id": note.user_id,
        "notebook_id": note.notebook_id,
        "is_trashed": note.trashed,
        "created_at": None,
        "updated_at": None,
    }


class ContentStore(ABC):
    """Abstract base class for content-store backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def initialize(self, ref: str, data: dict | None = None) -> dict:
        """Create (or overwrite) the document for ``ref``. Timestamps are assigned by the store."""
        ...

    @abstractmethod
    def get(self, ref: str) -> dict | None:
        """Return the document or None when it does not exist."""
        ...

    @abstractmethod
    def save(self, ref: str, data: dict) -> dict:
        """Merge ``data`` into an existing document. Raises ContentNotFound."""
        ...

    @abstractmethod
    def delete(self, ref: str) -> None:
        ...


def _check_ref(ref: str):
    if not ref or not isinstance(ref, str):
        raise ValueError("A valid content_ref is required")


class MemoryContentStore(ContentStore):
    """Process-local store. Used for development and tests."""

    def __init__(self):
        self._docs: dict[str, dict] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "memory"

    def initialize(self, ref: str, data: dict | None = None) -> dict:
        _check_ref(ref)
        now = datetime.now(timezone.utc).isoformat()
        doc = default_document(data)
        doc["created_at"] = now
        doc["updated_at"] = now
        with self._lock:
            self._docs[ref] = doc
        return dict(doc)

    def get(self, ref: str) -> dict | None:
        _check_ref(ref)
        with self._lock:
            doc = self._docs.get(ref)
            return dict(doc) if doc is not None else None

    def save(self, ref: str, data: dict) -> dict:
        _check_ref(ref)
        if not isinstance(data, dict):
            raise ValueError("Data must be a valid object")
        with self._lock:
            doc = self._docs.get(ref)
            if doc is None:
                raise ContentNotFound(ref)
            doc.update({k: v for k, v in data.items() if k not in ("created_at", "updated_at")})
            doc["updated_at"] = datetime.now(timezone.utc).isoformat()
            return dict(doc)

    def delete(self, ref: str) -> None:
        _check_ref(ref)
        with self._lock:
            self._docs.pop(ref, None)

    def clear(self):
        with self._lock:
            self._docs.clear()


class SupabaseContentStore(ContentStore):
    """
    PostgREST-backed store. One row per note in ``CONTENT_STORE_TABLE`` with a
    ``ref`` text primary key and the document fields as columns.
    """

    def __init__(self, base_url: str = SUPABASE_URL, service_key: str = SUPABASE_SERVICE_ROLE_KEY,
                 table: str = CONTENT_STORE_TABLE, timeout: float = CONTENT_STORE_TIMEOUT,
                 transport: httpx.BaseTransport | None = None):
        if not base_url or not service_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in environment variables")
        self._url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self._key = service_key
        self._timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "supabase"

    def _headers(self) -> dict:
        return {
            "apikey": self._key,
            "Authorization": f"Bearer {self._key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self._timeout, transport=self._transport)

    @staticmethod
    def _row_to_doc(row: dict) -> dict:
        return {k: row.get(k) for k in DOCUMENT_FIELDS}

    def _ref_filter(self, ref: str) -> str:
        return f"{self._url}?ref=eq.{quote(ref)}"

    def initialize(self, ref: str, data: dict | None = None) -> dict:
        _check_ref(ref)
        now = datetime.now(timezone.utc).isoformat()
        row = default_document(data)
        row.update({"ref": ref, "created_at": now, "updated_at": now})
        headers = {**self._headers(), "Prefer": "resolution=merge-duplicates,return=representation"}
        with self._client() as client:
            resp = client.post(self._url, json=row, headers=headers)
            resp.raise_for_status()
            result = resp.json()
        return self._row_to_doc(result[0] if isinstance(result, list) and result else row)

    def get(self, ref: str) -> dict | None:
        _check_ref(ref)
        with self._client() as client:
            resp = client.get(self._ref_filter(ref) + "&select=*", headers=self._headers())
            resp.raise_for_status()
            rows = resp.json()
        return self._row_to_doc(rows[0]) if rows else None

    def save(self, ref: str, data: dict) -> dict:
        _check_ref(ref)
        if not isinstance(data, dict):
            raise ValueError("Data must be a valid object")
        patch = {k: v for k, v in data.items() if k in DOCUMENT_FIELDS and k not in ("created_at", "updated_at")}
        patch["updated_at"] = datetime.now(timezone.utc).isoformat()
        with self._client() as client:
            resp = client.patch(self._ref_filter(ref), json=patch, headers=self._headers())
            resp.raise_for_status()
            rows = resp.json()
        if not rows:
            raise ContentNotFound(ref)
        return self._row_to_doc(rows[0])

    def delete(self, ref: str) -> None:
        _check_ref(ref)
        with self._client() as client:
            resp = client.delete(self._ref_filter(ref), headers=self._headers())
            resp.raise_for_status()


_store: ContentStore | None = None
_store_lock = threading.Lock()


def build_content_store(backend: str = CONTENT_STORE_BACKEND) -> ContentStore:
    if backend == "memory":
        return MemoryContentStore()
    if backend == "supabase":
        return SupabaseContentStore()
    raise ValueError(f"Unsupported content store backend: {backend}")


def get_content_store() -> ContentStore:
    """FastAPI dependency: the process-wide content store."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = build_content_store()
                logger.info(f"Content store ready: {_store.name}")
    return _store
