"""BlobStore — a small async key-value store on a local SQLite file.

Values are opaque strings. Each write replaces the whole value for a key in a
single transaction, so a reader sees either the previous value or the new one,
never a partially written blob.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiosqlite

from todolist.config import settings

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""

_UPSERT = """
INSERT INTO kv_store (key, value) VALUES (?, ?)
ON CONFLICT(key) DO UPDATE SET value = excluded.value
"""


class BlobStore:
    """Persists named string blobs in SQLite.

    Pass an explicit *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or settings.database_path
        self._initialised = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    # -- Internal helpers ------------------------------------------------------

    async def _connect(self) -> aiosqlite.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(str(self._db_path))
        if not self._initialised:
            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute(_CREATE_TABLE)
            await db.commit()
            self._initialised = True
        return db

    # -- Key-value API ---------------------------------------------------------

    async def get_item(self, key: str) -> str | None:
        """Return the blob stored under *key*, or None if absent."""
        db = await self._connect()
        try:
            cursor = await db.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = await cursor.fetchone()
            return row[0] if row else None
        finally:
            await db.close()

    async def set_item(self, key: str, value: str) -> None:
        """Overwrite the blob stored under *key*."""
        db = await self._connect()
        try:
            await db.execute(_UPSERT, (key, value))
            await db.commit()
            logger.debug("Wrote %d bytes to key %s", len(value), key)
        finally:
            await db.close()
