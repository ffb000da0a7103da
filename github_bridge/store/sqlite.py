"""
SQLite key-value persistence.

Stores every value in a single table:
- kv: key -> opaque value bytes
"""

from __future__ import annotations

import logging
import os

import aiosqlite

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key   TEXT PRIMARY KEY,
    value BLOB NOT NULL
);
"""


class SQLiteKeyValueStore:
    """Async SQLite key-value store."""

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def open(self) -> None:
        os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        await self._db.executescript(_SCHEMA)
        await self._db.commit()
        logger.info(f"Opened key-value store at {self._db_path}")

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def get(self, key: str) -> bytes | None:
        assert self._db
        cursor = await self._db.execute("SELECT value FROM kv WHERE key = ?", (key,))
        row = await cursor.fetchone()
        return bytes(row[0]) if row else None

    async def set(self, key: str, value: bytes) -> None:
        assert self._db
        await self._db.execute(
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value)
        )
        await self._db.commit()

    async def delete(self, key: str) -> None:
        assert self._db
        await self._db.execute("DELETE FROM kv WHERE key = ?", (key,))
        await self._db.commit()
