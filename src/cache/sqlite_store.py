# src/cache/sqlite_store.py — v2
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency. All namespaces share one
database file; rows are scoped by a namespace column.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

from pydantic import ValidationError

from assetpipe.cache.base_cache_store import BaseCacheStore
from assetpipe.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS compile_cache (
    namespace TEXT NOT NULL,
    key TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (namespace, key)
);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store for large asset trees."""

    def __init__(self, db_path: Path | str, namespace: str) -> None:
        self._namespace = namespace
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    @property
    def namespace(self) -> str:
        return self._namespace

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by key."""
        cursor = self._conn.execute(
            "SELECT data FROM compile_cache WHERE namespace = ? AND key = ?",
            (self._namespace, key),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        try:
            return CacheEntry(**json.loads(row[0]))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            return None

    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store a cache entry (upsert)."""
        self._conn.execute(
            """INSERT OR REPLACE INTO compile_cache (namespace, key, data)
               VALUES (?, ?, ?)""",
            (self._namespace, key, entry.model_dump_json()),
        )
        self._conn.commit()

    async def delete(self, key: str) -> None:
        """Remove a cache entry."""
        self._conn.execute(
            "DELETE FROM compile_cache WHERE namespace = ? AND key = ?",
            (self._namespace, key),
        )
        self._conn.commit()

    async def list_entries(self) -> list[CacheEntry]:
        """List all cached entries in this namespace."""
        cursor = self._conn.execute(
            "SELECT data FROM compile_cache WHERE namespace = ? ORDER BY key",
            (self._namespace,),
        )
        entries: list[CacheEntry] = []
        for row in cursor.fetchall():
            try:
                entries.append(CacheEntry(**json.loads(row[0])))
            except (json.JSONDecodeError, ValidationError):
                continue
        return entries

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
