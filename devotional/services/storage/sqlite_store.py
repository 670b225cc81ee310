"""
SQLite Storage Implementation

DESIGN DECISION: SQLite keeps the reader's data on-device in a single
file:
1. No server, no account, nothing leaves the machine
2. Keys are the table's primary key, so prefix queries are index range
   scans instead of a walk over every key
3. Each statement commits on its own - single-key atomicity only

TRADEOFFS:
- No multi-key transactions (an archive write and a status write can
  be separated by a crash; we accept this)
- One connection, used from the event loop thread only
"""

import sqlite3
from pathlib import Path
from typing import Optional

import structlog

from devotional.services.storage.interface import (
    ConnectionError,
    KeyValueBackend,
    StorageError,
)


logger = structlog.get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key   TEXT PRIMARY KEY NOT NULL,
    value TEXT NOT NULL
)
"""


def _prefix_upper_bound(prefix: str) -> str:
    """Smallest string greater than every string starting with `prefix`."""
    following = ord(prefix[-1]) + 1
    # Surrogates cannot be stored as UTF-8.
    if 0xD800 <= following <= 0xDFFF:
        following = 0xE000
    return prefix[:-1] + chr(following)


class SqliteKeyValueStore(KeyValueBackend):
    """Keyspace stored in a SQLite table."""

    def __init__(self, path: str = ":memory:", quota_bytes: int = 0):
        super().__init__(quota_bytes=quota_bytes)
        self._path = path
        try:
            if path != ":memory:":
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(path)
            with self._conn:
                self._conn.execute(_SCHEMA)
        except (sqlite3.Error, OSError) as e:
            raise ConnectionError(f"Failed to open storage at {path}: {e}")

        logger.debug("sqlite_store_opened", path=path, quota_bytes=quota_bytes)

    def _query(self, sql: str, params: tuple = ()) -> list[tuple]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Storage query failed: {e}")

    def _execute(self, sql: str, params: tuple = ()) -> int:
        try:
            with self._conn:
                return self._conn.execute(sql, params).rowcount
        except sqlite3.Error as e:
            raise StorageError(f"Storage write failed: {e}")

    def get_item(self, key: str) -> Optional[str]:
        rows = self._query("SELECT value FROM kv_store WHERE key = ?", (key,))
        return rows[0][0] if rows else None

    def _write(self, key: str, value: str) -> None:
        self._execute(
            "INSERT INTO kv_store (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )

    def remove_item(self, key: str) -> bool:
        return self._execute("DELETE FROM kv_store WHERE key = ?", (key,)) > 0

    def keys(self) -> list[str]:
        return [row[0] for row in self._query("SELECT key FROM kv_store ORDER BY key")]

    def keys_with_prefix(self, prefix: str) -> list[str]:
        if not prefix:
            return self.keys()
        if ord(prefix[-1]) == 0x10FFFF:
            return [key for key in self.keys() if key.startswith(prefix)]
        rows = self._query(
            "SELECT key FROM kv_store WHERE key >= ? AND key < ? ORDER BY key",
            (prefix, _prefix_upper_bound(prefix)),
        )
        return [row[0] for row in rows]

    def clear(self) -> None:
        self._execute("DELETE FROM kv_store")

    def usage_bytes(self) -> int:
        rows = self._query(
            "SELECT COALESCE(SUM(LENGTH(CAST(key AS BLOB)) + LENGTH(CAST(value AS BLOB))), 0) "
            "FROM kv_store"
        )
        return int(rows[0][0])

    def close(self) -> None:
        self._conn.close()
