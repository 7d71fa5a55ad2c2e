"""
SQLite Implementation of the Key-Value Backend.

Persists the flat key-value namespace to a single table so state survives
process restarts. Every write is committed immediately.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from ..core.logging import get_logger
from ..errors import StorageFailureError
from .protocol import check_quota

logger = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class SQLiteBackend:
    """
    SQLite-backed KeyValueBackend.

    The connection is opened lazily on first use. Not safe for concurrent
    writers in other processes beyond SQLite's own locking: last write wins.
    """

    def __init__(self, db_path: Path | str | None = None, quota_bytes: int | None = None):
        """
        Initialize backend.

        Args:
            db_path: Path to SQLite database. Defaults to {instance_root}/data/medic.db
            quota_bytes: Byte quota (None = unlimited)
        """
        if db_path is None:
            from ..core.config import get_settings

            db_path = get_settings().db_path
        self.db_path = Path(db_path)
        self.quota_bytes = quota_bytes
        self._conn: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.executescript(SCHEMA_SQL)
            self._conn.commit()
            logger.info("Key-value database initialized at %s", self.db_path)
        return self._conn

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def get_item(self, key: str) -> str | None:
        row = self._get_connection().execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        conn = self._get_connection()
        if self.quota_bytes is not None:
            check_quota(key, value, self.size_bytes(), self.get_item(key), self.quota_bytes)
        try:
            conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageFailureError(key, str(e)) from e

    def remove_item(self, key: str) -> None:
        conn = self._get_connection()
        conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        conn.commit()

    def keys(self) -> list[str]:
        rows = self._get_connection().execute("SELECT key FROM kv ORDER BY key").fetchall()
        return [row[0] for row in rows]

    def clear(self) -> None:
        conn = self._get_connection()
        conn.execute("DELETE FROM kv")
        conn.commit()

    def size_bytes(self) -> int:
        row = (
            self._get_connection()
            .execute("SELECT COALESCE(SUM(LENGTH(CAST(key AS BLOB)) + LENGTH(CAST(value AS BLOB))), 0) FROM kv")
            .fetchone()
        )
        return int(row[0])

    def __enter__(self) -> SQLiteBackend:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
