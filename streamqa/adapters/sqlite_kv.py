"""
SQLite key-value store adapter.

Implements KeyValuePort on a single `kv_store` table. Each call opens its
own connection so the adapter can be shared across request threads.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from streamqa.core.ports.storage import NotAnIntegerError

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""


class SQLiteKeyValueStore:
    def __init__(self, db_path: str):
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = self._get_conn()
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()

    def _get_conn(self) -> sqlite3.Connection:
        # isolation_level=None lets us issue BEGIN IMMEDIATE ourselves
        conn = sqlite3.connect(self.db_path, timeout=10, isolation_level=None)
        return conn

    def get(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
            return row[0] if row else None
        finally:
            conn.close()

    def set(self, key: str, value: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=excluded.updated_at
                """,
                (key, value),
            )
        finally:
            conn.close()

    def incr(self, key: str, amount: int = 1) -> int:
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
            try:
                new_value = (int(row[0]) if row else 0) + amount
            except ValueError:
                conn.execute("ROLLBACK")
                raise NotAnIntegerError(key) from None
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=excluded.updated_at
                """,
                (key, str(new_value)),
            )
            conn.execute("COMMIT")
            return new_value
        except sqlite3.Error:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def scan(self, prefix: str) -> list[str]:
        conn = self._get_conn()
        try:
            # substr() keeps the match case-sensitive, unlike LIKE
            rows = conn.execute(
                "SELECT key FROM kv_store WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            ).fetchall()
            return [row[0] for row in rows]
        finally:
            conn.close()
