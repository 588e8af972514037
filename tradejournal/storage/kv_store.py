"""
Key-value persistence for journal state
=======================================

The accounting core never touches storage; it is handed plain values.
This module is the byte-level side of that boundary: JSON text under a
handful of string keys ("trades", "portfolioSettings", "portfolioValue",
"appSettings").

SQLiteKeyValueStore keeps one connection per thread (WAL mode).
InMemoryKeyValueStore backs tests and throwaway sessions.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from tradejournal.utils.exceptions import StorageError

logger = logging.getLogger("kv_store")


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        ...


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)


class SQLiteKeyValueStore(KeyValueStore):
    def __init__(self, db_path: str = "data/journal.db"):
        self._db_path = db_path
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._local = threading.local()
        self._init_db()
        logger.info("SQLiteKeyValueStore initialized: %s", db_path)

    def _get_conn(self) -> sqlite3.Connection:
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(self._db_path, timeout=10)
            self._local.conn.row_factory = sqlite3.Row
            self._local.conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn.execute("PRAGMA synchronous=NORMAL")
        return self._local.conn

    def _init_db(self):
        conn = self._get_conn()
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS kv (
                key         TEXT PRIMARY KEY,
                value       TEXT NOT NULL,
                updated_at  TEXT DEFAULT (datetime('now'))
            );
        """)
        conn.commit()

    def get(self, key: str) -> Optional[str]:
        try:
            row = self._get_conn().execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read {key}: {e}") from e
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value, updated_at) VALUES (?, ?, datetime('now'))",
                (key, value),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    def delete(self, key: str) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        conn.commit()

    def keys(self) -> List[str]:
        rows = self._get_conn().execute("SELECT key FROM kv ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    def close(self) -> None:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None
