# src/taskdeck/tasks/backends.py

from __future__ import annotations

import contextlib
import copy
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_KV_KEY = "todo-tasks"


class SqliteKVBackend:
    """
    SQLite key-value map; one row holds the whole task collection as JSON.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3", *, key: str = DEFAULT_KV_KEY) -> None:
        if not key or not key.strip():
            raise ValueError("key is required")
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._key = key.strip()
        self._ensure_schema()

    def __repr__(self) -> str:
        return f"SqliteKVBackend(db={self._db_path}, key={self._key!r})"

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    # ---- TaskBackend ----

    def load(self) -> list[dict[str, Any]]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT value FROM kv WHERE key = ?", (self._key,))
            row = cur.fetchone()
        finally:
            conn.close()

        if row is None:
            return []

        try:
            data = json.loads(row["value"])
        except (ValueError, RecursionError):
            logger.exception("Stored task collection is not valid JSON key=%s; treating as empty.", self._key)
            return []

        if not isinstance(data, list):
            logger.warning("Stored task collection is not a list key=%s; treating as empty.", self._key)
            return []
        return [item for item in data if isinstance(item, dict)]

    def save(self, tasks: list[dict[str, Any]]) -> None:
        payload = json.dumps(tasks, ensure_ascii=False)
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv(key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (self._key, payload, time.time()),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("Saved %d tasks key=%s", len(tasks), self._key)


class InMemoryBackend:
    """Process-local backend for tests and throwaway sessions."""

    def __init__(self, tasks: list[dict[str, Any]] | None = None) -> None:
        self._tasks: list[dict[str, Any]] = copy.deepcopy(tasks or [])

    def __repr__(self) -> str:
        return "InMemoryBackend()"

    def load(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._tasks)

    def save(self, tasks: list[dict[str, Any]]) -> None:
        self._tasks = copy.deepcopy(tasks)
