# src/dailyflow/storage/kv.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class KeyValueStore:
    """
    SQLite key-value store for JSON documents.

    One row per key; the value column holds the raw JSON text.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "dailyflow.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("KeyValueStore ready db=%s", self._db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
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

    # ---- public API ----

    def get(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return None if row is None else str(row[0])
        finally:
            conn.close()

    def put(self, key: str, value: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, time.time()),
            )
            conn.commit()
        finally:
            conn.close()


class JsonDocument:
    """
    One JSON document stored under a fixed key.

    This is the persistence port used by TaskStore and DeviceRegistry:
    - load() -> value | None  (None when absent or unreadable)
    - save(value) -> bool     (False when the write failed; the failure is logged)
    """

    def __init__(self, kv: KeyValueStore, key: str) -> None:
        self._kv = kv
        self.key = key

    def load(self) -> Any | None:
        try:
            raw = self._kv.get(self.key)
        except sqlite3.Error:
            logger.exception("Failed to read document key=%s", self.key)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.exception("Stored document is not valid JSON key=%s; ignoring it.", self.key)
            return None

    def save(self, value: Any) -> bool:
        try:
            self._kv.put(self.key, json.dumps(value, ensure_ascii=False))
        except (sqlite3.Error, TypeError, ValueError):
            logger.exception("Failed to save document key=%s", self.key)
            return False
        return True
