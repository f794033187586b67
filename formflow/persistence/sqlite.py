"""SQLite implementation of the storage adapter."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Any, Optional

from .base import StorageAdapter


class SQLiteStorageAdapter(StorageAdapter):
    """Persist flow records in a SQLite key/value table."""

    def __init__(self, db_path: str | Path, table: str = "formflow_records"):
        self.db_path = str(db_path)
        self.table = table
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    # ------------------------------------------------------------------
    # Adapter API
    async def get_item(self, key: str) -> Optional[str]:
        row = await asyncio.to_thread(
            self._fetchone, f"SELECT value FROM {self.table} WHERE key = ?", key
        )
        if not row:
            return None
        return row["value"]

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(
            self._execute,
            f"INSERT OR REPLACE INTO {self.table} (key, value) VALUES (?, ?)",
            key,
            value,
        )

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(
            self._execute, f"DELETE FROM {self.table} WHERE key = ?", key
        )

    def close(self) -> None:
        self._conn.close()
