"""SQLite-backed session repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence
from uuid import uuid4

from loguru import logger

from melete.core.models import WorkingMemoryItem, WorkingMemoryStore
from melete.utils.exceptions import NotFoundError, PersistenceError, StaleStoreError

SCHEMA = """
CREATE TABLE IF NOT EXISTS working_memory (
    id          TEXT PRIMARY KEY,
    owner       TEXT NOT NULL,
    session     TEXT NOT NULL,
    items       TEXT NOT NULL,
    capacity    INTEGER NOT NULL,
    focus       TEXT,
    last_update TEXT NOT NULL,
    version     INTEGER NOT NULL DEFAULT 0,
    UNIQUE (owner, session)
);
CREATE INDEX IF NOT EXISTS idx_working_memory_session ON working_memory(session);
"""


class SqliteSessionRepository:
    """
    Session repository over a single SQLite table.

    Items are stored as one JSON column so each patch rewrites the whole
    array in one statement. Writes are compare-and-swap on `version`.
    Blocking sqlite calls run in a worker thread; one connection is
    shared and guarded by an RLock.
    """

    def __init__(self, path: str):
        """
        Args:
            path: Database file, or ":memory:"
        """
        self.path = path
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.RLock()
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._lock:
            self._conn.executescript(SCHEMA)
            self._conn.commit()
        logger.info(f"Working memory database ready at {path}")

    def close(self) -> None:
        """Close the underlying sqlite connection."""
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Row conversion
    # ------------------------------------------------------------------
    @staticmethod
    def _row_to_store(row: sqlite3.Row) -> WorkingMemoryStore:
        data = dict(row)
        data["items"] = json.loads(data["items"])
        return WorkingMemoryStore.from_dict(data)

    # ------------------------------------------------------------------
    # Blocking implementations
    # ------------------------------------------------------------------
    def _get(self, owner: str, session: str) -> Optional[WorkingMemoryStore]:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM working_memory WHERE owner = ? AND session = ?",
                (owner, session),
            ).fetchone()
        return self._row_to_store(row) if row else None

    def _create(self, owner: str, session: str, capacity: int, now: datetime) -> str:
        with self._lock:
            # Upsert-safe: a concurrent create for the same pair is a no-op
            self._conn.execute(
                "INSERT OR IGNORE INTO working_memory "
                "(id, owner, session, items, capacity, focus, last_update, version) "
                "VALUES (?, ?, ?, '[]', ?, NULL, ?, 0)",
                (str(uuid4()), owner, session, capacity, now.isoformat()),
            )
            self._conn.commit()
            row = self._conn.execute(
                "SELECT id FROM working_memory WHERE owner = ? AND session = ?",
                (owner, session),
            ).fetchone()
        return row["id"]

    def _patch(
        self,
        store_id: str,
        items: Sequence[WorkingMemoryItem],
        focus: Optional[str],
        last_update: datetime,
        expected_version: int,
    ) -> int:
        payload = json.dumps([item.to_dict() for item in items])
        with self._lock:
            try:
                cur = self._conn.execute(
                    "UPDATE working_memory "
                    "SET items = ?, focus = ?, last_update = ?, version = version + 1 "
                    "WHERE id = ? AND version = ?",
                    (payload, focus, last_update.isoformat(), store_id, expected_version),
                )
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                raise PersistenceError(f"Failed to write store {store_id}: {e}") from e

            if cur.rowcount == 1:
                return expected_version + 1

            row = self._conn.execute(
                "SELECT version FROM working_memory WHERE id = ?", (store_id,)
            ).fetchone()
        if row is None:
            raise NotFoundError("store", store_id)
        raise StaleStoreError(store_id, expected_version, row["version"])

    def _list_by_session(
        self, session: str, owner: Optional[str]
    ) -> List[WorkingMemoryStore]:
        query = "SELECT * FROM working_memory WHERE session = ?"
        params: tuple = (session,)
        if owner is not None:
            query += " AND owner = ?"
            params = (session, owner)
        with self._lock:
            rows = self._conn.execute(query, params).fetchall()
        return [self._row_to_store(row) for row in rows]

    # ------------------------------------------------------------------
    # SessionRepository
    # ------------------------------------------------------------------
    async def get(self, owner: str, session: str) -> Optional[WorkingMemoryStore]:
        return await asyncio.to_thread(self._get, owner, session)

    async def create(
        self, owner: str, session: str, capacity: int, now: datetime
    ) -> str:
        return await asyncio.to_thread(self._create, owner, session, capacity, now)

    async def patch(
        self,
        store_id: str,
        items: Sequence[WorkingMemoryItem],
        focus: Optional[str],
        last_update: datetime,
        expected_version: int,
    ) -> int:
        return await asyncio.to_thread(
            self._patch, store_id, list(items), focus, last_update, expected_version
        )

    async def list_by_session(
        self, session: str, owner: Optional[str] = None
    ) -> List[WorkingMemoryStore]:
        return await asyncio.to_thread(self._list_by_session, session, owner)
