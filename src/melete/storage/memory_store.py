"""In-process session repository and long-term store."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from loguru import logger

from melete.core.models import ConsolidationRecord, WorkingMemoryItem, WorkingMemoryStore
from melete.utils.exceptions import ExternalDependencyError, NotFoundError, StaleStoreError


class InMemorySessionRepository:
    """
    Session repository kept in a dict.

    Every read and write copies the store so callers never share state
    with the repository. An asyncio lock makes create and patch atomic.
    """

    def __init__(self):
        self._stores: Dict[str, WorkingMemoryStore] = {}
        self._index: Dict[Tuple[str, str], str] = {}
        self._lock = asyncio.Lock()

    async def get(self, owner: str, session: str) -> Optional[WorkingMemoryStore]:
        store_id = self._index.get((owner, session))
        if store_id is None:
            return None
        return self._stores[store_id].copy()

    async def create(
        self, owner: str, session: str, capacity: int, now: datetime
    ) -> str:
        async with self._lock:
            existing = self._index.get((owner, session))
            if existing is not None:
                return existing

            store = WorkingMemoryStore(
                owner=owner,
                session=session,
                capacity=capacity,
                last_update=now,
            )
            self._stores[store.id] = store
            self._index[(owner, session)] = store.id
            logger.debug(f"Created store {store.id} for ({owner}, {session})")
            return store.id

    async def patch(
        self,
        store_id: str,
        items: Sequence[WorkingMemoryItem],
        focus: Optional[str],
        last_update: datetime,
        expected_version: int,
    ) -> int:
        async with self._lock:
            current = self._stores.get(store_id)
            if current is None:
                raise NotFoundError("store", store_id)
            if current.version != expected_version:
                raise StaleStoreError(store_id, expected_version, current.version)

            updated = current.copy()
            updated.items = [item.copy() for item in items]
            updated.focus = focus
            updated.last_update = last_update
            updated.version = current.version + 1
            self._stores[store_id] = updated
            return updated.version

    async def list_by_session(
        self, session: str, owner: Optional[str] = None
    ) -> List[WorkingMemoryStore]:
        return [
            store.copy()
            for store in self._stores.values()
            if store.session == session and (owner is None or store.owner == owner)
        ]


class InMemoryLongTermStore:
    """Collects consolidation records in a list."""

    def __init__(self, fail_on: Optional[Sequence[str]] = None):
        """
        Args:
            fail_on: Item contents whose records should be rejected, for
                exercising partial-failure paths
        """
        self.records: List[ConsolidationRecord] = []
        self._fail_on = set(fail_on or [])

    async def store(self, record: ConsolidationRecord) -> str:
        if record.content in self._fail_on:
            raise ExternalDependencyError(f"Rejected record: {record.content[:50]}")
        self.records.append(record)
        return str(uuid4())
