"""Collaborator interfaces the engine depends on."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from melete.core.models import ConsolidationRecord, WorkingMemoryItem, WorkingMemoryStore


@runtime_checkable
class SessionRepository(Protocol):
    """
    Persistence for working memory stores, indexed by (owner, session).

    `patch` rewrites items, focus and last_update as one unit and must
    reject the write with StaleStoreError when `expected_version` no
    longer matches the stored version.
    """

    async def get(self, owner: str, session: str) -> Optional[WorkingMemoryStore]:
        ...

    async def create(
        self, owner: str, session: str, capacity: int, now: datetime
    ) -> str:
        """Create a store, or return the existing id for (owner, session)."""
        ...

    async def patch(
        self,
        store_id: str,
        items: Sequence[WorkingMemoryItem],
        focus: Optional[str],
        last_update: datetime,
        expected_version: int,
    ) -> int:
        """Rewrite a store; returns the new version."""
        ...

    async def list_by_session(
        self, session: str, owner: Optional[str] = None
    ) -> List[WorkingMemoryStore]:
        ...


@runtime_checkable
class LongTermMemoryStore(Protocol):
    """Durable destination for consolidated items."""

    async def store(self, record: ConsolidationRecord) -> str:
        """Persist a record and return its id."""
        ...


@runtime_checkable
class UserDirectory(Protocol):
    """Resolves a caller identity to an owner id."""

    async def resolve(self, subject: str) -> Optional[str]:
        ...
