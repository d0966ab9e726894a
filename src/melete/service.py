"""
Melete working memory service.

Composes the decay, eviction, association, attention and consolidation
pieces into the externally visible operations:
- initialize: create (or return) the store for (owner, session)
- add_item: insert an item under capacity and association rules
- get_state: decayed, read-only view of a store
- focus_item: rehearse an item and its associates
- consolidate_session: maintenance sweep into long-term memory

Each mutating operation is one read-modify-write against the session
repository; the repository's version check turns concurrent writers into
StaleStoreError instead of lost updates.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Callable, List, Optional

from loguru import logger

from melete.config.settings import Settings
from melete.core.associations import build_graph_view, link_new_item
from melete.core.attention import focus_item as apply_focus
from melete.core.consolidator import ConsolidationGateway
from melete.core.decay import apply_decay
from melete.core.eviction import enforce_capacity
from melete.core.models import (
    ConsolidationReport,
    ItemSpec,
    WorkingMemoryItem,
    WorkingMemoryStore,
    WorkingMemoryView,
)
from melete.storage.base import LongTermMemoryStore, SessionRepository, UserDirectory
from melete.storage.users import PassthroughUserDirectory
from melete.utils.exceptions import (
    NotAuthenticatedError,
    NotFoundError,
    ValidationError,
)

Clock = Callable[[], datetime]


class WorkingMemoryService:
    """Orchestrates working memory operations against external collaborators."""

    def __init__(
        self,
        repository: SessionRepository,
        long_term_store: LongTermMemoryStore,
        settings: Optional[Settings] = None,
        users: Optional[UserDirectory] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the service.

        Args:
            repository: Persistence for working memory stores
            long_term_store: Destination for consolidated items
            settings: Melete settings (loaded from env/TOML if None)
            users: Resolves caller identities (identity is the owner if None)
            clock: Time source, injectable for tests
        """
        self.settings = settings or Settings()
        self.repository = repository
        self.users = users or PassthroughUserDirectory()
        self.clock = clock or datetime.now
        self.gateway = ConsolidationGateway(
            long_term_store,
            settings=self.settings.consolidation,
            engine_settings=self.settings.engine,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _resolve_owner(self, subject: Optional[str]) -> str:
        if not subject:
            raise NotAuthenticatedError()
        owner = await self.users.resolve(subject)
        if owner is None:
            raise NotFoundError("user", subject)
        return owner

    async def _require_store(self, owner: str, session: str) -> WorkingMemoryStore:
        store = await self.repository.get(owner, session)
        if store is None:
            raise NotFoundError("working memory", session)
        return store

    def _decay(self, store: WorkingMemoryStore, now: datetime) -> List[WorkingMemoryItem]:
        return apply_decay(
            store.items,
            store.last_update,
            now,
            base_rate=self.settings.engine.base_decay_rate,
            max_protection=self.settings.engine.max_access_protection,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    async def initialize(
        self,
        subject: Optional[str],
        session: str,
        capacity: Optional[int] = None,
    ) -> str:
        """
        Create the working memory for (owner, session), or return the existing one.

        Returns:
            Store id
        """
        owner = await self._resolve_owner(subject)
        if capacity is not None and capacity < 1:
            raise ValidationError(f"Capacity must be positive, got {capacity}")

        existing = await self.repository.get(owner, session)
        if existing is not None:
            return existing.id

        store_id = await self.repository.create(
            owner,
            session,
            capacity or self.settings.engine.capacity,
            self.clock(),
        )
        logger.info(f"Initialized working memory {store_id} for session {session}")
        return store_id

    async def add_item(
        self,
        subject: Optional[str],
        session: str,
        spec: ItemSpec,
    ) -> str:
        """
        Add an item, enforcing capacity and linking associations.

        Displaced items whose activation was above the displacement
        threshold are consolidated (one call each) before being dropped.

        Returns:
            Id of the new item
        """
        owner = await self._resolve_owner(subject)
        store = await self._require_store(owner, session)
        now = self.clock()

        decayed = self._decay(store, now)
        new_item = WorkingMemoryItem.from_spec(spec, now)
        items = decayed + [new_item]

        if len(items) > store.capacity:
            result = enforce_capacity(items, store.capacity, now)
            items = result.kept

            # The new item scores the maximum and is last, so it is never evicted
            for item in result.evicted:
                if item.activation > self.settings.consolidation.displacement_activation:
                    await self.gateway.consolidate_item(item, session)
                logger.debug(f"Evicted item {item.id} (activation {item.activation:.3f})")

        items = link_new_item(items, new_item.id, self.settings.engine.overlap_threshold)

        await self.repository.patch(
            store.id,
            items,
            focus=new_item.id,
            last_update=now,
            expected_version=store.version,
        )
        logger.debug(f"Added {new_item.category.value} item {new_item.id} to session {session}")
        return new_item.id

    async def get_state(
        self,
        subject: Optional[str],
        session: str,
        include_associations: bool = False,
    ) -> Optional[WorkingMemoryView]:
        """
        Decayed view of the session's working memory.

        Nothing is written back; decay is recomputed from the stored
        `last_update` on every read. Returns None instead of raising when
        the caller or the store cannot be found.
        """
        if not subject:
            return None
        owner = await self.users.resolve(subject)
        if owner is None:
            return None
        store = await self.repository.get(owner, session)
        if store is None:
            return None

        decayed = self._decay(store, self.clock())
        floor = self.settings.engine.view_activation_floor
        visible = [item for item in decayed if item.activation > floor]

        return WorkingMemoryView(
            items=visible,
            capacity=store.capacity,
            utilization=len(decayed) / store.capacity,
            focus=store.focus,
            graph=build_graph_view(decayed) if include_associations else None,
        )

    async def focus_item(
        self,
        subject: Optional[str],
        session: str,
        item_id: str,
    ) -> bool:
        """
        Focus attention on an item (rehearsal).

        Returns:
            True if the item was present and boosted
        """
        owner = await self._resolve_owner(subject)
        store = await self._require_store(owner, session)

        outcome = apply_focus(store, item_id, self.clock(), self.settings.engine)
        updated = outcome.store

        await self.repository.patch(
            store.id,
            updated.items,
            focus=updated.focus,
            last_update=updated.last_update,
            expected_version=store.version,
        )
        return outcome.found

    async def consolidate_session(
        self,
        session: str,
        owner: Optional[str] = None,
    ) -> ConsolidationReport:
        """
        Sweep every store for a session into long-term memory.

        Without `owner`, all stores carrying this session id are swept,
        whoever owns them. Passing `owner` restricts the sweep to that
        owner's store. Never raises; failures are logged and counted.
        """
        start_time = time.time()
        report = ConsolidationReport(session=session)

        try:
            stores = await self.repository.list_by_session(session, owner)
        except Exception:
            logger.exception(f"Could not list working memory for session {session}")
            report.duration_seconds = time.time() - start_time
            return report

        owners = {store.owner for store in stores}
        if len(owners) > 1:
            logger.warning(f"Session {session} is shared by {len(owners)} owners; sweeping all")

        for store in stores:
            try:
                updated, sweep_report = await self.gateway.sweep(store, self.clock())
                await self.repository.patch(
                    store.id,
                    updated.items,
                    focus=updated.focus,
                    last_update=updated.last_update,
                    expected_version=store.version,
                )
            except Exception:
                report.stores_failed += 1
                logger.exception(f"Consolidation sweep failed for store {store.id}")
                continue
            report.add(sweep_report)

        report.duration_seconds = time.time() - start_time
        logger.info(
            f"Consolidated session {session}: {report.items_consolidated} consolidated, "
            f"{report.items_failed} failed, {report.items_pruned} pruned "
            f"across {report.stores_swept} stores in {report.duration_seconds:.2f}s"
        )
        return report
