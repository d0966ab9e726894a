"""Consolidation of important working memory items into long-term memory."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from loguru import logger

from melete.config.settings import ConsolidationSettings, EngineSettings
from melete.core.constants import (
    CONSOLIDATION_SOURCE,
    MAX_KEYWORDS,
    SUMMARY_PREVIEW_LENGTH,
)
from melete.core.decay import apply_decay
from melete.core.models import (
    ConsolidationRecord,
    ItemCategory,
    SweepReport,
    WorkingMemoryItem,
    WorkingMemoryStore,
)

if TYPE_CHECKING:
    from melete.storage.base import LongTermMemoryStore


MEMORY_TYPE_MAP: Dict[ItemCategory, str] = {
    ItemCategory.CONCEPT: "domain_knowledge",
    ItemCategory.ENTITY: "entity_relation",
    ItemCategory.TASK: "task_history",
    ItemCategory.PREFERENCE: "user_preference",
    ItemCategory.CONTEXT: "conversation_context",
}
DEFAULT_MEMORY_TYPE = "domain_knowledge"


def map_category(category: ItemCategory) -> str:
    """Long-term memory type for a working memory category."""
    return MEMORY_TYPE_MAP.get(category, DEFAULT_MEMORY_TYPE)


class ConsolidationGateway:
    """
    Hands working memory items off to the long-term memory store.

    Two entry points: `consolidate_item` for a single item displaced by
    eviction, and `sweep` for the periodic maintenance pass over a whole
    store. Long-term store failures are logged and never propagate.
    """

    def __init__(
        self,
        long_term_store: LongTermMemoryStore,
        settings: Optional[ConsolidationSettings] = None,
        engine_settings: Optional[EngineSettings] = None,
    ):
        """
        Initialize the gateway.

        Args:
            long_term_store: Destination for consolidation records
            settings: Consolidation thresholds (uses defaults if None)
            engine_settings: Decay tunables used by the sweep (defaults if None)
        """
        self.long_term_store = long_term_store
        self.settings = settings or ConsolidationSettings()
        self.engine_settings = engine_settings or EngineSettings()

    def is_important(self, item: WorkingMemoryItem) -> bool:
        """Strong enough, or rehearsed often enough, to keep for good."""
        return (
            item.activation > self.settings.important_activation
            or item.access_count > self.settings.important_access_count
        )

    def build_record(self, item: WorkingMemoryItem, session: str) -> ConsolidationRecord:
        """Translate an item into a long-term memory record."""
        importance = (
            "high" if item.activation > self.settings.high_importance_activation else "medium"
        )
        return ConsolidationRecord(
            memory_type=map_category(item.category),
            content=item.content,
            summary=f"Consolidated from working memory: {item.content[:SUMMARY_PREVIEW_LENGTH]}",
            keywords=item.content.lower().split()[:MAX_KEYWORDS],
            context={
                "session": session,
                "access_count": item.access_count,
                "final_activation": item.activation,
                "associations": list(item.associations),
            },
            importance=importance,
            confidence=item.activation,
            source=CONSOLIDATION_SOURCE,
        )

    async def consolidate_item(self, item: WorkingMemoryItem, session: str) -> bool:
        """
        Send one item to long-term memory.

        Returns:
            True if the store accepted the record, False if it failed
        """
        record = self.build_record(item, session)
        try:
            record_id = await self.long_term_store.store(record)
        except Exception as e:
            logger.warning(f"Failed to consolidate item {item.id} to long-term memory: {e}")
            return False

        logger.debug(f"Consolidated item {item.id} as {record.memory_type} ({record_id})")
        return True

    async def sweep(
        self,
        store: WorkingMemoryStore,
        now: datetime,
    ) -> Tuple[WorkingMemoryStore, SweepReport]:
        """
        Run the maintenance pass over one store.

        Algorithm:
        1. Decay all items to `now`
        2. Consolidate each important item (failures are skipped)
        3. Prune items at or below the activation floor, whether or not
           they were consolidated
        4. Advance `last_update`; clear `focus` if its item was pruned

        Returns:
            (updated store, SweepReport); the input store is not mutated
        """
        report = SweepReport(store_id=store.id, owner=store.owner)
        items = apply_decay(
            store.items,
            store.last_update,
            now,
            base_rate=self.engine_settings.base_decay_rate,
            max_protection=self.engine_settings.max_access_protection,
        )

        for item in items:
            if not self.is_important(item):
                continue
            if await self.consolidate_item(item, store.session):
                report.consolidated += 1
            else:
                report.failed += 1

        survivors: List[WorkingMemoryItem] = [
            item for item in items if item.activation > self.settings.prune_floor
        ]
        report.pruned = len(items) - len(survivors)
        report.retained = len(survivors)

        updated = store.copy()
        updated.items = survivors
        updated.last_update = now
        if updated.focus is not None and updated.get_item(updated.focus) is None:
            updated.focus = None

        logger.debug(
            f"Swept store {store.id}: {report.consolidated} consolidated, "
            f"{report.failed} failed, {report.pruned} pruned"
        )
        return updated, report
