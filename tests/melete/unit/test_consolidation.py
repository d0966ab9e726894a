"""Unit tests for the consolidation gateway.

Tests for:
- Category mapping and record construction
- Single-item consolidation with failing stores
- The maintenance sweep (importance selection, pruning, partial failure)
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from melete.core.consolidator import ConsolidationGateway, map_category
from melete.core.models import ItemCategory, WorkingMemoryStore
from melete.storage import InMemoryLongTermStore
from melete.utils.exceptions import ExternalDependencyError


@pytest.fixture
def gateway(long_term, test_settings):
    return ConsolidationGateway(
        long_term,
        settings=test_settings.consolidation,
        engine_settings=test_settings.engine,
    )


class TestMapCategory:
    """Tests for working memory -> long-term type mapping."""

    @pytest.mark.parametrize(
        "category,expected",
        [
            (ItemCategory.CONCEPT, "domain_knowledge"),
            (ItemCategory.ENTITY, "entity_relation"),
            (ItemCategory.TASK, "task_history"),
            (ItemCategory.PREFERENCE, "user_preference"),
            (ItemCategory.CONTEXT, "conversation_context"),
        ],
    )
    def test_mapping(self, category, expected):
        assert map_category(category) == expected


class TestBuildRecord:
    """Tests for ConsolidationRecord construction."""

    def test_record_fields(self, gateway, make_item):
        content = "The Acme MSA renews automatically unless cancelled 60 days before the end of term " * 2
        item = make_item(
            content=content,
            category=ItemCategory.ENTITY,
            activation=0.85,
            access_count=4,
            associations=["a1", "a2"],
        )

        record = gateway.build_record(item, "session-9")

        assert record.memory_type == "entity_relation"
        assert record.content == content
        assert record.summary == f"Consolidated from working memory: {content[:100]}"
        assert record.keywords == content.lower().split()[:10]
        assert len(record.keywords) == 10
        assert record.context == {
            "session": "session-9",
            "access_count": 4,
            "final_activation": 0.85,
            "associations": ["a1", "a2"],
        }
        assert record.importance == "high"
        assert record.confidence == 0.85
        assert record.source == "working_memory_consolidation"

    def test_medium_importance_at_or_below_threshold(self, gateway, make_item):
        record = gateway.build_record(make_item(activation=0.8), "s")
        assert record.importance == "medium"


class TestIsImportant:
    """Tests for importance selection."""

    def test_high_activation(self, gateway, make_item):
        assert gateway.is_important(make_item(activation=0.71))

    def test_frequent_access(self, gateway, make_item):
        assert gateway.is_important(make_item(activation=0.2, access_count=4))

    def test_neither(self, gateway, make_item):
        assert not gateway.is_important(make_item(activation=0.7, access_count=3))


class TestConsolidateItem:
    """Tests for single-item consolidation."""

    @pytest.mark.asyncio
    async def test_success(self, gateway, long_term, make_item):
        assert await gateway.consolidate_item(make_item(content="keep me"), "s") is True
        assert [r.content for r in long_term.records] == ["keep me"]

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, test_settings, make_item):
        store = AsyncMock()
        store.store.side_effect = ExternalDependencyError("server down")
        gateway = ConsolidationGateway(store, settings=test_settings.consolidation)

        assert await gateway.consolidate_item(make_item(), "s") is False
        store.store.assert_awaited_once()


class TestSweep:
    """Tests for the maintenance sweep."""

    @pytest.mark.asyncio
    async def test_consolidates_important_and_prunes_decayed(self, gateway, long_term, make_item, t0):
        store = WorkingMemoryStore(
            owner="u",
            session="s",
            last_update=t0,
            items=[
                make_item(content="strong", activation=0.95),
                make_item(content="rehearsed", activation=0.3, access_count=5),
                make_item(content="middling", activation=0.5),
                make_item(content="faded", activation=0.05),
            ],
        )

        updated, report = await gateway.sweep(store, t0)

        assert sorted(r.content for r in long_term.records) == ["rehearsed", "strong"]
        assert [i.content for i in updated.items] == ["strong", "rehearsed", "middling"]
        assert report.consolidated == 2
        assert report.failed == 0
        assert report.pruned == 1
        assert report.retained == 3

    @pytest.mark.asyncio
    async def test_decay_applied_before_selection(self, gateway, long_term, make_item, t0):
        """0.75 is important now but not after three minutes of decay."""
        store = WorkingMemoryStore(
            owner="u", session="s", last_update=t0,
            items=[make_item(content="cooling", activation=0.75)],
        )

        updated, report = await gateway.sweep(store, t0 + timedelta(minutes=3))

        assert long_term.records == []
        assert report.consolidated == 0
        assert updated.last_update == t0 + timedelta(minutes=3)

    @pytest.mark.asyncio
    async def test_partial_failure_continues_and_still_prunes(self, test_settings, make_item, t0):
        failing = InMemoryLongTermStore(fail_on=["first"])
        gateway = ConsolidationGateway(failing, settings=test_settings.consolidation)
        store = WorkingMemoryStore(
            owner="u", session="s", last_update=t0,
            items=[
                make_item(content="first", activation=0.9),
                make_item(content="second", activation=0.9),
                make_item(content="gone", activation=0.1),
            ],
        )

        updated, report = await gateway.sweep(store, t0)

        assert [r.content for r in failing.records] == ["second"]
        assert report.consolidated == 1
        assert report.failed == 1
        assert [i.content for i in updated.items] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_focus_cleared_when_pruned(self, gateway, make_item, t0):
        faded = make_item(content="faded", activation=0.05)
        store = WorkingMemoryStore(
            owner="u", session="s", last_update=t0, items=[faded], focus=faded.id,
        )

        updated, _ = await gateway.sweep(store, t0)

        assert updated.items == []
        assert updated.focus is None
