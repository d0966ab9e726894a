"""Pytest configuration and fixtures for Melete tests."""

import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Generator

import pytest

from melete.config.settings import (
    ConsolidationSettings,
    EngineSettings,
    LoggingSettings,
    LongTermSettings,
    Settings,
    StorageSettings,
)
from melete.core.models import ItemCategory, ItemSource, WorkingMemoryItem
from melete.service import WorkingMemoryService
from melete.storage import InMemoryLongTermStore, InMemorySessionRepository


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float = 0.0, milliseconds: float = 0.0) -> datetime:
        self.now = self.now + timedelta(minutes=minutes, milliseconds=milliseconds)
        return self.now


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def t0() -> datetime:
    """Fixed reference time."""
    return datetime(2024, 5, 1, 12, 0, 0)


@pytest.fixture
def clock(t0) -> FakeClock:
    return FakeClock(t0)


@pytest.fixture
def test_settings() -> Settings:
    """Settings built from defaults only (no env or TOML influence)."""
    return Settings(
        engine=EngineSettings(
            capacity=7,
            base_decay_rate=0.1,
            max_access_protection=0.9,
            rehearsal_boost=0.3,
            association_strength=0.2,
            overlap_threshold=0.3,
            view_activation_floor=0.1,
        ),
        consolidation=ConsolidationSettings(
            important_activation=0.7,
            important_access_count=3,
            high_importance_activation=0.8,
            displacement_activation=0.5,
            prune_floor=0.1,
        ),
        storage=StorageSettings(backend="memory"),
        long_term=LongTermSettings(),
        logging=LoggingSettings(level="DEBUG"),
    )


@pytest.fixture
def repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def long_term() -> InMemoryLongTermStore:
    return InMemoryLongTermStore()


@pytest.fixture
def service(repository, long_term, test_settings, clock) -> WorkingMemoryService:
    """Service wired to in-memory collaborators and a fake clock."""
    return WorkingMemoryService(
        repository,
        long_term,
        settings=test_settings,
        clock=clock,
    )


@pytest.fixture
def make_item(t0):
    """Factory for working memory items with sensible defaults."""

    def _make(
        content: str = "quarterly budget review",
        category: ItemCategory = ItemCategory.CONCEPT,
        activation: float = 1.0,
        access_count: int = 1,
        associations=None,
        last_accessed: datetime = None,
        item_id: str = None,
    ) -> WorkingMemoryItem:
        item = WorkingMemoryItem(
            content=content,
            category=category,
            source=ItemSource.CHAT,
            activation=activation,
            access_count=access_count,
            associations=list(associations or []),
            last_accessed=last_accessed or t0,
        )
        if item_id is not None:
            item.id = item_id
        return item

    return _make
