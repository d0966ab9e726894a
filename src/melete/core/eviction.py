"""Capacity enforcement: decide which items survive overflow."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Sequence

from melete.core.models import WorkingMemoryItem


@dataclass
class EvictionResult:
    """Items kept and evicted, each in original insertion order."""

    kept: List[WorkingMemoryItem] = field(default_factory=list)
    evicted: List[WorkingMemoryItem] = field(default_factory=list)


def retention_score(item: WorkingMemoryItem, now: datetime) -> float:
    """Activation plus a small recency bonus: 1 / (ms since last access + 1)."""
    age_ms = (now - item.last_accessed).total_seconds() * 1000.0
    return item.activation + 1.0 / (max(age_ms, 0.0) + 1.0)


def rank_items(
    items: Sequence[WorkingMemoryItem], now: datetime
) -> List[WorkingMemoryItem]:
    """Items by retention score, highest first; on ties the later-inserted item ranks first."""
    positions = range(len(items))
    order = sorted(positions, key=lambda i: (retention_score(items[i], now), i), reverse=True)
    return [items[i] for i in order]


def enforce_capacity(
    items: Sequence[WorkingMemoryItem],
    capacity: int,
    now: datetime,
) -> EvictionResult:
    """
    Trim items to capacity.

    Args:
        items: Current items in insertion order, newest last
        capacity: Maximum number of items to keep
        now: Reference time for the recency bonus

    Returns:
        EvictionResult; evicted is exactly the lowest len(items) - capacity
        items by retention score, oldest first among equal scores
    """
    if len(items) <= capacity:
        return EvictionResult(kept=list(items), evicted=[])

    ranked = rank_items(items, now)
    survivor_ids = {id(item) for item in ranked[:capacity]}

    result = EvictionResult()
    for item in items:
        if id(item) in survivor_ids:
            result.kept.append(item)
        else:
            result.evicted.append(item)
    return result
