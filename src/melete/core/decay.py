"""Time-based activation decay with access protection."""

import math
from datetime import datetime
from typing import List, Sequence

from melete.core.constants import (
    ACCESS_PROTECTION_FACTOR,
    BASE_DECAY_RATE,
    MAX_ACCESS_PROTECTION,
)
from melete.core.models import WorkingMemoryItem


def elapsed_minutes(since: datetime, now: datetime) -> float:
    """Minutes between two timestamps, never negative."""
    return max(0.0, (now - since).total_seconds() / 60.0)


def access_protection(
    access_count: int,
    max_protection: float = MAX_ACCESS_PROTECTION,
) -> float:
    """
    Fraction of decay an item is shielded from.

    Grows with ln(access_count + 1) so frequently rehearsed items fade
    more slowly, with diminishing returns. Clamped to [0, max_protection];
    past ~8000 accesses the raw value would exceed 1 and decay would
    start raising activation.
    """
    raw = math.log(access_count + 1) * ACCESS_PROTECTION_FACTOR
    return min(max(raw, 0.0), max_protection)


def decayed_activation(
    activation: float,
    access_count: int,
    minutes: float,
    base_rate: float = BASE_DECAY_RATE,
    max_protection: float = MAX_ACCESS_PROTECTION,
) -> float:
    """Activation after `minutes` of decay, floored at 0."""
    protection = access_protection(access_count, max_protection)
    decay = base_rate * minutes * (1 - protection)
    return max(0.0, activation - decay)


def apply_decay(
    items: Sequence[WorkingMemoryItem],
    last_update: datetime,
    now: datetime,
    base_rate: float = BASE_DECAY_RATE,
    max_protection: float = MAX_ACCESS_PROTECTION,
) -> List[WorkingMemoryItem]:
    """
    Project every item's activation to `now`.

    Elapsed time is measured from the store's `last_update` anchor, not
    from each item's `last_accessed`.

    Args:
        items: Items as persisted at `last_update`
        last_update: Store decay anchor
        now: Projection time
        base_rate: Activation lost per minute without protection
        max_protection: Upper clamp for access protection

    Returns:
        New item copies with decayed activation; inputs are untouched
    """
    minutes = elapsed_minutes(last_update, now)
    projected = []
    for item in items:
        clone = item.copy()
        clone.activation = decayed_activation(
            item.activation, item.access_count, minutes, base_rate, max_protection
        )
        projected.append(clone)
    return projected
