"""Attention: rehearsal boost for a focused item and its associates."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger

from melete.config.settings import EngineSettings
from melete.core.decay import apply_decay
from melete.core.models import WorkingMemoryStore


@dataclass
class FocusOutcome:
    """Updated store and whether the focused item existed."""

    store: WorkingMemoryStore
    found: bool


def focus_item(
    store: WorkingMemoryStore,
    item_id: str,
    now: datetime,
    settings: Optional[EngineSettings] = None,
) -> FocusOutcome:
    """
    Rehearse an item.

    Order matters: decay first so boosts land on current activations.
    The focused item gains `rehearsal_boost`, a fresh `last_accessed` and
    one more access; each associate still present gains
    `association_strength` only. A missing item leaves everything but the
    decay projection and `last_update` as it was.

    Args:
        store: Store as persisted
        item_id: Item to focus
        now: Current time
        settings: Engine tunables (defaults if None)

    Returns:
        FocusOutcome with a new store; the input store is not mutated
    """
    settings = settings or EngineSettings()
    updated = store.copy()
    updated.items = apply_decay(
        store.items,
        store.last_update,
        now,
        base_rate=settings.base_decay_rate,
        max_protection=settings.max_access_protection,
    )
    updated.last_update = now

    target = updated.get_item(item_id)
    if target is None:
        logger.debug(f"Focus target {item_id} not in store {store.id}")
        return FocusOutcome(store=updated, found=False)

    target.activation = min(1.0, target.activation + settings.rehearsal_boost)
    target.last_accessed = now
    target.access_count += 1

    boosted = 0
    for assoc_id in dict.fromkeys(target.associations):
        if assoc_id == item_id:
            continue
        associate = updated.get_item(assoc_id)
        if associate is not None:
            associate.activation = min(
                1.0, associate.activation + settings.association_strength
            )
            boosted += 1

    updated.focus = item_id
    logger.debug(f"Focused {item_id}: activation {target.activation:.3f}, {boosted} associates boosted")
    return FocusOutcome(store=updated, found=True)
