"""Melete - Session working memory with decay, rehearsal and consolidation."""

__version__ = "0.1.0"

from melete.core.models import (
    ItemCategory,
    ItemSource,
    ItemSpec,
    WorkingMemoryItem,
    WorkingMemoryStore,
)

__all__ = [
    "ItemCategory",
    "ItemSource",
    "ItemSpec",
    "WorkingMemoryItem",
    "WorkingMemoryStore",
]
