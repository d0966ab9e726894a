"""Working memory constants - defaults for the engine settings.

These values define the cognitive model's default tuning. Settings
classes read their defaults from here so tests and config share one source.
"""

# Capacity
WORKING_MEMORY_CAPACITY = 7
"""Default number of items a session store may hold (7 +/- 2)."""

# Decay
BASE_DECAY_RATE = 0.1
"""Activation units lost per minute for an item with no access protection."""

ACCESS_PROTECTION_FACTOR = 0.1
"""Multiplier on ln(access_count + 1) giving the decay protection."""

MAX_ACCESS_PROTECTION = 0.9
"""Upper clamp for decay protection so decay never turns into growth."""

# Attention
REHEARSAL_BOOST = 0.3
"""Activation added to an item when it is focused."""

ASSOCIATION_STRENGTH = 0.2
"""Activation added to each associate of a focused item."""

# Associations
LEXICAL_OVERLAP_THRESHOLD = 0.3
"""Token overlap ratio above which two items are linked."""

GRAPH_LABEL_LENGTH = 50
"""Maximum node label length in the association graph view."""

GRAPH_EDGE_WEIGHT_FACTOR = 0.5
"""Edge weight is the source activation times this factor."""

# Consolidation
IMPORTANT_ACTIVATION_THRESHOLD = 0.7
"""Items above this activation are consolidated by the sweep."""

IMPORTANT_ACCESS_COUNT = 3
"""Items accessed more often than this are consolidated by the sweep."""

HIGH_IMPORTANCE_ACTIVATION = 0.8
"""Records above this activation are marked high importance."""

DISPLACEMENT_ACTIVATION_THRESHOLD = 0.5
"""Evicted items above this activation are consolidated before discard."""

PRUNE_ACTIVATION_FLOOR = 0.1
"""Items at or below this activation are pruned (and hidden from views)."""

SUMMARY_PREVIEW_LENGTH = 100
"""Characters of content copied into a consolidation summary."""

MAX_KEYWORDS = 10
"""Number of leading content tokens used as consolidation keywords."""

CONSOLIDATION_SOURCE = "working_memory_consolidation"
"""Source tag attached to every record sent to long-term memory."""
