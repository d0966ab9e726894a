"""Association linking and graph rendering."""

from typing import List, Sequence, Set

from melete.core.constants import (
    GRAPH_EDGE_WEIGHT_FACTOR,
    GRAPH_LABEL_LENGTH,
    LEXICAL_OVERLAP_THRESHOLD,
)
from melete.core.models import GraphEdge, GraphNode, GraphView, WorkingMemoryItem


def tokenize(content: str) -> Set[str]:
    """Lowercased whitespace tokens."""
    return set(content.lower().split())


def content_overlap(a: str, b: str) -> float:
    """
    Shared-token ratio relative to the shorter text.

    Returns |tokens(a) & tokens(b)| / min(|tokens(a)|, |tokens(b)|),
    or 0.0 when either text has no tokens.
    """
    tokens_a = tokenize(a)
    tokens_b = tokenize(b)
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / min(len(tokens_a), len(tokens_b))


def should_associate(
    existing: WorkingMemoryItem,
    new_item: WorkingMemoryItem,
    threshold: float = LEXICAL_OVERLAP_THRESHOLD,
) -> bool:
    """Same category, or content overlap above threshold."""
    if existing.category == new_item.category:
        return True
    return content_overlap(existing.content, new_item.content) > threshold


def link_new_item(
    items: Sequence[WorkingMemoryItem],
    new_item_id: str,
    threshold: float = LEXICAL_OVERLAP_THRESHOLD,
) -> List[WorkingMemoryItem]:
    """
    Point existing items at a newly added one.

    Edges only run existing -> new; the new item's own associations are
    left as supplied. If the new item is not among `items` (it was
    evicted), nothing is linked.

    Returns:
        New list; linked items are copies, others are passed through
    """
    new_item = next((item for item in items if item.id == new_item_id), None)
    if new_item is None:
        return list(items)

    linked = []
    for item in items:
        if item.id == new_item_id:
            linked.append(item)
            continue

        if should_associate(item, new_item, threshold) and new_item_id not in item.associations:
            item = item.copy()
            item.associations.append(new_item_id)
        linked.append(item)
    return linked


def build_graph_view(
    items: Sequence[WorkingMemoryItem],
    label_length: int = GRAPH_LABEL_LENGTH,
    edge_weight_factor: float = GRAPH_EDGE_WEIGHT_FACTOR,
) -> GraphView:
    """Render items as nodes and their associations as weighted edges.

    Associations pointing at ids not in `items` (evicted or pruned) are
    dropped.
    """
    present = {item.id for item in items}
    view = GraphView()

    for item in items:
        view.nodes.append(
            GraphNode(
                id=item.id,
                label=item.content[:label_length],
                category=item.category,
                activation=item.activation,
            )
        )
        for target in item.associations:
            if target in present:
                view.edges.append(
                    GraphEdge(
                        source=item.id,
                        target=target,
                        weight=item.activation * edge_weight_factor,
                    )
                )

    return view
