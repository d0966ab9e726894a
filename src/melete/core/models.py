"""Core working memory data structures."""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from melete.core.constants import WORKING_MEMORY_CAPACITY
from melete.utils.exceptions import ValidationError


class ItemCategory(Enum):
    """Kind of thing a working memory item holds."""
    CONCEPT = "concept"
    ENTITY = "entity"
    TASK = "task"
    PREFERENCE = "preference"
    CONTEXT = "context"


class ItemSource(Enum):
    """Where an item came from."""
    CHAT = "chat"
    MEMORY = "memory"
    INFERENCE = "inference"


def _parse_enum(enum_cls, value: Any, field_name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {field_name} {value!r} (expected one of: {allowed})"
        ) from None


@dataclass
class ItemSpec:
    """Caller input for adding an item to working memory."""

    content: str
    category: ItemCategory
    source: ItemSource
    associations: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.content, str) or not self.content.strip():
            raise ValidationError("Item content must be a non-empty string")
        self.category = _parse_enum(ItemCategory, self.category, "category")
        self.source = _parse_enum(ItemSource, self.source, "source")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ItemSpec":
        """Create from a loosely typed request payload."""
        if "category" not in data and "type" in data:
            data = {**data, "category": data["type"]}
        return cls(
            content=data.get("content", ""),
            category=data.get("category"),
            source=data.get("source"),
            associations=list(data.get("associations") or []),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class WorkingMemoryItem:
    """A single item held in working memory."""

    content: str
    category: ItemCategory
    source: ItemSource = ItemSource.CHAT
    id: str = field(default_factory=lambda: str(uuid4()))
    activation: float = 1.0
    last_accessed: datetime = field(default_factory=datetime.now)
    access_count: int = 1
    associations: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_spec(cls, spec: ItemSpec, now: datetime) -> "WorkingMemoryItem":
        """Build a fresh item: full activation, one access."""
        return cls(
            content=spec.content,
            category=spec.category,
            source=spec.source,
            activation=1.0,
            last_accessed=now,
            access_count=1,
            associations=list(dict.fromkeys(spec.associations)),
            metadata=dict(spec.metadata),
        )

    def copy(self) -> "WorkingMemoryItem":
        """Independent copy (associations and metadata included)."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "id": self.id,
            "content": self.content,
            "category": self.category.value,
            "source": self.source.value,
            "activation": self.activation,
            "last_accessed": self.last_accessed.isoformat(),
            "access_count": self.access_count,
            "associations": list(self.associations),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkingMemoryItem":
        """Reconstruct from dictionary."""
        return cls(
            id=data["id"],
            content=data["content"],
            category=ItemCategory(data["category"]),
            source=ItemSource(data.get("source", "chat")),
            activation=data.get("activation", 1.0),
            last_accessed=datetime.fromisoformat(data["last_accessed"]),
            access_count=data.get("access_count", 1),
            associations=list(data.get("associations", [])),
            metadata=data.get("metadata") or {},
        )


@dataclass
class WorkingMemoryStore:
    """Per-(owner, session) working memory state."""

    owner: str
    session: str
    id: str = field(default_factory=lambda: str(uuid4()))
    items: List[WorkingMemoryItem] = field(default_factory=list)
    capacity: int = WORKING_MEMORY_CAPACITY
    focus: Optional[str] = None
    last_update: datetime = field(default_factory=datetime.now)
    version: int = 0

    def get_item(self, item_id: str) -> Optional[WorkingMemoryItem]:
        """Look up an item by id."""
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def copy(self) -> "WorkingMemoryStore":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "id": self.id,
            "owner": self.owner,
            "session": self.session,
            "items": [item.to_dict() for item in self.items],
            "capacity": self.capacity,
            "focus": self.focus,
            "last_update": self.last_update.isoformat(),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkingMemoryStore":
        """Reconstruct from dictionary."""
        return cls(
            id=data["id"],
            owner=data["owner"],
            session=data["session"],
            items=[WorkingMemoryItem.from_dict(i) for i in data.get("items", [])],
            capacity=data.get("capacity", WORKING_MEMORY_CAPACITY),
            focus=data.get("focus"),
            last_update=datetime.fromisoformat(data["last_update"]),
            version=data.get("version", 0),
        )


@dataclass
class GraphNode:
    """Node in the association graph view."""

    id: str
    label: str
    category: ItemCategory
    activation: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "category": self.category.value,
            "activation": self.activation,
        }


@dataclass
class GraphEdge:
    """Directed edge in the association graph view."""

    source: str
    target: str
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target, "weight": self.weight}


@dataclass
class GraphView:
    """Renderable association graph."""

    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


@dataclass
class WorkingMemoryView:
    """Read-only projection returned by get_state."""

    items: List[WorkingMemoryItem]
    capacity: int
    utilization: float
    focus: Optional[str] = None
    graph: Optional[GraphView] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "items": [item.to_dict() for item in self.items],
            "capacity": self.capacity,
            "utilization": self.utilization,
            "focus": self.focus,
            "association_graph": self.graph.to_dict() if self.graph else None,
        }


@dataclass
class ConsolidationRecord:
    """Payload forwarded to the long-term memory store."""

    memory_type: str
    content: str
    summary: str
    keywords: List[str]
    context: Dict[str, Any]
    importance: str
    confidence: float
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "memory_type": self.memory_type,
            "content": self.content,
            "summary": self.summary,
            "keywords": list(self.keywords),
            "context": self.context,
            "importance": self.importance,
            "confidence": self.confidence,
            "source": self.source,
        }


@dataclass
class SweepReport:
    """Outcome of sweeping a single store."""

    store_id: str
    owner: str
    consolidated: int = 0
    failed: int = 0
    pruned: int = 0
    retained: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "store_id": self.store_id,
            "owner": self.owner,
            "consolidated": self.consolidated,
            "failed": self.failed,
            "pruned": self.pruned,
            "retained": self.retained,
        }


@dataclass
class ConsolidationReport:
    """Report from a consolidate_session run."""

    session: str
    stores_swept: int = 0
    stores_failed: int = 0
    items_consolidated: int = 0
    items_failed: int = 0
    items_pruned: int = 0
    duration_seconds: float = 0.0
    store_reports: List[SweepReport] = field(default_factory=list)

    def add(self, report: SweepReport) -> None:
        """Fold one store's sweep into the totals."""
        self.stores_swept += 1
        self.items_consolidated += report.consolidated
        self.items_failed += report.failed
        self.items_pruned += report.pruned
        self.store_reports.append(report)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "session": self.session,
            "stores_swept": self.stores_swept,
            "stores_failed": self.stores_failed,
            "items_consolidated": self.items_consolidated,
            "items_failed": self.items_failed,
            "items_pruned": self.items_pruned,
            "duration_seconds": self.duration_seconds,
            "store_reports": [r.to_dict() for r in self.store_reports],
        }
