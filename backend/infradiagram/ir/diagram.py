import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from .errors import ValidationError


class NodeKind(Enum):
    """Configuration block kinds. Each member knows its id prefix and box size."""

    RESOURCE = ("resource", "resource", 180, 80, True)
    DATA = ("data", "data", 180, 70, True)
    MODULE = ("module", "module", 200, 100, False)
    VARIABLE = ("variable", "var", 150, 60, False)
    OUTPUT = ("output", "output", 150, 60, False)

    def __init__(self, key, prefix, width, height, typed):
        self.key = key
        self.prefix = prefix
        self.default_width = width
        self.default_height = height
        self.requires_type = typed

    @classmethod
    def parse(cls, raw: Any) -> "NodeKind":
        if isinstance(raw, NodeKind):
            return raw
        if isinstance(raw, str):
            lowered = raw.strip().lower()
            for kind in cls:
                if lowered in (kind.key, kind.prefix):
                    return kind
        raise ValidationError(
            f"Unrecognized node kind: {raw!r}",
            details=[{"field": "kind", "allowed": [k.key for k in cls]}],
        )

    def node_id(self, name: str, resource_type: Optional[str] = None) -> str:
        if self.requires_type:
            return f"{self.prefix}.{resource_type}.{name}"
        return f"{self.prefix}.{name}"

    def default_label(self, name: str, resource_type: Optional[str] = None) -> str:
        if self is NodeKind.RESOURCE:
            return f"{resource_type}.{name}"
        return self.node_id(name, resource_type)


class EdgeType(str, Enum):
    DEPENDS_ON = "depends_on"
    REFERENCE = "reference"


class Direction(str, Enum):
    LEFT_TO_RIGHT = "LR"
    TOP_TO_BOTTOM = "TB"
    RIGHT_TO_LEFT = "RL"
    BOTTOM_TO_TOP = "BT"

    @property
    def is_horizontal(self) -> bool:
        return self in (Direction.LEFT_TO_RIGHT, Direction.RIGHT_TO_LEFT)

    @property
    def is_reversed(self) -> bool:
        return self in (Direction.RIGHT_TO_LEFT, Direction.BOTTOM_TO_TOP)


@dataclass(frozen=True)
class LayoutOptions:
    direction: Direction = Direction.LEFT_TO_RIGHT
    node_spacing: int = 70
    rank_spacing: int = 100
    margin_x: int = 20
    margin_y: int = 20


@dataclass
class Node:
    id: str
    kind: NodeKind
    name: str
    resource_type: Optional[str] = None
    label: str = ""
    config: Dict[str, Any] = field(default_factory=dict)
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    icon: Optional[str] = None

    def __post_init__(self):
        if not self.width:
            self.width = self.kind.default_width
        if not self.height:
            self.height = self.kind.default_height
        if not self.label:
            self.label = self.kind.default_label(self.name, self.resource_type)


@dataclass
class Edge:
    id: str
    source_id: str
    target_id: str
    type: EdgeType = EdgeType.REFERENCE
    label: str = ""
    verb: Optional[str] = None

    @property
    def pair(self):
        return (self.source_id, self.target_id)


@dataclass
class Graph:
    nodes: Dict[str, Node] = field(default_factory=dict)
    edges: Dict[str, Edge] = field(default_factory=dict)
    options: LayoutOptions = field(default_factory=LayoutOptions)
    width: float = 0
    height: float = 0

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def incident_edges(self, node_id: str) -> List[Edge]:
        return [
            edge for edge in self.edges.values()
            if edge.source_id == node_id or edge.target_id == node_id
        ]

    def edges_between(self, source_id: str, target_id: str) -> List[Edge]:
        return [
            edge for edge in self.edges.values()
            if edge.source_id == source_id and edge.target_id == target_id
        ]

    def next_edge_id(self, source_id: str, target_id: str) -> str:
        """`src:tgt` for the first edge of a pair, `src:tgt:n` for parallel ones."""
        base = f"{source_id}:{target_id}"
        if base not in self.edges:
            return base
        n = 2
        while f"{base}:{n}" in self.edges:
            n += 1
        return f"{base}:{n}"

    def add_edge(
        self,
        source_id: str,
        target_id: str,
        edge_type: EdgeType,
        label: str = "",
    ) -> Edge:
        edge = Edge(
            id=self.next_edge_id(source_id, target_id),
            source_id=source_id,
            target_id=target_id,
            type=edge_type,
            label=label,
        )
        self.edges[edge.id] = edge
        return edge

    def nodes_of(self, kind: NodeKind) -> Iterator[Node]:
        return (node for node in self.nodes.values() if node.kind is kind)

    def copy(self) -> "Graph":
        return copy.deepcopy(self)
