from infradiagram.ir.diagram import (
    Direction,
    Edge,
    EdgeType,
    Graph,
    LayoutOptions,
    Node,
    NodeKind,
)
from infradiagram.ir.errors import (
    DiagramError,
    GenerationError,
    LayoutError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "Direction",
    "Edge",
    "EdgeType",
    "Graph",
    "LayoutOptions",
    "Node",
    "NodeKind",
    "DiagramError",
    "GenerationError",
    "LayoutError",
    "NotFoundError",
    "ValidationError",
]
