from typing import Any, Dict, Optional

from infradiagram.compiler.builder import build_graph
from infradiagram.compiler.layout import apply_layout, compute_layout
from infradiagram.ir.diagram import Graph, LayoutOptions


def build_diagram(parsed: Dict[str, Any], options: Optional[LayoutOptions] = None) -> Graph:
    graph = build_graph(parsed, options)
    return apply_layout(graph)


__all__ = ["build_diagram", "build_graph", "apply_layout", "compute_layout"]
