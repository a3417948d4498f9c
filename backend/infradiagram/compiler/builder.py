import logging
from typing import Any, Dict, Iterable, Optional

from infradiagram.compiler.references import dependency_candidates, scan_references
from infradiagram.ir.diagram import EdgeType, Graph, LayoutOptions, Node, NodeKind
from infradiagram.ir.errors import ValidationError

logger = logging.getLogger(__name__)

# Sections keyed type -> name -> attributes
TYPED_SECTIONS = {
    "resource": NodeKind.RESOURCE,
    "data": NodeKind.DATA,
}

# Sections keyed name -> attributes
NAMED_SECTIONS = {
    "module": NodeKind.MODULE,
    "variable": NodeKind.VARIABLE,
    "output": NodeKind.OUTPUT,
}


def _section(parsed: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = parsed.get(key) or {}
    if not isinstance(section, dict):
        raise ValidationError(
            f"Section '{key}' must be a mapping",
            details=[{"section": key, "got": type(section).__name__}],
        )
    return section


def _attributes(body: Any, where: str) -> Dict[str, Any]:
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError(
            f"Block '{where}' must be an attribute mapping",
            details=[{"block": where, "got": type(body).__name__}],
        )
    return body


def _resolve(graph: Graph, candidates: Iterable[str]) -> Optional[str]:
    for candidate in candidates:
        if graph.has_node(candidate):
            return candidate
    return None


def build_nodes(parsed: Dict[str, Any]) -> Graph:
    graph = Graph()

    # -------------------------
    # resource / data
    # -------------------------
    for section, kind in TYPED_SECTIONS.items():
        for resource_type, blocks in _section(parsed, section).items():
            if not isinstance(blocks, dict):
                raise ValidationError(
                    f"Section '{section}.{resource_type}' must map names to blocks"
                )
            for name, body in blocks.items():
                node = Node(
                    id=kind.node_id(name, resource_type),
                    kind=kind,
                    name=name,
                    resource_type=resource_type,
                    config=_attributes(body, f"{section}.{resource_type}.{name}"),
                )
                graph.nodes[node.id] = node

    # -------------------------
    # module / variable / output
    # -------------------------
    for section, kind in NAMED_SECTIONS.items():
        for name, body in _section(parsed, section).items():
            node = Node(
                id=kind.node_id(name),
                kind=kind,
                name=name,
                config=_attributes(body, f"{section}.{name}"),
            )
            graph.nodes[node.id] = node

    return graph


def build_edges(graph: Graph) -> Graph:
    for node in list(graph.nodes.values()):
        # Explicit depends_on: dependency -> dependent
        depends_on = node.config.get("depends_on")
        if isinstance(depends_on, list):
            for entry in depends_on:
                dependency = _resolve(graph, dependency_candidates(entry))
                if dependency is None:
                    logger.debug("[builder] %s: unresolved depends_on %r dropped", node.id, entry)
                    continue
                graph.add_edge(dependency, node.id, EdgeType.DEPENDS_ON, "depends_on")

        # Implicit references: referenced -> referencing, one edge per occurrence
        for key, value in node.config.items():
            if key == "depends_on":
                continue
            for match in scan_references(value, key):
                referenced = _resolve(graph, match.candidates)
                if referenced is None:
                    continue
                graph.add_edge(referenced, node.id, EdgeType.REFERENCE, match.key or key)

    return graph


def build_graph(parsed: Dict[str, Any], options: Optional[LayoutOptions] = None) -> Graph:
    """
    Turn normalized configuration sections into a typed node/edge graph.
    Coordinates are left at zero; layout runs separately.
    """
    if not isinstance(parsed, dict):
        raise ValidationError("Parsed configuration must be a mapping")

    graph = build_nodes(parsed)
    if options is not None:
        graph.options = options
    build_edges(graph)

    logger.info(
        "[builder] built graph with %d nodes and %d edges",
        len(graph.nodes),
        len(graph.edges),
    )
    return graph
