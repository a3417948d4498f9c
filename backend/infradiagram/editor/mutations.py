"""
Incremental edits on a diagram graph.

Every operation works on a copy: it validates first, applies the change,
re-runs layout where required and returns the new graph. The input graph
is never touched, so a failed edit leaves the stored diagram as it was.
"""

import logging
import numbers
from dataclasses import replace
from typing import Any, Dict, Optional

from infradiagram.compiler.layout import apply_layout
from infradiagram.ir.diagram import Direction, Edge, EdgeType, Graph, LayoutOptions, Node, NodeKind
from infradiagram.ir.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Wire names -> Node attribute names
NODE_FIELD_ALIASES = {
    "resourceType": "resource_type",
}

NODE_PATCH_FIELDS = {
    "name", "resource_type", "label", "config", "x", "y", "width", "height", "icon",
}

EDGE_FIELD_ALIASES = {
    "sourceId": "source_id",
    "targetId": "target_id",
}

EDGE_PATCH_FIELDS = {"type", "label", "verb"}

LAYOUT_FIELD_ALIASES = {
    "rankdir": "direction",
    "nodesep": "node_spacing",
    "nodeSpacing": "node_spacing",
    "ranksep": "rank_spacing",
    "rankSpacing": "rank_spacing",
    "marginx": "margin_x",
    "marginX": "margin_x",
    "marginy": "margin_y",
    "marginY": "margin_y",
}


def _normalize(data: Dict[str, Any], aliases: Dict[str, str]) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError("Payload must be a mapping")
    return {aliases.get(key, key): value for key, value in data.items()}


def _require_text(data: Dict[str, Any], key: str, message: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message, details=[{"field": key}])
    return value


def _check_number(data: Dict[str, Any], key: str, positive: bool = False) -> None:
    if key not in data or data[key] is None:
        return
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, numbers.Number):
        raise ValidationError(f"'{key}' must be a number", details=[{"field": key}])
    if positive and value <= 0:
        raise ValidationError(f"'{key}' must be positive", details=[{"field": key}])


def _get_node(graph: Graph, node_id: str) -> Node:
    node = graph.nodes.get(node_id)
    if node is None:
        raise NotFoundError(f"Node with ID {node_id} not found", details=[{"node_id": node_id}])
    return node


# ─── Nodes ────────────────────────────────────────────────────────────────────


def parse_node(node_data: Dict[str, Any]) -> Node:
    """Validate a node payload and build the Node it describes."""
    data = _normalize(node_data, NODE_FIELD_ALIASES)

    raw_kind = data.get("kind")
    if raw_kind is None and "type" in data:
        # Older clients send the kind under `type`
        raw_kind = data.get("type")
    if raw_kind is None:
        raise ValidationError("Node kind is required", details=[{"field": "kind"}])
    kind = NodeKind.parse(raw_kind)

    name = data.get("name")
    if not name and isinstance(data.get("id"), str):
        name = data["id"].rsplit(".", 1)[-1]
    name = _require_text({"name": name}, "name", "Node name is required")

    resource_type = data.get("resource_type")
    if kind.requires_type:
        resource_type = _require_text(
            data, "resource_type", f"A {kind.key} node requires a resourceType"
        )
    else:
        resource_type = None

    node_id = kind.node_id(name, resource_type)
    if data.get("id") not in (None, node_id):
        raise ValidationError(
            f"Node id {data['id']!r} does not match its kind, type and name",
            details=[{"field": "id", "expected": node_id}],
        )

    config = data.get("config") or {}
    if not isinstance(config, dict):
        raise ValidationError("'config' must be a mapping", details=[{"field": "config"}])

    for key in ("x", "y"):
        _check_number(data, key)
    for key in ("width", "height"):
        _check_number(data, key, positive=True)

    return Node(
        id=node_id,
        kind=kind,
        name=name,
        resource_type=resource_type,
        label=data.get("label") or "",
        config=dict(config),
        x=data.get("x") or 0,
        y=data.get("y") or 0,
        width=data.get("width") or 0,
        height=data.get("height") or 0,
        icon=data.get("icon"),
    )


def add_node(graph: Graph, node_data: Dict[str, Any]) -> Graph:
    node = parse_node(node_data)
    if graph.has_node(node.id):
        raise ValidationError(f"Node with ID {node.id} already exists", details=[{"node_id": node.id}])

    updated = graph.copy()
    updated.nodes[node.id] = node
    logger.info("[editor] added node %s", node.id)
    return apply_layout(updated)


def update_node(
    graph: Graph,
    node_id: str,
    patch: Dict[str, Any],
    relayout: bool = True,
) -> Graph:
    """
    Shallow-merge `patch` into a node.

    A patch carrying `x` or `y` is a manual move: coordinates are taken as
    given and layout is skipped. Any other patch re-runs the full layout
    when `relayout` is set, which replaces earlier manual positions.
    `name` and `resource_type` form the id and may only be repeated as is.
    """
    current = _get_node(graph, node_id)
    data = _normalize(patch, NODE_FIELD_ALIASES)

    if data.get("id") not in (None, node_id):
        raise ValidationError("Node ids are immutable", details=[{"field": "id"}])
    data.pop("id", None)

    if "kind" in data or "type" in data:
        requested = NodeKind.parse(data.pop("kind", None) or data.pop("type"))
        data.pop("type", None)
        if requested is not current.kind:
            raise ValidationError("Node kind is immutable", details=[{"field": "kind"}])

    unknown = sorted(set(data) - NODE_PATCH_FIELDS)
    if unknown:
        raise ValidationError(
            f"Unknown node fields: {', '.join(unknown)}",
            details=[{"field": key} for key in unknown],
        )

    # name and resource_type make up the id
    for key in ("name", "resource_type"):
        if key in data and data[key] != getattr(current, key):
            raise ValidationError("Node ids are immutable", details=[{"field": key}])
    if "config" in data and not isinstance(data["config"], dict):
        raise ValidationError("'config' must be a mapping", details=[{"field": "config"}])
    for key in ("x", "y", "width", "height"):
        if key in data and data[key] is None:
            raise ValidationError(f"'{key}' must be a number", details=[{"field": key}])
    for key in ("x", "y"):
        _check_number(data, key)
    for key in ("width", "height"):
        _check_number(data, key, positive=True)

    updated = graph.copy()
    updated.nodes[node_id] = replace(updated.nodes[node_id], **data)

    if "x" in data or "y" in data:
        logger.info("[editor] moved node %s", node_id)
        return updated

    logger.info("[editor] updated node %s", node_id)
    if relayout:
        return apply_layout(updated)
    return updated


def delete_node(graph: Graph, node_id: str) -> Graph:
    _get_node(graph, node_id)

    updated = graph.copy()
    incident = [edge.id for edge in updated.incident_edges(node_id)]
    for edge_id in incident:
        del updated.edges[edge_id]
    del updated.nodes[node_id]

    logger.info("[editor] deleted node %s and %d incident edges", node_id, len(incident))
    return apply_layout(updated)


# ─── Edges ────────────────────────────────────────────────────────────────────


def parse_edge_type(raw: Any) -> EdgeType:
    if raw is None:
        return EdgeType.REFERENCE
    try:
        return EdgeType(raw)
    except ValueError:
        raise ValidationError(
            f"Unrecognized edge type: {raw!r}",
            details=[{"field": "type", "allowed": [t.value for t in EdgeType]}],
        )


def resolve_edge(graph: Graph, edge_ref: str) -> Edge:
    """
    Find an edge by id, or by its `source:target` pair when that pair
    has exactly one edge.
    """
    edge = graph.edges.get(edge_ref)
    if edge is not None:
        return edge

    parts = edge_ref.split(":")
    if len(parts) != 2:
        raise NotFoundError(f"Connection {edge_ref} not found", details=[{"edge_id": edge_ref}])

    source_id, target_id = parts
    matches = graph.edges_between(source_id, target_id)
    if not matches:
        raise NotFoundError(
            f"Connection from {source_id} to {target_id} not found",
            details=[{"source_id": source_id, "target_id": target_id}],
        )
    if len(matches) > 1:
        raise ValidationError(
            f"Connection from {source_id} to {target_id} is ambiguous; address it by id",
            details=[{"edge_id": e.id} for e in matches],
        )
    return matches[0]


def add_edge(graph: Graph, edge_data: Dict[str, Any]) -> Graph:
    data = _normalize(edge_data, EDGE_FIELD_ALIASES)
    source_id = _require_text(data, "source_id", "sourceId is required")
    target_id = _require_text(data, "target_id", "targetId is required")

    if not graph.has_node(source_id):
        raise NotFoundError(f"Source node with ID {source_id} not found", details=[{"node_id": source_id}])
    if not graph.has_node(target_id):
        raise NotFoundError(f"Target node with ID {target_id} not found", details=[{"node_id": target_id}])

    edge_type = parse_edge_type(data.get("type"))
    label = data.get("label")
    if label is None:
        label = "depends_on" if edge_type is EdgeType.DEPENDS_ON else ""

    updated = graph.copy()
    edge = updated.add_edge(source_id, target_id, edge_type, label)
    if data.get("verb"):
        edge.verb = data["verb"]

    logger.info("[editor] added connection %s", edge.id)
    return apply_layout(updated)


def update_edge(graph: Graph, edge_ref: str, patch: Dict[str, Any]) -> Graph:
    edge = resolve_edge(graph, edge_ref)
    data = _normalize(patch, EDGE_FIELD_ALIASES)

    for key in ("source_id", "target_id"):
        if data.get(key) not in (None, getattr(edge, key)):
            raise ValidationError("Connection endpoints are immutable", details=[{"field": key}])
        data.pop(key, None)
    if data.get("id") not in (None, edge.id):
        raise ValidationError("Connection ids are immutable", details=[{"field": "id"}])
    data.pop("id", None)

    unknown = sorted(set(data) - EDGE_PATCH_FIELDS)
    if unknown:
        raise ValidationError(
            f"Unknown connection fields: {', '.join(unknown)}",
            details=[{"field": key} for key in unknown],
        )
    if "type" in data:
        data["type"] = parse_edge_type(data["type"])

    updated = graph.copy()
    updated.edges[edge.id] = replace(updated.edges[edge.id], **data)

    logger.info("[editor] updated connection %s", edge.id)
    return apply_layout(updated)


def delete_edge(graph: Graph, edge_ref: str) -> Graph:
    edge = resolve_edge(graph, edge_ref)

    updated = graph.copy()
    del updated.edges[edge.id]

    logger.info("[editor] deleted connection %s", edge.id)
    return apply_layout(updated)


# ─── Layout ───────────────────────────────────────────────────────────────────


def parse_layout_options(raw: Optional[Dict[str, Any]], base: LayoutOptions) -> LayoutOptions:
    """Overlay client layout options (dagre-style names accepted) on `base`."""
    if not raw:
        return base
    data = _normalize(raw, LAYOUT_FIELD_ALIASES)
    changes: Dict[str, Any] = {}

    if data.get("direction") is not None:
        try:
            changes["direction"] = Direction(str(data["direction"]).upper())
        except ValueError:
            raise ValidationError(
                f"Unrecognized layout direction: {data['direction']!r}",
                details=[{"field": "direction", "allowed": [d.value for d in Direction]}],
            )

    for key in ("node_spacing", "rank_spacing", "margin_x", "margin_y"):
        if data.get(key) is None:
            continue
        _check_number(data, key)
        if data[key] < 0:
            raise ValidationError(f"'{key}' must not be negative", details=[{"field": key}])
        changes[key] = data[key]

    return replace(base, **changes)


def update_layout(graph: Graph, raw_options: Optional[Dict[str, Any]] = None) -> Graph:
    options = parse_layout_options(raw_options, graph.options)
    logger.info("[editor] re-layout with direction %s", options.direction.value)
    return apply_layout(graph, options)
