"""
Graph <-> JSON snapshot conversion for the HTTP layer.

Snapshots use the camelCase names the renderer works with.
"""

from typing import Any, Dict, Optional

from infradiagram.editor.mutations import parse_edge_type, parse_layout_options, parse_node
from infradiagram.ir.diagram import Edge, Graph, LayoutOptions, Node
from infradiagram.ir.errors import ValidationError


def node_to_dict(node: Node) -> Dict[str, Any]:
    data = {
        "id": node.id,
        "kind": node.kind.key,
        "name": node.name,
        "label": node.label,
        "config": node.config,
        "x": node.x,
        "y": node.y,
        "width": node.width,
        "height": node.height,
    }
    if node.resource_type:
        data["resourceType"] = node.resource_type
    if node.icon:
        data["icon"] = node.icon
    return data


def edge_to_dict(edge: Edge) -> Dict[str, Any]:
    data = {
        "id": edge.id,
        "sourceId": edge.source_id,
        "targetId": edge.target_id,
        "type": edge.type.value,
        "label": edge.label,
    }
    if edge.verb:
        data["verb"] = edge.verb
    return data


def layout_to_dict(options: LayoutOptions) -> Dict[str, Any]:
    return {
        "rankdir": options.direction.value,
        "nodesep": options.node_spacing,
        "ranksep": options.rank_spacing,
        "marginx": options.margin_x,
        "marginy": options.margin_y,
    }


def to_snapshot(graph: Graph, diagram_id: Optional[str] = None) -> Dict[str, Any]:
    snapshot = {
        "nodes": [node_to_dict(node) for node in graph.nodes.values()],
        "edges": [edge_to_dict(edge) for edge in graph.edges.values()],
        "width": graph.width,
        "height": graph.height,
        "layout": layout_to_dict(graph.options),
    }
    if diagram_id is not None:
        snapshot = {"id": diagram_id, **snapshot}
    return snapshot


def from_snapshot(data: Dict[str, Any]) -> Graph:
    """
    Rebuild a Graph from a client snapshot.

    Node payloads go through the same checks as added nodes. Edge
    endpoints are not checked here; validate the result before use.
    """
    if not isinstance(data, dict):
        raise ValidationError("Diagram data must be a mapping")
    nodes = data.get("nodes") or []
    edges = data.get("edges") or []
    if not isinstance(nodes, list) or not isinstance(edges, list):
        raise ValidationError("Diagram nodes and edges must be lists")

    graph = Graph(options=parse_layout_options(data.get("layout"), LayoutOptions()))
    graph.width = data.get("width") or 0
    graph.height = data.get("height") or 0

    for raw in nodes:
        node = parse_node(raw)
        if node.id in graph.nodes:
            raise ValidationError(f"Duplicate node ID {node.id}", details=[{"node_id": node.id}])
        graph.nodes[node.id] = node

    for raw in edges:
        if not isinstance(raw, dict):
            raise ValidationError("Each edge must be a mapping")
        source_id = raw.get("sourceId", raw.get("source_id"))
        target_id = raw.get("targetId", raw.get("target_id"))
        if not isinstance(source_id, str) or not isinstance(target_id, str):
            raise ValidationError("Edges require sourceId and targetId", details=[raw])

        edge_id = raw.get("id") or graph.next_edge_id(source_id, target_id)
        if edge_id in graph.edges:
            raise ValidationError(f"Duplicate connection ID {edge_id}", details=[{"edge_id": edge_id}])
        graph.edges[edge_id] = Edge(
            id=edge_id,
            source_id=source_id,
            target_id=target_id,
            type=parse_edge_type(raw.get("type")),
            label=raw.get("label") or "",
            verb=raw.get("verb"),
        )

    return graph
