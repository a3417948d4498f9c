from infradiagram.editor.mutations import (
    add_edge,
    add_node,
    delete_edge,
    delete_node,
    resolve_edge,
    update_edge,
    update_layout,
    update_node,
)
from infradiagram.editor.service import DiagramService

__all__ = [
    "DiagramService",
    "add_edge",
    "add_node",
    "delete_edge",
    "delete_node",
    "resolve_edge",
    "update_edge",
    "update_layout",
    "update_node",
]
