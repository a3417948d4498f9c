from infradiagram.store.diagram_store import GraphStore, InMemoryGraphStore

__all__ = ["GraphStore", "InMemoryGraphStore"]
