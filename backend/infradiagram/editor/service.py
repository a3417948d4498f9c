import logging
import threading
import uuid
from typing import Any, Callable, Dict, Optional

from infradiagram import config
from infradiagram.compiler import build_diagram
from infradiagram.editor import mutations
from infradiagram.enhancer import EnhancementResult
from infradiagram.ir.diagram import Direction, Graph, LayoutOptions
from infradiagram.ir.errors import NotFoundError
from infradiagram.renderer import generate_files
from infradiagram.store import GraphStore, InMemoryGraphStore

logger = logging.getLogger(__name__)


def default_layout_options() -> LayoutOptions:
    return LayoutOptions(
        direction=Direction(config.LAYOUT_DIRECTION.upper()),
        node_spacing=config.LAYOUT_NODE_SPACING,
        rank_spacing=config.LAYOUT_RANK_SPACING,
        margin_x=config.LAYOUT_MARGIN_X,
        margin_y=config.LAYOUT_MARGIN_Y,
    )


class DiagramService:
    """
    Owns the diagram store and serializes writes per diagram id.

    Every edit runs read -> mutate -> write under that diagram's lock, so
    two requests against one id apply one after the other instead of
    overwriting each other. Different ids never block each other.
    """

    def __init__(self, store: Optional[GraphStore] = None, enhancer=None):
        self.store = store if store is not None else InMemoryGraphStore(config.DIAGRAM_STORE_CAPACITY)
        self.store.on_evict = self._drop_lock
        self.enhancer = enhancer
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, diagram_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(diagram_id)
            if lock is None:
                lock = self._locks[diagram_id] = threading.RLock()
            return lock

    def _drop_lock(self, diagram_id: str) -> None:
        with self._locks_guard:
            self._locks.pop(diagram_id, None)

    def _load(self, diagram_id: str) -> Graph:
        graph = self.store.get(diagram_id)
        if graph is None:
            # Locks live only as long as their diagram
            self._drop_lock(diagram_id)
            raise NotFoundError(
                f"Diagram with ID {diagram_id} not found",
                details=[{"diagram_id": diagram_id}],
            )
        return graph

    def _apply(self, diagram_id: str, operation: Callable[[Graph], Graph]) -> Graph:
        with self._lock_for(diagram_id):
            updated = operation(self._load(diagram_id))
            self.store.set(diagram_id, updated)
            return updated

    # ─── Diagrams ─────────────────────────────────────────────────────────────

    def create(self, parsed: Dict[str, Any], layout_options: Optional[Dict[str, Any]] = None):
        options = mutations.parse_layout_options(layout_options, default_layout_options())
        graph = build_diagram(parsed, options)
        diagram_id = str(uuid.uuid4())
        self.store.set(diagram_id, graph)
        logger.info(
            "[service] created diagram %s (%d nodes, %d edges)",
            diagram_id, len(graph.nodes), len(graph.edges),
        )
        return diagram_id, graph

    def get(self, diagram_id: str) -> Graph:
        return self._load(diagram_id)

    def delete(self, diagram_id: str) -> None:
        with self._lock_for(diagram_id):
            deleted = self.store.delete(diagram_id)
        self._drop_lock(diagram_id)
        if not deleted:
            raise NotFoundError(
                f"Diagram with ID {diagram_id} not found",
                details=[{"diagram_id": diagram_id}],
            )
        logger.info("[service] deleted diagram %s", diagram_id)

    def update_layout(self, diagram_id: str, layout_options: Optional[Dict[str, Any]] = None) -> Graph:
        return self._apply(diagram_id, lambda g: mutations.update_layout(g, layout_options))

    # ─── Nodes & connections ──────────────────────────────────────────────────

    def add_node(self, diagram_id: str, node_data: Dict[str, Any]) -> Graph:
        return self._apply(diagram_id, lambda g: mutations.add_node(g, node_data))

    def update_node(self, diagram_id: str, node_id: str, patch: Dict[str, Any]) -> Graph:
        return self._apply(
            diagram_id,
            lambda g: mutations.update_node(g, node_id, patch, relayout=config.RELAYOUT_ON_UPDATE),
        )

    def delete_node(self, diagram_id: str, node_id: str) -> Graph:
        return self._apply(diagram_id, lambda g: mutations.delete_node(g, node_id))

    def add_edge(self, diagram_id: str, edge_data: Dict[str, Any]) -> Graph:
        return self._apply(diagram_id, lambda g: mutations.add_edge(g, edge_data))

    def update_edge(self, diagram_id: str, edge_ref: str, patch: Dict[str, Any]) -> Graph:
        return self._apply(diagram_id, lambda g: mutations.update_edge(g, edge_ref, patch))

    def delete_edge(self, diagram_id: str, edge_ref: str) -> Graph:
        return self._apply(diagram_id, lambda g: mutations.delete_edge(g, edge_ref))

    # ─── Collaborators ────────────────────────────────────────────────────────

    def enhance(self, diagram_id: str) -> EnhancementResult:
        with self._lock_for(diagram_id):
            graph = self._load(diagram_id)
            if self.enhancer is None:
                logger.info("[service] enhancer disabled, diagram %s left as is", diagram_id)
                return EnhancementResult(graph=graph)
            result = self.enhancer.polish(graph)
            if result.polished:
                self.store.set(diagram_id, result.graph)
            return result

    def generate_code(self, diagram_id: str, include_terraform_block: Optional[bool] = None) -> Dict[str, str]:
        return render_files(self._load(diagram_id), include_terraform_block)


def render_files(graph: Graph, include_terraform_block: Optional[bool] = None) -> Dict[str, str]:
    if include_terraform_block is None:
        include_terraform_block = config.CODEGEN_TERRAFORM_BLOCK
    return generate_files(
        graph,
        extension=config.CODEGEN_FILE_EXTENSION,
        include_terraform_block=include_terraform_block,
    )
