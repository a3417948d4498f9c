import logging
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Callable, List, Optional

from infradiagram.ir.diagram import Graph

logger = logging.getLogger(__name__)


class GraphStore(ABC):
    """Diagram id -> current graph snapshot."""

    # Called with the id of every diagram the store drops on its own
    on_evict: Optional[Callable[[str], None]] = None

    @abstractmethod
    def get(self, diagram_id: str) -> Optional[Graph]:
        pass

    @abstractmethod
    def set(self, diagram_id: str, graph: Graph) -> None:
        pass

    @abstractmethod
    def delete(self, diagram_id: str) -> bool:
        pass

    def __contains__(self, diagram_id: str) -> bool:
        return self.get(diagram_id) is not None


class InMemoryGraphStore(GraphStore):
    """
    Bounded LRU cache of diagrams.

    Reads refresh recency; inserting beyond `capacity` evicts the least
    recently used diagram. Nothing survives a process restart.
    """

    def __init__(self, capacity: int = 128, on_evict: Optional[Callable[[str], None]] = None):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.on_evict = on_evict
        self._graphs: "OrderedDict[str, Graph]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, diagram_id: str) -> Optional[Graph]:
        with self._lock:
            graph = self._graphs.get(diagram_id)
            if graph is not None:
                self._graphs.move_to_end(diagram_id)
            return graph

    def set(self, diagram_id: str, graph: Graph) -> None:
        evicted: List[str] = []
        with self._lock:
            self._graphs[diagram_id] = graph
            self._graphs.move_to_end(diagram_id)
            while len(self._graphs) > self.capacity:
                evicted_id, _ = self._graphs.popitem(last=False)
                evicted.append(evicted_id)

        for evicted_id in evicted:
            logger.info("[store] evicted diagram %s", evicted_id)
            if self.on_evict is not None:
                self.on_evict(evicted_id)

    def delete(self, diagram_id: str) -> bool:
        with self._lock:
            return self._graphs.pop(diagram_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._graphs)
