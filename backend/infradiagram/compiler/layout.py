"""
Rank-based (Sugiyama-style) layout for diagram graphs.

Phases:
  1. Cycle removal     (greedy feedback-arc-set ordering)
  2. Rank assignment   (longest path from sources)
  3. Dummy insertion   (long edges become chains through every rank)
  4. Crossing minimisation (barycenter sweeps)
  5. Coordinate assignment (node centres, per-rank centring)

`compute_layout` is pure: it reads ids, sizes and edges and returns a
position map. `apply_layout` merges that map into a copy of the graph.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import networkx as nx

from infradiagram.ir.diagram import Graph, LayoutOptions
from infradiagram.ir.errors import LayoutError

logger = logging.getLogger(__name__)

DUMMY_PREFIX = "__dummy_"
MAX_SWEEPS = 24


@dataclass
class LayoutResult:
    positions: Dict[str, Tuple[int, int]] = field(default_factory=dict)
    width: int = 0
    height: int = 0
    ranks: Dict[str, int] = field(default_factory=dict)


# ─── Graph construction ───────────────────────────────────────────────────────


def to_digraph(graph: Graph) -> nx.DiGraph:
    """Collapse the diagram into a simple DiGraph: parallel edges merge, self-loops drop."""
    dg = nx.DiGraph()
    for node_id in sorted(graph.nodes):
        dg.add_node(node_id)

    for edge in sorted(graph.edges.values(), key=lambda e: e.id):
        if edge.source_id not in graph.nodes or edge.target_id not in graph.nodes:
            raise LayoutError(
                f"Edge {edge.id} references a missing node",
                details=[{"edge": edge.id, "source": edge.source_id, "target": edge.target_id}],
            )
        if edge.source_id == edge.target_id:
            continue
        dg.add_edge(edge.source_id, edge.target_id)
    return dg


# ─── Cycle removal ────────────────────────────────────────────────────────────


def greedy_fas_ordering(dg: nx.DiGraph) -> List[str]:
    """
    Eades-Lin-Smyth ordering: sinks go right, sources go left, and inside
    cycles the node with the largest out-in surplus goes left.
    Sorted scans keep the result independent of set iteration order.
    """
    active: Set[str] = set(dg.nodes)
    out_deg = {n: dg.out_degree(n) for n in dg.nodes}
    in_deg = {n: dg.in_degree(n) for n in dg.nodes}

    left: List[str] = []
    right: List[str] = []

    def take(node: str) -> None:
        active.remove(node)
        for succ in dg.successors(node):
            if succ in active:
                in_deg[succ] -= 1
        for pred in dg.predecessors(node):
            if pred in active:
                out_deg[pred] -= 1

    while active:
        changed = True
        while changed:
            changed = False
            for sink in sorted(n for n in active if out_deg[n] == 0):
                take(sink)
                right.append(sink)
                changed = True

        changed = True
        while changed:
            changed = False
            for source in sorted(n for n in active if in_deg[n] == 0):
                take(source)
                left.append(source)
                changed = True

        if active:
            best = max(sorted(active), key=lambda n: out_deg[n] - in_deg[n])
            take(best)
            left.append(best)

    right.reverse()
    return left + right


def remove_cycles(dg: nx.DiGraph) -> nx.DiGraph:
    """Copy of `dg` with back edges reversed so that it is acyclic."""
    if nx.is_directed_acyclic_graph(dg):
        return dg.copy()

    position = {node: i for i, node in enumerate(greedy_fas_ordering(dg))}
    dag = nx.DiGraph()
    dag.add_nodes_from(dg.nodes)
    for src, tgt in dg.edges():
        if position[src] > position[tgt]:
            dag.add_edge(tgt, src)
        else:
            dag.add_edge(src, tgt)
    return dag


# ─── Ranking ──────────────────────────────────────────────────────────────────


def assign_ranks(dag: nx.DiGraph) -> Dict[str, int]:
    """Longest path from any source: rank[v] = max(rank[u] + 1) over predecessors."""
    ranks: Dict[str, int] = {}
    for node in nx.lexicographical_topological_sort(dag):
        preds = list(dag.predecessors(node))
        ranks[node] = max((ranks[p] + 1 for p in preds), default=0)
    return ranks


def insert_dummies(dag: nx.DiGraph, ranks: Dict[str, int]) -> Tuple[nx.DiGraph, Dict[str, int]]:
    """Split every edge spanning more than one rank into a chain of dummy nodes."""
    aug = nx.DiGraph()
    aug.add_nodes_from(dag.nodes)
    aug_ranks = dict(ranks)

    counter = 0
    for src, tgt in sorted(dag.edges()):
        span = ranks[tgt] - ranks[src]
        if span <= 1:
            aug.add_edge(src, tgt)
            continue

        prev = src
        for step in range(1, span):
            dummy = f"{DUMMY_PREFIX}{counter}_{step}"
            aug.add_node(dummy)
            aug_ranks[dummy] = ranks[src] + step
            aug.add_edge(prev, dummy)
            prev = dummy
        aug.add_edge(prev, tgt)
        counter += 1

    return aug, aug_ranks


# ─── Crossing minimisation ────────────────────────────────────────────────────


def count_crossings(ordering: List[List[str]], aug: nx.DiGraph) -> int:
    total = 0
    for idx in range(len(ordering) - 1):
        next_pos = {n: i for i, n in enumerate(ordering[idx + 1])}
        segments: List[Tuple[int, int]] = []
        for pos, node in enumerate(ordering[idx]):
            for succ in aug.successors(node):
                if succ in next_pos:
                    segments.append((pos, next_pos[succ]))
        for i in range(len(segments)):
            for j in range(i + 1, len(segments)):
                a, b = segments[i], segments[j]
                if (a[0] - b[0]) * (a[1] - b[1]) < 0:
                    total += 1
    return total


def _barycenter(node: str, neighbors: List[str], positions: Dict[str, int], fallback: int) -> float:
    placed = [positions[n] for n in neighbors if n in positions]
    if not placed:
        return float(fallback)
    return sum(placed) / len(placed)


def minimise_crossings(aug: nx.DiGraph, ranks: Dict[str, int]) -> List[List[str]]:
    rank_count = max(ranks.values(), default=-1) + 1
    ordering: List[List[str]] = [[] for _ in range(rank_count)]
    for node in sorted(ranks):
        ordering[ranks[node]].append(node)

    best = [list(layer) for layer in ordering]
    best_crossings = count_crossings(best, aug)

    for _sweep in range(MAX_SWEEPS):
        if best_crossings == 0:
            break

        # Top-down: order by predecessor positions
        for idx in range(1, rank_count):
            prev = {n: i for i, n in enumerate(ordering[idx - 1])}
            current = ordering[idx]
            ordering[idx] = sorted(
                current,
                key=lambda n, p=prev, c=current: (
                    _barycenter(n, list(aug.predecessors(n)), p, c.index(n)),
                    c.index(n),
                ),
            )

        # Bottom-up: order by successor positions
        for idx in range(rank_count - 2, -1, -1):
            nxt = {n: i for i, n in enumerate(ordering[idx + 1])}
            current = ordering[idx]
            ordering[idx] = sorted(
                current,
                key=lambda n, p=nxt, c=current: (
                    _barycenter(n, list(aug.successors(n)), p, c.index(n)),
                    c.index(n),
                ),
            )

        crossings = count_crossings(ordering, aug)
        if crossings >= best_crossings:
            break
        best_crossings = crossings
        best = [list(layer) for layer in ordering]

    return best


# ─── Coordinates ──────────────────────────────────────────────────────────────


def assign_coordinates(
    graph: Graph,
    ordering: List[List[str]],
    options: LayoutOptions,
) -> LayoutResult:
    vertical = not options.direction.is_horizontal

    def sizes(node_id: str) -> Tuple[float, float]:
        """(extent along the rank axis, extent across it)."""
        node = graph.nodes[node_id]
        if vertical:
            return node.height, node.width
        return node.width, node.height

    layers = [[n for n in layer if not n.startswith(DUMMY_PREFIX)] for layer in ordering]
    layers = [layer for layer in layers if layer]

    thickness = [max(sizes(n)[0] for n in layer) for layer in layers]
    spans = [
        sum(sizes(n)[1] for n in layer) + options.node_spacing * (len(layer) - 1)
        for layer in layers
    ]

    total_main = sum(thickness) + options.rank_spacing * max(len(layers) - 1, 0)
    total_cross = max(spans, default=0)

    positions: Dict[str, Tuple[int, int]] = {}
    ranks: Dict[str, int] = {}
    main_offset = 0.0
    for rank, layer in enumerate(layers):
        main_center = main_offset + thickness[rank] / 2
        if options.direction.is_reversed:
            main_center = total_main - main_center

        cross = (total_cross - spans[rank]) / 2
        for node_id in layer:
            _, across = sizes(node_id)
            cross_center = cross + across / 2
            if vertical:
                x, y = options.margin_x + cross_center, options.margin_y + main_center
            else:
                x, y = options.margin_x + main_center, options.margin_y + cross_center
            positions[node_id] = (int(round(x)), int(round(y)))
            ranks[node_id] = rank
            cross += across + options.node_spacing

        main_offset += thickness[rank] + options.rank_spacing

    if vertical:
        width, height = total_cross, total_main
    else:
        width, height = total_main, total_cross

    return LayoutResult(
        positions=positions,
        width=int(round(width + 2 * options.margin_x)),
        height=int(round(height + 2 * options.margin_y)),
        ranks=ranks,
    )


# ─── Public entry points ──────────────────────────────────────────────────────


def compute_layout(graph: Graph, options: Optional[LayoutOptions] = None) -> LayoutResult:
    options = options or graph.options
    try:
        dg = to_digraph(graph)
        dag = remove_cycles(dg)
        ranks = assign_ranks(dag)
        aug, aug_ranks = insert_dummies(dag, ranks)
        ordering = minimise_crossings(aug, aug_ranks)
        result = assign_coordinates(graph, ordering, options)
    except LayoutError:
        raise
    except Exception as exc:
        raise LayoutError(f"Layout failed: {exc}") from exc

    logger.debug(
        "[layout] %d nodes, %d edges -> %dx%d (%s)",
        len(graph.nodes),
        len(graph.edges),
        result.width,
        result.height,
        options.direction.value,
    )
    return result


def apply_layout(graph: Graph, options: Optional[LayoutOptions] = None) -> Graph:
    """New graph with positions and bounds from a fresh layout run."""
    options = options or graph.options
    result = compute_layout(graph, options)

    laid_out = graph.copy()
    laid_out.options = options
    for node_id, (x, y) in result.positions.items():
        node = laid_out.nodes[node_id]
        node.x, node.y = x, y
    laid_out.width = result.width
    laid_out.height = result.height
    return laid_out
