import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Hashable, List, Sequence, Tuple

import networkx as nx

from diagramflow.ir.graph import (
    NODE_HEIGHT,
    NODE_WIDTH,
    GraphSpec,
    LaidOutEdge,
    LaidOutNode,
    Position,
)

logger = logging.getLogger(__name__)

NODE_SEP = 50
EDGE_SEP = 10
RANK_SEP = 50

ORDER_ITERATIONS = 4
BALANCE_ITERATIONS = 4

Point = Tuple[float, float]


class LayoutDirection(str, Enum):
    TOP_DOWN = "TB"
    LEFT_RIGHT = "LR"


@dataclass
class LayoutResult:
    direction: LayoutDirection
    centers: Dict[str, Point] = field(default_factory=dict)
    # keyed by position in the input edge list; ids are not guaranteed unique
    edge_points: Dict[int, List[Point]] = field(default_factory=dict)
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True)
class _Dummy:
    source: str
    target: str
    step: int


# ============================================================
# STEP 1: graph + cycle removal
# ============================================================

def _build_graph(node_ids: Sequence[str], edges: Sequence[Tuple[str, str]]) -> nx.DiGraph:
    graph = nx.DiGraph()
    graph.add_nodes_from(node_ids)

    for source, target in edges:
        # dangling references and self loops do not take part in ranking
        if source in graph and target in graph and source != target:
            graph.add_edge(source, target)

    return graph


def _back_edges(graph: nx.DiGraph) -> set:
    visiting, done = 1, 2
    state: Dict[Hashable, int] = {}
    back = set()

    for root in graph.nodes:
        if root in state:
            continue
        state[root] = visiting
        stack = [(root, iter(graph.successors(root)))]

        while stack:
            node, successors = stack[-1]
            for succ in successors:
                if state.get(succ) == visiting:
                    back.add((node, succ))
                elif succ not in state:
                    state[succ] = visiting
                    stack.append((succ, iter(graph.successors(succ))))
                    break
            else:
                state[node] = done
                stack.pop()

    return back


def _make_acyclic(graph: nx.DiGraph) -> nx.DiGraph:
    back = _back_edges(graph)
    dag = nx.DiGraph()
    dag.add_nodes_from(graph.nodes)
    for u, v in graph.edges:
        if (u, v) in back:
            dag.add_edge(v, u)
        else:
            dag.add_edge(u, v)
    return dag


# ============================================================
# STEP 2: ranking (longest path from sources)
# ============================================================

def _rank(dag: nx.DiGraph) -> Dict[str, int]:
    ranks: Dict[str, int] = {}
    for node in nx.topological_sort(dag):
        ranks[node] = max((ranks[p] + 1 for p in dag.predecessors(node)), default=0)
    return ranks


def _layered_graph(dag: nx.DiGraph, ranks: Dict[str, int]):
    """Split edges spanning several ranks into chains of dummy nodes."""
    layered = nx.DiGraph()
    layered.add_nodes_from(dag.nodes)
    chains: Dict[Tuple[str, str], List[Hashable]] = {}

    for u, v in dag.edges:
        chain: List[Hashable] = [u]
        for step in range(1, ranks[v] - ranks[u]):
            dummy = _Dummy(u, v, step)
            layered.add_node(dummy)
            chain.append(dummy)
        chain.append(v)
        nx.add_path(layered, chain)
        chains[(u, v)] = chain

    node_ranks = dict(ranks)
    for chain in chains.values():
        start = ranks[chain[0]]
        for offset, node in enumerate(chain):
            node_ranks.setdefault(node, start + offset)

    layers: List[List[Hashable]] = [[] for _ in range(max(node_ranks.values(), default=-1) + 1)]
    for node in layered.nodes:
        layers[node_ranks[node]].append(node)

    return layered, layers, chains


# ============================================================
# STEP 3: ordering within ranks (barycenter sweeps)
# ============================================================

def _sweep(layers: List[List[Hashable]], layered: nx.DiGraph, downward: bool) -> None:
    indices = range(1, len(layers)) if downward else range(len(layers) - 2, -1, -1)
    neighbours = layered.predecessors if downward else layered.successors

    for r in indices:
        fixed = layers[r - 1] if downward else layers[r + 1]
        fixed_pos = {n: i for i, n in enumerate(fixed)}

        def barycenter(item):
            i, node = item
            adjacent = [fixed_pos[m] for m in neighbours(node) if m in fixed_pos]
            if not adjacent:
                return (float(i), i)
            return (sum(adjacent) / len(adjacent), i)

        layers[r] = [node for _, node in sorted(enumerate(layers[r]), key=barycenter)]


def count_crossings(layers: List[List[Hashable]], layered: nx.DiGraph) -> int:
    total = 0
    for upper, lower in zip(layers, layers[1:]):
        upper_pos = {n: i for i, n in enumerate(upper)}
        lower_pos = {n: i for i, n in enumerate(lower)}
        segments = sorted(
            (upper_pos[u], lower_pos[v])
            for u in upper
            for v in layered.successors(u)
            if v in lower_pos
        )
        for i, (a1, b1) in enumerate(segments):
            for a2, b2 in segments[i + 1:]:
                if a1 < a2 and b1 > b2:
                    total += 1
    return total


def _order(layers: List[List[Hashable]], layered: nx.DiGraph) -> List[List[Hashable]]:
    best = [list(layer) for layer in layers]
    best_crossings = count_crossings(best, layered)

    current = [list(layer) for layer in layers]
    for iteration in range(ORDER_ITERATIONS):
        if best_crossings == 0:
            break
        _sweep(current, layered, downward=iteration % 2 == 0)
        crossings = count_crossings(current, layered)
        if crossings < best_crossings:
            best = [list(layer) for layer in current]
            best_crossings = crossings

    return best


# ============================================================
# STEP 4: coordinates
# ============================================================

def _sizes(node: Hashable, direction: LayoutDirection) -> Tuple[float, float]:
    """(size along the order axis, size along the rank axis)"""
    if isinstance(node, _Dummy):
        return 0.0, 0.0
    if direction == LayoutDirection.LEFT_RIGHT:
        return NODE_HEIGHT, NODE_WIDTH
    return NODE_WIDTH, NODE_HEIGHT


def _gap(a: Hashable, b: Hashable, direction: LayoutDirection) -> float:
    sep_a = EDGE_SEP if isinstance(a, _Dummy) else NODE_SEP
    sep_b = EDGE_SEP if isinstance(b, _Dummy) else NODE_SEP
    return (_sizes(a, direction)[0] + _sizes(b, direction)[0]) / 2 + (sep_a + sep_b) / 2


def _pack(layer: List[Hashable], desired: Dict[Hashable, float], direction: LayoutDirection) -> None:
    """Move `desired` to the closest positions that keep order and separation."""
    if not layer:
        return

    left = [desired[layer[0]]]
    for prev, node in zip(layer, layer[1:]):
        left.append(max(desired[node], left[-1] + _gap(prev, node, direction)))

    right = [desired[layer[-1]]]
    for node, nxt in zip(reversed(layer[:-1]), reversed(layer[1:])):
        right.append(min(desired[node], right[-1] - _gap(node, nxt, direction)))
    right.reverse()

    for node, l, r in zip(layer, left, right):
        desired[node] = (l + r) / 2


def _order_coordinates(layers, layered: nx.DiGraph, direction: LayoutDirection) -> Dict[Hashable, float]:
    coords: Dict[Hashable, float] = {}

    for layer in layers:
        pos = 0.0
        placed = []
        for i, node in enumerate(layer):
            if i:
                pos += _gap(layer[i - 1], node, direction)
            placed.append(pos)
        shift = placed[-1] / 2 if placed else 0.0
        for node, p in zip(layer, placed):
            coords[node] = p - shift

    for iteration in range(BALANCE_ITERATIONS * 2):
        downward = iteration % 2 == 0
        indices = range(1, len(layers)) if downward else range(len(layers) - 2, -1, -1)
        neighbours = layered.predecessors if downward else layered.successors

        for r in indices:
            desired = {}
            for node in layers[r]:
                adjacent = [coords[m] for m in neighbours(node)]
                desired[node] = sum(adjacent) / len(adjacent) if adjacent else coords[node]
            _pack(layers[r], desired, direction)
            coords.update(desired)

    return coords


def _rank_coordinates(layers, direction: LayoutDirection) -> List[float]:
    centers = []
    offset = 0.0
    for layer in layers:
        thickness = max((_sizes(n, direction)[1] for n in layer), default=0.0)
        centers.append(offset + thickness / 2)
        offset += thickness + RANK_SEP
    return centers


# ============================================================
# MAIN
# ============================================================

def compute_layout(
    node_ids: Sequence[str],
    edges: Sequence[Tuple[str, str]],
    direction: LayoutDirection = LayoutDirection.TOP_DOWN,
) -> LayoutResult:
    """
    Layered (Sugiyama-style) layout of a directed graph.

    Returns node centres and edge polylines. Pure and deterministic:
    the same input always yields the same coordinates.
    """
    direction = LayoutDirection(direction)
    result = LayoutResult(direction=direction)
    if not node_ids:
        return result

    graph = _build_graph(node_ids, edges)
    dag = _make_acyclic(graph)
    ranks = _rank(dag)
    layered, layers, chains = _layered_graph(dag, ranks)
    layers = _order(layers, layered)

    along = _order_coordinates(layers, layered, direction)
    across = _rank_coordinates(layers, direction)

    rank_of = {node: r for r, layer in enumerate(layers) for node in layer}
    min_along = min(along[n] - _sizes(n, direction)[0] / 2 for n in along)
    max_along = max(along[n] + _sizes(n, direction)[0] / 2 for n in along)
    extent_across = across[-1] + max(_sizes(n, direction)[1] for n in layers[-1]) / 2

    def to_xy(node: Hashable) -> Point:
        a = along[node] - min_along
        b = across[rank_of[node]]
        if direction == LayoutDirection.LEFT_RIGHT:
            return (b, a)
        return (a, b)

    for node in graph.nodes:
        result.centers[node] = to_xy(node)

    for index, (source, target) in enumerate(edges):
        if source not in graph or target not in graph:
            continue
        if source == target:
            result.edge_points[index] = [to_xy(source), to_xy(target)]
            continue
        chain = chains.get((source, target))
        if chain is None:
            chain = list(reversed(chains[(target, source)]))
        result.edge_points[index] = [to_xy(n) for n in chain]

    if direction == LayoutDirection.LEFT_RIGHT:
        result.width, result.height = extent_across, max_along - min_along
    else:
        result.width, result.height = max_along - min_along, extent_across

    logger.debug(
        "[Layout] %d nodes in %d ranks, %d crossings (%s)",
        len(graph), len(layers), count_crossings(layers, layered), direction.value,
    )
    return result


def apply_layout(
    graph: GraphSpec,
    direction: LayoutDirection = LayoutDirection.TOP_DOWN,
) -> Tuple[List[LaidOutNode], List[LaidOutEdge]]:
    """
    Fresh laid-out copies of the graph's nodes and edges. Positions are
    top-left corners, offset by half the node footprint from the centres.
    Every element starts hidden.
    """
    result = compute_layout(
        graph.node_ids(),
        [(e.source, e.target) for e in graph.edges],
        direction,
    )

    nodes = []
    for node in graph.nodes:
        cx, cy = result.centers[node.id]
        nodes.append(LaidOutNode(**{
            **node.model_dump(),
            "position": Position(x=cx - NODE_WIDTH / 2, y=cy - NODE_HEIGHT / 2),
            "width": NODE_WIDTH,
            "height": NODE_HEIGHT,
            "opacity": 0.0,
        }))

    edges = []
    for index, edge in enumerate(graph.edges):
        edges.append(LaidOutEdge(**{
            **edge.model_dump(),
            "points": [Position(x=x, y=y) for x, y in result.edge_points.get(index, [])],
            "opacity": 0.0,
            "animated": False,
        }))

    return nodes, edges
