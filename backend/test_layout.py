"""Layered layout: ranks, ordering, coordinates, determinism"""

from diagramflow.compiler.layout import (
    LayoutDirection,
    apply_layout,
    compute_layout,
)
from diagramflow.ir.graph import GraphSpec, NODE_HEIGHT, NODE_WIDTH
from diagramflow.llm.parser import parse_graph_response
from conftest import LINEAR_REPLY


def make_graph(node_ids, edges) -> GraphSpec:
    return GraphSpec(
        nodes=[{"id": n, "label": n.upper()} for n in node_ids],
        edges=[{"id": f"e{s}{t}", "source": s, "target": t} for s, t in edges],
    )


ORG_CHART = make_graph(
    ["ceo", "tech", "mkt", "fin", "t1", "t2", "m1", "m2", "f1", "f2"],
    [
        ("ceo", "tech"), ("ceo", "mkt"), ("ceo", "fin"),
        ("tech", "t1"), ("tech", "t2"),
        ("mkt", "m1"), ("mkt", "m2"),
        ("fin", "f1"), ("fin", "f2"),
    ],
)


def test_linear_flow_top_down():
    nodes, _ = apply_layout(parse_graph_response(LINEAR_REPLY), LayoutDirection.TOP_DOWN)
    a, b, c = nodes

    assert a.position.y < b.position.y < c.position.y
    assert a.position.x == b.position.x == c.position.x
    assert (a.position.x, a.position.y) == (0, 0)
    assert b.position.y - a.position.y == NODE_HEIGHT + 50


def test_linear_flow_left_right():
    nodes, _ = apply_layout(parse_graph_response(LINEAR_REPLY), LayoutDirection.LEFT_RIGHT)
    a, b, c = nodes

    assert a.position.x < b.position.x < c.position.x
    assert a.position.y == b.position.y == c.position.y
    assert b.position.x - a.position.x == NODE_WIDTH + 50


def test_positions_are_centres_minus_half_footprint():
    graph = parse_graph_response(LINEAR_REPLY)
    result = compute_layout(graph.node_ids(), [(e.source, e.target) for e in graph.edges])
    nodes, _ = apply_layout(graph)

    for node in nodes:
        cx, cy = result.centers[node.id]
        assert node.position.x == cx - NODE_WIDTH / 2
        assert node.position.y == cy - NODE_HEIGHT / 2
        assert (node.center.x, node.center.y) == (cx, cy)


def test_layout_is_deterministic():
    for direction in LayoutDirection:
        first, _ = apply_layout(ORG_CHART, direction)
        second, _ = apply_layout(ORG_CHART, direction)
        assert [n.model_dump() for n in first] == [n.model_dump() for n in second]


def test_nodes_do_not_overlap():
    nodes, _ = apply_layout(ORG_CHART)

    for i, a in enumerate(nodes):
        for b in nodes[i + 1:]:
            apart_x = abs(a.position.x - b.position.x) >= NODE_WIDTH
            apart_y = abs(a.position.y - b.position.y) >= NODE_HEIGHT
            assert apart_x or apart_y, f"{a.id} overlaps {b.id}"


def test_ranks_follow_longest_path():
    nodes, _ = apply_layout(ORG_CHART)
    y = {n.id: n.position.y for n in nodes}

    assert y["ceo"] < y["tech"] == y["mkt"] == y["fin"] < y["t1"]
    assert y["t1"] == y["f2"]


def test_ordering_removes_avoidable_crossings():
    # given order c, d with a->d and b->c crosses; the sweep swaps them
    graph = make_graph(["a", "b", "c", "d"], [("a", "d"), ("b", "c")])
    nodes, _ = apply_layout(graph)
    x = {n.id: n.position.x for n in nodes}

    assert x["a"] < x["b"]
    assert x["d"] < x["c"]


def test_long_edges_bend_through_intermediate_ranks():
    graph = make_graph(["a", "b", "c"], [("a", "b"), ("b", "c"), ("a", "c")])
    _, edges = apply_layout(graph)
    by_id = {e.id: e for e in edges}

    assert len(by_id["eab"].points) == 2
    assert len(by_id["eac"].points) == 3


def test_cycles_are_laid_out():
    graph = make_graph(["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "a")])
    nodes, edges = apply_layout(graph)
    y = {n.id: n.position.y for n in nodes}

    assert y["a"] < y["b"] < y["c"]
    back = next(e for e in edges if e.id == "eca")
    # drawn from c back up to a
    assert back.points[0].y > back.points[-1].y


def test_dangling_edges_and_self_loops_are_tolerated():
    graph = make_graph(["a", "b"], [("a", "b"), ("a", "ghost"), ("b", "b")])
    nodes, edges = apply_layout(graph)

    assert len(nodes) == 2
    assert len(edges) == 3
    by_id = {e.id: e for e in edges}
    assert by_id["eaghost"].points == []
    assert len(by_id["ebb"].points) == 2


def test_layout_resets_visual_state_and_keeps_identity():
    graph = parse_graph_response(LINEAR_REPLY)
    tb_nodes, tb_edges = apply_layout(graph, LayoutDirection.TOP_DOWN)
    lr_nodes, lr_edges = apply_layout(graph, LayoutDirection.LEFT_RIGHT)

    assert [n.id for n in tb_nodes] == [n.id for n in lr_nodes] == ["1", "2", "3"]
    assert [e.id for e in tb_edges] == [e.id for e in lr_edges] == ["e1", "e2"]
    assert all(n.opacity == 0 for n in tb_nodes + lr_nodes)
    assert not any(e.animated for e in tb_edges + lr_edges)


def test_empty_graph():
    nodes, edges = apply_layout(GraphSpec(nodes=[], edges=[]))
    assert nodes == []
    assert edges == []
