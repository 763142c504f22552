"""End-to-end properties of layout() and compute_delays() on small diagrams."""

from __future__ import annotations

import itertools

import pytest

from mermaid_layout import (
    Direction,
    LogicalGraph,
    Node,
    Subgraph,
    compute_delays,
    layout,
    layout_to_dict,
    translate_easing,
)
from mermaid_layout.geometry import ARROW_CLEARANCE

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_graph(
    edges: list[tuple[str, str]],
    nodes: list[str] | None = None,
    direction: Direction = Direction.TD,
    subgraphs: list[Subgraph] | None = None,
) -> LogicalGraph:
    graph = LogicalGraph(direction=direction, subgraphs=subgraphs or [])
    for node_id in nodes or []:
        graph.add_node(Node.bare(node_id))
    for src, tgt in edges:
        graph.add_node(Node.bare(src))
        graph.add_node(Node.bare(tgt))
        graph.add_edge(src, tgt)
    return graph


def assert_no_overlap(result) -> None:
    for a, b in itertools.combinations(result.nodes, 2):
        assert not a.box.overlaps(b.box), f"{a.id} overlaps {b.id}"


def crosses_interior(p, q, box) -> bool:
    """Whether the axis-aligned segment p-q passes through the inside of ``box``."""
    lo_x, hi_x = sorted((p.x, q.x))
    lo_y, hi_y = sorted((p.y, q.y))
    if lo_x == hi_x:
        return box.x < lo_x < box.right and max(lo_y, box.y) < min(hi_y, box.bottom)
    return box.y < lo_y < box.bottom and max(lo_x, box.x) < min(hi_x, box.right)


def walk_groups(groups):
    for group in groups:
        yield group
        yield from walk_groups(group.children)


SAMPLES = {
    "chain": make_graph([("A", "B"), ("B", "C")]),
    "diamond": make_graph([("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")]),
    "wide": make_graph([("R", c) for c in "abcdef"]),
    "long_edge": make_graph([("A", "B"), ("B", "C"), ("C", "D"), ("A", "D")]),
    "cycle": make_graph([("A", "B"), ("B", "C"), ("C", "A")]),
    "disconnected": make_graph([("A", "B")], nodes=["X", "Y"]),
    "nested": make_graph(
        [("A", "B"), ("B", "C"), ("C", "D")],
        subgraphs=[Subgraph(id="outer", node_ids=["B"], children=[Subgraph(id="inner", node_ids=["C"])])],
    ),
    "leaving_group": make_graph([("a", "b"), ("a", "x")], subgraphs=[Subgraph(id="sg", node_ids=["a", "b"])]),
    "entering_group": make_graph([("a", "b"), ("x", "b")], subgraphs=[Subgraph(id="sg", node_ids=["a", "b"])]),
    "turned_group": make_graph(
        [("a", "b"), ("a", "x"), ("b", "x")],
        subgraphs=[Subgraph(id="sg", node_ids=["a", "b"], direction=Direction.LR)],
    ),
    "reversed_group": make_graph(
        [("a", "b"), ("a", "x")],
        subgraphs=[Subgraph(id="sg", node_ids=["a", "b"], direction=Direction.BT)],
    ),
    "deep_exit": make_graph(
        [("a", "b"), ("b", "c"), ("a", "x"), ("y", "c")],
        subgraphs=[
            Subgraph(id="outer", node_ids=["y"], children=[Subgraph(id="inner", node_ids=["a", "b", "c"])]),
        ],
    ),
}


# ─── Scenarios ────────────────────────────────────────────────────────────────


class TestScenarios:
    def test_lr_chain(self):
        result = layout(make_graph([("A", "B"), ("B", "C")], direction=Direction.LR))
        a, b, c = (result.node(n) for n in "ABC")
        assert [a.rank, b.rank, c.rank] == [0, 1, 2]
        assert a.x < b.x < c.x
        assert a.y == b.y == c.y

    def test_disconnected_nodes(self):
        result = layout(make_graph([], nodes=["A", "B"]))
        a, b = result.node("A"), result.node("B")
        assert a.rank == b.rank == 0
        assert not a.box.overlaps(b.box)
        assert a.y == b.y
        assert a.x != b.x

    def test_node_with_two_incoming_edges(self):
        result = layout(make_graph([("A", "B"), ("B", "C"), ("A", "C")]))
        assert [result.node(n).rank for n in "ABC"] == [0, 1, 2]
        schedule = compute_delays(result, True)
        overlap = 650 * 0.35
        assert schedule.nodes["C"] == pytest.approx(max(schedule.edges[1], schedule.edges[2]) + 650 - overlap)
        assert schedule.nodes["C"] == pytest.approx(2145)

    def test_group_encloses_members(self):
        result = layout(make_graph([], nodes=["A", "B"], subgraphs=[Subgraph(id="S", node_ids=["A", "B"])]))
        group = result.group("S")
        a, b = result.node("A"), result.node("B")
        assert (a.x, a.y) == (56, 76)
        assert (group.x, group.y, group.width, group.height) == (40, 40, 176, 84)
        assert group.box.contains(a.box.expanded(16, 36, 12))
        assert group.box.contains(b.box)

    def test_removing_member_shrinks_group(self):
        both = layout(make_graph([], nodes=["A", "B"], subgraphs=[Subgraph(id="S", node_ids=["A", "B"])]))
        one = layout(make_graph([], nodes=["A"], subgraphs=[Subgraph(id="S", node_ids=["A"])]))
        assert one.group("S").width < both.group("S").width
        assert one.group("S").height <= both.group("S").height

    def test_named_and_explicit_curve_agree(self):
        assert translate_easing("ease-in-out") == translate_easing("cubic-bezier(0.42, 0, 0.58, 1)")


# ─── Properties ───────────────────────────────────────────────────────────────


@pytest.mark.parametrize("name", sorted(SAMPLES))
class TestInvariants:
    def test_deterministic(self, name):
        assert layout_to_dict(layout(SAMPLES[name])) == layout_to_dict(layout(SAMPLES[name]))

    def test_no_overlap(self, name):
        assert_no_overlap(layout(SAMPLES[name]))

    def test_inside_canvas(self, name):
        result = layout(SAMPLES[name])
        for node in result.nodes:
            assert node.x >= 40 and node.y >= 40
            assert node.box.right <= result.width - 40 + 1e-9
            assert node.box.bottom <= result.height - 40 + 1e-9

    def test_edges_are_orthogonal(self, name):
        for edge in layout(SAMPLES[name]).edges:
            assert len(edge.points) >= 2
            for p, q in zip(edge.points, edge.points[1:]):
                assert p.x == q.x or p.y == q.y

    def test_ranks_recorded_on_edges(self, name):
        result = layout(SAMPLES[name])
        for edge in result.edges:
            assert edge.source_rank == result.node(edge.source).rank
            assert edge.target_rank == result.node(edge.target).rank

    def test_groups_enclose_contents(self, name):
        result = layout(SAMPLES[name])
        for group in walk_groups(result.groups):
            for child in group.children:
                assert group.box.contains(child.box)

    def test_schedule_covers_everything(self, name):
        result = layout(SAMPLES[name])
        schedule = compute_delays(result, True)
        assert set(schedule.nodes) == {n.id for n in result.nodes}
        assert set(schedule.edges) == set(range(len(result.edges)))
        assert all(delay >= 0 for delay in schedule.nodes.values())

    def test_edges_avoid_other_nodes(self, name):
        result = layout(SAMPLES[name])
        for edge in result.edges:
            others = [n for n in result.nodes if n.id not in (edge.source, edge.target)]
            for p, q in zip(edge.points, edge.points[1:]):
                for node in others:
                    assert not crosses_interior(p, q, node.box), f"{edge.source}->{edge.target} crosses {node.id}"

    def test_forward_edges_finish_before_targets(self, name):
        result = layout(SAMPLES[name])
        schedule = compute_delays(result, True)
        for index, edge in enumerate(result.edges):
            if edge.source_rank < edge.target_rank:
                assert schedule.nodes[edge.target] >= schedule.edges[index] + 650 * (1 - 0.35) - 1e-9

    def test_groups_appear_after_their_nodes(self, name):
        result = layout(SAMPLES[name])
        schedule = compute_delays(result, True)
        for group in walk_groups(result.groups):
            inside = [n.id for n in result.nodes if group.box.contains(n.box)]
            assert all(schedule.groups[group.id] >= schedule.nodes[node_id] for node_id in inside)


class TestRanks:
    @pytest.mark.parametrize("name", ["chain", "diamond", "wide", "long_edge", "nested"])
    def test_edges_go_down_the_ranks(self, name):
        result = layout(SAMPLES[name])
        for edge in result.edges:
            assert result.node(edge.target).rank > result.node(edge.source).rank

    def test_cycle_still_ranked(self):
        result = layout(SAMPLES["cycle"])
        assert sorted(n.rank for n in result.nodes) == [0, 1, 2]

    def test_long_edge_ranked_by_longest_path(self):
        result = layout(SAMPLES["long_edge"])
        assert result.node("D").rank == 3

    def test_delays_follow_ranks_in_dags(self):
        result = layout(SAMPLES["diamond"])
        schedule = compute_delays(result, True)
        assert schedule.nodes["A"] < schedule.nodes["B"] < schedule.nodes["D"]
        assert schedule.nodes["B"] == schedule.nodes["C"]


class TestDirections:
    @pytest.mark.parametrize(
        ("direction", "before"),
        [
            (Direction.TD, lambda a, b: a.y < b.y),
            (Direction.BT, lambda a, b: a.y > b.y),
            (Direction.LR, lambda a, b: a.x < b.x),
            (Direction.RL, lambda a, b: a.x > b.x),
        ],
    )
    def test_flow_direction(self, direction, before):
        result = layout(make_graph([("A", "B")], direction=direction))
        assert before(result.node("A"), result.node("B"))

    def test_endpoints_meet_borders(self):
        result = layout(make_graph([("A", "B")]))
        a, b = result.node("A"), result.node("B")
        (edge,) = result.edges
        assert (edge.points[0].x, edge.points[0].y) == (a.box.center.x, a.box.bottom)
        assert (edge.points[-1].x, edge.points[-1].y) == (b.box.center.x, b.y - ARROW_CLEARANCE)

    def test_arrow_at_both_ends(self):
        graph = make_graph([], nodes=["A", "B"], direction=Direction.LR)
        graph.add_edge("A", "B", has_arrow_start=True)
        result = layout(graph)
        a, b = result.node("A"), result.node("B")
        (edge,) = result.edges
        assert edge.points[0].x == a.box.right + ARROW_CLEARANCE
        assert edge.points[-1].x == b.x - ARROW_CLEARANCE

    def test_subgraph_direction_override(self):
        graph = make_graph(
            [("A", "B")],
            nodes=["top"],
            subgraphs=[Subgraph(id="S", node_ids=["A", "B"], direction=Direction.LR)],
        )
        result = layout(graph)
        a, b = result.node("A"), result.node("B")
        assert a.x < b.x
        assert a.y == b.y

    def test_edge_into_subgraph(self):
        graph = make_graph([("top", "A")], nodes=["B"], subgraphs=[Subgraph(id="S", node_ids=["A", "B"])])
        result = layout(graph)
        top, a = result.node("top"), result.node("A")
        (edge,) = result.edges
        assert top.y < result.group("S").y
        assert (edge.points[0].x, edge.points[0].y) == (top.box.center.x, top.box.bottom)
        assert edge.points[-1].y == a.y - ARROW_CLEARANCE

    def test_edge_leaving_subgraph_skirts_sibling(self):
        result = layout(SAMPLES["leaving_group"])
        a, b, x = (result.node(n) for n in "abx")
        edge = next(e for e in result.edges if e.target == "x")
        assert (edge.points[0].x, edge.points[0].y) == (a.box.center.x, a.box.bottom)
        assert (edge.points[-1].x, edge.points[-1].y) == (x.box.center.x, x.y - ARROW_CLEARANCE)
        assert not any(crosses_interior(p, q, b.box) for p, q in zip(edge.points, edge.points[1:]))
        group = result.group("sg")
        assert any(group.x < p.x < b.x or b.box.right < p.x < group.box.right for p in edge.points)

    def test_edge_entering_subgraph_skirts_sibling(self):
        result = layout(SAMPLES["entering_group"])
        a = result.node("a")
        edge = next(e for e in result.edges if e.source == "x")
        assert not any(crosses_interior(p, q, a.box) for p, q in zip(edge.points, edge.points[1:]))
        assert edge.points[-1].y == result.node("b").y - ARROW_CLEARANCE

    def test_self_loop(self):
        result = layout(make_graph([("A", "A")]))
        a = result.node("A")
        (edge,) = result.edges
        assert edge.points[0].x == a.box.right
        assert max(p.x for p in edge.points) == a.box.right + 12
