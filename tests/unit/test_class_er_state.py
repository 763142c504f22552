"""Tests for the class, ER and state strategies on top of the layered driver."""

from __future__ import annotations

import pytest

from mermaid_layout.config import LayoutOptions
from mermaid_layout.errors import UnknownDiagramKindError
from mermaid_layout.geometry import node_size
from mermaid_layout.ir.model import LogicalGraph, Node, Subgraph
from mermaid_layout.layout import layout
from mermaid_layout.layout.strategies import (
    ClassStrategy,
    ERStrategy,
    FlowStrategy,
    SequenceStrategy,
    StateStrategy,
    strategy_for,
)
from mermaid_layout.layout.strategies.class_diagram import header_rows, measure_compartments
from mermaid_layout.types import Cardinality, DiagramKind, EdgeStyle, NodeShape, Relation

OPTS = LayoutOptions()

# ─── Helpers ──────────────────────────────────────────────────────────────────


def animal() -> Node:
    return Node(
        id="Animal",
        label="Animal",
        annotation="interface",
        compartments=[["+name: str"], ["+eat()", "+sleep()"]],
    )


# ─── Registry ─────────────────────────────────────────────────────────────────


class TestRegistry:
    @pytest.mark.parametrize(
        ("kind", "cls"),
        [
            (DiagramKind.Flow, FlowStrategy),
            (DiagramKind.State, StateStrategy),
            (DiagramKind.Sequence, SequenceStrategy),
            (DiagramKind.Class, ClassStrategy),
            (DiagramKind.ER, ERStrategy),
        ],
    )
    def test_strategy_for(self, kind, cls):
        strategy = strategy_for(kind)
        assert isinstance(strategy, cls)
        assert strategy.kind is kind

    def test_every_kind_has_a_strategy(self):
        assert {strategy_for(kind).kind for kind in DiagramKind} == set(DiagramKind)

    def test_unregistered_kind_is_an_error(self):
        with pytest.raises(UnknownDiagramKindError):
            strategy_for("gantt")  # type: ignore[arg-type]


# ─── Class diagrams ───────────────────────────────────────────────────────────


class TestClassDiagram:
    def test_header_rows(self):
        assert header_rows(animal()) == ["<<interface>>", "Animal"]
        assert header_rows(Node.bare("Dog")) == ["Dog"]

    def test_compartment_metrics(self):
        metrics = measure_compartments(animal(), OPTS)
        row_h = 13 * 1.3
        assert metrics.header_height == pytest.approx(2 * row_h + 20)
        assert metrics.height == pytest.approx(2 * row_h + 20 + (row_h + 10) + (2 * row_h + 10))
        assert metrics.width >= OPTS.min_node_width

    def test_more_rows_taller_box(self):
        small = Node(id="A", label="A", compartments=[["+x"]])
        big = Node(id="A", label="A", compartments=[["+x", "+y", "+z"]])
        assert measure_compartments(big, OPTS).height > measure_compartments(small, OPTS).height

    def test_layout_carries_compartments(self):
        graph = LogicalGraph(kind=DiagramKind.Class)
        graph.add_node(animal())
        graph.add_node(Node.bare("Dog"))
        graph.add_edge("Dog", "Animal", relation=Relation.Realization)
        result = layout(graph)
        box = result.node("Animal")
        assert box.annotation == "interface"
        assert box.compartments == [["+name: str"], ["+eat()", "+sleep()"]]
        assert box.header_height == pytest.approx(measure_compartments(animal(), OPTS).header_height)
        (edge,) = result.edges
        assert edge.style is EdgeStyle.Dotted
        assert edge.relation is Relation.Realization

    def test_solid_relation_keeps_style(self):
        graph = LogicalGraph(kind=DiagramKind.Class)
        graph.add_node(Node.bare("A"))
        graph.add_node(Node.bare("B"))
        graph.add_edge("A", "B", relation=Relation.Composition)
        assert layout(graph).edges[0].style is EdgeStyle.Solid

    def test_namespace_is_a_group(self):
        graph = LogicalGraph(kind=DiagramKind.Class, subgraphs=[Subgraph(id="zoo", node_ids=["A"])])
        graph.add_node(Node.bare("A"))
        result = layout(graph)
        assert result.group("zoo").box.contains(result.node("A").box)


# ─── ER diagrams ──────────────────────────────────────────────────────────────


class TestERDiagram:
    def test_relationships_have_no_arrows(self):
        graph = LogicalGraph(kind=DiagramKind.ER)
        graph.add_node(Node.bare("CUSTOMER"))
        graph.add_node(Node.bare("ORDER"))
        graph.add_edge(
            "CUSTOMER",
            "ORDER",
            label="places",
            has_arrow_start=True,
            source_cardinality=Cardinality.One,
            target_cardinality=Cardinality.ZeroMany,
        )
        (edge,) = layout(graph).edges
        assert (edge.has_arrow_start, edge.has_arrow_end) == (False, False)
        assert (edge.source_cardinality, edge.target_cardinality) == (Cardinality.One, Cardinality.ZeroMany)
        assert edge.label_position is not None

    def test_attribute_rows_grow_entity(self):
        entity = Node(id="CUSTOMER", label="CUSTOMER", compartments=[["string name", "int id", "string email"]])
        graph = LogicalGraph(kind=DiagramKind.ER)
        graph.add_node(entity)
        box = layout(graph).node("CUSTOMER")
        assert box.height > OPTS.min_node_height
        assert box.compartments == entity.compartments

    def test_plain_entity_sized_like_flow_node(self):
        graph = LogicalGraph(kind=DiagramKind.ER)
        graph.add_node(Node.bare("X"))
        box = layout(graph).node("X")
        assert (box.width, box.height) == node_size("X", NodeShape.Rectangle, OPTS)
        assert box.header_height is None


# ─── State diagrams ───────────────────────────────────────────────────────────


class TestStateDiagram:
    def make_state(self) -> LogicalGraph:
        graph = LogicalGraph(kind=DiagramKind.State)
        graph.add_node(Node(id="start", label="[*]", shape=NodeShape.StateStart))
        graph.add_node(Node.bare("Idle"))
        graph.add_node(Node(id="end", label="[*]", shape=NodeShape.StateEnd))
        graph.add_edge("start", "Idle")
        graph.add_edge("Idle", "end")
        return graph

    def test_pseudostates_are_small_and_unlabelled(self):
        result = layout(self.make_state())
        start = result.node("start")
        assert (start.width, start.height) == (20, 20)
        assert start.label == ""
        assert start.shape is NodeShape.StateStart

    def test_states_are_rounded(self):
        assert layout(self.make_state()).node("Idle").shape is NodeShape.Rounded

    def test_chain_ranks(self):
        result = layout(self.make_state())
        assert [result.node(n).rank for n in ("start", "Idle", "end")] == [0, 1, 2]

    def test_composite_state(self):
        graph = self.make_state()
        graph.subgraphs.append(Subgraph(id="Active", node_ids=["Idle"]))
        result = layout(graph)
        assert result.group("Active").box.contains(result.node("Idle").box)

    def test_pseudostate_size_option(self):
        start = layout(self.make_state(), {"pseudostateSize": 12}).node("start")
        assert (start.width, start.height) == (12, 12)
