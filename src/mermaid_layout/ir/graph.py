"""Graph IR — validates a logical graph and wraps containers as networkx DiGraphs.

Validation runs once, up front, so that every later phase can assume that all
ids resolve and that the subgraph forest is a proper tree. ``GraphIR`` is the
positioner's input: one instance per container (the root diagram or one
subgraph), holding measured boxes as node data.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

import networkx as nx

from mermaid_layout.errors import (
    ContainmentCycleError,
    DuplicateGroupError,
    NotePlacementError,
    UndefinedNodeError,
    UnknownDiagramKindError,
    UnknownShapeError,
)
from mermaid_layout.ir.model import LogicalGraph, Subgraph
from mermaid_layout.types import DiagramKind, Direction, NodeShape


@dataclass
class NodeData:
    id: str
    width: float
    height: float
    label: str = ""
    shape: NodeShape = NodeShape.Rectangle
    is_dummy: bool = False


@dataclass
class EdgeData:
    # indices into LogicalGraph.edges collapsed onto this item-level edge
    edge_indices: list[int] = field(default_factory=list)


class GraphIR:
    """A directed graph of sized boxes for one layout container.

    Wraps a networkx DiGraph whose nodes carry ``NodeData`` and whose edges
    carry ``EdgeData`` under the ``"data"`` key.
    """

    def __init__(self, digraph: nx.DiGraph, direction: Direction) -> None:
        self.digraph = digraph
        self.direction = direction

    @classmethod
    def from_items(
        cls,
        items: list[NodeData],
        edges: list[tuple[str, str, int]],
        direction: Direction,
    ) -> GraphIR:
        """Build a GraphIR from sized items and (source, target, edge index) triples.

        Parallel edges collapse onto one DiGraph edge that remembers every
        original index.
        """
        digraph: nx.DiGraph = nx.DiGraph()
        for item in items:
            digraph.add_node(item.id, data=item)
        for src, tgt, index in edges:
            if digraph.has_edge(src, tgt):
                digraph.edges[src, tgt]["data"].edge_indices.append(index)
            else:
                digraph.add_edge(src, tgt, data=EdgeData(edge_indices=[index]))
        return cls(digraph=digraph, direction=direction)

    def node_count(self) -> int:
        return self.digraph.number_of_nodes()


# ─── Validation ──────────────────────────────────────────────────────────────


def validate(graph: LogicalGraph) -> None:
    """Fail fast on reference and structural errors; return None when valid."""
    if graph.kind is not None and not isinstance(graph.kind, DiagramKind):
        raise UnknownDiagramKindError(graph.kind)

    for node_id, node in graph.nodes.items():
        if not isinstance(node.shape, NodeShape):
            raise UnknownShapeError(node.shape, node_id)

    for index, edge in enumerate(graph.edges):
        for endpoint in (edge.source, edge.target):
            if endpoint not in graph.nodes:
                raise UndefinedNodeError(endpoint, f"edge #{index} ({edge.source} -> {edge.target})")

    for node_id in graph.class_assignments:
        if node_id not in graph.nodes:
            raise UndefinedNodeError(node_id, "class assignment")
    for node_id in graph.node_styles:
        if node_id not in graph.nodes:
            raise UndefinedNodeError(node_id, "style statement")

    for participant in graph.participants:
        if participant not in graph.nodes:
            raise UndefinedNodeError(participant, "participant declaration")
    for index, note in enumerate(graph.notes):
        if not note.participant_ids:
            raise NotePlacementError(index, "names no participant")
        for participant in note.participant_ids:
            if participant not in graph.nodes:
                raise UndefinedNodeError(participant, "note")
        # -1 places the note before the first message
        if not -1 <= note.after < len(graph.edges):
            raise NotePlacementError(
                index, f"follows message #{note.after} but the diagram has {len(graph.edges)} messages"
            )

    for sg, _parent in walk_subgraphs(graph.subgraphs):
        for member in sg.node_ids:
            if member not in graph.nodes:
                raise UndefinedNodeError(member, f"subgraph '{sg.id}'")


def walk_subgraphs(subgraphs: list[Subgraph]) -> Iterator[tuple[Subgraph, Subgraph | None]]:
    """Pre-order walk yielding (subgraph, parent).

    Raises ContainmentCycleError when a subgraph reappears among its own
    descendants and DuplicateGroupError when an id is reused elsewhere.
    """
    seen: set[str] = set()

    def visit(sg: Subgraph, parent: Subgraph | None, ancestors: tuple[str, ...]) -> Iterator[tuple[Subgraph, Subgraph | None]]:
        if sg.id in ancestors:
            raise ContainmentCycleError(sg.id)
        if sg.id in seen:
            raise DuplicateGroupError(sg.id)
        seen.add(sg.id)
        yield sg, parent
        for child in sg.children:
            yield from visit(child, sg, ancestors + (sg.id,))

    for top in subgraphs:
        yield from visit(top, None, ())


def node_owners(graph: LogicalGraph) -> dict[str, str | None]:
    """Map every node id to the id of the deepest subgraph listing it (None = root).

    Ties at equal depth go to the subgraph visited first.
    """
    owners: dict[str, str | None] = {node_id: None for node_id in graph.nodes}
    depth_of: dict[str, int] = {}
    depths: dict[str, int] = {}
    for sg, parent in walk_subgraphs(graph.subgraphs):
        depths[sg.id] = 0 if parent is None else depths[parent.id] + 1
        for member in sg.node_ids:
            if member not in depth_of or depths[sg.id] > depth_of[member]:
                depth_of[member] = depths[sg.id]
                owners[member] = sg.id
    return owners


def resolve_node_style(graph: LogicalGraph, node_id: str) -> dict[str, str] | None:
    """Merge classDef properties with inline ``style`` overrides (inline wins)."""
    class_name = graph.class_assignments.get(node_id)
    class_props = graph.class_defs.get(class_name) if class_name else None
    inline_props = graph.node_styles.get(node_id)
    if not class_props and not inline_props:
        return None
    result: dict[str, str] = {}
    if class_props:
        result.update(class_props)
    if inline_props:
        result.update(inline_props)
    return result


def infer_kind(graph: LogicalGraph) -> DiagramKind:
    """Return the tagged kind, or guess it from structural hints."""
    if graph.kind is not None:
        return graph.kind
    if graph.participants or graph.blocks or graph.notes or any(e.activate or e.deactivate for e in graph.edges):
        return DiagramKind.Sequence
    if any(e.relation is not None for e in graph.edges):
        return DiagramKind.Class
    if any(e.source_cardinality is not None or e.target_cardinality is not None for e in graph.edges):
        return DiagramKind.ER
    if any(isinstance(n.shape, NodeShape) and n.shape.is_pseudostate for n in graph.nodes.values()):
        return DiagramKind.State
    return DiagramKind.Flow
