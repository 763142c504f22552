"""Logical graph: the parser's output and this package's input.

These dataclasses mirror what a diagram parser produces. The layout never
mutates them and never keeps references to them in its output.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from mermaid_layout.types import (
    BlockKind,
    Cardinality,
    DiagramKind,
    Direction,
    EdgeStyle,
    NodeShape,
    NotePlacement,
    Relation,
)


@dataclass
class Node:
    id: str
    label: str
    shape: NodeShape = field(default_factory=NodeShape.default)
    # class / ER boxes: optional <<annotation>> and row compartments
    annotation: str | None = None
    compartments: list[list[str]] = field(default_factory=list)

    @classmethod
    def bare(cls, id: str) -> Node:
        """Create a bare node (id = label, default Rectangle shape)."""
        return cls(id=id, label=id)


@dataclass
class Edge:
    source: str
    target: str
    label: str | None = None
    style: EdgeStyle = field(default_factory=EdgeStyle.default)
    has_arrow_start: bool = False
    has_arrow_end: bool = True
    relation: Relation | None = None
    source_cardinality: Cardinality | None = None
    target_cardinality: Cardinality | None = None
    # sequence messages: "+" on the target, "-" on the source
    activate: bool = False
    deactivate: bool = False


@dataclass
class Subgraph:
    id: str
    label: str = ""
    node_ids: list[str] = field(default_factory=list)
    children: list[Subgraph] = field(default_factory=list)
    direction: Direction | None = None


@dataclass
class BlockDivider:
    index: int  # first message after the divider
    label: str = ""


@dataclass
class Block:
    """A sequence frame covering messages ``start``..``end`` inclusive."""

    kind: BlockKind
    start: int
    end: int
    label: str = ""
    dividers: list[BlockDivider] = field(default_factory=list)


@dataclass
class Note:
    participant_ids: list[str]
    text: str
    placement: NotePlacement = NotePlacement.Right
    after: int = -1  # message index the note follows; -1 = before the first


@dataclass
class LogicalGraph:
    direction: Direction = field(default_factory=Direction.default)
    nodes: dict[str, Node] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    subgraphs: list[Subgraph] = field(default_factory=list)
    class_defs: dict[str, dict[str, str]] = field(default_factory=dict)
    class_assignments: dict[str, str] = field(default_factory=dict)
    node_styles: dict[str, dict[str, str]] = field(default_factory=dict)
    kind: DiagramKind | None = None
    # sequence diagrams
    participants: list[str] = field(default_factory=list)
    blocks: list[Block] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)

    def add_node(self, node: Node) -> Node:
        """Register ``node`` unless its id is already known; return the stored node."""
        return self.nodes.setdefault(node.id, node)

    def add_edge(self, source: str, target: str, **kwargs: object) -> Edge:
        edge = Edge(source=source, target=target, **kwargs)  # type: ignore[arg-type]
        self.edges.append(edge)
        return edge
