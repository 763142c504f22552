"""Positioned layout types shared by every strategy and consumed by renderers."""

from __future__ import annotations

from dataclasses import dataclass, field

from mermaid_layout.geometry import Box, Point
from mermaid_layout.types import Cardinality, DiagramKind, EdgeStyle, NodeShape, NotePlacement, Relation


@dataclass
class PositionedNode:
    """A positioned node; (x, y) is the top-left corner."""

    id: str
    label: str
    shape: NodeShape
    x: float
    y: float
    width: float
    height: float
    corner_radius: float = 0
    inline_style: dict[str, str] | None = None
    # Topological layer (0 = source layer). Used for animation sequencing.
    rank: int | None = None
    # class / ER boxes
    annotation: str | None = None
    compartments: list[list[str]] = field(default_factory=list)
    header_height: float | None = None

    @property
    def box(self) -> Box:
        return Box(self.x, self.y, self.width, self.height)


@dataclass
class PositionedEdge:
    source: str
    target: str
    label: str | None
    style: EdgeStyle
    has_arrow_start: bool
    has_arrow_end: bool
    # Full path including bends, source end first
    points: list[Point]
    label_position: Point | None = None
    source_rank: int | None = None
    target_rank: int | None = None
    # edge-style metadata for class relations and ER crow's-foot glyphs
    relation: Relation | None = None
    source_cardinality: Cardinality | None = None
    target_cardinality: Cardinality | None = None


@dataclass
class GroupDivider:
    y: float
    label: str = ""


@dataclass
class PositionedGroup:
    id: str
    label: str
    x: float
    y: float
    width: float
    height: float
    children: list[PositionedGroup] = field(default_factory=list)
    # Min rank of contained nodes. Used for animation sequencing.
    rank: int | None = None
    dividers: list[GroupDivider] = field(default_factory=list)

    @property
    def box(self) -> Box:
        return Box(self.x, self.y, self.width, self.height)


@dataclass
class Lifeline:
    """Vertical line below a sequence participant."""

    participant: str
    x: float
    top: float
    bottom: float


@dataclass
class Activation:
    """Highlighted span on a lifeline; ``depth`` counts enclosing spans."""

    participant: str
    x: float
    top: float
    bottom: float
    width: float
    depth: int = 0


@dataclass
class PositionedNote:
    text: str
    placement: NotePlacement
    participants: list[str]
    x: float
    y: float
    width: float
    height: float


@dataclass
class PositionedLayout:
    """Self-contained layout output — everything renderers need."""

    width: float
    height: float
    nodes: list[PositionedNode] = field(default_factory=list)
    edges: list[PositionedEdge] = field(default_factory=list)
    groups: list[PositionedGroup] = field(default_factory=list)
    kind: DiagramKind = DiagramKind.Flow
    lifelines: list[Lifeline] = field(default_factory=list)
    activations: list[Activation] = field(default_factory=list)
    notes: list[PositionedNote] = field(default_factory=list)

    def node(self, node_id: str) -> PositionedNode:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(node_id)

    def group(self, group_id: str) -> PositionedGroup:
        stack = list(self.groups)
        while stack:
            group = stack.pop()
            if group.id == group_id:
                return group
            stack.extend(group.children)
        raise KeyError(group_id)


# Prefix constants
DUMMY_PREFIX = "__dummy_"
COMPOUND_PREFIX = "__sg_"
