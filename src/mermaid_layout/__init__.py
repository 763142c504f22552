"""mermaid-layout: positioned layouts and animation schedules for Mermaid diagrams."""

from mermaid_layout.animation import Schedule, compute_delays, format_key_splines, translate_easing
from mermaid_layout.config import AnimationOptions, LayoutOptions
from mermaid_layout.errors import (
    ActivationError,
    BlockRangeError,
    ContainmentCycleError,
    DuplicateGroupError,
    LayoutError,
    NotePlacementError,
    StructuralError,
    UndefinedNodeError,
    UnknownDiagramKindError,
    UnknownShapeError,
)
from mermaid_layout.interchange import graph_from_dict, layout_to_dict, schedule_to_dict
from mermaid_layout.ir.model import Block, BlockDivider, Edge, LogicalGraph, Node, Note, Subgraph
from mermaid_layout.layout import PositionedLayout, layout
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

__all__ = [
    "ActivationError",
    "AnimationOptions",
    "Block",
    "BlockDivider",
    "BlockKind",
    "BlockRangeError",
    "Cardinality",
    "ContainmentCycleError",
    "DiagramKind",
    "Direction",
    "DuplicateGroupError",
    "Edge",
    "EdgeStyle",
    "LayoutError",
    "LayoutOptions",
    "LogicalGraph",
    "Node",
    "NodeShape",
    "Note",
    "NotePlacement",
    "NotePlacementError",
    "PositionedLayout",
    "Relation",
    "Schedule",
    "StructuralError",
    "Subgraph",
    "UndefinedNodeError",
    "UnknownDiagramKindError",
    "UnknownShapeError",
    "compute_delays",
    "format_key_splines",
    "graph_from_dict",
    "layout",
    "layout_to_dict",
    "schedule_to_dict",
    "translate_easing",
]
