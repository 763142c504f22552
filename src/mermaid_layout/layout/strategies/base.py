"""Base strategy protocol and the shared layered strategy."""

from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from mermaid_layout.config import LayoutOptions
from mermaid_layout.geometry import Box, node_size
from mermaid_layout.ir.model import Edge, LogicalGraph, Node
from mermaid_layout.layout.compound import layout_layered
from mermaid_layout.layout.types import PositionedLayout, PositionedNode
from mermaid_layout.types import DiagramKind


class LayoutStrategy(Protocol):
    """Protocol that all diagram layout strategies must implement."""

    kind: DiagramKind

    def layout(self, graph: LogicalGraph, opts: LayoutOptions) -> PositionedLayout:
        """Position a validated logical graph."""
        ...


class LayeredStrategy:
    """Strategy backed by the compound layered driver.

    Subclasses override the sizing, edge styling and node output hooks.
    """

    kind: DiagramKind = DiagramKind.Flow

    def layout(self, graph: LogicalGraph, opts: LayoutOptions) -> PositionedLayout:
        return layout_layered(graph, opts, self)

    def measure(self, node: Node, opts: LayoutOptions) -> tuple[float, float]:
        return node_size(node.label, node.shape, opts)

    def style_edge(self, edge: Edge) -> Edge:
        return replace(edge)

    def position_node(self, node: Node, box: Box, opts: LayoutOptions) -> PositionedNode:
        return PositionedNode(
            id=node.id,
            label=node.label,
            shape=node.shape,
            x=box.x,
            y=box.y,
            width=box.width,
            height=box.height,
            corner_radius=opts.corner_radius,
        )
