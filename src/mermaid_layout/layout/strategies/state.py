"""State diagram strategy.

Start and end pseudostates are small fixed squares without a label; ordinary
states are drawn as rounded boxes. Composite states arrive as subgraphs and
are nested like flowchart subgraphs.
"""

from __future__ import annotations

from mermaid_layout.config import LayoutOptions
from mermaid_layout.geometry import Box
from mermaid_layout.ir.model import Node
from mermaid_layout.layout.strategies.base import LayeredStrategy
from mermaid_layout.layout.types import PositionedNode
from mermaid_layout.types import DiagramKind, NodeShape


class StateStrategy(LayeredStrategy):
    kind = DiagramKind.State

    def measure(self, node: Node, opts: LayoutOptions) -> tuple[float, float]:
        if node.shape.is_pseudostate:
            return opts.pseudostate_size, opts.pseudostate_size
        return super().measure(node, opts)

    def position_node(self, node: Node, box: Box, opts: LayoutOptions) -> PositionedNode:
        positioned = super().position_node(node, box, opts)
        if node.shape.is_pseudostate:
            positioned.label = ""
        elif node.shape is NodeShape.Rectangle:
            positioned.shape = NodeShape.Rounded
        return positioned
