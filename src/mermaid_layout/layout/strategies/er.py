"""Entity-relationship strategy.

Entities are boxes sized like class compartments. Relationships never carry
arrowheads; their crow's-foot cardinalities travel on the edge as metadata.
"""

from __future__ import annotations

from dataclasses import replace

from mermaid_layout.config import LayoutOptions
from mermaid_layout.geometry import Box
from mermaid_layout.ir.model import Edge, Node
from mermaid_layout.layout.strategies.base import LayeredStrategy
from mermaid_layout.layout.strategies.class_diagram import measure_compartments
from mermaid_layout.layout.types import PositionedNode
from mermaid_layout.types import DiagramKind


class ERStrategy(LayeredStrategy):
    kind = DiagramKind.ER

    def measure(self, node: Node, opts: LayoutOptions) -> tuple[float, float]:
        if not node.compartments:
            return super().measure(node, opts)
        metrics = measure_compartments(node, opts)
        return metrics.width, metrics.height

    def style_edge(self, edge: Edge) -> Edge:
        return replace(edge, has_arrow_start=False, has_arrow_end=False)

    def position_node(self, node: Node, box: Box, opts: LayoutOptions) -> PositionedNode:
        positioned = super().position_node(node, box, opts)
        if node.compartments:
            positioned.compartments = [list(rows) for rows in node.compartments]
            positioned.header_height = measure_compartments(node, opts).header_height
        return positioned
