"""Class diagram strategy.

A class box is a header (optional ``<<annotation>>`` row plus the class name)
followed by one compartment per row list, usually attributes then methods.
The box grows with the row count and fits its widest row. Namespaces arrive
as subgraphs.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from mermaid_layout.config import LayoutOptions
from mermaid_layout.geometry import LINE_HEIGHT, Box, estimate_text_width
from mermaid_layout.ir.model import Edge, Node
from mermaid_layout.layout.strategies.base import LayeredStrategy
from mermaid_layout.layout.types import PositionedNode
from mermaid_layout.types import DiagramKind, EdgeStyle


@dataclass
class CompartmentMetrics:
    width: float
    height: float
    header_height: float


def header_rows(node: Node) -> list[str]:
    rows = [f"<<{node.annotation}>>"] if node.annotation else []
    rows.extend(node.label.split("\n"))
    return rows


def measure_compartments(node: Node, opts: LayoutOptions) -> CompartmentMetrics:
    """Size a header-plus-compartments box."""
    row_h = opts.font_size * LINE_HEIGHT
    header = header_rows(node)
    header_h = len(header) * row_h + 2 * opts.node_padding_y

    widest = max(estimate_text_width(row, opts.font_size, opts.font_weight, opts.letter_spacing) for row in header)
    height = header_h
    for rows in node.compartments:
        height += len(rows) * row_h + opts.node_padding_y
        for row in rows:
            widest = max(widest, estimate_text_width(row, opts.font_size, 400, opts.letter_spacing))

    width = max(widest + 2 * opts.node_padding_x, opts.min_node_width)
    return CompartmentMetrics(width=width, height=max(height, opts.min_node_height), header_height=header_h)


class ClassStrategy(LayeredStrategy):
    kind = DiagramKind.Class

    def measure(self, node: Node, opts: LayoutOptions) -> tuple[float, float]:
        metrics = measure_compartments(node, opts)
        return metrics.width, metrics.height

    def style_edge(self, edge: Edge) -> Edge:
        if edge.relation is not None and edge.relation.is_dashed:
            return replace(edge, style=EdgeStyle.Dotted)
        return replace(edge)

    def position_node(self, node: Node, box: Box, opts: LayoutOptions) -> PositionedNode:
        positioned = super().position_node(node, box, opts)
        positioned.annotation = node.annotation
        positioned.compartments = [list(rows) for rows in node.compartments]
        positioned.header_height = measure_compartments(node, opts).header_height
        return positioned
