"""Layout entry point: validate, pick the diagram-kind strategy, position."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from mermaid_layout.config import LayoutOptions
from mermaid_layout.ir.graph import infer_kind, validate
from mermaid_layout.ir.model import LogicalGraph
from mermaid_layout.layout.strategies import strategy_for
from mermaid_layout.layout.types import (
    COMPOUND_PREFIX,
    DUMMY_PREFIX,
    Activation,
    GroupDivider,
    Lifeline,
    PositionedEdge,
    PositionedGroup,
    PositionedLayout,
    PositionedNode,
    PositionedNote,
)

logger = logging.getLogger(__name__)


def layout(graph: LogicalGraph, options: LayoutOptions | Mapping[str, Any] | None = None) -> PositionedLayout:
    """Position a logical graph.

    Args:
        graph: The parsed diagram. It is read, never mutated.
        options: Geometry overrides; ``None`` uses the defaults.

    Returns:
        A self-contained PositionedLayout.

    Raises:
        LayoutError: On undefined node references or structural errors.
    """
    opts = LayoutOptions().merged(options)
    validate(graph)
    kind = infer_kind(graph)
    logger.debug("laying out %s diagram: %d nodes, %d edges", kind.value, len(graph.nodes), len(graph.edges))
    return strategy_for(kind).layout(graph, opts)


__all__ = [
    "COMPOUND_PREFIX",
    "DUMMY_PREFIX",
    "Activation",
    "GroupDivider",
    "Lifeline",
    "PositionedEdge",
    "PositionedGroup",
    "PositionedLayout",
    "PositionedNode",
    "PositionedNote",
    "layout",
]
