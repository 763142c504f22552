"""Flowchart strategy: plain layered layout with nested subgraphs."""

from __future__ import annotations

from mermaid_layout.layout.strategies.base import LayeredStrategy
from mermaid_layout.types import DiagramKind


class FlowStrategy(LayeredStrategy):
    kind = DiagramKind.Flow
