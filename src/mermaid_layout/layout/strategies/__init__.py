"""Strategy registry — one layout strategy per diagram kind."""

from __future__ import annotations

from mermaid_layout.errors import UnknownDiagramKindError
from mermaid_layout.layout.strategies.base import LayoutStrategy
from mermaid_layout.layout.strategies.class_diagram import ClassStrategy
from mermaid_layout.layout.strategies.er import ERStrategy
from mermaid_layout.layout.strategies.flow import FlowStrategy
from mermaid_layout.layout.strategies.sequence import SequenceStrategy
from mermaid_layout.layout.strategies.state import StateStrategy
from mermaid_layout.types import DiagramKind

_STRATEGIES: dict[DiagramKind, type[LayoutStrategy]] = {
    DiagramKind.Flow: FlowStrategy,
    DiagramKind.State: StateStrategy,
    DiagramKind.Sequence: SequenceStrategy,
    DiagramKind.Class: ClassStrategy,
    DiagramKind.ER: ERStrategy,
}


def strategy_for(kind: DiagramKind) -> LayoutStrategy:
    try:
        cls = _STRATEGIES[kind]
    except KeyError:
        raise UnknownDiagramKindError(kind) from None
    return cls()


__all__ = [
    "ClassStrategy",
    "ERStrategy",
    "FlowStrategy",
    "LayoutStrategy",
    "SequenceStrategy",
    "StateStrategy",
    "strategy_for",
]
