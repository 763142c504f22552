"""Exceptions raised by the layout core.

Everything derives from ``LayoutError`` which is itself a ``ValueError``, so
callers that only expect bad-input errors can keep catching ``ValueError``.
"""

from __future__ import annotations


class LayoutError(ValueError):
    """A layout call failed; no partial layout is produced."""


class UndefinedNodeError(LayoutError):
    """An edge, group member, or style assignment names an unknown node id."""

    def __init__(self, node_id: str, context: str) -> None:
        super().__init__(f"{context} references undefined node '{node_id}'")
        self.node_id = node_id
        self.context = context


class StructuralError(LayoutError):
    """The graph is well-referenced but structurally invalid."""


class ContainmentCycleError(StructuralError):
    def __init__(self, group_id: str) -> None:
        super().__init__(f"subgraph '{group_id}' contains itself")
        self.group_id = group_id


class DuplicateGroupError(StructuralError):
    def __init__(self, group_id: str) -> None:
        super().__init__(f"subgraph id '{group_id}' is declared more than once")
        self.group_id = group_id


class ActivationError(StructuralError):
    def __init__(self, participant: str, reason: str) -> None:
        super().__init__(f"activation of '{participant}': {reason}")
        self.participant = participant


class BlockRangeError(StructuralError):
    """A sequence block spans messages that do not exist or crosses another block."""


class UnknownShapeError(StructuralError):
    def __init__(self, shape: object, node_id: str | None = None) -> None:
        where = f" on node '{node_id}'" if node_id is not None else ""
        super().__init__(f"unknown shape {shape!r}{where}")
        self.shape = shape
        self.node_id = node_id


class UnknownDiagramKindError(StructuralError):
    def __init__(self, kind: object) -> None:
        super().__init__(f"unsupported diagram kind {kind!r}")
        self.kind = kind


class NotePlacementError(StructuralError):
    """A sequence note names no participant or follows a message that does not exist."""

    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"note #{index} {reason}")
        self.index = index
