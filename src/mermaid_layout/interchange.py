"""JSON interchange: logical graphs in, positioned layouts and schedules out.

Input is validated with pydantic models that accept snake_case or camelCase
keys. Enum-valued fields use the enum's wire spelling (``"rectangle"``,
``"dotted"``, ``"LR"``...). Malformed records raise ``pydantic.ValidationError``;
unknown shapes and diagram kinds raise the matching ``LayoutError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from mermaid_layout.animation.scheduler import Schedule
from mermaid_layout.errors import UnknownDiagramKindError, UnknownShapeError
from mermaid_layout.ir.model import Block, BlockDivider, Edge, LogicalGraph, Node, Note, Subgraph
from mermaid_layout.layout.types import PositionedLayout
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


def _parse_direction(value: Any) -> Any:
    if isinstance(value, str):
        return Direction.parse(value) if value.strip() else None
    return value


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NodeModel(_Record):
    # required in list form; the mapping form supplies it from the key
    id: str | None = None
    label: str | None = None
    shape: str = NodeShape.Rectangle.value
    annotation: str | None = None
    compartments: list[list[str]] = Field(default_factory=list)

    def to_node(self, node_id: str) -> Node:
        try:
            shape = NodeShape(self.shape)
        except ValueError:
            raise UnknownShapeError(self.shape, node_id) from None
        return Node(
            id=node_id,
            label=node_id if self.label is None else self.label,
            shape=shape,
            annotation=self.annotation,
            compartments=[list(rows) for rows in self.compartments],
        )


class EdgeModel(_Record):
    source: str
    target: str
    label: str | None = None
    style: EdgeStyle = EdgeStyle.Solid
    has_arrow_start: bool = False
    has_arrow_end: bool = True
    relation: Relation | None = None
    source_cardinality: Cardinality | None = None
    target_cardinality: Cardinality | None = None
    activate: bool = False
    deactivate: bool = False

    def to_edge(self) -> Edge:
        return Edge(**self.model_dump())


class SubgraphModel(_Record):
    id: str
    label: str = ""
    node_ids: list[str] = Field(default_factory=list)
    children: list[SubgraphModel] = Field(default_factory=list)
    direction: Direction | None = None

    @field_validator("direction", mode="before")
    @classmethod
    def parse_direction(cls, value: Any) -> Any:
        return _parse_direction(value)

    def to_subgraph(self) -> Subgraph:
        return Subgraph(
            id=self.id,
            label=self.label,
            node_ids=list(self.node_ids),
            children=[child.to_subgraph() for child in self.children],
            direction=self.direction,
        )


class DividerModel(_Record):
    index: int
    label: str = ""


class BlockModel(_Record):
    kind: BlockKind
    start: int
    end: int
    label: str = ""
    dividers: list[DividerModel] = Field(default_factory=list)

    def to_block(self) -> Block:
        return Block(
            kind=self.kind,
            start=self.start,
            end=self.end,
            label=self.label,
            dividers=[BlockDivider(index=d.index, label=d.label) for d in self.dividers],
        )


class NoteModel(_Record):
    participant_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("participant_ids", "participantIds", "participants"),
    )
    text: str = ""
    placement: NotePlacement = NotePlacement.Right
    after: int = -1

    def to_note(self) -> Note:
        return Note(
            participant_ids=list(self.participant_ids),
            text=self.text,
            placement=self.placement,
            after=self.after,
        )


class GraphModel(_Record):
    kind: str | None = None
    direction: Direction | None = None
    nodes: list[NodeModel] | dict[str, NodeModel] = Field(default_factory=list)
    edges: list[EdgeModel] = Field(default_factory=list)
    subgraphs: list[SubgraphModel] = Field(default_factory=list)
    class_defs: dict[str, dict[str, str]] = Field(default_factory=dict)
    class_assignments: dict[str, str] = Field(default_factory=dict)
    node_styles: dict[str, dict[str, str]] = Field(default_factory=dict)
    participants: list[str] = Field(default_factory=list)
    blocks: list[BlockModel] = Field(default_factory=list)
    notes: list[NoteModel] = Field(default_factory=list)

    @field_validator("direction", mode="before")
    @classmethod
    def parse_direction(cls, value: Any) -> Any:
        return _parse_direction(value)

    @field_validator("nodes", mode="after")
    @classmethod
    def ensure_node_ids(cls, nodes: list[NodeModel] | dict[str, NodeModel]) -> list[NodeModel] | dict[str, NodeModel]:
        if isinstance(nodes, list):
            for index, node in enumerate(nodes):
                if node.id is None:
                    raise ValueError(f"node #{index} has no id")
        return nodes

    def diagram_kind(self) -> DiagramKind | None:
        if self.kind is None:
            return None
        try:
            return DiagramKind(self.kind)
        except ValueError:
            raise UnknownDiagramKindError(self.kind) from None

    def to_nodes(self) -> list[Node]:
        if isinstance(self.nodes, dict):
            return [model.to_node(model.id or key) for key, model in self.nodes.items()]
        return [model.to_node(model.id) for model in self.nodes]


def graph_from_dict(data: Mapping[str, Any]) -> LogicalGraph:
    """Build a LogicalGraph from its JSON form."""
    model = GraphModel.model_validate(dict(data))
    graph = LogicalGraph(
        direction=model.direction or Direction.default(),
        edges=[edge.to_edge() for edge in model.edges],
        subgraphs=[sg.to_subgraph() for sg in model.subgraphs],
        class_defs={name: dict(props) for name, props in model.class_defs.items()},
        class_assignments=dict(model.class_assignments),
        node_styles={node_id: dict(props) for node_id, props in model.node_styles.items()},
        kind=model.diagram_kind(),
        participants=list(model.participants),
        blocks=[block.to_block() for block in model.blocks],
        notes=[note.to_note() for note in model.notes],
    )
    for node in model.to_nodes():
        graph.add_node(node)
    return graph


# ─── Output ──────────────────────────────────────────────────────────────────


def _plain(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    return {key: value.value if isinstance(value, Enum) else value for key, value in pairs}


def layout_to_dict(layout: PositionedLayout) -> dict[str, Any]:
    """Plain JSON-ready dict of a positioned layout."""
    return asdict(layout, dict_factory=_plain)


def schedule_to_dict(schedule: Schedule) -> dict[str, Any]:
    return {
        "nodes": dict(schedule.nodes),
        "edges": {str(index): delay for index, delay in schedule.edges.items()},
        "groups": dict(schedule.groups),
    }
