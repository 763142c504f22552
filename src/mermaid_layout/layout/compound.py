"""Compound layout driver for the layered diagram kinds (flow, state, class, ER).

Each subgraph is laid out on its own first (honouring its direction
override), then collapsed into a single compound item of the enclosing
container, which is positioned like any other node. Edges are attached to
the innermost container holding both endpoints; inside it, an endpoint that
lives deeper is represented by the compound item that contains it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

import networkx as nx

from mermaid_layout.config import LayoutOptions
from mermaid_layout.geometry import Box, Point
from mermaid_layout.ir.graph import GraphIR, NodeData, node_owners, resolve_node_style, walk_subgraphs
from mermaid_layout.ir.model import Edge, LogicalGraph, Node, Subgraph
from mermaid_layout.layout.groups import build_groups, content_offset, frame_size, group_title
from mermaid_layout.layout.routing import (
    Axes,
    apply_arrow_clearance,
    place_labels,
    route_edge,
    self_loop,
    simplify_path,
)
from mermaid_layout.layout.sugiyama import Placement, SugiyamaLayout, global_ranks
from mermaid_layout.layout.types import COMPOUND_PREFIX, DUMMY_PREFIX, PositionedEdge, PositionedLayout, PositionedNode
from mermaid_layout.types import DiagramKind, Direction

logger = logging.getLogger(__name__)


class LayeredHooks(Protocol):
    """Per-kind customisation points of the layered driver."""

    kind: DiagramKind

    def measure(self, node: Node, opts: LayoutOptions) -> tuple[float, float]: ...

    def style_edge(self, edge: Edge) -> Edge: ...

    def position_node(self, node: Node, box: Box, opts: LayoutOptions) -> PositionedNode: ...


@dataclass
class _Container:
    id: str | None
    title: str
    direction: Direction
    node_ids: list[str]
    children: list[_Container] = field(default_factory=list)


@dataclass
class _Laid:
    container: _Container
    placement: Placement
    children: dict[str, _Laid]


@dataclass
class _Frame:
    placement: Placement
    origin: Point
    axes: Axes

    def absolute(self, box: Box) -> Box:
        return Box(self.origin.x + box.x, self.origin.y + box.y, box.width, box.height)

    def primary_offset(self) -> float:
        return self.origin.x if self.axes.direction.is_horizontal else self.origin.y

    def secondary_offset(self) -> float:
        return self.origin.y if self.axes.direction.is_horizontal else self.origin.x

    def content(self) -> Box:
        return Box(self.origin.x, self.origin.y, self.placement.width, self.placement.height)


def _build_containers(graph: LogicalGraph, owners: dict[str, str | None]) -> _Container:
    direct: dict[str | None, list[str]] = {}
    for node_id in graph.nodes:
        direct.setdefault(owners[node_id], []).append(node_id)

    def build(sg: Subgraph, inherited: Direction) -> _Container:
        direction = sg.direction or inherited
        return _Container(
            id=sg.id,
            title=group_title(sg),
            direction=direction,
            node_ids=direct.get(sg.id, []),
            children=[build(child, direction) for child in sg.children],
        )

    return _Container(
        id=None,
        title="",
        direction=graph.direction,
        node_ids=direct.get(None, []),
        children=[build(sg, graph.direction) for sg in graph.subgraphs],
    )


def _container_paths(graph: LogicalGraph, owners: dict[str, str | None]) -> dict[str, list[str | None]]:
    """Node id → container ids from the root down to the node's owner."""
    parent_of = {sg.id: (parent.id if parent else None) for sg, parent in walk_subgraphs(graph.subgraphs)}
    paths: dict[str, list[str | None]] = {}
    for node_id, owner in owners.items():
        chain: list[str | None] = []
        while owner is not None:
            chain.append(owner)
            owner = parent_of[owner]
        chain.append(None)
        chain.reverse()
        paths[node_id] = chain
    return paths


def _attach_edges(
    edges: list[Edge], paths: dict[str, list[str | None]]
) -> tuple[dict[str | None, list[tuple[str, str, int]]], list[tuple[str | None, str, str]]]:
    """Assign every edge to its innermost common container.

    Returns the item-level edges per container and, per edge index, the
    (container, source item, target item) triple.
    """
    by_container: dict[str | None, list[tuple[str, str, int]]] = {}
    attachments: list[tuple[str | None, str, str]] = []
    for index, edge in enumerate(edges):
        src_path, tgt_path = paths[edge.source], paths[edge.target]
        depth = 0
        while depth + 1 < len(src_path) and depth + 1 < len(tgt_path) and src_path[depth + 1] == tgt_path[depth + 1]:
            depth += 1

        def item(node_id: str, path: list[str | None]) -> str:
            if len(path) == depth + 1:
                return node_id
            return f"{COMPOUND_PREFIX}{path[depth + 1]}"

        container = src_path[depth]
        src_item, tgt_item = item(edge.source, src_path), item(edge.target, tgt_path)
        by_container.setdefault(container, []).append((src_item, tgt_item, index))
        attachments.append((container, src_item, tgt_item))
    return by_container, attachments


def layout_layered(graph: LogicalGraph, opts: LayoutOptions, hooks: LayeredHooks) -> PositionedLayout:
    """Lay out a validated graph with nested containers; returns the positioned layout."""
    owners = node_owners(graph)
    root = _build_containers(graph, owners)
    paths = _container_paths(graph, owners)
    edges = [hooks.style_edge(edge) for edge in graph.edges]
    edges_by_container, attachments = _attach_edges(edges, paths)
    order = {node_id: i for i, node_id in enumerate(graph.nodes)}
    positioner = SugiyamaLayout(opts.node_spacing, opts.layer_spacing)

    def lay(container: _Container) -> tuple[_Laid, int]:
        items: list[tuple[int, NodeData]] = []
        for node_id in container.node_ids:
            node = graph.nodes[node_id]
            width, height = hooks.measure(node, opts)
            items.append((order[node_id], NodeData(id=node_id, width=width, height=height, label=node.label, shape=node.shape)))

        children: dict[str, _Laid] = {}
        for child in container.children:
            laid, first = lay(child)
            item_id = f"{COMPOUND_PREFIX}{child.id}"
            children[item_id] = laid
            width, height = frame_size(laid.placement.width, laid.placement.height, child.title, opts)
            items.append((first, NodeData(id=item_id, width=width, height=height, label=child.title)))

        items.sort(key=lambda pair: pair[0])
        gir = GraphIR.from_items([data for _, data in items], edges_by_container.get(container.id, []), container.direction)
        placement = positioner.layout(gir)
        first = items[0][0] if items else len(order)
        return _Laid(container=container, placement=placement, children=children), first

    root_laid, _ = lay(root)

    node_boxes: dict[str, Box] = {}
    anchors: dict[str, Box] = {}
    frames: dict[str | None, _Frame] = {}

    def place(laid: _Laid, origin: Point) -> None:
        frame = _Frame(placement=laid.placement, origin=origin, axes=Axes(laid.container.direction))
        frames[laid.container.id] = frame
        for item_id, box in laid.placement.boxes.items():
            if item_id.startswith(DUMMY_PREFIX):
                continue
            placed = frame.absolute(box)
            child = laid.children.get(item_id)
            if child is None:
                node_boxes[item_id] = placed
                continue
            anchors[child.container.id] = placed
            dx, dy = content_offset(placed.width, child.placement.width, child.container.title, opts)
            place(child, Point(placed.x + dx, placed.y + dy))

    place(root_laid, Point(opts.padding, opts.padding))

    flat: nx.DiGraph = nx.DiGraph()
    flat.add_nodes_from(graph.nodes)
    flat.add_edges_from((edge.source, edge.target) for edge in edges)
    ranks = global_ranks(flat)

    paths_out: list[list[Point]] = []
    for edge, (container, src_item, tgt_item) in zip(edges, attachments):
        frame = frames[container]
        if edge.source == edge.target:
            points = self_loop(node_boxes[edge.source], frame.axes, opts.node_spacing / 2)
        else:
            points = _route(frames, anchors, paths, container, edge, src_item, tgt_item, node_boxes)
        paths_out.append(apply_arrow_clearance(points, edge.has_arrow_start, edge.has_arrow_end))

    label_positions = place_labels(paths_out, [edge.label for edge in edges], opts.edge_font_size)

    positioned_nodes = []
    for node_id, node in graph.nodes.items():
        pn = hooks.position_node(node, node_boxes[node_id], opts)
        pn.rank = ranks[node_id]
        pn.inline_style = resolve_node_style(graph, node_id)
        positioned_nodes.append(pn)

    positioned_edges = [
        PositionedEdge(
            source=edge.source,
            target=edge.target,
            label=edge.label,
            style=edge.style,
            has_arrow_start=edge.has_arrow_start,
            has_arrow_end=edge.has_arrow_end,
            points=points,
            label_position=label_pos,
            source_rank=ranks[edge.source],
            target_rank=ranks[edge.target],
            relation=edge.relation,
            source_cardinality=edge.source_cardinality,
            target_cardinality=edge.target_cardinality,
        )
        for edge, points, label_pos in zip(edges, paths_out, label_positions)
    ]

    groups = build_groups(graph.subgraphs, node_boxes, opts, anchors=anchors, ranks=ranks, owners=owners)

    logger.debug(
        "layered layout: %d nodes, %d edges, %d containers", len(positioned_nodes), len(positioned_edges), len(frames)
    )
    return PositionedLayout(
        width=root_laid.placement.width + 2 * opts.padding,
        height=root_laid.placement.height + 2 * opts.padding,
        nodes=positioned_nodes,
        edges=positioned_edges,
        groups=groups,
        kind=hooks.kind,
    )


def _route(
    frames: dict[str | None, _Frame],
    anchors: dict[str, Box],
    paths: dict[str, list[str | None]],
    container: str | None,
    edge: Edge,
    src_item: str,
    tgt_item: str,
    node_boxes: dict[str, Box],
) -> list[Point]:
    """Route between two items of one container; back edges are routed forward then reversed.

    An endpoint nested deeper than ``container`` first leaves (or finally
    enters) its own frames through free space, so the route never crosses
    the frames' other members.
    """
    frame = frames[container]
    placement = frame.placement
    source, target = edge.source, edge.target
    backward = (src_item, tgt_item) in placement.reversed_edges
    if backward:
        source, target = target, source
        src_item, tgt_item = tgt_item, src_item

    depth = paths[source].index(container)
    lead_out = _escape(frames, anchors, paths[source], depth, source, node_boxes[source], leaving=True)
    lead_in = _escape(frames, anchors, paths[target], depth, target, node_boxes[target], leaving=False)

    chain = placement.dummy_chains.get((src_item, tgt_item), [])
    waypoints = [frame.absolute(placement.boxes[dummy_id]).center for dummy_id in chain]
    first_layer = placement.layers[src_item]
    offset = frame.primary_offset()
    gap_lines = []
    for k in range(len(chain) + 1):
        gap = placement.gap_line(src_item, first_layer + k)
        if gap is not None:
            gap_lines.append(gap + offset)

    middle = route_edge(
        node_boxes[source],
        node_boxes[target],
        waypoints,
        gap_lines,
        frame.axes,
        start=lead_out[-1] if lead_out else None,
        end=lead_in[-1] if lead_in else None,
    )
    points = simplify_path([*lead_out, *middle, *reversed(lead_in)])
    if backward:
        points.reverse()
    return points


# ─── Leaving nested frames ───────────────────────────────────────────────────

_EXIT_SIDE = {Direction.TD: "bottom", Direction.BT: "top", Direction.LR: "right", Direction.RL: "left"}
_OPPOSITE = {"top": "bottom", "bottom": "top", "left": "right", "right": "left"}


def _side(direction: Direction, leaving: bool) -> str:
    side = _EXIT_SIDE[direction]
    return side if leaving else _OPPOSITE[side]


def _side_line(box: Box, side: str) -> float:
    return {"top": box.y, "bottom": box.bottom, "left": box.x, "right": box.right}[side]


def _on_side(box: Box, side: str, along: float) -> Point:
    if side in ("top", "bottom"):
        return Point(along, _side_line(box, side))
    return Point(_side_line(box, side), along)


def _corner(box: Box, a: str, b: str) -> Point:
    sides = {a, b}
    return Point(box.x if "left" in sides else box.right, box.y if "top" in sides else box.bottom)


def _walk_ring(ring: Box, here: Point, start: str, goal: str) -> list[Point]:
    """Corners passed going round ``ring`` from side ``start`` to side ``goal``."""
    if goal == start:
        return []
    if goal != _OPPOSITE[start]:
        return [_corner(ring, start, goal)]
    if start in ("top", "bottom"):
        via = "left" if here.x - ring.x <= ring.right - here.x else "right"
    else:
        via = "top" if here.y - ring.y <= ring.bottom - here.y else "bottom"
    return [_corner(ring, start, via), _corner(ring, via, goal)]


def _channels(frame: _Frame, ring: Box, item: str) -> tuple[float, float]:
    """Secondary coordinates of the free lanes on either side of ``item``'s component."""
    axes, placement = frame.axes, frame.placement
    spans = placement.component_spans
    index = placement.component[item]
    base = frame.secondary_offset()
    lo, hi = spans[index]
    if index > 0:
        low = base + (spans[index - 1][1] + lo) / 2
    else:
        low = axes.sec(Point(ring.x, ring.y))
    if index + 1 < len(spans):
        high = base + (hi + spans[index + 1][0]) / 2
    else:
        high = axes.sec(Point(ring.right, ring.bottom))
    return low, high


def _leave_frame(frame: _Frame, frame_box: Box, outer: Axes, item: str, start: Point, leaving: bool) -> list[Point]:
    """Path from ``start`` on ``item`` to the border of the frame around it.

    Goes to the rank gap next to the item, along it into the lane beside
    the item's component, then into the frame padding and round it to the
    side facing the enclosing container's flow. ``leaving`` selects the
    exit side; otherwise the path leads back out of the entry side.
    """
    axes, placement = frame.axes, frame.placement
    content = frame.content()
    left, top = (frame_box.x + content.x) / 2, (frame_box.y + content.y) / 2
    right, bottom = (content.right + frame_box.right) / 2, (content.bottom + frame_box.bottom) / 2
    ring = Box(left, top, right - left, bottom - top)

    layer = placement.layers[item]
    gap = placement.gap_line(item, layer if leaving else layer - 1)
    sec = axes.sec(start)
    points = [start]
    if gap is not None:
        gap += frame.primary_offset()
        low, high = _channels(frame, ring, item)
        lane = low if sec - low <= high - sec else high
        points.append(axes.point(sec, gap))
        points.append(axes.point(lane, gap))
        sec = lane

    inner_side = _side(axes.direction, leaving)
    outer_side = _side(outer.direction, leaving)
    # a lane spans the whole content, so it reaches the opposite side directly
    along = outer_side if gap is not None and outer_side == _OPPOSITE[inner_side] else inner_side
    points.append(axes.point(sec, _side_line(ring, along)))
    points.extend(_walk_ring(ring, points[-1], along, outer_side))
    last = points[-1]
    points.append(_on_side(frame_box, outer_side, last.x if outer_side in ("top", "bottom") else last.y))
    return points


def _escape(
    frames: dict[str | None, _Frame],
    anchors: dict[str, Box],
    path: list[str | None],
    depth: int,
    node_id: str,
    node_box: Box,
    leaving: bool,
) -> list[Point]:
    """Path from a node out through every frame below the container at ``depth``.

    Listed from the node outward; empty when the node sits in that container.
    """
    points: list[Point] = []
    item, box = node_id, node_box
    for level in range(len(path) - 1, depth, -1):
        container_id = path[level]
        frame = frames[container_id]
        if points:
            start = points[-1]
        else:
            start = frame.axes.exit_anchor(box) if leaving else frame.axes.entry_anchor(box)
        points.extend(_leave_frame(frame, anchors[container_id], frames[path[level - 1]].axes, item, start, leaving))
        item, box = f"{COMPOUND_PREFIX}{container_id}", anchors[container_id]
    return points
