"""Sequence diagram strategy.

Participants become fixed-order lifeline columns and messages horizontal
segments at increasing y. The layout is a single top-to-bottom walk over
the messages in which blocks, dividers and notes claim their own vertical
bands. Activation spans are tracked with one explicit stack per participant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import networkx as nx

from mermaid_layout.config import LayoutOptions
from mermaid_layout.errors import ActivationError, BlockRangeError
from mermaid_layout.geometry import LABEL_GAP, Box, Point, measure_label, node_size, union_boxes
from mermaid_layout.ir.graph import resolve_node_style
from mermaid_layout.ir.model import Block, LogicalGraph, Note
from mermaid_layout.layout.groups import header_height, title_width
from mermaid_layout.layout.routing import apply_arrow_clearance
from mermaid_layout.layout.sugiyama import global_ranks
from mermaid_layout.layout.types import (
    Activation,
    GroupDivider,
    Lifeline,
    PositionedEdge,
    PositionedGroup,
    PositionedLayout,
    PositionedNode,
    PositionedNote,
)
from mermaid_layout.types import DiagramKind, NotePlacement

logger = logging.getLogger(__name__)

SELF_LOOP_WIDTH: float = 30
SELF_LOOP_HEIGHT: float = 20
NOTE_GAP: float = 10


def participant_order(graph: LogicalGraph) -> list[str]:
    """Explicit declaration order, then first appearance in messages, then the rest."""
    order: list[str] = []
    seen: set[str] = set()

    def add(node_id: str) -> None:
        if node_id not in seen:
            seen.add(node_id)
            order.append(node_id)

    for node_id in graph.participants:
        add(node_id)
    for edge in graph.edges:
        add(edge.source)
        add(edge.target)
    for node_id in graph.nodes:
        add(node_id)
    return order


def message_ranks(order: list[str], graph: LogicalGraph) -> dict[str, int]:
    """Rank participants by the message graph so the scheduler reveals senders before receivers.

    Replies that close a cycle become back edges; self messages are ignored.
    """
    flat: nx.DiGraph = nx.DiGraph()
    flat.add_nodes_from(order)
    flat.add_edges_from((edge.source, edge.target) for edge in graph.edges)
    return global_ranks(flat)


# ─── Blocks ──────────────────────────────────────────────────────────────────


@dataclass
class _BlockNode:
    index: int
    block: Block
    children: list[_BlockNode] = field(default_factory=list)
    top: float = 0.0
    bottom: float = 0.0
    dividers: list[GroupDivider] = field(default_factory=list)


def nest_blocks(blocks: list[Block], message_count: int) -> list[_BlockNode]:
    """Arrange blocks into a forest by range containment.

    Raises BlockRangeError for ranges outside the message list, dividers
    outside their block, and blocks that partially overlap.
    """
    for index, block in enumerate(blocks):
        if not 0 <= block.start <= block.end < message_count:
            raise BlockRangeError(
                f"{block.kind.value} block #{index} spans messages {block.start}..{block.end} "
                f"but only {message_count} messages exist"
            )
        for divider in block.dividers:
            if not block.start < divider.index <= block.end:
                raise BlockRangeError(f"divider at message {divider.index} lies outside {block.kind.value} block #{index}")

    roots: list[_BlockNode] = []
    stack: list[_BlockNode] = []
    for index in sorted(range(len(blocks)), key=lambda i: (blocks[i].start, -blocks[i].end, i)):
        node = _BlockNode(index=index, block=blocks[index])
        while stack and stack[-1].block.end < node.block.start:
            stack.pop()
        if stack:
            parent = stack[-1]
            if node.block.end > parent.block.end:
                raise BlockRangeError(f"block #{index} partially overlaps block #{parent.index}")
            parent.children.append(node)
        else:
            roots.append(node)
        stack.append(node)
    return roots


def _block_title(block: Block) -> str:
    return f"{block.kind.value} [{block.label}]" if block.label else block.kind.value


def _walk_blocks(roots: list[_BlockNode]) -> list[_BlockNode]:
    result: list[_BlockNode] = []
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        result.append(node)
        stack.extend(reversed(node.children))
    return result


# ─── Strategy ────────────────────────────────────────────────────────────────


@dataclass
class _OpenSpan:
    top: float
    depth: int


class SequenceStrategy:
    kind = DiagramKind.Sequence

    def layout(self, graph: LogicalGraph, opts: LayoutOptions) -> PositionedLayout:
        order = participant_order(graph)
        column = {node_id: i for i, node_id in enumerate(order)}
        sizes = [node_size(graph.nodes[nid].label, graph.nodes[nid].shape, opts) for nid in order]
        messages = graph.edges
        block_roots = nest_blocks(graph.blocks, len(messages))

        centers = self._columns(graph, order, column, sizes, opts)
        header_h = max((h for _, h in sizes), default=0.0)
        lifeline_top = opts.padding + header_h

        starting: dict[int, list[_BlockNode]] = {}
        ending: dict[int, list[_BlockNode]] = {}
        for node in _walk_blocks(block_roots):
            starting.setdefault(node.block.start, []).append(node)
            ending.setdefault(node.block.end, []).append(node)
        for nodes in ending.values():
            nodes.reverse()
        notes_after: dict[int, list[Note]] = {}
        for note in graph.notes:
            notes_after.setdefault(note.after, []).append(note)

        cursor = lifeline_top + opts.message_spacing / 2
        last_bottom = cursor
        stacks: dict[str, list[_OpenSpan]] = {nid: [] for nid in order}
        activations: list[Activation] = []
        positioned_notes: list[PositionedNote] = []
        edge_points: list[list[Point]] = []
        label_positions: list[Point | None] = []

        def place_note(note: Note) -> None:
            nonlocal cursor, last_bottom
            positioned = self._note(note, centers, column, cursor, opts)
            positioned_notes.append(positioned)
            last_bottom = positioned.y + positioned.height
            cursor = last_bottom + opts.message_spacing / 2

        for note in notes_after.get(-1, []):
            place_note(note)

        for index, edge in enumerate(messages):
            # a divider closes the previous section before any block opening here
            for node in _walk_blocks(block_roots):
                for divider in node.block.dividers:
                    if divider.index == index:
                        node.dividers.append(GroupDivider(y=cursor, label=divider.label))
                        cursor += header_height(divider.label, opts) + opts.block_margin
            for node in starting.get(index, []):
                node.top = cursor
                cursor += header_height(_block_title(node.block), opts) + opts.block_margin

            label_w, label_h = measure_label(edge.label, opts.edge_font_size) if edge.label else (0.0, 0.0)
            if edge.label:
                cursor += label_h + LABEL_GAP
            y = cursor
            sx, tx = centers[column[edge.source]], centers[column[edge.target]]
            if edge.source == edge.target:
                points = [
                    Point(sx, y),
                    Point(sx + SELF_LOOP_WIDTH, y),
                    Point(sx + SELF_LOOP_WIDTH, y + SELF_LOOP_HEIGHT),
                    Point(sx, y + SELF_LOOP_HEIGHT),
                ]
                bottom = y + SELF_LOOP_HEIGHT
                label_pos = Point(sx + SELF_LOOP_WIDTH + LABEL_GAP + label_w / 2, y + SELF_LOOP_HEIGHT / 2)
            else:
                points = [Point(sx, y), Point(tx, y)]
                bottom = y
                label_pos = Point((sx + tx) / 2, y - LABEL_GAP - label_h / 2)
            edge_points.append(apply_arrow_clearance(points, edge.has_arrow_start, edge.has_arrow_end))
            label_positions.append(label_pos if edge.label else None)

            if edge.deactivate:
                stack = stacks[edge.source]
                if not stack:
                    raise ActivationError(edge.source, f"message #{index} deactivates without an open activation")
                span = stack.pop()
                activations.append(self._activation(edge.source, span, bottom, centers[column[edge.source]], opts))
            if edge.activate:
                stack = stacks[edge.target]
                stack.append(_OpenSpan(top=bottom, depth=len(stack)))

            last_bottom = bottom
            cursor = bottom + opts.message_spacing

            for note in notes_after.get(index, []):
                place_note(note)
            for node in ending.get(index, []):
                node.bottom = last_bottom + opts.block_margin
                last_bottom = node.bottom
                cursor = max(cursor, node.bottom + opts.block_margin)

        for nid, stack in stacks.items():
            if stack:
                raise ActivationError(nid, f"{len(stack)} activation(s) never closed")

        lifeline_bottom = max(cursor - opts.message_spacing / 2, last_bottom + opts.message_spacing / 2)
        ranks = message_ranks(order, graph)
        nodes = [
            PositionedNode(
                id=nid,
                label=graph.nodes[nid].label,
                shape=graph.nodes[nid].shape,
                x=centers[i] - sizes[i][0] / 2,
                y=opts.padding + (header_h - sizes[i][1]) / 2,
                width=sizes[i][0],
                height=sizes[i][1],
                corner_radius=opts.corner_radius,
                inline_style=resolve_node_style(graph, nid),
                rank=ranks[nid],
            )
            for i, nid in enumerate(order)
        ]
        edges = [
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
            )
            for edge, points, label_pos in zip(messages, edge_points, label_positions)
        ]
        groups = [self._group(root, graph, column, centers, ranks, opts) for root in block_roots]
        lifelines = [Lifeline(participant=nid, x=centers[i], top=lifeline_top, bottom=lifeline_bottom) for i, nid in enumerate(order)]
        activations.sort(key=lambda a: (a.top, a.x, a.depth))

        layout = PositionedLayout(
            width=0.0,
            height=lifeline_bottom + opts.padding,
            nodes=nodes,
            edges=edges,
            groups=groups,
            kind=DiagramKind.Sequence,
            lifelines=lifelines,
            activations=activations,
            notes=positioned_notes,
        )
        _fit_width(layout, opts)
        logger.debug(
            "sequence layout: %d participants, %d messages, %d blocks", len(nodes), len(edges), len(graph.blocks)
        )
        return layout

    def _columns(
        self,
        graph: LogicalGraph,
        order: list[str],
        column: dict[str, int],
        sizes: list[tuple[float, float]],
        opts: LayoutOptions,
    ) -> list[float]:
        """Lifeline x positions; gaps widen until message labels and notes fit."""
        if not order:
            return []
        gaps = [(sizes[i][0] + sizes[i + 1][0]) / 2 + opts.actor_gap for i in range(len(order) - 1)]
        left_reach = sizes[0][0] / 2

        def need_right(i: int, reach: float) -> None:
            if i < len(gaps):
                gaps[i] = max(gaps[i], reach + opts.actor_gap / 2)

        spans: list[tuple[int, int, float]] = []
        for edge in graph.edges:
            if not edge.label:
                continue
            label_w, _ = measure_label(edge.label, opts.edge_font_size)
            a, b = column[edge.source], column[edge.target]
            if a == b:
                need_right(a, SELF_LOOP_WIDTH + LABEL_GAP + label_w)
            else:
                spans.append((min(a, b), max(a, b), label_w + opts.actor_gap))

        for note in graph.notes:
            if note.placement is NotePlacement.Over or not note.participant_ids:
                continue
            note_w, _ = self._note_size(note, opts)
            i = column[note.participant_ids[0]]
            if note.placement is NotePlacement.Right:
                need_right(i, NOTE_GAP + note_w)
            elif i > 0:
                need_right(i - 1, NOTE_GAP + note_w)
            else:
                left_reach = max(left_reach, NOTE_GAP + note_w)

        for lo, hi, need in sorted(spans, key=lambda s: (s[1] - s[0], s[0])):
            have = sum(gaps[lo:hi])
            if have < need:
                extra = (need - have) / (hi - lo)
                for k in range(lo, hi):
                    gaps[k] += extra

        centers = [opts.padding + left_reach]
        for gap in gaps:
            centers.append(centers[-1] + gap)
        return centers

    @staticmethod
    def _note_size(note: Note, opts: LayoutOptions) -> tuple[float, float]:
        text_w, text_h = measure_label(note.text, opts.font_size, 400, opts.letter_spacing)
        return text_w + 2 * opts.node_padding_x, text_h + 2 * opts.node_padding_y

    def _note(
        self, note: Note, centers: list[float], column: dict[str, int], y: float, opts: LayoutOptions
    ) -> PositionedNote:
        width, height = self._note_size(note, opts)
        xs = [centers[column[pid]] for pid in note.participant_ids]
        if note.placement is NotePlacement.Left:
            x = xs[0] - NOTE_GAP - width
        elif note.placement is NotePlacement.Right:
            x = xs[0] + NOTE_GAP
        else:
            span_w = max(xs) - min(xs) + 2 * NOTE_GAP
            width = max(width, span_w)
            x = (min(xs) + max(xs)) / 2 - width / 2
        return PositionedNote(
            text=note.text,
            placement=note.placement,
            participants=list(note.participant_ids),
            x=x,
            y=y,
            width=width,
            height=height,
        )

    @staticmethod
    def _activation(participant: str, span: _OpenSpan, bottom: float, center: float, opts: LayoutOptions) -> Activation:
        width = opts.activation_width
        return Activation(
            participant=participant,
            x=center - width / 2 + span.depth * width / 2,
            top=span.top,
            bottom=max(bottom, span.top),
            width=width,
            depth=span.depth,
        )

    def _group(
        self,
        node: _BlockNode,
        graph: LogicalGraph,
        column: dict[str, int],
        centers: list[float],
        ranks: dict[str, int],
        opts: LayoutOptions,
    ) -> PositionedGroup:
        children = [self._group(child, graph, column, centers, ranks, opts) for child in node.children]
        reach = opts.block_margin + opts.activation_width
        lefts: list[float] = []
        rights: list[float] = []
        involved: set[str] = set()
        for edge in graph.edges[node.block.start : node.block.end + 1]:
            involved.update((edge.source, edge.target))
            for endpoint in (edge.source, edge.target):
                lefts.append(centers[column[endpoint]] - reach)
                rights.append(centers[column[endpoint]] + reach)
            if edge.source == edge.target:
                rights.append(centers[column[edge.source]] + SELF_LOOP_WIDTH + opts.block_margin)
        children_box = union_boxes([child.box for child in children])
        if children_box is not None:
            lefts.append(children_box.x - opts.block_margin)
            rights.append(children_box.right + opts.block_margin)

        title = _block_title(node.block)
        left, right = min(lefts), max(rights)
        width = max(right - left, title_width(title, opts))
        box = Box(left, node.top, width, node.bottom - node.top)
        return PositionedGroup(
            id=f"block-{node.index}",
            label=title,
            x=box.x,
            y=box.y,
            width=box.width,
            height=box.height,
            children=children,
            rank=min(ranks[pid] for pid in involved),
            dividers=list(node.dividers),
        )


def _fit_width(layout: PositionedLayout, opts: LayoutOptions) -> None:
    """Shift everything right so nothing starts left of the padding, then set the width."""
    padding = opts.padding
    lefts = [n.x for n in layout.nodes] + [n.x for n in layout.notes] + [a.x for a in layout.activations]
    rights = [n.x + n.width for n in layout.nodes] + [n.x + n.width for n in layout.notes]
    rights += [a.x + a.width for a in layout.activations]
    for edge in layout.edges:
        lefts.extend(p.x for p in edge.points)
        rights.extend(p.x for p in edge.points)
        if edge.label and edge.label_position is not None:
            label_w, _ = measure_label(edge.label, opts.edge_font_size)
            lefts.append(edge.label_position.x - label_w / 2)
            rights.append(edge.label_position.x + label_w / 2)
    stack = list(layout.groups)
    while stack:
        group = stack.pop()
        lefts.append(group.x)
        rights.append(group.x + group.width)
        stack.extend(group.children)
    if not lefts:
        layout.width = 2 * padding
        return

    shift = max(0.0, padding - min(lefts))
    if shift:
        for item in [*layout.nodes, *layout.notes, *layout.activations, *layout.lifelines]:
            item.x += shift
        for edge in layout.edges:
            for p in edge.points:
                p.x += shift
            if edge.label_position is not None:
                edge.label_position.x += shift
        stack = list(layout.groups)
        while stack:
            group = stack.pop()
            group.x += shift
            stack.extend(group.children)
    layout.width = max(rights) + shift + padding
