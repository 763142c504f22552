"""Group geometry: bounding boxes for subgraphs, composite states and namespaces."""

from __future__ import annotations

from mermaid_layout.config import LayoutOptions
from mermaid_layout.geometry import Box, measure_label, union_boxes
from mermaid_layout.ir.model import Subgraph
from mermaid_layout.layout.types import PositionedGroup


def group_title(sg: Subgraph) -> str:
    return sg.label or sg.id


def header_height(title: str, opts: LayoutOptions) -> float:
    """Height of the label band above a group's content."""
    if not title:
        return 0.0
    _, text_h = measure_label(title, opts.group_font_size, opts.group_font_weight)
    return text_h + opts.group_padding_y


def title_width(title: str, opts: LayoutOptions) -> float:
    text_w, _ = measure_label(title, opts.group_font_size, opts.group_font_weight)
    return text_w + 2 * opts.group_padding_x


def frame_size(content_w: float, content_h: float, title: str, opts: LayoutOptions) -> tuple[float, float]:
    """Outer size of a group wrapping content of the given size."""
    width = max(content_w + 2 * opts.group_padding_x, title_width(title, opts))
    height = content_h + header_height(title, opts) + 2 * opts.group_padding_y
    return width, height


def content_offset(frame_w: float, content_w: float, title: str, opts: LayoutOptions) -> tuple[float, float]:
    """Offset of the content origin inside a frame; content is centred horizontally."""
    return (frame_w - content_w) / 2, header_height(title, opts) + opts.group_padding_y


def build_groups(
    subgraphs: list[Subgraph],
    node_boxes: dict[str, Box],
    opts: LayoutOptions,
    anchors: dict[str, Box] | None = None,
    ranks: dict[str, int] | None = None,
    owners: dict[str, str | None] | None = None,
) -> list[PositionedGroup]:
    """Compute group boxes bottom-up from the placed member nodes.

    A group's box is the union of its member node boxes and child group
    boxes, expanded by the group padding plus a header band. Groups without
    any placed content use their anchor box when one is given, otherwise a
    header-sized box at the origin. With ``owners`` given, a listed member
    only counts for the group that actually holds it (or an ancestor).
    """
    anchors = anchors or {}
    ranks = ranks or {}

    def build(sg: Subgraph) -> tuple[PositionedGroup, list[str], set[str]]:
        built = [build(child) for child in sg.children]
        children = [group for group, _, _ in built]
        subtree = {sg.id}
        for _, _, nested_ids in built:
            subtree |= nested_ids

        members = [
            nid for nid in sg.node_ids if nid in node_boxes and (owners is None or owners.get(nid) in subtree)
        ]
        descendants = list(members)
        for _, nested, _ in built:
            descendants.extend(nid for nid in nested if nid not in descendants)

        title = group_title(sg)
        content = union_boxes([node_boxes[nid] for nid in members] + [c.box for c in children])
        if content is None:
            box = anchors.get(sg.id) or Box(0.0, 0.0, *frame_size(0.0, 0.0, title, opts))
        else:
            box = content.expanded(
                opts.group_padding_x,
                opts.group_padding_y + header_height(title, opts),
                opts.group_padding_y,
            )
            min_w = title_width(title, opts)
            if box.width < min_w:
                box = Box(box.center.x - min_w / 2, box.y, min_w, box.height)

        member_ranks = [ranks[nid] for nid in descendants if nid in ranks]
        group = PositionedGroup(
            id=sg.id,
            label=title,
            x=box.x,
            y=box.y,
            width=box.width,
            height=box.height,
            children=children,
            rank=min(member_ranks) if member_ranks else None,
        )
        return group, descendants, subtree

    return [build(sg)[0] for sg in subgraphs]
