"""Tests for layout/groups.py — group frames built from placed member boxes.

Default options: group padding 16 × 12, a 12 px title giving a 24 px header.
"""

from __future__ import annotations

from mermaid_layout.config import LayoutOptions
from mermaid_layout.geometry import Box
from mermaid_layout.ir.model import Subgraph
from mermaid_layout.layout.groups import (
    build_groups,
    content_offset,
    frame_size,
    group_title,
    header_height,
    title_width,
)

OPTS = LayoutOptions()

# ─── Helpers ──────────────────────────────────────────────────────────────────


def boxes() -> dict[str, Box]:
    return {"A": Box(0, 0, 60, 36), "B": Box(100, 0, 60, 36), "C": Box(0, 200, 60, 36)}


def as_tuple(group) -> tuple[float, float, float, float]:
    return group.x, group.y, group.width, group.height


# ─── Frame metrics ────────────────────────────────────────────────────────────


class TestFrameMetrics:
    def test_title_falls_back_to_id(self):
        assert group_title(Subgraph(id="S")) == "S"
        assert group_title(Subgraph(id="S", label="Storage")) == "Storage"

    def test_header_height(self):
        assert header_height("S", OPTS) == 24
        assert header_height("", OPTS) == 0

    def test_empty_frame(self):
        w, h = frame_size(0, 0, "S", OPTS)
        assert h == 48
        assert w == title_width("S", OPTS)

    def test_frame_wraps_content(self):
        assert frame_size(200, 100, "S", OPTS) == (232, 148)

    def test_content_centred_below_header(self):
        assert content_offset(232, 200, "S", OPTS) == (16, 36)
        assert content_offset(300, 200, "S", OPTS) == (50, 36)


# ─── build_groups ─────────────────────────────────────────────────────────────


class TestBuildGroups:
    def test_box_encloses_members(self):
        (group,) = build_groups([Subgraph(id="S", node_ids=["A", "B"])], boxes(), OPTS)
        assert as_tuple(group) == (-16, -36, 192, 84)
        assert group.label == "S"

    def test_removing_member_shrinks_box(self):
        (both,) = build_groups([Subgraph(id="S", node_ids=["A", "B"])], boxes(), OPTS)
        (one,) = build_groups([Subgraph(id="S", node_ids=["A"])], boxes(), OPTS)
        assert one.width < both.width
        assert both.box.contains(one.box)

    def test_narrow_content_widened_to_title(self):
        (group,) = build_groups(
            [Subgraph(id="S", label="A very long storage title", node_ids=["A"])], boxes(), OPTS
        )
        assert group.width == title_width("A very long storage title", OPTS)
        assert group.box.center.x == Box(0, 0, 60, 36).center.x

    def test_empty_group_uses_anchor(self):
        anchor = Box(300, 300, 80, 48)
        (group,) = build_groups([Subgraph(id="E")], boxes(), OPTS, anchors={"E": anchor})
        assert as_tuple(group) == (300, 300, 80, 48)

    def test_empty_group_without_anchor(self):
        (group,) = build_groups([Subgraph(id="E")], boxes(), OPTS)
        assert (group.x, group.y, group.height) == (0, 0, 48)

    def test_nested_groups(self):
        inner = Subgraph(id="inner", node_ids=["A"])
        outer = Subgraph(id="outer", node_ids=["C"], children=[inner])
        (group,) = build_groups([outer], boxes(), OPTS)
        (child,) = group.children
        assert child.id == "inner"
        assert group.box.contains(child.box)
        assert group.box.contains(Box(0, 200, 60, 36))

    def test_min_rank_over_descendants(self):
        inner = Subgraph(id="inner", node_ids=["A"])
        outer = Subgraph(id="outer", node_ids=["C"], children=[inner])
        (group,) = build_groups([outer], boxes(), OPTS, ranks={"A": 1, "C": 3})
        assert group.rank == 1
        assert group.children[0].rank == 1

    def test_rank_none_without_members(self):
        (group,) = build_groups([Subgraph(id="E")], boxes(), OPTS, ranks={"A": 0})
        assert group.rank is None

    def test_owners_exclude_foreign_members(self):
        """A node listed by two sibling groups only counts for its owner."""
        left = Subgraph(id="L", node_ids=["A", "B"])
        right = Subgraph(id="R", node_ids=["B"])
        owners = {"A": "L", "B": "R", "C": None}
        built = build_groups([left, right], boxes(), OPTS, owners=owners)
        assert not built[0].box.contains(Box(100, 0, 60, 36))
        assert built[1].box.contains(Box(100, 0, 60, 36))

    def test_unplaced_members_ignored(self):
        (group,) = build_groups([Subgraph(id="S", node_ids=["A", "ghost"])], boxes(), OPTS)
        assert group.box.contains(Box(0, 0, 60, 36))
