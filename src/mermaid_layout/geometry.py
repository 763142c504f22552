"""Geometry utilities: points, boxes, text metrics, node sizing, polyline math.

Nothing here depends on the rest of the package except the shape enum and the
options record. All functions are pure.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from mermaid_layout.config import LayoutOptions
from mermaid_layout.errors import UnknownShapeError
from mermaid_layout.types import NodeShape

# ─── Constants ───────────────────────────────────────────────────────────────

LINE_HEIGHT: float = 1.3
DIAMOND_EXTRA: float = 24
ARROW_CLEARANCE: float = 4
LABEL_GAP: float = 4

_NARROW = frozenset("iljtfr.,:;!|'I()[] ")
_WIDE = frozenset("mwMW@%")


# ─── Points & boxes ──────────────────────────────────────────────────────────


@dataclass
class Point:
    """A 2D point in layout coordinates (pixels, y grows downward)."""

    x: float
    y: float


@dataclass
class Box:
    """Axis-aligned rectangle given by its top-left corner and size."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    @classmethod
    def around(cls, center: Point, width: float, height: float) -> Box:
        return cls(center.x - width / 2, center.y - height / 2, width, height)

    def overlaps(self, other: Box) -> bool:
        """True when the interiors intersect; touching edges do not count."""
        return (
            self.x < other.right and other.x < self.right and self.y < other.bottom and other.y < self.bottom
        )

    def contains(self, other: Box) -> bool:
        return (
            other.x >= self.x and other.y >= self.y and other.right <= self.right and other.bottom <= self.bottom
        )

    def expanded(self, dx: float, dy_top: float, dy_bottom: float | None = None) -> Box:
        bottom = dy_top if dy_bottom is None else dy_bottom
        return Box(self.x - dx, self.y - dy_top, self.width + 2 * dx, self.height + dy_top + bottom)


def union_boxes(boxes: list[Box]) -> Box | None:
    if not boxes:
        return None
    min_x = min(b.x for b in boxes)
    min_y = min(b.y for b in boxes)
    max_x = max(b.right for b in boxes)
    max_y = max(b.bottom for b in boxes)
    return Box(min_x, min_y, max_x - min_x, max_y - min_y)


# ─── Text metrics ────────────────────────────────────────────────────────────


def _char_width(ch: str) -> float:
    if ch in _NARROW:
        return 0.3
    if ch in _WIDE:
        return 0.85
    if ch.isupper():
        return 0.68
    if ch.isdigit():
        return 0.56
    return 0.55


def estimate_text_width(text: str, size: float, weight: int = 400, letter_spacing: float = 0) -> float:
    """Estimate the rendered width of one line of text in pixels."""
    if not text:
        return 0.0
    weight_factor = 1 + (weight - 400) * 0.0004
    base = sum(_char_width(ch) for ch in text) * size * weight_factor
    return base + letter_spacing * max(0, len(text) - 1)


def measure_label(text: str, size: float, weight: int = 400, letter_spacing: float = 0) -> tuple[float, float]:
    """Width and height of a possibly multi-line label."""
    lines = text.split("\n") if text else [""]
    width = max(estimate_text_width(line, size, weight, letter_spacing) for line in lines)
    height = size + (len(lines) - 1) * size * LINE_HEIGHT
    return width, height


# ─── Node sizing ─────────────────────────────────────────────────────────────

_Sizer = Callable[[float, float, LayoutOptions], tuple[float, float]]


def _plain(w: float, h: float, _opts: LayoutOptions) -> tuple[float, float]:
    return w, h


def _diamond(w: float, h: float, _opts: LayoutOptions) -> tuple[float, float]:
    side = max(w, h) + DIAMOND_EXTRA
    return side, side


def _circle(w: float, h: float, _opts: LayoutOptions) -> tuple[float, float]:
    diameter = math.ceil(math.hypot(w, h)) + 8
    return diameter, diameter


def _double_circle(w: float, h: float, opts: LayoutOptions) -> tuple[float, float]:
    diameter, _ = _circle(w, h, opts)
    return diameter + 12, diameter + 12


def _slanted(w: float, h: float, opts: LayoutOptions) -> tuple[float, float]:
    return w + opts.node_padding_x, h


def _asymmetric(w: float, h: float, _opts: LayoutOptions) -> tuple[float, float]:
    return w + 12, h


def _cylinder(w: float, h: float, _opts: LayoutOptions) -> tuple[float, float]:
    return w, h + 14


def _pseudostate(_w: float, _h: float, opts: LayoutOptions) -> tuple[float, float]:
    return opts.pseudostate_size, opts.pseudostate_size


SHAPE_SIZERS: dict[NodeShape, _Sizer] = {
    NodeShape.Rectangle: _plain,
    NodeShape.Rounded: _plain,
    NodeShape.Stadium: _plain,
    NodeShape.Subroutine: _plain,
    NodeShape.Diamond: _diamond,
    NodeShape.Circle: _circle,
    NodeShape.DoubleCircle: _double_circle,
    NodeShape.Hexagon: _slanted,
    NodeShape.Trapezoid: _slanted,
    NodeShape.TrapezoidAlt: _slanted,
    NodeShape.Asymmetric: _asymmetric,
    NodeShape.Cylinder: _cylinder,
    NodeShape.StateStart: _pseudostate,
    NodeShape.StateEnd: _pseudostate,
}


def node_size(label: str, shape: NodeShape, opts: LayoutOptions) -> tuple[float, float]:
    """Box size for a node label drawn in the given shape."""
    text_w, text_h = measure_label(label, opts.font_size, opts.font_weight, opts.letter_spacing)
    width = text_w + 2 * opts.node_padding_x
    height = text_h + 2 * opts.node_padding_y
    sizer = SHAPE_SIZERS.get(shape)
    if sizer is None:
        raise UnknownShapeError(shape)
    width, height = sizer(width, height, opts)
    if shape.is_pseudostate:
        return width, height
    return max(width, opts.min_node_width), max(height, opts.min_node_height)


# ─── Polyline math ───────────────────────────────────────────────────────────


def distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def polyline_length(points: list[Point]) -> float:
    return sum(distance(points[i], points[i + 1]) for i in range(len(points) - 1))


def arc_midpoint(points: list[Point]) -> tuple[Point, tuple[float, float]]:
    """Point halfway along the polyline, plus the unit direction of its segment."""
    if not points:
        return Point(0.0, 0.0), (1.0, 0.0)
    if len(points) == 1:
        return Point(points[0].x, points[0].y), (1.0, 0.0)
    remaining = polyline_length(points) / 2
    for i in range(len(points) - 1):
        a, b = points[i], points[i + 1]
        seg = distance(a, b)
        if seg == 0:
            continue
        if remaining <= seg:
            t = remaining / seg
            return Point(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t), ((b.x - a.x) / seg, (b.y - a.y) / seg)
        remaining -= seg
    return Point(points[-1].x, points[-1].y), (1.0, 0.0)


def pull_back(points: list[Point], clearance: float, at_start: bool = False) -> list[Point]:
    """Shorten the polyline's end (or start) by ``clearance`` along its last segment.

    Segments not longer than ``clearance`` are left untouched.
    """
    pts = [Point(p.x, p.y) for p in points]
    if len(pts) < 2 or clearance <= 0:
        return pts
    tip, prev = (pts[0], pts[1]) if at_start else (pts[-1], pts[-2])
    seg = distance(prev, tip)
    if seg <= clearance:
        return pts
    tip.x -= (tip.x - prev.x) / seg * clearance
    tip.y -= (tip.y - prev.y) / seg * clearance
    return pts


def rounded_bends(points: list[Point], radius: float) -> list[tuple[Point, Point, Point]]:
    """Corner arcs for each interior bend as (arc start, corner, arc end).

    The radius is limited to half of each adjacent segment so that consecutive
    arcs never overlap.
    """
    arcs: list[tuple[Point, Point, Point]] = []
    if radius <= 0:
        return arcs
    for i in range(1, len(points) - 1):
        prev, corner, nxt = points[i - 1], points[i], points[i + 1]
        d_in = distance(prev, corner)
        d_out = distance(corner, nxt)
        if d_in == 0 or d_out == 0:
            continue
        r = min(radius, d_in / 2, d_out / 2)
        start = Point(corner.x - (corner.x - prev.x) / d_in * r, corner.y - (corner.y - prev.y) / d_in * r)
        end = Point(corner.x + (nxt.x - corner.x) / d_out * r, corner.y + (nxt.y - corner.y) / d_out * r)
        arcs.append((start, Point(corner.x, corner.y), end))
    return arcs
