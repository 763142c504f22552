"""Orthogonal edge routing and edge-label placement.

Edges are routed in the coordinate frame of the positioner: the primary axis
follows the ranks, the secondary axis runs across them. A route leaves the
source through the side facing the flow, changes secondary position only on
the midline of a gap between two ranks, passes through the centres of its
dummy nodes and enters the target through the side facing back.
"""

from __future__ import annotations

from dataclasses import dataclass

from mermaid_layout.geometry import (
    ARROW_CLEARANCE,
    LABEL_GAP,
    Box,
    Point,
    arc_midpoint,
    measure_label,
    pull_back,
)
from mermaid_layout.types import Direction

MAX_LABEL_NUDGES: int = 6


@dataclass(frozen=True)
class Axes:
    """Maps between canvas points and (secondary, primary) frame coordinates."""

    direction: Direction

    def prim(self, p: Point) -> float:
        return p.x if self.direction.is_horizontal else p.y

    def sec(self, p: Point) -> float:
        return p.y if self.direction.is_horizontal else p.x

    def point(self, sec: float, prim: float) -> Point:
        if self.direction.is_horizontal:
            return Point(prim, sec)
        return Point(sec, prim)

    def exit_anchor(self, box: Box) -> Point:
        """Centre of the side facing the flow direction."""
        c = box.center
        return {
            Direction.TD: Point(c.x, box.bottom),
            Direction.BT: Point(c.x, box.y),
            Direction.LR: Point(box.right, c.y),
            Direction.RL: Point(box.x, c.y),
        }[self.direction]

    def entry_anchor(self, box: Box) -> Point:
        """Centre of the side facing against the flow direction."""
        c = box.center
        return {
            Direction.TD: Point(c.x, box.y),
            Direction.BT: Point(c.x, box.bottom),
            Direction.LR: Point(box.x, c.y),
            Direction.RL: Point(box.right, c.y),
        }[self.direction]


# ─── Path helpers ────────────────────────────────────────────────────────────


def simplify_path(path: list[Point]) -> list[Point]:
    """Drop repeated and collinear intermediate points, keeping only direction changes."""
    deduped: list[Point] = []
    for p in path:
        if not deduped or (p.x, p.y) != (deduped[-1].x, deduped[-1].y):
            deduped.append(p)
    if len(deduped) <= 2:
        return deduped

    result = [deduped[0]]
    for i in range(1, len(deduped) - 1):
        prev = result[-1]
        curr = deduped[i]
        nxt = deduped[i + 1]
        cross = (curr.x - prev.x) * (nxt.y - curr.y) - (curr.y - prev.y) * (nxt.x - curr.x)
        dot = (curr.x - prev.x) * (nxt.x - curr.x) + (curr.y - prev.y) * (nxt.y - curr.y)
        # Keep point if direction changes
        if cross != 0 or dot < 0:
            result.append(curr)
    result.append(deduped[-1])
    return result


def route_edge(
    source: Box,
    target: Box,
    waypoints: list[Point],
    gap_lines: list[float],
    axes: Axes,
    start: Point | None = None,
    end: Point | None = None,
) -> list[Point]:
    """Route one edge in layering direction from ``source`` to ``target``.

    ``waypoints`` are the dummy-node centres on the intermediate ranks and
    ``gap_lines`` the primary coordinates of the rank gaps crossed, one more
    than there are waypoints. ``start`` and ``end`` replace the exit and
    entry anchors when the edge arrives from, or continues into, a nested
    frame.
    """
    first = axes.exit_anchor(source) if start is None else start
    last = axes.entry_anchor(target) if end is None else end
    stations = [first, *waypoints, last]
    path = [stations[0]]
    for i in range(len(stations) - 1):
        a, b = stations[i], stations[i + 1]
        if axes.sec(a) != axes.sec(b):
            gap = gap_lines[i] if i < len(gap_lines) else (axes.prim(a) + axes.prim(b)) / 2
            path.append(axes.point(axes.sec(a), gap))
            path.append(axes.point(axes.sec(b), gap))
        path.append(b)
    return simplify_path(path)


def self_loop(box: Box, axes: Axes, extent: float) -> list[Point]:
    """Small rectangular loop on the trailing side of ``box``."""
    if axes.direction.is_horizontal:
        quarter = box.width / 4
        cx = box.center.x
        return [
            Point(cx - quarter, box.bottom),
            Point(cx - quarter, box.bottom + extent),
            Point(cx + quarter, box.bottom + extent),
            Point(cx + quarter, box.bottom),
        ]
    quarter = box.height / 4
    cy = box.center.y
    return [
        Point(box.right, cy - quarter),
        Point(box.right + extent, cy - quarter),
        Point(box.right + extent, cy + quarter),
        Point(box.right, cy + quarter),
    ]


def apply_arrow_clearance(points: list[Point], has_arrow_start: bool, has_arrow_end: bool) -> list[Point]:
    """Pull arrowheaded ends back so the marker tip meets the node border."""
    if has_arrow_end:
        points = pull_back(points, ARROW_CLEARANCE)
    if has_arrow_start:
        points = pull_back(points, ARROW_CLEARANCE, at_start=True)
    return points


# ─── Labels ──────────────────────────────────────────────────────────────────


def _nudge_sequence(limit: int) -> list[int]:
    steps = [0]
    for k in range(1, limit + 1):
        steps.extend((k, -k))
    return steps


def place_labels(
    paths: list[list[Point]],
    labels: list[str | None],
    font_size: float,
    occupied: list[Box] | None = None,
) -> list[Point | None]:
    """Place edge labels at arc-length midpoints, nudging away from earlier labels.

    Labels are handled in order; each one keeps the first candidate position
    whose box does not overlap a label placed before it. When every attempt
    collides the midpoint is used anyway.
    """
    placed: list[Box] = list(occupied or [])
    positions: list[Point | None] = []

    for points, label in zip(paths, labels):
        if not label:
            positions.append(None)
            continue
        width, height = measure_label(label, font_size)
        mid, (dx, dy) = arc_midpoint(points)
        perp = (-dy, dx)
        step = height + LABEL_GAP

        chosen = mid
        for k in _nudge_sequence(MAX_LABEL_NUDGES):
            center = Point(mid.x + perp[0] * step * k, mid.y + perp[1] * step * k)
            if not any(Box.around(center, width, height).overlaps(other) for other in placed):
                chosen = center
                break
        placed.append(Box.around(chosen, width, height))
        positions.append(chosen)

    return positions
