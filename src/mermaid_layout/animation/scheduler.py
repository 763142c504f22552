"""Animation scheduler: per-element reveal delays that follow the graph topology.

Cascade: a source node appears, its outgoing edges draw, and each target node
starts appearing shortly before its latest incoming edge has finished
drawing. Groups appear once most of their content is visible.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from mermaid_layout.config import AnimationOptions
from mermaid_layout.layout.types import PositionedGroup, PositionedLayout, PositionedNode

logger = logging.getLogger(__name__)

# When a group appears relative to its last child (0 = start, 1 = fully done)
GROUP_REVEAL_PROGRESS: float = 0.6


@dataclass
class Schedule:
    """Reveal delays in milliseconds."""

    nodes: dict[str, float] = field(default_factory=dict)
    edges: dict[int, float] = field(default_factory=dict)  # keyed by edge index
    groups: dict[str, float] = field(default_factory=dict)


def compute_delays(
    layout: PositionedLayout,
    options: AnimationOptions | Mapping[str, Any] | bool | None = None,
) -> Schedule:
    """Compute the reveal delay of every node, edge and group of ``layout``.

    ``options`` is resolved like the ``animate`` switch, except that a
    disabled value (``None``/``False``) still schedules with the defaults.
    """
    opts = AnimationOptions.resolve(options) or AnimationOptions()
    schedule = Schedule()
    within_rank = opts.stagger * 0.5
    overlap = opts.duration * opts.node_overlap

    incoming: dict[str, list[int]] = {}
    outgoing: dict[str, list[int]] = {}
    for index, edge in enumerate(layout.edges):
        incoming.setdefault(edge.target, []).append(index)
        outgoing.setdefault(edge.source, []).append(index)

    buckets: dict[int, list[PositionedNode]] = {}
    for node in layout.nodes:
        buckets.setdefault(node.rank or 0, []).append(node)

    for rank in sorted(buckets):
        bucket = sorted(buckets[rank], key=lambda n: (n.x, n.y, n.id))
        for i, node in enumerate(bucket):
            edge_indices = incoming.get(node.id)
            if not edge_indices:
                delay = rank * opts.stagger + i * within_rank
            else:
                latest_end = max(schedule.edges.get(ei, 0.0) + opts.duration for ei in edge_indices)
                delay = latest_end - overlap + i * within_rank
            schedule.nodes[node.id] = delay
            for ei in outgoing.get(node.id, []):
                schedule.edges[ei] = delay + opts.duration

    _collect_group_delays(layout.groups, layout.nodes, opts, schedule)
    logger.debug(
        "scheduled %d nodes, %d edges, %d groups", len(schedule.nodes), len(schedule.edges), len(schedule.groups)
    )
    return schedule


def _collect_group_delays(
    groups: list[PositionedGroup],
    nodes: list[PositionedNode],
    opts: AnimationOptions,
    schedule: Schedule,
) -> None:
    for group in groups:
        _collect_group_delays(group.children, nodes, opts, schedule)
        box = group.box
        latest = max(
            (schedule.nodes[n.id] for n in nodes if n.id in schedule.nodes and box.contains(n.box)),
            default=0.0,
        )
        schedule.groups[group.id] = max(0.0, latest + opts.duration * GROUP_REVEAL_PROGRESS + opts.group_delay)
