"""Sugiyama-style layered graph positioner.

Phases, run per weakly connected component:
  1. Cycle removal (greedy-FAS)
  2. Layer assignment (longest path)
  3. Dummy node insertion
  4. Crossing minimization (barycenter)
  5. Coordinate assignment

Components are stacked along the secondary axis. Coordinates are computed in a
(secondary, primary) frame where the primary axis follows the ranks; the
direction is applied at the end by swapping and mirroring axes.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field

import networkx as nx

from mermaid_layout.geometry import Box
from mermaid_layout.ir.graph import EdgeData, GraphIR, NodeData
from mermaid_layout.layout.types import DUMMY_PREFIX
from mermaid_layout.types import Direction

logger = logging.getLogger(__name__)

MAX_ORDERING_PASSES: int = 8


# ─── Cycle Removal (Greedy-FAS) ─────────────────────────────────────────────


def greedy_fas_ordering(graph: nx.DiGraph) -> list[str]:
    """Compute a node ordering using the greedy-FAS heuristic.

    Ties are broken by node insertion order so the result is reproducible.
    """
    order = list(graph.nodes)
    active: dict[str, None] = dict.fromkeys(order)
    out_deg: dict[str, int] = {}
    in_deg: dict[str, int] = {}
    for node in order:
        out_deg[node] = sum(1 for succ in graph.successors(node) if succ != node)
        in_deg[node] = sum(1 for pred in graph.predecessors(node) if pred != node)

    s1: list[str] = []
    s2: list[str] = []

    def drop(node: str) -> None:
        del active[node]
        for succ in graph.successors(node):
            if succ in active:
                in_deg[succ] -= 1
        for pred in graph.predecessors(node):
            if pred in active:
                out_deg[pred] -= 1

    while active:
        changed = True
        while changed:
            changed = False
            sinks = [n for n in active if out_deg[n] == 0]
            for sink in sinks:
                changed = True
                drop(sink)
                s2.append(sink)

        changed = True
        while changed:
            changed = False
            sources = [n for n in active if in_deg[n] == 0]
            for source in sources:
                changed = True
                drop(source)
                s1.append(source)

        if active:
            best = max(active, key=lambda n: out_deg[n] - in_deg[n])
            drop(best)
            s1.append(best)

    s2.reverse()
    s1.extend(s2)
    return s1


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Remove cycles using greedy-FAS. Returns (dag, reversed_edges).

    Self-loops are reported as reversed and dropped from the DAG.
    """
    if graph.number_of_nodes() == 0:
        return graph.copy(), set()

    ordering = greedy_fas_ordering(graph)
    position: dict[str, int] = {node: pos for pos, node in enumerate(ordering)}

    reversed_edges: set[tuple[str, str]] = set()
    for src, tgt in graph.edges():
        if src == tgt or position[src] > position[tgt]:
            reversed_edges.add((src, tgt))

    new_graph: nx.DiGraph = nx.DiGraph()
    for node_id in graph.nodes:
        new_graph.add_node(node_id, **graph.nodes[node_id])

    for src, tgt, edge_attrs in graph.edges(data=True):
        if src == tgt:
            continue
        if (src, tgt) in reversed_edges:
            new_graph.add_edge(tgt, src, **edge_attrs)
        else:
            new_graph.add_edge(src, tgt, **edge_attrs)

    return new_graph, reversed_edges


# ─── Layer Assignment ────────────────────────────────────────────────────────


def longest_path_ranks(dag: nx.DiGraph) -> dict[str, int]:
    """Rank = length of the longest path from any source to the node."""
    ranks: dict[str, int] = {node_id: 0 for node_id in dag.nodes}
    for node_id in nx.topological_sort(dag):
        for succ in dag.successors(node_id):
            if ranks[succ] < ranks[node_id] + 1:
                ranks[succ] = ranks[node_id] + 1
    return ranks


class LayerAssignment:
    def __init__(self, layers: dict[str, int], layer_count: int, reversed_edges: set[tuple[str, str]]) -> None:
        self.layers = layers
        self.layer_count = layer_count
        self.reversed_edges = reversed_edges

    @classmethod
    def assign(cls, graph: nx.DiGraph) -> tuple[LayerAssignment, nx.DiGraph]:
        """Break cycles and rank the result; returns the assignment and the DAG."""
        dag, reversed_edges = remove_cycles(graph)
        layers = longest_path_ranks(dag)
        layer_count = (max(layers.values()) + 1) if layers else 1
        return cls(layers=layers, layer_count=layer_count, reversed_edges=reversed_edges), dag


def global_ranks(graph: nx.DiGraph) -> dict[str, int]:
    """Rank every node of a flattened graph, ignoring container boundaries."""
    dag, _ = remove_cycles(graph)
    return longest_path_ranks(dag)


# ─── Dummy Node Insertion ────────────────────────────────────────────────────


@dataclass
class AugmentedGraph:
    graph: nx.DiGraph
    layers: dict[str, int]
    layer_count: int
    # DAG edge (src, tgt) → dummy ids on the intermediate ranks, in order
    dummy_chains: dict[tuple[str, str], list[str]] = field(default_factory=dict)


def insert_dummy_nodes(dag: nx.DiGraph, la: LayerAssignment, prefix: str = DUMMY_PREFIX) -> AugmentedGraph:
    """Insert zero-size dummy nodes for edges spanning multiple layers."""
    g: nx.DiGraph = nx.DiGraph()
    for node_id in dag.nodes:
        g.add_node(node_id, **dag.nodes[node_id])

    layers: dict[str, int] = copy.copy(la.layers)
    dummy_chains: dict[tuple[str, str], list[str]] = {}
    edge_counter = 0

    for src_id, tgt_id, attrs in dag.edges(data=True):
        edge_data = attrs.get("data") or EdgeData()
        layer_diff = layers[tgt_id] - layers[src_id]

        if layer_diff <= 1:
            g.add_edge(src_id, tgt_id, data=edge_data)
            continue

        this_edge = edge_counter
        edge_counter += 1
        dummy_ids: list[str] = []
        chain_prev = src_id

        for i in range(layer_diff - 1):
            dummy_id = f"{prefix}{this_edge}_{i}"
            g.add_node(dummy_id, data=NodeData(id=dummy_id, width=0.0, height=0.0, is_dummy=True))
            layers[dummy_id] = layers[src_id] + i + 1
            dummy_ids.append(dummy_id)
            g.add_edge(chain_prev, dummy_id, data=edge_data)
            chain_prev = dummy_id

        g.add_edge(chain_prev, tgt_id, data=edge_data)
        dummy_chains[(src_id, tgt_id)] = dummy_ids

    layer_count = (max(layers.values()) + 1) if layers else 1
    return AugmentedGraph(graph=g, layers=layers, layer_count=layer_count, dummy_chains=dummy_chains)


# ─── Crossing Minimization ───────────────────────────────────────────────────


def discovery_ordering(aug: AugmentedGraph) -> list[list[str]]:
    """Seed ordering: depth-first discovery from sources in declaration order."""
    ordering: list[list[str]] = [[] for _ in range(aug.layer_count)]
    visited: set[str] = set()
    roots = [n for n in aug.graph.nodes if aug.graph.in_degree(n) == 0]
    roots.extend(n for n in aug.graph.nodes if n not in roots)

    for root in roots:
        stack = [root]
        while stack:
            node_id = stack.pop()
            if node_id in visited:
                continue
            visited.add(node_id)
            ordering[aug.layers[node_id]].append(node_id)
            successors = [s for s in aug.graph.successors(node_id) if s not in visited]
            stack.extend(reversed(successors))
    return ordering


def _barycenter(node_id: str, neighbors: list[str], neighbor_pos: dict[str, int], fallback: int) -> float:
    positions = [neighbor_pos[nb] for nb in neighbors if nb in neighbor_pos]
    if not positions:
        return float(fallback)
    return sum(positions) / len(positions)


def _sweep(ordering: list[list[str]], graph: nx.DiGraph, downward: bool) -> None:
    layer_indices = range(1, len(ordering)) if downward else range(len(ordering) - 2, -1, -1)
    for layer_idx in layer_indices:
        ref = ordering[layer_idx - 1] if downward else ordering[layer_idx + 1]
        ref_pos = {nid: i for i, nid in enumerate(ref)}
        current = ordering[layer_idx]
        keyed = []
        for i, nid in enumerate(current):
            neighbors = list(graph.predecessors(nid)) if downward else list(graph.successors(nid))
            keyed.append((_barycenter(nid, neighbors, ref_pos, i), i, nid))
        keyed.sort()
        ordering[layer_idx] = [nid for _, _, nid in keyed]


def minimise_crossings(aug: AugmentedGraph, max_passes: int = MAX_ORDERING_PASSES) -> list[list[str]]:
    """Minimise edge crossings with alternating barycenter sweeps; keeps the best ordering."""
    ordering = discovery_ordering(aug)
    best = [list(layer) for layer in ordering]
    best_crossings = count_crossings(ordering, aug.graph)

    for pass_idx in range(max_passes):
        if best_crossings == 0:
            break
        _sweep(ordering, aug.graph, downward=True)
        _sweep(ordering, aug.graph, downward=False)
        crossings = count_crossings(ordering, aug.graph)
        logger.debug("ordering pass %d: %d crossings", pass_idx, crossings)
        if crossings >= best_crossings:
            break
        best_crossings = crossings
        best = [list(layer) for layer in ordering]

    return best


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    total = 0
    for l_idx in range(len(ordering) - 1):
        tgt_pos: dict[str, int] = {nid: i for i, nid in enumerate(ordering[l_idx + 1])}
        edges: list[tuple[int, int]] = []
        for sp, src_id in enumerate(ordering[l_idx]):
            if src_id in graph:
                for nb in graph.successors(src_id):
                    if nb in tgt_pos:
                        edges.append((sp, tgt_pos[nb]))
        for i in range(len(edges)):
            for j in range(i + 1, len(edges)):
                ei, ej = edges[i], edges[j]
                if (ei[0] < ej[0] and ei[1] > ej[1]) or (ei[0] > ej[0] and ei[1] < ej[1]):
                    total += 1
    return total


# ─── Coordinate Assignment ───────────────────────────────────────────────────


@dataclass
class _FrameBox:
    """Box in the (secondary, primary) frame; primary follows the ranks."""

    sec: float
    prim: float
    sec_ext: float
    prim_ext: float


@dataclass
class _ComponentFrame:
    boxes: dict[str, _FrameBox]
    gap_lines: list[float]
    sec_extent: float
    prim_extent: float


def _frame_extents(data: NodeData, horizontal: bool) -> tuple[float, float]:
    if horizontal:
        return data.height, data.width
    return data.width, data.height


def assign_coordinates(
    ordering: list[list[str]],
    aug: AugmentedGraph,
    node_spacing: float,
    layer_spacing: float,
    horizontal: bool,
) -> _ComponentFrame:
    """Rank bands along the primary axis, rank-centred siblings along the secondary axis."""
    extents = {nid: _frame_extents(aug.graph.nodes[nid]["data"], horizontal) for layer in ordering for nid in layer}

    band_size = [max((extents[nid][1] for nid in layer), default=0.0) for layer in ordering]
    band_start: list[float] = []
    prim = 0.0
    for size in band_size:
        band_start.append(prim)
        prim += size + layer_spacing
    prim_extent = (band_start[-1] + band_size[-1]) if band_size else 0.0
    gap_lines = [band_start[i] + band_size[i] + layer_spacing / 2 for i in range(len(ordering) - 1)]

    layer_totals = [
        sum(extents[nid][0] for nid in layer) + max(0, len(layer) - 1) * node_spacing for layer in ordering
    ]
    sec_extent = max(layer_totals, default=0.0)

    boxes: dict[str, _FrameBox] = {}
    for layer_idx, layer in enumerate(ordering):
        sec = (sec_extent - layer_totals[layer_idx]) / 2
        for nid in layer:
            sec_ext, prim_ext = extents[nid]
            top = band_start[layer_idx] + (band_size[layer_idx] - prim_ext) / 2
            boxes[nid] = _FrameBox(sec=sec, prim=top, sec_ext=sec_ext, prim_ext=prim_ext)
            sec += sec_ext + node_spacing

    return _ComponentFrame(boxes=boxes, gap_lines=gap_lines, sec_extent=sec_extent, prim_extent=prim_extent)


# ─── Positioner ──────────────────────────────────────────────────────────────


@dataclass
class Placement:
    """Positioner output for one container, origin at (0, 0)."""

    boxes: dict[str, Box]
    layers: dict[str, int]
    component: dict[str, int]
    gap_lines: list[list[float]]
    dummy_chains: dict[tuple[str, str], list[str]]
    reversed_edges: set[tuple[str, str]]
    direction: Direction
    width: float
    height: float
    # secondary (start, end) of each component, in component order
    component_spans: list[tuple[float, float]] = field(default_factory=list)

    def gap_line(self, node_id: str, layer: int) -> float | None:
        """Primary coordinate of the gap between ``layer`` and ``layer + 1``."""
        lines = self.gap_lines[self.component[node_id]]
        if 0 <= layer < len(lines):
            return lines[layer]
        return None


class SugiyamaLayout:
    """Sugiyama layered layout engine."""

    def __init__(self, node_spacing: float, layer_spacing: float) -> None:
        self.node_spacing = node_spacing
        self.layer_spacing = layer_spacing

    def layout(self, gir: GraphIR) -> Placement:
        direction = gir.direction
        horizontal = direction.is_horizontal
        frames: list[_ComponentFrame] = []
        layers: dict[str, int] = {}
        component_of: dict[str, int] = {}
        dummy_chains: dict[tuple[str, str], list[str]] = {}
        reversed_edges: set[tuple[str, str]] = set()

        for index, members in enumerate(_components(gir.digraph)):
            sub = gir.digraph.subgraph(members).copy()
            la, dag = LayerAssignment.assign(sub)
            aug = insert_dummy_nodes(dag, la, prefix=f"{DUMMY_PREFIX}{index}_")
            ordering = minimise_crossings(aug)
            frames.append(assign_coordinates(ordering, aug, self.node_spacing, self.layer_spacing, horizontal))
            layers.update(aug.layers)
            component_of.update(dict.fromkeys(aug.layers, index))
            dummy_chains.update(aug.dummy_chains)
            reversed_edges |= la.reversed_edges

        logger.debug("positioned %d nodes in %d components", gir.node_count(), len(frames))

        prim_total = max((f.prim_extent for f in frames), default=0.0)
        boxes: dict[str, Box] = {}
        gap_lines: list[list[float]] = []
        spans: list[tuple[float, float]] = []
        sec_offset = 0.0
        for frame in frames:
            for nid, fb in frame.boxes.items():
                prim = prim_total - fb.prim - fb.prim_ext if direction.is_reversed else fb.prim
                sec = fb.sec + sec_offset
                if horizontal:
                    boxes[nid] = Box(prim, sec, fb.prim_ext, fb.sec_ext)
                else:
                    boxes[nid] = Box(sec, prim, fb.sec_ext, fb.prim_ext)
            gap_lines.append([prim_total - g if direction.is_reversed else g for g in frame.gap_lines])
            spans.append((sec_offset, sec_offset + frame.sec_extent))
            sec_offset += frame.sec_extent + self.node_spacing

        sec_total = max(0.0, sec_offset - self.node_spacing)
        width, height = (prim_total, sec_total) if horizontal else (sec_total, prim_total)
        return Placement(
            boxes=boxes,
            layers=layers,
            component=component_of,
            gap_lines=gap_lines,
            dummy_chains=dummy_chains,
            reversed_edges=reversed_edges,
            direction=direction,
            width=width,
            height=height,
            component_spans=spans,
        )


def _components(digraph: nx.DiGraph) -> list[list[str]]:
    """Weakly connected components, each listed in node insertion order."""
    order = {node_id: i for i, node_id in enumerate(digraph.nodes)}
    components = [sorted(c, key=order.__getitem__) for c in nx.weakly_connected_components(digraph)]
    components.sort(key=lambda c: order[c[0]])
    return components
