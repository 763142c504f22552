"""Intermediate representation: logical graph model and GraphIR."""

from mermaid_layout.ir.graph import EdgeData, GraphIR, NodeData, validate
from mermaid_layout.ir.model import Block, BlockDivider, Edge, LogicalGraph, Node, Note, Subgraph

__all__ = [
    "Block",
    "BlockDivider",
    "Edge",
    "EdgeData",
    "GraphIR",
    "LogicalGraph",
    "Node",
    "NodeData",
    "Note",
    "Subgraph",
    "validate",
]
