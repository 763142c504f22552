"""Shared type definitions for mermaid-layout.

Closed enums used across the logical graph, the layout strategies, and the
positioned output. Enum values are the wire spellings used by the JSON
interchange format.
"""

from __future__ import annotations

from enum import Enum


class Direction(Enum):
    TD = "TD"
    BT = "BT"
    LR = "LR"
    RL = "RL"

    @classmethod
    def default(cls) -> Direction:
        return cls.TD

    @classmethod
    def parse(cls, value: str) -> Direction:
        key = value.strip().upper()
        if key == "TB":
            return cls.TD
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown direction '{value}'; use TD, TB, BT, LR, or RL") from None

    @property
    def is_horizontal(self) -> bool:
        return self in (Direction.LR, Direction.RL)

    @property
    def is_reversed(self) -> bool:
        return self in (Direction.BT, Direction.RL)


class NodeShape(Enum):
    Rectangle = "rectangle"  # id[Label]
    Rounded = "rounded"  # id(Label)
    Diamond = "diamond"  # id{Label}
    Stadium = "stadium"  # id([Label])
    Circle = "circle"  # id((Label))
    Subroutine = "subroutine"  # id[[Label]]
    DoubleCircle = "doublecircle"  # id(((Label)))
    Hexagon = "hexagon"  # id{{Label}}
    Cylinder = "cylinder"  # id[(Label)]
    Asymmetric = "asymmetric"  # id>Label]
    Trapezoid = "trapezoid"  # id[/Label\]
    TrapezoidAlt = "trapezoid-alt"  # id[\Label/]
    StateStart = "state-start"  # [*] as source
    StateEnd = "state-end"  # [*] as target

    @classmethod
    def default(cls) -> NodeShape:
        return cls.Rectangle

    @property
    def is_pseudostate(self) -> bool:
        return self in (NodeShape.StateStart, NodeShape.StateEnd)


class EdgeStyle(Enum):
    Solid = "solid"  # -->
    Dotted = "dotted"  # -.->
    Thick = "thick"  # ==>

    @classmethod
    def default(cls) -> EdgeStyle:
        return cls.Solid


class DiagramKind(Enum):
    Flow = "flow"
    State = "state"
    Sequence = "sequence"
    Class = "class"
    ER = "er"


class Relation(Enum):
    """UML class relation; the marker sits on the end whose arrow flag is set."""

    Inheritance = "inheritance"  # <|--  hollow triangle
    Composition = "composition"  # *--   filled diamond
    Aggregation = "aggregation"  # o--   hollow diamond
    Association = "association"  # -->   open arrow
    Dependency = "dependency"  # ..>   dashed, open arrow
    Realization = "realization"  # ..|>  dashed, hollow triangle
    Link = "link"  # --    plain line

    @property
    def is_dashed(self) -> bool:
        return self in (Relation.Dependency, Relation.Realization)


class Cardinality(Enum):
    """Crow's-foot cardinality at one end of an ER relationship."""

    One = "one"  # ||
    ZeroOne = "zero-one"  # |o
    Many = "many"  # }|
    ZeroMany = "zero-many"  # }o


class BlockKind(Enum):
    Loop = "loop"
    Alt = "alt"
    Opt = "opt"
    Par = "par"
    Critical = "critical"
    Break = "break"
    Rect = "rect"


class NotePlacement(Enum):
    Left = "left"
    Right = "right"
    Over = "over"
