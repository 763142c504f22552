"""Centralized configuration for mermaid-layout.

Every recognised option is spelled out with its default. Merging user input
over the defaults is a single explicit step (``LayoutOptions.merged`` and
``AnimationOptions.resolve``); keys may be given in snake_case or camelCase.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from pydantic.alias_generators import to_snake

logger = logging.getLogger(__name__)

NODE_ANIMATIONS: tuple[str, ...] = ("fade", "fade-up", "scale", "none")
EDGE_ANIMATIONS: tuple[str, ...] = ("draw", "fade", "none")


def _known_overrides(cls: type, overrides: Mapping[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(cls)}
    result: dict[str, Any] = {}
    for key, value in overrides.items():
        name = to_snake(key)
        if name not in known:
            logger.warning("ignoring unknown %s key %r", cls.__name__, key)
            continue
        result[name] = value
    return result


@dataclass(frozen=True)
class LayoutOptions:
    """Geometry configuration for every layout strategy."""

    padding: float = 40
    node_spacing: float = 24
    layer_spacing: float = 40
    node_padding_x: float = 16
    node_padding_y: float = 10
    corner_radius: float = 0
    font_size: float = 13
    font_weight: int = 500
    letter_spacing: float = 0
    edge_font_size: float = 11
    group_font_size: float = 12
    group_font_weight: int = 600
    group_padding_x: float = 16
    group_padding_y: float = 12
    pseudostate_size: float = 20
    min_node_width: float = 60
    min_node_height: float = 36
    # sequence diagrams
    actor_gap: float = 40
    message_spacing: float = 40
    block_margin: float = 10
    activation_width: float = 10

    def merged(self, overrides: LayoutOptions | Mapping[str, Any] | None) -> LayoutOptions:
        """Return a copy with ``overrides`` applied on top of this record."""
        if overrides is None:
            return self
        if isinstance(overrides, LayoutOptions):
            return overrides
        return replace(self, **_known_overrides(LayoutOptions, overrides))


@dataclass(frozen=True)
class AnimationOptions:
    """Timing configuration consumed by the scheduler and the renderers.

    ``reduced_motion`` only tells renderers to honour the reduced-motion media
    query; the scheduler itself ignores it.
    """

    duration: float = 650
    stagger: float = 0
    group_delay: float = 110
    node_overlap: float = 0.35
    node_easing: str = "ease"
    edge_easing: str = "ease-in-out"
    node_animation: str = "fade"
    edge_animation: str = "draw"
    reduced_motion: bool = True

    @classmethod
    def resolve(cls, animate: AnimationOptions | Mapping[str, Any] | bool | None) -> AnimationOptions | None:
        """Resolve the ``animate`` switch: falsy disables, ``True`` means defaults."""
        if not animate:
            return None
        if animate is True:
            return cls()
        if isinstance(animate, AnimationOptions):
            return animate.clamped()
        return cls(**_known_overrides(cls, animate)).clamped()

    def clamped(self) -> AnimationOptions:
        """Clamp cosmetic values into range instead of failing."""
        changes: dict[str, Any] = {}
        if self.duration < 0:
            changes["duration"] = 0
        if self.stagger < 0:
            changes["stagger"] = 0
        if not 0 <= self.node_overlap <= 1:
            changes["node_overlap"] = min(1.0, max(0.0, self.node_overlap))
        if self.node_animation not in NODE_ANIMATIONS:
            changes["node_animation"] = "fade"
        if self.edge_animation not in EDGE_ANIMATIONS:
            changes["edge_animation"] = "draw"
        if not changes:
            return self
        logger.warning("clamped animation options: %s", sorted(changes))
        return replace(self, **changes)
