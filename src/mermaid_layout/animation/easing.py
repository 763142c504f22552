"""Timing curves: CSS-style easing names and cubic-bezier() into control points.

Motion paths take the same four control points as ``cubic-bezier(x1, y1, x2,
y2)``, written space-separated.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

ControlPoints = tuple[float, float, float, float]

NAMED_EASINGS: dict[str, ControlPoints] = {
    "ease": (0.25, 0.1, 0.25, 1.0),
    "ease-in": (0.42, 0.0, 1.0, 1.0),
    "ease-out": (0.0, 0.0, 0.58, 1.0),
    "ease-in-out": (0.42, 0.0, 0.58, 1.0),
    "linear": (0.0, 0.0, 1.0, 1.0),
}

DEFAULT_EASING: ControlPoints = NAMED_EASINGS["ease-out"]

_NUMBER = r"\s*([+-]?(?:\d+\.?\d*|\.\d+))\s*"
_CUBIC_BEZIER_RE = re.compile(rf"^cubic-bezier\({_NUMBER},{_NUMBER},{_NUMBER},{_NUMBER}\)$")


def translate_easing(curve: str) -> ControlPoints:
    """Control points for a named curve or a ``cubic-bezier(...)`` expression.

    x values must lie in [0, 1]; y values may overshoot in either direction.
    Anything unrecognised falls back to ease-out.
    """
    key = curve.strip().lower()
    named = NAMED_EASINGS.get(key)
    if named is not None:
        return named

    match = _CUBIC_BEZIER_RE.match(key)
    if match:
        x1, y1, x2, y2 = (float(group) for group in match.groups())
        if 0 <= x1 <= 1 and 0 <= x2 <= 1:
            return (x1, y1, x2, y2)
        logger.warning("cubic-bezier x values out of range in %r; using ease-out", curve)
        return DEFAULT_EASING

    logger.warning("unknown easing %r; using ease-out", curve)
    return DEFAULT_EASING


def format_key_splines(points: ControlPoints) -> str:
    """Space-separated form, e.g. ``"0.42 0 0.58 1"``."""
    return " ".join(f"{value:g}" for value in points)
