"""Animation scheduling and easing curves."""

from mermaid_layout.animation.easing import (
    DEFAULT_EASING,
    NAMED_EASINGS,
    ControlPoints,
    format_key_splines,
    translate_easing,
)
from mermaid_layout.animation.scheduler import GROUP_REVEAL_PROGRESS, Schedule, compute_delays

__all__ = [
    "DEFAULT_EASING",
    "GROUP_REVEAL_PROGRESS",
    "NAMED_EASINGS",
    "ControlPoints",
    "Schedule",
    "compute_delays",
    "format_key_splines",
    "translate_easing",
]
