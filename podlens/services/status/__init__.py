"""Pod status classification, synthesis and caching."""

from .cache import StatusCache
from .classifier import ContainerClassification, advance_last_restart, classify
from .synthesizer import has_ready_condition, synthesize

__all__ = [
    "ContainerClassification",
    "advance_last_restart",
    "classify",
    "has_ready_condition",
    "synthesize",
    "StatusCache",
]
