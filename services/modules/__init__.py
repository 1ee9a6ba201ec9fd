"""
Module services: the per-event processing units driven by the event loop.
"""

from .base import Module, UpstreamRecord
from .filter_module import FilterModule, FilterDecision
from .histogram_module import HistogramModule

__all__ = [
    "Module",
    "UpstreamRecord",
    "FilterModule",
    "FilterDecision",
    "HistogramModule",
]
