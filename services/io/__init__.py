"""
I/O services: event sources, output containers and text reports.
"""

from .event_sources import EventSource, ArrayEventSource, RootEventSource, PairedEventSource
from .outputs import OutputContainer, MemoryOutput, RootOutput
from .reports import format_cutflow, format_skip_report

__all__ = [
    "EventSource",
    "ArrayEventSource",
    "RootEventSource",
    "PairedEventSource",
    "OutputContainer",
    "MemoryOutput",
    "RootOutput",
    "format_cutflow",
    "format_skip_report",
]
