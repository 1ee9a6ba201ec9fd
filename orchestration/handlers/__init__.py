"""
State handlers for job execution.

Each handler implements logic for a specific job state.
"""

from .base import StateHandler
from .start_handler import StartHandler
from .processing_handler import ProcessingHandler
from .finalize_handler import FinalizeHandler
from .output_handler import OutputHandler, FILL_REPORT_ENTRY

__all__ = [
    "StateHandler",
    "StartHandler",
    "ProcessingHandler",
    "FinalizeHandler",
    "OutputHandler",
    "FILL_REPORT_ENTRY",
]
