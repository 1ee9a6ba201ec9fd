"""
Pipeline execution layer.

High-level job executor that wires together all components.
"""

from .catalog import AnalysisCatalog
from .builder import build_histogram, build_module, build_modules
from .executor import JobExecutor

__all__ = [
    "AnalysisCatalog",
    "build_histogram",
    "build_module",
    "build_modules",
    "JobExecutor",
]
