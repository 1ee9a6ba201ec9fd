"""
Histogram services: value extractors and histogram specifications.
"""

from .extractors import (
    ExtractorKind,
    ValueExtractor,
    ScalarExtractor,
    PairExtractor,
    ResolutionExtractor,
)
from .spec import HistogramSpec, PairedHistogramSpec

__all__ = [
    "ExtractorKind",
    "ValueExtractor",
    "ScalarExtractor",
    "PairExtractor",
    "ResolutionExtractor",
    "HistogramSpec",
    "PairedHistogramSpec",
]
