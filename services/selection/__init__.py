"""
Selection services: filters and scale factors.
"""

from .filters import (
    Filter,
    FunctionFilter,
    TriggerFilter,
    CountFilter,
    RangeFilter,
    AllOf,
    combine_tags,
)
from .scale_factors import (
    ScaleFactor,
    FunctionScaleFactor,
    ConstantScaleFactor,
    FieldScaleFactor,
    BinnedScaleFactor,
    compose_weight,
)

__all__ = [
    "Filter",
    "FunctionFilter",
    "TriggerFilter",
    "CountFilter",
    "RangeFilter",
    "AllOf",
    "combine_tags",
    "ScaleFactor",
    "FunctionScaleFactor",
    "ConstantScaleFactor",
    "FieldScaleFactor",
    "BinnedScaleFactor",
    "compose_weight",
]
