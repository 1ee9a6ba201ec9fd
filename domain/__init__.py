"""
Domain models for the module-graph event pipeline.

Pure data structures with validation, no business logic.
"""

from .errors import (
    ConfigurationError,
    DuplicateNameError,
    MissingDependencyError,
    CycleError,
    EventAccessError,
    ModuleProcessError,
    FilterEvaluationError,
    WeightEvaluationError,
)
from .events import EventId, EventView, MissingEt
from .statistics import (
    FillOutcome,
    PairState,
    FillStatistics,
    CutflowRow,
    Cutflow,
    ModuleFailure,
    JobStatistics,
)
from .config import (
    AxisConfig,
    HistogramConfig,
    ComponentConfig,
    ModuleConfig,
    InputConfig,
    OutputConfig,
    JobConfig,
)

__all__ = [
    "ConfigurationError",
    "DuplicateNameError",
    "MissingDependencyError",
    "CycleError",
    "EventAccessError",
    "ModuleProcessError",
    "FilterEvaluationError",
    "WeightEvaluationError",
    "EventId",
    "EventView",
    "MissingEt",
    "FillOutcome",
    "PairState",
    "FillStatistics",
    "CutflowRow",
    "Cutflow",
    "ModuleFailure",
    "JobStatistics",
    "AxisConfig",
    "HistogramConfig",
    "ComponentConfig",
    "ModuleConfig",
    "InputConfig",
    "OutputConfig",
    "JobConfig",
]
