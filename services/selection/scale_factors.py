"""
Scale factors.

A ScaleFactor maps an EventView to a multiplicative weight. The weight of
a fill is the exact product of every attached factor; a non-finite factor
invalidates the fill instead of being coerced to 0 or 1.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence
import numpy as np

from domain.errors import WeightEvaluationError
from domain.events import EventView


class ScaleFactor(ABC):
    """Base class for named per-event weights."""

    def __init__(self, name: str):
        if not name:
            raise ValueError("ScaleFactor name cannot be empty")
        self.name = name
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def _weight(self, view: EventView) -> Optional[float]:
        """Return the weight for one event, or None if it is undefined."""
        pass

    def evaluate(self, view: EventView) -> float:
        """
        Evaluate the weight for one event.

        Undefined weights come back as NaN so callers can reject them.

        Raises:
            WeightEvaluationError: If the underlying computation fails
        """
        try:
            weight = self._weight(view)
        except Exception as e:
            raise WeightEvaluationError(self.name, f"evaluation failed: {e}") from e
        if weight is None:
            return math.nan
        return float(weight)

    @staticmethod
    def is_valid(weight: float) -> bool:
        return math.isfinite(weight)

    def __call__(self, view: EventView) -> float:
        return self.evaluate(view)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class FunctionScaleFactor(ScaleFactor):
    """Scale factor backed by a plain callable."""

    def __init__(self, name: str, fn: Callable[[EventView], Optional[float]]):
        super().__init__(name)
        self._fn = fn

    def _weight(self, view: EventView) -> Optional[float]:
        return self._fn(view)


class ConstantScaleFactor(ScaleFactor):
    """
    Same weight for every event.

    Typical use is the sample normalisation
    ``luminosity * cross_section / sum_of_generator_weights``.
    """

    def __init__(self, name: str, value: float):
        super().__init__(name)
        self.value = float(value)

    @classmethod
    def normalization(
        cls,
        name: str,
        luminosity: float,
        cross_section: float,
        sum_of_weights: float,
    ) -> 'ConstantScaleFactor':
        """Build a luminosity x cross-section normalisation factor."""
        if sum_of_weights == 0:
            raise ValueError(f"ScaleFactor '{name}': sum_of_weights cannot be zero")
        return cls(name, luminosity * cross_section / sum_of_weights)

    def _weight(self, view: EventView) -> Optional[float]:
        return self.value


class FieldScaleFactor(ScaleFactor):
    """Weight read from an event field such as ``genWeight``."""

    def __init__(self, name: str, field: str, default: Optional[float] = None):
        super().__init__(name)
        self.field = field
        self.default = default

    def _weight(self, view: EventView) -> Optional[float]:
        value = view.get(self.field)
        if value is None:
            return self.default
        return float(value)


class BinnedScaleFactor(ScaleFactor):
    """
    Lookup-table weight binned in one event variable.

    ``edges`` has one more entry than ``values``. Events outside the table
    get an undefined weight unless ``clamp`` is set, in which case the
    first or last bin is used.
    """

    def __init__(
        self,
        name: str,
        variable: Callable[[EventView], Optional[float]],
        edges: Sequence[float],
        values: Sequence[float],
        clamp: bool = False,
    ):
        super().__init__(name)
        self.edges = np.asarray(edges, dtype=float)
        self.values = np.asarray(values, dtype=float)
        if self.edges.ndim != 1 or len(self.edges) < 2:
            raise ValueError(f"ScaleFactor '{name}': need at least two bin edges")
        if len(self.values) != len(self.edges) - 1:
            raise ValueError(
                f"ScaleFactor '{name}': {len(self.edges)} edges need "
                f"{len(self.edges) - 1} values, got {len(self.values)}"
            )
        if np.any(np.diff(self.edges) <= 0):
            raise ValueError(f"ScaleFactor '{name}': bin edges must be strictly increasing")
        self._variable = variable
        self.clamp = clamp

    def _weight(self, view: EventView) -> Optional[float]:
        x = self._variable(view)
        if x is None:
            return None
        index = int(np.searchsorted(self.edges, float(x), side="right")) - 1
        if index < 0 or index >= len(self.values):
            if not self.clamp:
                return None
            index = min(max(index, 0), len(self.values) - 1)
        return float(self.values[index])


def compose_weight(scale_factors: Sequence[ScaleFactor], view: EventView) -> float:
    """
    Product of all scale factors for one event.

    Raises:
        WeightEvaluationError: On the first factor that fails or is non-finite
    """
    weight = 1.0
    for sf in scale_factors:
        value = sf.evaluate(view)
        if not sf.is_valid(value):
            raise WeightEvaluationError(sf.name, f"non-finite weight {value}")
        weight *= value
    if not math.isfinite(weight):
        raise WeightEvaluationError(
            "+".join(sf.name for sf in scale_factors), f"non-finite product {weight}"
        )
    return weight
