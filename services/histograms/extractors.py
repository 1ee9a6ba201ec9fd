"""
Value extractors.

Tagged variants that turn one event (or a truth/reco pair) into the values
filled into a histogram, one value per histogram dimension. The variant is
fixed when the histogram is built, never chosen per event.
"""

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional, Sequence

from domain.config import RESOLUTION_MODES
from domain.events import EventView


ValueFn = Callable[[EventView], Optional[float]]


class ExtractorKind(Enum):
    """Which fill path a histogram uses."""

    SCALAR = "scalar"
    PAIR = "pair"
    RESOLUTION = "resolution"


class ValueExtractor(ABC):
    """Base class for value extractors."""

    kind: ExtractorKind
    paired: bool = False

    @property
    @abstractmethod
    def dimensions(self) -> int:
        pass

    @abstractmethod
    def extract(self, *views: EventView) -> Optional[tuple[float, ...]]:
        """
        Compute the fill values.

        Returns:
            Tuple with one finite value per dimension, or None when the
            event does not define the quantity
        """
        pass


class ScalarExtractor(ValueExtractor):
    """One value from one event."""

    kind = ExtractorKind.SCALAR

    def __init__(self, fn: ValueFn):
        self._fn = fn

    @property
    def dimensions(self) -> int:
        return 1

    def extract(self, *views: EventView) -> Optional[tuple[float, ...]]:
        return _finite_tuple([self._fn(views[-1])])


class PairExtractor(ValueExtractor):
    """Two values from one event, for a 2-D histogram."""

    kind = ExtractorKind.PAIR

    def __init__(self, x_fn: ValueFn, y_fn: ValueFn):
        self._x_fn = x_fn
        self._y_fn = y_fn

    @property
    def dimensions(self) -> int:
        return 2

    def extract(self, *views: EventView) -> Optional[tuple[float, ...]]:
        view = views[-1]
        return _finite_tuple([self._x_fn(view), self._y_fn(view)])


class ResolutionExtractor(ValueExtractor):
    """
    Compares one quantity between the truth and reconstructed views.

    ``mode`` selects ``reco - truth``, ``(reco - truth) / truth`` or
    ``reco / truth``. With ``versus`` the histogram is 2-D: the truth-level
    ``versus`` variable on x and the resolution on y.
    """

    kind = ExtractorKind.RESOLUTION
    paired = True

    def __init__(
        self,
        truth_fn: ValueFn,
        reco_fn: ValueFn,
        mode: str = "difference",
        versus: Optional[ValueFn] = None,
    ):
        if mode not in RESOLUTION_MODES:
            raise ValueError(f"mode must be one of {RESOLUTION_MODES}, got '{mode}'")
        self._truth_fn = truth_fn
        self._reco_fn = reco_fn
        self._versus = versus
        self.mode = mode

    @property
    def dimensions(self) -> int:
        return 2 if self._versus is not None else 1

    def extract(self, *views: EventView) -> Optional[tuple[float, ...]]:
        if len(views) != 2:
            raise ValueError(f"ResolutionExtractor needs (truth, reco) views, got {len(views)}")
        truth, reco = views
        truth_value = self._truth_fn(truth)
        reco_value = self._reco_fn(reco)
        if truth_value is None or reco_value is None:
            return None

        resolution = self._compare(float(truth_value), float(reco_value))
        if resolution is None:
            return None
        if self._versus is None:
            return _finite_tuple([resolution])
        return _finite_tuple([self._versus(truth), resolution])

    def _compare(self, truth_value: float, reco_value: float) -> Optional[float]:
        if self.mode == "difference":
            return reco_value - truth_value
        if truth_value == 0:
            return None
        if self.mode == "relative":
            return (reco_value - truth_value) / truth_value
        return reco_value / truth_value


def _finite_tuple(values: Sequence[Optional[float]]) -> Optional[tuple[float, ...]]:
    result = []
    for value in values:
        if value is None:
            return None
        value = float(value)
        if not math.isfinite(value):
            return None
        result.append(value)
    return tuple(result)
