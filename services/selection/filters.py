"""
Filter predicates.

A Filter maps an EventView to a tag string; ``None`` or an empty tag means
the event fails the selection. Evaluation is pure: counters only move when
the owner of the cutflow calls ``record``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence, Union
import numpy as np

from domain.errors import FilterEvaluationError
from domain.events import EventView


FilterResult = Union[Optional[str], bool]


class Filter(ABC):
    """
    Base class for named selection predicates.

    Subclasses implement ``_select``; callers use ``evaluate``.
    """

    def __init__(self, name: str):
        if not name:
            raise ValueError("Filter name cannot be empty")
        self.name = name
        self.pass_count = 0
        self.evaluated_count = 0
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def _select(self, view: EventView) -> FilterResult:
        """Return a tag, True/False, or None for the given event."""
        pass

    def evaluate(self, view: EventView) -> Optional[str]:
        """
        Evaluate the predicate on one event.

        Returns:
            Non-empty tag when the event passes, None otherwise

        Raises:
            FilterEvaluationError: If the predicate itself fails
        """
        try:
            result = self._select(view)
        except Exception as e:
            raise FilterEvaluationError(self.name, e) from e
        return _normalize_tag(self.name, result)

    def record(self, tag: Optional[str]):
        """Count one evaluation and, for a non-empty tag, one pass."""
        self.evaluated_count += 1
        if tag:
            self.pass_count += 1

    def __call__(self, view: EventView) -> Optional[str]:
        return self.evaluate(view)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, passed={self.pass_count})"


class FunctionFilter(Filter):
    """Filter backed by a plain callable returning a bool or a tag."""

    def __init__(self, name: str, fn: Callable[[EventView], FilterResult]):
        super().__init__(name)
        self._fn = fn

    def _select(self, view: EventView) -> FilterResult:
        return self._fn(view)


class TriggerFilter(Filter):
    """Passes when any of the trigger paths fired; the tag is the first one."""

    def __init__(self, name: str, paths: Sequence[str]):
        super().__init__(name)
        if not paths:
            raise ValueError(f"TriggerFilter '{name}' needs at least one path")
        self.paths = tuple(paths)

    def _select(self, view: EventView) -> FilterResult:
        for path in self.paths:
            if view.trigger(path):
                return path
        return None


class CountFilter(Filter):
    """Requires the number of objects in a collection to lie in [minimum, maximum]."""

    def __init__(self, name: str, collection: str, minimum: int = 1, maximum: Optional[int] = None):
        super().__init__(name)
        if minimum < 0:
            raise ValueError(f"minimum must be non-negative, got {minimum}")
        if maximum is not None and maximum < minimum:
            raise ValueError(f"maximum ({maximum}) must not be below minimum ({minimum})")
        self.collection = collection
        self.minimum = minimum
        self.maximum = maximum

    def _select(self, view: EventView) -> FilterResult:
        n = view.count(self.collection)
        if n < self.minimum:
            return None
        if self.maximum is not None and n > self.maximum:
            return None
        return f"{n}{self.collection}"


class RangeFilter(Filter):
    """Requires a scalar field to lie in [low, high)."""

    def __init__(self, name: str, field: str, low: Optional[float] = None, high: Optional[float] = None):
        super().__init__(name)
        if low is None and high is None:
            raise ValueError(f"RangeFilter '{name}' needs low and/or high")
        self.field = field
        self.low = low
        self.high = high

    def _select(self, view: EventView) -> FilterResult:
        value = view.get(self.field)
        if value is None:
            return None
        value = float(value)
        if self.low is not None and value < self.low:
            return None
        if self.high is not None and value >= self.high:
            return None
        return self.name


class AllOf(Filter):
    """Conjunction of several filters; tags are joined with '&'."""

    def __init__(self, name: str, filters: Sequence[Filter]):
        super().__init__(name)
        if not filters:
            raise ValueError(f"AllOf '{name}' needs at least one filter")
        self.filters = tuple(filters)

    def _select(self, view: EventView) -> FilterResult:
        tags = []
        for f in self.filters:
            tag = f.evaluate(view)
            if not tag:
                return None
            tags.append(tag)
        return combine_tags(tags)


def combine_tags(tags: Sequence[Optional[str]]) -> str:
    """Join tags; any empty tag makes the combination empty."""
    if not tags or not all(tags):
        return ""
    return "&".join(tags)


def _normalize_tag(name: str, result: FilterResult) -> Optional[str]:
    if result is None:
        return None
    if isinstance(result, (bool, np.bool_)):
        return name if result else None
    tag = str(result)
    return tag or None
