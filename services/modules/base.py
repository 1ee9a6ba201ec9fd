"""
Module base class.

A Module is one unit of per-event work with declared dependencies, a
``process`` hook called once per event in dependency order and a
``finalize`` hook called once at end of job.
"""

import logging
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Sequence

from domain.events import EventView
from domain.statistics import FillStatistics


class UpstreamRecord(Mapping):
    """
    Read-only outputs of the modules already run for the current event.

    Built by the event loop; modules only see entries from modules ordered
    before them.
    """

    def __init__(self, outputs: Optional[Mapping[str, Any]] = None):
        self._outputs = MappingProxyType(dict(outputs or {}))

    def __getitem__(self, name: str) -> Any:
        return self._outputs[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._outputs)

    def __len__(self) -> int:
        return len(self._outputs)

    def tag(self, module: str) -> str:
        """
        Combined tag published by a filter module.

        Returns an empty string when the module did not run or failed the
        event.
        """
        output = self._outputs.get(module)
        if output is None:
            return ""
        return getattr(output, "tag", "") or ""

    def extended(self, name: str, output: Any) -> 'UpstreamRecord':
        """Return a new record with one more module output."""
        outputs = dict(self._outputs)
        outputs[name] = output
        return UpstreamRecord(outputs)


class Module(ABC):
    """
    Base class for modules.

    Subclasses own their counters and accumulators exclusively; other
    modules only see what ``process`` returns.
    """

    def __init__(self, name: str, depends_on: Sequence[str] = ()):
        """
        Initialize module.

        Args:
            name: Stable module name, unique within one job
            depends_on: Names of modules that must run before this one
        """
        if not name:
            raise ValueError("Module name cannot be empty")
        self.name = name
        self.depends_on = tuple(depends_on)
        self.events_processed = 0
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def process(self, view: EventView, upstream: UpstreamRecord) -> Any:
        """
        Process one event.

        Args:
            view: Read-only event view, valid for this call only
            upstream: Outputs of the modules run earlier for this event

        Returns:
            Output made visible to later modules for this event
        """
        pass

    def finalize(self):
        """End-of-job hook. Default does nothing."""
        pass

    def output_names(self) -> list[str]:
        """Names of the entries this module writes to the output container."""
        return []

    def write(self, container):
        """Persist accumulated results to an output container."""
        pass

    def fill_statistics(self) -> list[FillStatistics]:
        """Fill accounting of the histograms owned by this module."""
        return []

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, depends_on={list(self.depends_on)})"
