"""
Event sources - Deliver EventViews one at a time.

Sources are finite and restartable: iterating again starts from the
first event. End of input is the end of iteration, read failures are
raised as EventAccessError.
"""

import itertools
import logging
from abc import ABC, abstractmethod
from typing import Any, Iterator, Mapping, Optional, Sequence, Union
import awkward as ak
import uproot

from domain.errors import EventAccessError
from domain.events import EventView


class EventSource(ABC):
    """Base class for event sources."""

    def __init__(self, max_events: Optional[int] = None):
        if max_events is not None and max_events < 0:
            raise ValueError(f"max_events must be non-negative, got {max_events}")
        self.max_events = max_events
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def _views(self) -> Iterator[EventView]:
        """Yield every event of the source."""
        pass

    def __iter__(self) -> Iterator[EventView]:
        """Yield views; any failure while producing one becomes EventAccessError."""
        delivered = 0
        try:
            for view in itertools.islice(self._views(), self.max_events):
                yield view
                delivered += 1
        except EventAccessError:
            raise
        except Exception as e:
            raise EventAccessError(
                f"{self.__class__.__name__} failed after {delivered} events: {e}"
            ) from e

    def expected_events(self) -> Optional[int]:
        """Number of events if known up front (used for progress bars)."""
        return self.max_events


class ArrayEventSource(EventSource):
    """
    Events held in memory.

    Accepts an awkward Array of records, or a sequence of mappings or
    ready-made EventViews.
    """

    def __init__(
        self,
        events: Union[ak.Array, Sequence[Union[Mapping[str, Any], EventView]]],
        max_events: Optional[int] = None,
    ):
        super().__init__(max_events)
        self.events = events

    def _views(self) -> Iterator[EventView]:
        for index, entry in enumerate(self.events):
            yield _to_view(entry, index)

    def expected_events(self) -> Optional[int]:
        n = len(self.events)
        if self.max_events is not None:
            return min(n, self.max_events)
        return n


class RootEventSource(EventSource):
    """
    Events read from ROOT trees with uproot.

    Files are read in steps of ``step_size`` entries; each step is an
    awkward Array whose records become EventViews.
    """

    def __init__(
        self,
        files: Sequence[str],
        tree_name: str = "Events",
        branches: Optional[Sequence[str]] = None,
        step_size: Union[int, str] = 100_000,
        max_events: Optional[int] = None,
    ):
        super().__init__(max_events)
        if not files:
            raise ValueError("RootEventSource needs at least one file")
        self.files = tuple(files)
        self.tree_name = tree_name
        self.branches = list(branches) if branches else None
        self.step_size = step_size

    def _views(self) -> Iterator[EventView]:
        index = 0
        try:
            for chunk in uproot.iterate(
                {path: self.tree_name for path in self.files},
                expressions=self.branches,
                step_size=self.step_size,
                library="ak",
            ):
                self.logger.debug(f"Read chunk of {len(chunk)} events")
                for record in chunk:
                    yield EventView.from_record(record, fallback_event=index)
                    index += 1
        except Exception as e:
            raise EventAccessError(
                f"Failed reading '{self.tree_name}' from {list(self.files)} after "
                f"{index} events: {e}"
            ) from e


class PairedEventSource(EventSource):
    """
    Zips a reconstructed source with a truth source.

    Each reconstructed view carries the truth view at the same position.
    Identifiers are not checked here; paired histograms count mismatches.
    """

    def __init__(self, reco: EventSource, truth: EventSource, max_events: Optional[int] = None):
        super().__init__(max_events)
        self.reco = reco
        self.truth = truth

    def _views(self) -> Iterator[EventView]:
        extra_truth = 0
        for reco_view, truth_view in itertools.zip_longest(self.reco, self.truth):
            if reco_view is None:
                extra_truth += 1
                continue
            yield reco_view.with_truth(truth_view)
        if extra_truth:
            self.logger.warning(f"{extra_truth} truth events had no reconstructed partner")

    def expected_events(self) -> Optional[int]:
        n = self.reco.expected_events()
        if n is not None and self.max_events is not None:
            return min(n, self.max_events)
        return n if n is not None else self.max_events


def _to_view(entry: Any, index: int) -> EventView:
    if isinstance(entry, EventView):
        return entry
    if isinstance(entry, ak.Record):
        return EventView.from_record(entry, fallback_event=index)
    return EventView.from_mapping(entry, fallback_event=index)
