"""
FilterModule - Annotates events with selection tags.

Evaluates every wrapped filter on each event and publishes the combined
tag downstream. Events are never discarded here, so several independent
selections can be studied in a single pass.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from domain.errors import DuplicateNameError, FilterEvaluationError
from domain.events import EventView
from domain.statistics import Cutflow, CutflowRow
from services.io.reports import format_cutflow
from services.selection.filters import Filter, combine_tags
from .base import Module, UpstreamRecord


CUTFLOW_PREFIX = "cutflow_"


@dataclass(frozen=True)
class FilterDecision:
    """Per-event output of a filter module."""

    tag: str
    tags: tuple[tuple[str, Optional[str]], ...]

    @property
    def passed(self) -> bool:
        return bool(self.tag)

    def __bool__(self) -> bool:
        return self.passed

    def tag_of(self, filter_name: str) -> Optional[str]:
        """Tag produced by one wrapped filter."""
        return dict(self.tags).get(filter_name)


class FilterModule(Module):
    """
    Module wrapping one or more filters.

    Keeps both the individual pass count of every filter and the
    cumulative count of events passing it and all filters before it.
    A filter raising on an event counts as an error for that filter and
    as a failed selection; the remaining filters still run.
    """

    def __init__(self, name: str, filters: Sequence[Filter], depends_on: Sequence[str] = ()):
        super().__init__(name, depends_on)
        if not filters:
            raise ValueError(f"FilterModule '{name}' needs at least one filter")
        names = set()
        for f in filters:
            if f.name in names:
                raise DuplicateNameError("filter", f.name)
            names.add(f.name)

        self.filters = tuple(filters)
        self._cumulative = [0] * len(self.filters)
        self._errors = [0] * len(self.filters)
        self._events_seen = 0
        self._cutflow: Optional[Cutflow] = None

    def process(self, view: EventView, upstream: UpstreamRecord) -> FilterDecision:
        self._events_seen += 1
        tags = []
        still_passing = True
        for i, f in enumerate(self.filters):
            try:
                tag = f.evaluate(view)
            except FilterEvaluationError as e:
                self._errors[i] += 1
                self.logger.warning(f"Event {view.event_id}: {e}")
                tag = None
            f.record(tag)
            still_passing = still_passing and bool(tag)
            if still_passing:
                self._cumulative[i] += 1
            tags.append((f.name, tag))

        return FilterDecision(
            tag=combine_tags([tag for _, tag in tags]),
            tags=tuple(tags),
        )

    def cutflow(self) -> Cutflow:
        """Current event-count funnel."""
        total = self._events_seen
        return Cutflow(
            module=self.name,
            total_events=total,
            rows=tuple(
                CutflowRow(
                    filter_name=f.name,
                    passed=f.pass_count,
                    cumulative=self._cumulative[i],
                    total=total,
                    errors=self._errors[i],
                )
                for i, f in enumerate(self.filters)
            ),
        )

    def finalize(self):
        self._cutflow = self.cutflow()
        self.logger.info(
            f"{self.name}: {self._cutflow.selected}/{self._cutflow.total_events} events "
            "passed all filters"
        )
        for row in self._cutflow.rows:
            self.logger.debug(
                f"  {row.filter_name}: passed={row.passed} cumulative={row.cumulative} "
                f"errors={row.errors}"
            )

    @property
    def cutflow_name(self) -> str:
        return f"{CUTFLOW_PREFIX}{self.name}"

    def output_names(self) -> list[str]:
        return [self.cutflow_name]

    def write(self, container):
        cutflow = self._cutflow or self.cutflow()
        container.put_text(self.cutflow_name, format_cutflow(cutflow))
