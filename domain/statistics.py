"""
Statistics-related domain models.

Outcome codes and immutable snapshots of fill, cutflow and job accounting.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class FillOutcome(Enum):
    """Result of one fill attempt on a histogram."""

    FILLED = "filled"
    SKIPPED_FILTER = "filter-skip"
    FILTER_ERROR = "filter-error"
    WEIGHT_ERROR = "weight-skip"
    NO_VALUE = "no-value"
    UNMATCHED = "unmatched-pair"

    @property
    def reason_code(self) -> str:
        """Stable code used in skip reports."""
        return self.value

    @property
    def is_skip(self) -> bool:
        return self is not FillOutcome.FILLED

    def __str__(self) -> str:
        return self.name


class PairState(Enum):
    """Per-event state of a truth/reco pair."""

    UNMATCHED = "unmatched"
    MATCHED = "matched"
    FILLED = "filled"
    SKIPPED = "skipped"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class FillStatistics:
    """Snapshot of the fill accounting of one histogram."""

    name: str
    attempts: int
    outcomes: tuple[tuple[str, int], ...]
    sum_weights: float
    sum_weights_squared: float
    matched: Optional[int] = None
    unmatched: Optional[int] = None

    def __post_init__(self):
        """Validate fill statistics."""
        if self.attempts < 0:
            raise ValueError(f"attempts must be non-negative, got {self.attempts}")
        total = sum(count for _, count in self.outcomes)
        if total != self.attempts:
            raise ValueError(
                f"outcome counts ({total}) must add up to attempts ({self.attempts})"
            )

    def count(self, outcome: FillOutcome) -> int:
        """Number of attempts that ended with the given outcome."""
        return dict(self.outcomes).get(outcome.reason_code, 0)

    @property
    def filled(self) -> int:
        return self.count(FillOutcome.FILLED)

    @property
    def skipped(self) -> int:
        return self.attempts - self.filled

    @property
    def is_paired(self) -> bool:
        return self.matched is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "name": self.name,
            "attempts": self.attempts,
            "outcomes": dict(self.outcomes),
            "sum_weights": self.sum_weights,
            "sum_weights_squared": self.sum_weights_squared,
        }
        if self.is_paired:
            result["matched"] = self.matched
            result["unmatched"] = self.unmatched
        return result


@dataclass(frozen=True)
class CutflowRow:
    """One selection step of a cutflow."""

    filter_name: str
    passed: int
    cumulative: int
    total: int
    errors: int = 0

    @property
    def efficiency(self) -> float:
        """Individual pass fraction of this filter."""
        if self.total == 0:
            return 0.0
        return self.passed / self.total

    @property
    def cumulative_efficiency(self) -> float:
        """Fraction of events passing this and every earlier filter."""
        if self.total == 0:
            return 0.0
        return self.cumulative / self.total


@dataclass(frozen=True)
class Cutflow:
    """Event-count funnel reported by a filter module."""

    module: str
    total_events: int
    rows: tuple[CutflowRow, ...]

    @property
    def selected(self) -> int:
        """Events passing every filter."""
        if not self.rows:
            return self.total_events
        return self.rows[-1].cumulative

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "module": self.module,
            "total_events": self.total_events,
            "selected": self.selected,
            "rows": [
                {
                    "filter": row.filter_name,
                    "passed": row.passed,
                    "cumulative": row.cumulative,
                    "efficiency": f"{row.efficiency:.4f}",
                    "errors": row.errors,
                }
                for row in self.rows
            ],
        }


@dataclass(frozen=True)
class ModuleFailure:
    """A module error recorded during processing or finalization."""

    module: str
    phase: str
    message: str
    event_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        """Validate failure record."""
        if self.phase not in ("process", "finalize", "write"):
            raise ValueError(f"phase must be process, finalize or write, got {self.phase}")
        if self.phase == "process" and self.event_id is None:
            raise ValueError("event_id must be provided for process failures")

    def to_dict(self) -> dict:
        return {
            "module": self.module,
            "phase": self.phase,
            "event_id": self.event_id,
            "message": self.message,
        }


@dataclass(frozen=True)
class JobStatistics:
    """
    Comprehensive statistics for one job.

    Immutable snapshot of event accounting, failures and per-histogram
    fill outcomes.
    """

    events_read: int
    events_complete: int
    events_partial: int
    start_time: datetime
    end_time: datetime
    module_failures: tuple[ModuleFailure, ...] = field(default_factory=tuple)
    histograms: tuple[FillStatistics, ...] = field(default_factory=tuple)
    cutflows: tuple[Cutflow, ...] = field(default_factory=tuple)
    abort_message: Optional[str] = None

    def __post_init__(self):
        """Validate job statistics."""
        if self.events_read < 0:
            raise ValueError(f"events_read must be non-negative, got {self.events_read}")
        if self.events_complete + self.events_partial != self.events_read:
            raise ValueError(
                f"events_complete ({self.events_complete}) + events_partial "
                f"({self.events_partial}) must equal events_read ({self.events_read})"
            )
        if self.end_time < self.start_time:
            raise ValueError("end_time must be after start_time")

    @property
    def total_time_sec(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def was_aborted(self) -> bool:
        return self.abort_message is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "events_read": self.events_read,
            "events_complete": self.events_complete,
            "events_partial": self.events_partial,
            "total_time_sec": f"{self.total_time_sec:.1f}",
            "aborted": self.was_aborted,
            "abort_message": self.abort_message,
            "module_failures": [failure.to_dict() for failure in self.module_failures],
            "histograms": [stats.to_dict() for stats in self.histograms],
            "cutflows": [cutflow.to_dict() for cutflow in self.cutflows],
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
        }
