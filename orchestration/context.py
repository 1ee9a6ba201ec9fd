"""
Job context.

Immutable context object passed between state handlers.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional

from domain.statistics import ModuleFailure
from .states import JobState


@dataclass(frozen=True)
class JobContext:
    """
    Immutable context for job execution.

    Each state handler returns a new context with updated fields.
    """

    run_name: str
    current_state: JobState

    # Execution metadata
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    # Event accounting
    events_read: int = 0
    events_complete: int = 0
    events_partial: int = 0

    # Failures
    module_failures: tuple[ModuleFailure, ...] = field(default_factory=tuple)
    finalize_failed: tuple[str, ...] = field(default_factory=tuple)
    abort_message: Optional[str] = None

    # Output
    written_entries: tuple[str, ...] = field(default_factory=tuple)

    # Error tracking
    error_message: Optional[str] = None
    error_details: Optional[dict] = None

    # Custom data (for extension)
    custom_data: dict[str, Any] = field(default_factory=dict)

    def with_state(self, new_state: JobState) -> 'JobContext':
        """Return new context with updated state."""
        if new_state.is_terminal():
            return replace(self, current_state=new_state, end_time=datetime.now())
        return replace(self, current_state=new_state)

    def with_event_counts(self, read: int, complete: int, partial: int) -> 'JobContext':
        """Return new context with event accounting."""
        return replace(
            self,
            events_read=read,
            events_complete=complete,
            events_partial=partial,
        )

    def with_failures(self, failures: list[ModuleFailure]) -> 'JobContext':
        """Return new context with additional module failures."""
        return replace(self, module_failures=self.module_failures + tuple(failures))

    def with_finalize_failed(self, modules: list[str]) -> 'JobContext':
        """Return new context listing modules whose finalize hook failed."""
        return replace(self, finalize_failed=tuple(modules))

    def with_abort(self, message: str) -> 'JobContext':
        """
        Return new context flagged as aborted.

        The job still finalizes and writes what it has; the flag only
        decides the terminal state.
        """
        return replace(self, abort_message=message)

    def with_written_entries(self, names: list[str]) -> 'JobContext':
        return replace(self, written_entries=tuple(names))

    def with_error(self, message: str, details: Optional[dict] = None) -> 'JobContext':
        """Return new context with error information."""
        return replace(
            self,
            current_state=JobState.FAILED,
            end_time=datetime.now(),
            error_message=message,
            error_details=details or {},
        )

    def with_custom_data(self, key: str, value: Any) -> 'JobContext':
        new_custom = self.custom_data.copy()
        new_custom[key] = value
        return replace(self, custom_data=new_custom)

    @property
    def elapsed_time(self) -> float:
        """Get elapsed time in seconds."""
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()

    @property
    def is_terminal(self) -> bool:
        return self.current_state.is_terminal()

    @property
    def is_successful(self) -> bool:
        """Check if the job completed without abort or failure."""
        return self.current_state == JobState.COMPLETED

    @property
    def was_aborted(self) -> bool:
        return self.current_state == JobState.ABORTED

    @property
    def has_error(self) -> bool:
        return self.current_state == JobState.FAILED

    def get_summary(self) -> dict:
        """
        Get summary of job execution.

        Returns:
            Dict with execution summary
        """
        return {
            "state": str(self.current_state),
            "elapsed_time_sec": self.elapsed_time,
            "start_time": self.start_time.isoformat(),
            "events_read": self.events_read,
            "events_complete": self.events_complete,
            "events_partial": self.events_partial,
            "module_failures": len(self.module_failures),
            "finalize_failed": list(self.finalize_failed),
            "written_entries": len(self.written_entries),
            "abort_message": self.abort_message,
            "error_message": self.error_message,
            "is_successful": self.is_successful,
        }
