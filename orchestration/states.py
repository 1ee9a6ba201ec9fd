"""
Job states.

Explicit state enumeration for the job state machine.
"""

from enum import Enum, auto


class JobState(Enum):
    """
    All possible states of one job.

    Setup (graph resolution, name checks) happens before IDLE is left;
    a job that fails setup never enters PROCESSING.
    """

    # Initial state
    IDLE = auto()

    # Per-event loop over the event source
    PROCESSING = auto()

    # End-of-job hooks
    FINALIZING = auto()

    # Output serialization
    WRITING = auto()

    # Terminal states
    COMPLETED = auto()
    ABORTED = auto()
    FAILED = auto()

    def is_terminal(self) -> bool:
        """Check if this is a terminal state."""
        return self in (JobState.COMPLETED, JobState.ABORTED, JobState.FAILED)

    def __str__(self) -> str:
        """String representation of state."""
        return self.name


# Valid state transitions
VALID_TRANSITIONS = {
    JobState.IDLE: {
        JobState.PROCESSING,
        JobState.FAILED,
    },
    JobState.PROCESSING: {
        JobState.FINALIZING,
        JobState.FAILED,
    },
    JobState.FINALIZING: {
        JobState.WRITING,
        JobState.FAILED,
    },
    JobState.WRITING: {
        JobState.COMPLETED,
        JobState.ABORTED,
        JobState.FAILED,
    },
    JobState.COMPLETED: set(),  # Terminal
    JobState.ABORTED: set(),    # Terminal
    JobState.FAILED: set(),     # Terminal
}


def is_valid_transition(from_state: JobState, to_state: JobState) -> bool:
    """
    Check if a state transition is valid.

    Args:
        from_state: Current state
        to_state: Target state

    Returns:
        True if transition is valid
    """
    return to_state in VALID_TRANSITIONS.get(from_state, set())
