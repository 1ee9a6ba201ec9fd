"""
Base state handler.

Abstract base class for all state handlers.
"""

from abc import ABC, abstractmethod
import logging

from orchestration.context import JobContext
from orchestration.states import JobState


class StateHandler(ABC):
    """
    Base class for state handlers.

    Each state handler implements the logic for transitioning
    from one state to the next.
    """

    def __init__(self):
        """Initialize state handler."""
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def handle(self, context: JobContext) -> tuple[JobContext, JobState]:
        """
        Handle the current state and determine next state.

        Args:
            context: Current job context

        Returns:
            Tuple of (updated_context, next_state)

        Raises:
            Exception: If state handling fails
        """
        pass

    def _log_state_entry(self, context: JobContext):
        """Log entry to state."""
        self.logger.info(f"Entering state: {context.current_state}")

    def _log_state_exit(self, context: JobContext, next_state: JobState):
        """Log exit from state."""
        self.logger.info(f"Exiting state: {context.current_state} → {next_state}")
