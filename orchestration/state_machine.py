"""
State machine for job execution.

Orchestrates state transitions and handler execution.
"""

import logging
from typing import Dict

from .context import JobContext
from .states import JobState, is_valid_transition
from .handlers.base import StateHandler


class StateMachine:
    """
    State machine for orchestrating one job.

    Manages state transitions and delegates work to state handlers.
    """

    REQUIRED_STATES = (
        JobState.IDLE,
        JobState.PROCESSING,
        JobState.FINALIZING,
        JobState.WRITING,
    )

    def __init__(self, handlers: Dict[JobState, StateHandler]):
        """
        Initialize state machine.

        Args:
            handlers: Dict mapping states to their handlers
        """
        self.handlers = handlers
        self.logger = logging.getLogger(self.__class__.__name__)

        self._validate_handlers()

    def _validate_handlers(self):
        """Validate that all necessary handlers are provided."""
        missing = set(self.REQUIRED_STATES) - set(self.handlers.keys())
        if missing:
            self.logger.warning(
                f"Missing handlers for states: {sorted(str(s) for s in missing)}"
            )

    def run(self, initial_context: JobContext) -> JobContext:
        """
        Run the state machine until a terminal state is reached.

        Args:
            initial_context: Initial job context

        Returns:
            Final job context
        """
        context = initial_context
        iteration = 0
        max_iterations = 2 * len(JobState)  # Safety limit

        self.logger.info("=" * 60)
        self.logger.info(f"Starting job: {context.run_name}")
        self.logger.info("=" * 60)

        while not context.is_terminal and iteration < max_iterations:
            iteration += 1

            try:
                context = self._execute_state(context)
            except Exception as e:
                self.logger.error(f"Error in state {context.current_state}: {e}", exc_info=True)
                context = context.with_error(
                    message=f"Error in {context.current_state}: {str(e)}",
                    details={"iteration": iteration, "state": str(context.current_state)}
                )
                break

        if iteration >= max_iterations and not context.is_terminal:
            self.logger.error("State machine exceeded maximum iterations")
            context = context.with_error(
                message="Job exceeded maximum iterations",
                details={"iterations": iteration}
            )

        self._log_final_state(context)
        return context

    def _execute_state(self, context: JobContext) -> JobContext:
        """
        Execute the current state's handler.

        Args:
            context: Current job context

        Returns:
            Updated job context
        """
        current_state = context.current_state

        self.logger.debug(f"Current state: {current_state}")

        handler = self.handlers.get(current_state)
        if handler is None:
            self.logger.error(f"No handler for state {current_state}")
            return context.with_error(message=f"No handler for state {current_state}")

        updated_context, next_state = handler.handle(context)

        if not is_valid_transition(current_state, next_state):
            self.logger.error(f"Invalid transition: {current_state} → {next_state}")
            return context.with_error(
                message=f"Invalid state transition: {current_state} → {next_state}"
            )

        self.logger.info(f"Transition: {current_state} → {next_state}")
        return updated_context.with_state(next_state)

    def _log_final_state(self, context: JobContext):
        """Log final job state."""
        self.logger.info("=" * 60)

        if context.is_successful:
            self.logger.info("✓ Job completed successfully")
        elif context.was_aborted:
            self.logger.error(f"✗ Job aborted, partial output written: {context.abort_message}")
        else:
            self.logger.error(f"✗ Job failed: {context.error_message}")

        self.logger.info(f"Final state: {context.current_state}")
        self.logger.info(f"Elapsed time: {context.elapsed_time:.1f}s")

        summary = context.get_summary()
        for key, value in summary.items():
            self.logger.info(f"  {key}: {value}")

        self.logger.info("=" * 60)
