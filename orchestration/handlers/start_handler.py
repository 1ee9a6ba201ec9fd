"""
StartHandler - Handles the IDLE state.
"""

from typing import Sequence

from orchestration.context import JobContext
from orchestration.states import JobState
from services.modules.base import Module
from .base import StateHandler


class StartHandler(StateHandler):
    """Logs the resolved module order and starts event processing."""

    def __init__(self, modules: Sequence[Module]):
        super().__init__()
        self.modules = tuple(modules)

    def handle(self, context: JobContext) -> tuple[JobContext, JobState]:
        self._log_state_entry(context)
        self.logger.info(f"{len(self.modules)} module(s) in execution order:")
        for position, module in enumerate(self.modules, start=1):
            deps = ", ".join(module.depends_on) or "-"
            self.logger.info(f"  {position}. {module.name} (depends on: {deps})")

        next_state = JobState.PROCESSING
        self._log_state_exit(context, next_state)
        return context, next_state
