"""
FinalizeHandler - Handles the FINALIZING state.
"""

from typing import Sequence

from domain.statistics import ModuleFailure
from orchestration.context import JobContext
from orchestration.states import JobState
from services.modules.base import Module
from .base import StateHandler


class FinalizeHandler(StateHandler):
    """
    Calls ``finalize`` on every module in execution order.

    A failing module is excluded from output serialization; the others
    still finalize.
    """

    def __init__(self, modules: Sequence[Module]):
        super().__init__()
        self.modules = tuple(modules)

    def handle(self, context: JobContext) -> tuple[JobContext, JobState]:
        self._log_state_entry(context)

        failed = []
        failures = []
        for module in self.modules:
            try:
                module.finalize()
            except Exception as e:
                self.logger.error(f"Finalize failed for module '{module.name}': {e}", exc_info=True)
                failed.append(module.name)
                failures.append(ModuleFailure(module=module.name, phase="finalize", message=str(e)))

        context = context.with_failures(failures).with_finalize_failed(failed)

        next_state = JobState.WRITING
        self._log_state_exit(context, next_state)
        return context, next_state
