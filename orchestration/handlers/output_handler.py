"""
OutputHandler - Handles the WRITING state.

Serializes every successfully finalized module into the output container,
followed by the fill report.
"""

from typing import Sequence

from domain.statistics import ModuleFailure
from orchestration.context import JobContext
from orchestration.states import JobState
from services.io.outputs import OutputContainer
from services.io.reports import format_skip_report
from services.modules.base import Module
from .base import StateHandler


FILL_REPORT_ENTRY = "fill_report"


class OutputHandler(StateHandler):
    """Handler for WRITING state."""

    def __init__(self, modules: Sequence[Module], output: OutputContainer):
        super().__init__()
        self.modules = tuple(modules)
        self.output = output

    def handle(self, context: JobContext) -> tuple[JobContext, JobState]:
        self._log_state_entry(context)

        failures = []
        statistics = []
        with self.output:
            for module in self.modules:
                if module.name in context.finalize_failed:
                    self.logger.warning(f"Skipping output of '{module.name}' (finalize failed)")
                    continue
                try:
                    module.write(self.output)
                except Exception as e:
                    self.logger.error(f"Writing output of '{module.name}' failed: {e}", exc_info=True)
                    failures.append(ModuleFailure(module=module.name, phase="write", message=str(e)))
                    continue
                statistics.extend(module.fill_statistics())

            self.output.put_text(FILL_REPORT_ENTRY, format_skip_report(statistics))

        context = context.with_failures(failures).with_written_entries(self.output.names)

        next_state = JobState.ABORTED if context.abort_message else JobState.COMPLETED
        self._log_state_exit(context, next_state)
        return context, next_state
