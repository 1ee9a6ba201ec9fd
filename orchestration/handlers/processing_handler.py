"""
ProcessingHandler - Handles the PROCESSING state.

Pulls events from the source one at a time and drives each through the
event loop. An event source failure ends processing early but still
leads to finalization so partial results are kept.
"""

from tqdm import tqdm

from domain.errors import EventAccessError
from domain.statistics import ModuleFailure
from orchestration.context import JobContext
from orchestration.states import JobState
from services.graph.event_loop import EventLoop
from services.io.event_sources import EventSource
from .base import StateHandler


class ProcessingHandler(StateHandler):
    """Handler for PROCESSING state."""

    def __init__(self, loop: EventLoop, source: EventSource, show_progress_bar: bool = False):
        """
        Initialize processing handler.

        Args:
            loop: Event loop over the resolved module order
            source: Event source for this job
            show_progress_bar: Show a tqdm progress bar over events
        """
        super().__init__()
        self.loop = loop
        self.source = source
        self.show_progress_bar = show_progress_bar

    def handle(self, context: JobContext) -> tuple[JobContext, JobState]:
        self._log_state_entry(context)

        read = complete = partial = 0
        failures: list[ModuleFailure] = []
        abort_message = None

        progress = tqdm(
            total=self.source.expected_events(),
            desc="Processing events",
            unit="evt",
            disable=not self.show_progress_bar,
        )
        try:
            for view in self.source:
                read += 1
                result = self.loop.process_event(view)
                if result.is_complete:
                    complete += 1
                else:
                    partial += 1
                    failures.append(
                        ModuleFailure(
                            module=result.failure.module,
                            phase="process",
                            message=str(result.failure.cause),
                            event_id=str(result.event_id),
                        )
                    )
                progress.update(1)
        except EventAccessError as e:
            abort_message = str(e)
            self.logger.error(f"Event source failed after {read} events: {e}")
        finally:
            progress.close()

        self.logger.info(
            f"Processed {read} events: {complete} complete, {partial} partially processed"
        )

        context = context.with_event_counts(read, complete, partial).with_failures(failures)
        if abort_message is not None:
            context = context.with_abort(abort_message)

        next_state = JobState.FINALIZING
        self._log_state_exit(context, next_state)
        return context, next_state
