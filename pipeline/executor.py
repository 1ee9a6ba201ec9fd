"""
JobExecutor - High-level job driver.

Registers modules, validates the setup, wires the state machine and runs
one job over an event source. All setup errors surface from ``prepare``
before any event is read.

Outputs of one job:
  - <output_filename>   → histograms and cutflow tables (ROOT, via uproot)
  - <stats_filename>    → job statistics (JSON)
  - <report_filename>   → cutflow and fill report (text)
"""

import json
import logging
import os
from datetime import datetime
from typing import Optional, Sequence

from domain.config import InputConfig, JobConfig
from domain.errors import ConfigurationError, DuplicateNameError
from domain.statistics import JobStatistics
from orchestration import JobContext, JobState, StateMachine
from orchestration.handlers import (
    FILL_REPORT_ENTRY,
    FinalizeHandler,
    OutputHandler,
    ProcessingHandler,
    StartHandler,
)
from services.graph.event_loop import EventLoop
from services.graph.module_graph import ModuleGraph
from services.io.event_sources import EventSource, PairedEventSource, RootEventSource
from services.io.outputs import MemoryOutput, OutputContainer, RootOutput
from services.io.reports import format_cutflow, format_skip_report
from services.modules.base import Module
from services.modules.filter_module import FilterModule
from utils.batching import slice_input_files
from .builder import build_modules
from .catalog import AnalysisCatalog


class JobExecutor:
    """
    High-level job executor.

    Responsible for:
    1. Registering modules and resolving their order
    2. Rejecting duplicate output names before processing
    3. Building the state machine with handlers
    4. Running the job and reporting results
    """

    def __init__(
        self,
        modules: Sequence[Module] = (),
        output: Optional[OutputContainer] = None,
        run_name: str = "module_job",
        show_progress_bar: bool = False,
    ):
        self.graph = ModuleGraph()
        self.output = output if output is not None else MemoryOutput()
        self.run_name = run_name
        self.show_progress_bar = show_progress_bar
        self.logger = logging.getLogger(self.__class__.__name__)
        self._order: Optional[list[Module]] = None

        for module in modules:
            self.add_module(module)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def add_module(self, module: Module):
        """
        Register a module.

        Raises:
            DuplicateNameError: If the module name is already registered
        """
        self.graph.add_module(module)
        self._order = None

    def prepare(self) -> list[Module]:
        """
        Validate the setup and resolve the execution order.

        Raises:
            ConfigurationError: On duplicate names, missing dependencies or
                dependency cycles
        """
        order = self.graph.resolve()
        self._check_output_names(order)
        self._order = order
        return list(order)

    @staticmethod
    def _check_output_names(modules: Sequence[Module]):
        owners = {FILL_REPORT_ENTRY: "<job>"}
        for module in modules:
            for name in module.output_names():
                if name in owners:
                    raise DuplicateNameError(
                        "output entry", f"{name} (modules '{owners[name]}' and '{module.name}')"
                    )
                owners[name] = module.name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, source: EventSource) -> JobContext:
        """
        Execute the job over an event source.

        Args:
            source: Finite, restartable sequence of events

        Returns:
            Final job context (COMPLETED, ABORTED or FAILED)
        """
        if self._order is None:
            self.prepare()

        self.logger.info(f"Initializing job execution: {self.run_name}")
        state_machine = self._build_state_machine(self._order, source)
        initial_context = JobContext(run_name=self.run_name, current_state=JobState.IDLE)
        final_context = state_machine.run(initial_context)
        self._log_results(final_context)
        return final_context

    @property
    def modules(self) -> list[Module]:
        """Modules in execution order."""
        if self._order is None:
            return self.graph.order
        return list(self._order)

    def statistics(self, context: JobContext) -> JobStatistics:
        """Immutable job statistics for a finished context."""
        modules = self.modules
        return JobStatistics(
            events_read=context.events_read,
            events_complete=context.events_complete,
            events_partial=context.events_partial,
            start_time=context.start_time,
            end_time=context.end_time or datetime.now(),
            module_failures=context.module_failures,
            histograms=tuple(s for m in modules for s in m.fill_statistics()),
            cutflows=tuple(m.cutflow() for m in modules if isinstance(m, FilterModule)),
            abort_message=context.abort_message,
        )

    def save_reports(
        self,
        output_dir: str,
        context: JobContext,
        stats_filename: str = "job_stats.json",
        report_filename: str = "cutflow.txt",
    ) -> tuple[str, str]:
        """
        Save job statistics (JSON) and the cutflow/fill report (text).

        Returns:
            Tuple of (stats path, report path)
        """
        os.makedirs(output_dir, exist_ok=True)
        stats = self.statistics(context)

        stats_path = os.path.join(output_dir, stats_filename)
        payload = {"summary": context.get_summary(), "statistics": stats.to_dict()}
        with open(stats_path, "w") as f:
            json.dump(payload, f, indent=2, default=str)

        report_path = os.path.join(output_dir, report_filename)
        with open(report_path, "w") as f:
            for cutflow in stats.cutflows:
                f.write(format_cutflow(cutflow))
                f.write("\n")
            f.write(format_skip_report(stats.histograms))

        self.logger.info(f"Saved job stats to: {stats_path}")
        self.logger.info(f"Saved cutflow report to: {report_path}")
        return stats_path, report_path

    # ------------------------------------------------------------------
    # Construction from configuration
    # ------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: JobConfig,
        catalog: Optional[AnalysisCatalog] = None,
        output: Optional[OutputContainer] = None,
    ) -> 'JobExecutor':
        """
        Build an executor from a validated job configuration.

        Args:
            config: Job configuration
            catalog: Named components; built from ``config`` when omitted
            output: Output container; a ROOT file under ``output_dir``
                when omitted

        Raises:
            ConfigurationError: If the configuration cannot be wired
        """
        catalog = catalog or AnalysisCatalog.from_config(config)
        modules = build_modules(config, catalog)
        if output is None:
            output = RootOutput(os.path.join(config.output.output_dir, config.output.output_filename))
        return cls(
            modules,
            output=output,
            run_name=config.run_name,
            show_progress_bar=config.show_progress_bar,
        )

    @staticmethod
    def build_source(
        input_config: InputConfig,
        batch_job_index: Optional[int] = None,
        total_batch_jobs: Optional[int] = None,
    ) -> EventSource:
        """
        Build the ROOT event source for a job, sliced for batch jobs.

        Raises:
            ConfigurationError: If no input files are configured
        """
        if not input_config.files:
            raise ConfigurationError("No input files configured")

        if batch_job_index is not None:
            input_config = slice_input_files(input_config, batch_job_index, total_batch_jobs)
        files = list(input_config.files)
        truth_files = list(input_config.truth_files)

        reco = RootEventSource(
            files,
            tree_name=input_config.tree_name,
            branches=input_config.branches,
            step_size=input_config.step_size,
        )
        if not truth_files:
            if input_config.max_events is not None:
                reco.max_events = input_config.max_events
            return reco

        truth = RootEventSource(
            truth_files,
            tree_name=input_config.truth_tree_name or input_config.tree_name,
            step_size=input_config.step_size,
        )
        return PairedEventSource(reco, truth, max_events=input_config.max_events)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_state_machine(self, order: list[Module], source: EventSource) -> StateMachine:
        handlers = {
            JobState.IDLE: StartHandler(order),
            JobState.PROCESSING: ProcessingHandler(
                EventLoop(order), source, show_progress_bar=self.show_progress_bar
            ),
            JobState.FINALIZING: FinalizeHandler(order),
            JobState.WRITING: OutputHandler(order, self.output),
        }
        return StateMachine(handlers)

    def _log_results(self, context: JobContext):
        self.logger.info(
            f"Job '{context.run_name}' finished in state {context.current_state}: "
            f"{context.events_read} events read, {context.events_partial} partially processed, "
            f"{len(context.module_failures)} module failure(s)"
        )
        for failure in context.module_failures[:10]:
            where = f" event {failure.event_id}" if failure.event_id else ""
            self.logger.warning(f"  [{failure.phase}] {failure.module}{where}: {failure.message}")
        if len(context.module_failures) > 10:
            self.logger.warning(f"  ... and {len(context.module_failures) - 10} more")
