"""
HistogramModule - Fills histograms gated by upstream selections.
"""

from typing import Sequence

from domain.errors import DuplicateNameError
from domain.events import EventView
from domain.statistics import FillOutcome, FillStatistics
from services.histograms.spec import HistogramSpec
from .base import Module, UpstreamRecord


class HistogramModule(Module):
    """
    Module owning a set of histogram specifications.

    Every owned spec gets one fill attempt per event. When ``requires``
    names filter modules, an empty tag from any of them turns the attempt
    into a filter skip for every spec without evaluating it.
    """

    def __init__(
        self,
        name: str,
        histograms: Sequence[HistogramSpec],
        depends_on: Sequence[str] = (),
        requires: Sequence[str] = (),
    ):
        """
        Initialize histogram module.

        Args:
            name: Module name
            histograms: Histogram specs filled by this module
            depends_on: Modules that must run first
            requires: Filter modules whose combined tag gates all fills;
                they are added to ``depends_on`` when missing
        """
        dependencies = list(depends_on)
        for required in requires:
            if required not in dependencies:
                dependencies.append(required)
        super().__init__(name, dependencies)

        names = set()
        for spec in histograms:
            if spec.name in names:
                raise DuplicateNameError("histogram", spec.name)
            names.add(spec.name)

        self.histograms = tuple(histograms)
        self.requires = tuple(requires)

    def process(self, view: EventView, upstream: UpstreamRecord) -> dict[str, FillOutcome]:
        if not self._gate_passes(upstream):
            for spec in self.histograms:
                spec.record(FillOutcome.SKIPPED_FILTER)
            return {spec.name: FillOutcome.SKIPPED_FILTER for spec in self.histograms}

        return {spec.name: spec.fill(view) for spec in self.histograms}

    def _gate_passes(self, upstream: UpstreamRecord) -> bool:
        return all(upstream.tag(module) for module in self.requires)

    def histogram(self, name: str) -> HistogramSpec:
        """Look up an owned histogram by name."""
        for spec in self.histograms:
            if spec.name == name:
                return spec
        raise KeyError(f"Module '{self.name}' has no histogram '{name}'")

    def finalize(self):
        for spec in self.histograms:
            stats = spec.statistics()
            self.logger.info(
                f"{self.name}/{spec.name}: filled {stats.filled}/{stats.attempts} "
                f"(sum of weights {stats.sum_weights:.4g})"
            )

    def output_names(self) -> list[str]:
        return [spec.name for spec in self.histograms]

    def write(self, container):
        for spec in self.histograms:
            container.put_histogram(spec.name, spec.hist)

    def fill_statistics(self) -> list[FillStatistics]:
        return [spec.statistics() for spec in self.histograms]
