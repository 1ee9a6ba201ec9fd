"""
Histogram specifications.

A HistogramSpec owns a binned accumulator (``hist.Hist`` with weight
storage) and composes Filters (AND), ScaleFactors (product) and a value
extractor into a single fill decision per event.
"""

import logging
from collections import Counter
from typing import Optional, Sequence
import hist
import numpy as np

from domain.config import AxisConfig
from domain.errors import FilterEvaluationError, WeightEvaluationError
from domain.events import EventView
from domain.statistics import FillOutcome, FillStatistics, PairState
from services.selection.filters import Filter
from services.selection.scale_factors import ScaleFactor, compose_weight
from .extractors import ValueExtractor


AXIS_NAMES = ("x", "y")


class HistogramSpec:
    """
    Binned accumulator with composed selection and weighting.

    The fill decision and weight depend only on the event content and the
    attached filters and scale factors.
    """

    def __init__(
        self,
        name: str,
        axes: Sequence[AxisConfig],
        extractor: ValueExtractor,
        filters: Sequence[Filter] = (),
        scale_factors: Sequence[ScaleFactor] = (),
        title: str = "",
    ):
        """
        Initialize histogram specification.

        Args:
            name: Output entry name, unique within one job
            axes: Fixed binning, one per dimension
            extractor: Value extractor variant
            filters: Filters evaluated in order with AND semantics
            scale_factors: Scale factors multiplied into the fill weight
            title: Optional histogram title
        """
        if not name:
            raise ValueError("Histogram name cannot be empty")
        if len(axes) != extractor.dimensions:
            raise ValueError(
                f"Histogram '{name}': extractor produces {extractor.dimensions} "
                f"value(s) but {len(axes)} axes were given"
            )
        if len(axes) > len(AXIS_NAMES):
            raise ValueError(f"Histogram '{name}': at most {len(AXIS_NAMES)} axes supported")

        self.name = name
        self.title = title or name
        self.axes = tuple(axes)
        self.extractor = extractor
        self.filters = tuple(filters)
        self.scale_factors = tuple(scale_factors)
        self.logger = logging.getLogger(self.__class__.__name__)

        self._hist = hist.Hist(
            *[
                hist.axis.Regular(a.bins, a.low, a.high, name=AXIS_NAMES[i], label=a.label or AXIS_NAMES[i])
                for i, a in enumerate(self.axes)
            ],
            storage=hist.storage.Weight(),
            name=self.name,
            label=self.title,
        )
        self._outcomes: Counter = Counter()
        self._sum_weights = 0.0
        self._sum_weights_squared = 0.0

    # ------------------------------------------------------------------
    # Filling
    # ------------------------------------------------------------------

    def fill(self, view: EventView) -> FillOutcome:
        """Run one fill attempt for a single event view."""
        if self.extractor.paired:
            raise TypeError(f"Histogram '{self.name}' needs a truth/reco pair")
        outcome = self._attempt(view, (view,))
        self.record(outcome)
        return outcome

    def record(self, outcome: FillOutcome):
        """Count an attempt decided outside the spec (e.g. a gated module)."""
        self._outcomes[outcome] += 1

    def _attempt(self, selection_view: EventView, value_views: tuple) -> FillOutcome:
        for f in self.filters:
            try:
                tag = f.evaluate(selection_view)
            except FilterEvaluationError as e:
                self.logger.debug(f"{self.name}: {e} on event {selection_view.event_id}")
                return FillOutcome.FILTER_ERROR
            if not tag:
                return FillOutcome.SKIPPED_FILTER

        try:
            weight = compose_weight(self.scale_factors, selection_view)
        except WeightEvaluationError as e:
            self.logger.debug(f"{self.name}: {e} on event {selection_view.event_id}")
            return FillOutcome.WEIGHT_ERROR

        values = self.extractor.extract(*value_views)
        if values is None:
            return FillOutcome.NO_VALUE

        self._hist.fill(*[np.asarray([v]) for v in values], weight=np.asarray([weight]))
        self._sum_weights += weight
        self._sum_weights_squared += weight * weight
        return FillOutcome.FILLED

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def hist(self) -> hist.Hist:
        """The underlying accumulator."""
        return self._hist

    @property
    def dimensions(self) -> int:
        return len(self.axes)

    def edges(self) -> tuple[np.ndarray, ...]:
        """Bin edges, one array per axis."""
        return tuple(np.asarray(axis.edges) for axis in self._hist.axes)

    def contents(self, flow: bool = False) -> np.ndarray:
        """Sum of weights per bin."""
        return np.asarray(self._hist.values(flow=flow))

    def variances(self, flow: bool = False) -> np.ndarray:
        """Sum of squared weights per bin."""
        return np.asarray(self._hist.variances(flow=flow))

    def total_weight(self) -> float:
        """Sum of weights over all bins, including under- and overflow."""
        return float(self._hist.sum(flow=True).value)

    def count(self, outcome: FillOutcome) -> int:
        return self._outcomes[outcome]

    @property
    def attempts(self) -> int:
        return sum(self._outcomes.values())

    def statistics(self) -> FillStatistics:
        """Immutable snapshot of fill accounting."""
        return FillStatistics(
            name=self.name,
            attempts=self.attempts,
            outcomes=tuple(
                (outcome.reason_code, self._outcomes[outcome])
                for outcome in FillOutcome
                if self._outcomes[outcome]
            ),
            sum_weights=self._sum_weights,
            sum_weights_squared=self._sum_weights_squared,
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name={self.name!r}, "
            f"kind={self.extractor.kind.value}, attempts={self.attempts})"
        )


class PairedHistogramSpec(HistogramSpec):
    """
    Histogram comparing a truth view with a reconstructed view.

    Each pair starts UNMATCHED, becomes MATCHED when both views carry the
    same event identifier, and ends FILLED or SKIPPED after the standard
    fill contract. Unmatched pairs are counted, never dropped silently.
    """

    def __init__(
        self,
        name: str,
        axes: Sequence[AxisConfig],
        extractor: ValueExtractor,
        filters: Sequence[Filter] = (),
        scale_factors: Sequence[ScaleFactor] = (),
        title: str = "",
        selection_view: str = "reco",
    ):
        if not extractor.paired:
            raise ValueError(f"Histogram '{name}': paired histograms need a paired extractor")
        if selection_view not in ("reco", "truth"):
            raise ValueError(f"selection_view must be 'reco' or 'truth', got '{selection_view}'")
        super().__init__(name, axes, extractor, filters, scale_factors, title)
        self.selection_view = selection_view
        self._states: Counter = Counter()

    def fill(self, view: EventView) -> FillOutcome:
        """Fill from a reconstructed view carrying its truth view."""
        _, outcome = self.fill_pair(view.truth, view)
        return outcome

    def fill_pair(
        self,
        truth: Optional[EventView],
        reco: Optional[EventView],
    ) -> tuple[PairState, FillOutcome]:
        """
        Run one fill attempt for a truth/reco pair.

        Returns:
            Tuple of (final pair state, fill outcome)
        """
        if truth is None or reco is None or truth.event_id != reco.event_id:
            self._states[PairState.UNMATCHED] += 1
            self.record(FillOutcome.UNMATCHED)
            return PairState.UNMATCHED, FillOutcome.UNMATCHED

        self._states[PairState.MATCHED] += 1
        selection = reco if self.selection_view == "reco" else truth
        outcome = self._attempt(selection, (truth, reco))
        self.record(outcome)

        state = PairState.FILLED if outcome is FillOutcome.FILLED else PairState.SKIPPED
        self._states[state] += 1
        return state, outcome

    @property
    def matched(self) -> int:
        return self._states[PairState.MATCHED]

    @property
    def unmatched(self) -> int:
        return self._states[PairState.UNMATCHED]

    @property
    def filled(self) -> int:
        return self._states[PairState.FILLED]

    def statistics(self) -> FillStatistics:
        base = super().statistics()
        return FillStatistics(
            name=base.name,
            attempts=base.attempts,
            outcomes=base.outcomes,
            sum_weights=base.sum_weights,
            sum_weights_squared=base.sum_weights_squared,
            matched=self.matched,
            unmatched=self.unmatched,
        )
