"""
Unit tests for FilterModule and HistogramModule.
"""

import pytest

from domain.errors import DuplicateNameError
from domain.statistics import FillOutcome
from services.histograms import HistogramSpec, ScalarExtractor
from services.modules import FilterModule, HistogramModule, UpstreamRecord
from services.modules.filter_module import FilterDecision
from services.selection import FunctionFilter
from tests.conftest import make_view


def run_filter_module(module, views):
    decisions = []
    for view in views:
        decisions.append(module.process(view, UpstreamRecord()))
        module.events_processed += 1
    return decisions


class TestUpstreamRecord:
    """Tests for the read-only upstream mapping."""

    def test_tag_of_missing_module_is_empty(self):
        assert UpstreamRecord().tag("selection") == ""

    def test_extended_leaves_original(self):
        record = UpstreamRecord()
        extended = record.extended("a", 1)
        assert "a" not in record
        assert extended["a"] == 1

    def test_tag_of_filter_decision(self):
        record = UpstreamRecord({"sel": FilterDecision(tag="IsoMu24", tags=(("trigger", "IsoMu24"),))})
        assert record.tag("sel") == "IsoMu24"


class TestFilterModule:
    """Tests for FilterModule cutflows."""

    def test_cutflow_counts(self):
        """Test individual and cumulative pass counts."""
        module = FilterModule(
            "preselection",
            [
                FunctionFilter("even", lambda v: v.event_id.event % 2 == 0),
                FunctionFilter("small", lambda v: v.event_id.event < 5),
            ],
        )
        run_filter_module(module, [make_view(event=i) for i in range(10)])

        cutflow = module.cutflow()
        assert cutflow.total_events == 10
        assert [row.passed for row in cutflow.rows] == [5, 5]
        assert [row.cumulative for row in cutflow.rows] == [5, 3]
        assert cutflow.selected == 3

    def test_decision_tags(self):
        module = FilterModule(
            "sel",
            [FunctionFilter("trigger", lambda v: "IsoMu24"), FunctionFilter("muons", lambda v: v["n"] >= 2)],
        )
        passing, failing = run_filter_module(
            module, [make_view(event=1, n=2), make_view(event=2, n=1)]
        )

        assert passing.tag == "IsoMu24&muons"
        assert passing
        assert not failing
        assert failing.tag_of("trigger") == "IsoMu24"
        assert failing.tag_of("muons") is None

    def test_events_are_annotated_not_dropped(self):
        """Test that later filters still see events failing earlier ones."""
        seen = []
        module = FilterModule(
            "sel",
            [
                FunctionFilter("never", lambda v: False),
                FunctionFilter("spy", lambda v: seen.append(v.event_id.event) or True),
            ],
        )
        run_filter_module(module, [make_view(event=i) for i in (1, 2)])
        assert seen == [1, 2]
        assert module.cutflow().rows[1].passed == 2
        assert module.cutflow().rows[1].cumulative == 0

    def test_filter_error_counts_as_failed_selection(self):
        """Test that a raising filter never lets pass counts exceed the total."""
        module = FilterModule(
            "sel",
            [FunctionFilter("all", lambda v: True), FunctionFilter("broken", lambda v: 1 / 0)],
        )
        decisions = [module.process(make_view(event=i), UpstreamRecord()) for i in range(3)]

        assert [d.tag for d in decisions] == ["", "", ""]
        assert decisions[0].tag_of("all") == "all"
        cutflow = module.cutflow()
        assert cutflow.total_events == 3
        assert [row.passed for row in cutflow.rows] == [3, 0]
        assert all(row.passed <= row.total for row in cutflow.rows)
        assert [row.errors for row in cutflow.rows] == [0, 3]
        assert cutflow.selected == 0
        assert cutflow.to_dict()["rows"][1]["errors"] == 3

    def test_duplicate_filter_fails(self):
        f = FunctionFilter("f", lambda v: True)
        with pytest.raises(DuplicateNameError, match="Duplicate filter name: 'f'"):
            FilterModule("sel", [f, f])

    def test_write_cutflow_table(self):
        from services.io import MemoryOutput

        module = FilterModule("sel", [FunctionFilter("all", lambda v: True)])
        run_filter_module(module, [make_view(event=1)])
        module.finalize()

        output = MemoryOutput()
        module.write(output)
        assert output.names == ["cutflow_sel"]
        assert "Cutflow: sel (1 events)" in output.texts["cutflow_sel"]


class TestHistogramModule:
    """Tests for HistogramModule gating and output."""

    @staticmethod
    def _spec(name, unit_axis):
        return HistogramSpec(name, [unit_axis], ScalarExtractor(lambda v: 5.0))

    def test_requires_adds_dependency(self, unit_axis):
        module = HistogramModule("plots", [self._spec("h", unit_axis)], requires=["sel"])
        assert module.depends_on == ("sel",)

    def test_failed_gate_counts_filter_skip(self, unit_axis):
        """Test that an empty upstream tag skips every owned histogram."""
        module = HistogramModule(
            "plots", [self._spec("a", unit_axis), self._spec("b", unit_axis)], requires=["sel"]
        )
        passed = UpstreamRecord({"sel": FilterDecision(tag="ok", tags=(("f", "ok"),))})
        failed = UpstreamRecord({"sel": FilterDecision(tag="", tags=(("f", None),))})

        module.process(make_view(event=1), passed)
        outcomes = module.process(make_view(event=2), failed)

        assert outcomes == {"a": FillOutcome.SKIPPED_FILTER, "b": FillOutcome.SKIPPED_FILTER}
        for name in ("a", "b"):
            spec = module.histogram(name)
            assert spec.count(FillOutcome.FILLED) == 1
            assert spec.count(FillOutcome.SKIPPED_FILTER) == 1

    def test_duplicate_histogram_fails(self, unit_axis):
        with pytest.raises(DuplicateNameError, match="Duplicate histogram name: 'h'"):
            HistogramModule("plots", [self._spec("h", unit_axis), self._spec("h", unit_axis)])

    def test_unknown_histogram(self, unit_axis):
        module = HistogramModule("plots", [self._spec("h", unit_axis)])
        with pytest.raises(KeyError):
            module.histogram("other")

    def test_output_names_and_statistics(self, unit_axis):
        module = HistogramModule("plots", [self._spec("a", unit_axis), self._spec("b", unit_axis)])
        module.process(make_view(event=1), UpstreamRecord())

        assert module.output_names() == ["a", "b"]
        assert [s.filled for s in module.fill_statistics()] == [1, 1]
