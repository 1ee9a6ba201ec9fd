"""
Unit tests for domain models.

Tests that event views, statistics and configuration objects validate
correctly and are immutable.
"""

import math
from datetime import datetime, timedelta

import awkward as ak
import pytest

from domain import (
    AxisConfig,
    ConfigurationError,
    CutflowRow,
    Cutflow,
    CycleError,
    DuplicateNameError,
    EventId,
    EventView,
    FillOutcome,
    FillStatistics,
    HistogramConfig,
    JobConfig,
    JobStatistics,
    ModuleConfig,
    ModuleFailure,
)
from tests.conftest import make_view


class TestEventId:
    """Tests for EventId domain model."""

    def test_from_standard_fields(self):
        """Test building an identifier from run/luminosityBlock/event."""
        event_id = EventId.from_fields({"run": 1, "luminosityBlock": 7, "event": 42})
        assert event_id == EventId(1, 7, 42)
        assert str(event_id) == "1:7:42"

    def test_from_alternative_fields(self):
        """Test that ATLAS-style field names are recognized."""
        event_id = EventId.from_fields({"runNumber": 3, "eventNumber": 9})
        assert event_id == EventId(3, 0, 9)

    def test_fallback_event_number(self):
        """Test that the fallback is used when no event field exists."""
        assert EventId.from_fields({}, fallback_event=5).event == 5

    def test_negative_event_fails(self):
        """Test that negative event numbers raise ValueError."""
        with pytest.raises(ValueError, match="event must be non-negative"):
            EventId(1, 1, -1)

    def test_ordering(self):
        """Test that identifiers sort by run, then lumi, then event."""
        ids = [EventId(2, 1, 1), EventId(1, 2, 1), EventId(1, 1, 5)]
        assert sorted(ids) == [EventId(1, 1, 5), EventId(1, 2, 1), EventId(2, 1, 1)]


class TestEventView:
    """Tests for EventView domain model."""

    def test_field_access(self):
        """Test item access, get and has."""
        view = make_view(event=1, x=2.5)
        assert view["x"] == 2.5
        assert view.get("missing", 0.0) == 0.0
        assert view.has("x")
        assert not view.has("y")

    def test_record_field_lookup(self):
        """Test field lookups on awkward-backed views, including after with_truth."""
        record = ak.Array([{"event": 3, "MET_pt": 20.0, "Muon_pt": [30.0]}])[0]
        view = EventView.from_record(record)
        assert view.has("MET_pt")
        assert not view.has("pt")
        assert sorted(view.fields) == ["MET_pt", "Muon_pt", "event"]

        paired = view.with_truth(make_view(event=3))
        assert paired.has("Muon_pt")
        assert paired.get("MET_pt") == 20.0

    def test_missing_field_raises_key_error(self):
        """Test that a missing field raises KeyError."""
        view = make_view(event=1)
        with pytest.raises(KeyError, match="no field 'y'"):
            view["y"]

    def test_view_is_read_only(self):
        """Test that modules cannot mutate event data."""
        view = make_view(event=1, x=1.0)
        with pytest.raises(TypeError):
            view.data["x"] = 2.0
        with pytest.raises(Exception):  # FrozenInstanceError
            view.event_id = EventId(1, 1, 2)

    def test_source_mapping_is_copied(self):
        """Test that later changes to the source dict do not leak in."""
        data = {"event": 1, "x": 1.0}
        view = EventView.from_mapping(data)
        data["x"] = 99.0
        assert view["x"] == 1.0

    def test_collection_from_flat_branches(self):
        """Test zipping Muon_* branches into per-object records."""
        view = make_view(event=1, nMuon=2, Muon_pt=[30.0, 20.0], Muon_eta=[0.5, -1.0])
        muons = view.collection("Muon")
        assert len(muons) == 2
        assert muons[0]["pt"] == 30.0
        assert muons[1]["eta"] == -1.0
        assert view.count("Muon") == 2

    def test_collection_from_record_list(self):
        """Test a field holding a list of objects."""
        view = make_view(event=1, Jet=[{"pt": 40.0}, {"pt": 25.0}, {"pt": 15.0}])
        assert view.count("Jet") == 3
        assert view.collection("Jet")[2]["pt"] == 15.0

    def test_missing_collection_is_empty(self):
        """Test that an absent collection has no objects."""
        view = make_view(event=1)
        assert view.collection("Electron") == ()
        assert view.count("Electron") == 0

    def test_trigger_lookup(self):
        """Test the trigger map and HLT_ fields."""
        view = make_view(event=1, triggers={"IsoMu24": True}, HLT_IsoMu27=False, HLT_Mu50=True)
        assert view.trigger("IsoMu24")
        assert not view.trigger("IsoMu27")
        assert view.trigger("Mu50")
        assert not view.trigger("Ele32")

    def test_met_from_flat_fields(self):
        """Test missing transverse energy from MET_* fields."""
        view = make_view(event=1, MET_pt=35.0, MET_phi=0.5)
        assert view.met.pt == 35.0
        assert view.met.phi == 0.5
        assert view.met.sum_et is None
        assert make_view(event=2).met is None

    def test_from_awkward_record(self):
        """Test wrapping one entry of an awkward Array."""
        events = ak.Array([{"run": 1, "event": 10, "x": 1.5}, {"run": 1, "event": 11, "x": 2.5}])
        view = EventView.from_record(events[1])
        assert view.event_id == EventId(1, 0, 11)
        assert view["x"] == 2.5
        assert set(view.fields) == {"run", "event", "x"}

    def test_with_truth(self):
        """Test attaching a truth view without changing the original."""
        truth = make_view(event=1, x=1.0)
        reco = make_view(event=1, x=1.1)
        paired = reco.with_truth(truth)
        assert paired.truth is truth
        assert reco.truth is None


class TestFillStatistics:
    """Tests for FillStatistics domain model."""

    def test_counts(self):
        """Test outcome lookups."""
        stats = FillStatistics(
            name="h",
            attempts=5,
            outcomes=(("filled", 3), ("filter-skip", 2)),
            sum_weights=3.0,
            sum_weights_squared=3.0,
        )
        assert stats.filled == 3
        assert stats.skipped == 2
        assert stats.count(FillOutcome.SKIPPED_FILTER) == 2
        assert stats.count(FillOutcome.WEIGHT_ERROR) == 0
        assert not stats.is_paired

    def test_outcomes_must_add_up(self):
        """Test that every attempt has exactly one outcome."""
        with pytest.raises(ValueError, match="must add up to attempts"):
            FillStatistics(
                name="h",
                attempts=5,
                outcomes=(("filled", 3),),
                sum_weights=3.0,
                sum_weights_squared=3.0,
            )

    def test_reason_codes_are_stable(self):
        """Test the codes used in skip reports."""
        assert FillOutcome.SKIPPED_FILTER.reason_code == "filter-skip"
        assert FillOutcome.WEIGHT_ERROR.reason_code == "weight-skip"
        assert FillOutcome.UNMATCHED.reason_code == "unmatched-pair"
        assert not FillOutcome.FILLED.is_skip
        assert FillOutcome.NO_VALUE.is_skip


class TestCutflow:
    """Tests for Cutflow domain model."""

    def test_efficiencies(self):
        """Test individual and cumulative efficiencies."""
        row = CutflowRow(filter_name="two_muons", passed=60, cumulative=40, total=100)
        assert row.efficiency == 0.6
        assert row.cumulative_efficiency == 0.4

    def test_empty_job_efficiency_is_zero(self):
        """Test that zero events do not divide by zero."""
        row = CutflowRow(filter_name="trigger", passed=0, cumulative=0, total=0)
        assert row.efficiency == 0.0

    def test_selected(self):
        """Test that selected is the last cumulative count."""
        cutflow = Cutflow(
            module="preselection",
            total_events=100,
            rows=(
                CutflowRow("trigger", 80, 80, 100),
                CutflowRow("two_muons", 60, 50, 100),
            ),
        )
        assert cutflow.selected == 50
        assert cutflow.to_dict()["rows"][1]["cumulative"] == 50


class TestModuleFailure:
    """Tests for ModuleFailure domain model."""

    def test_process_failure_needs_event(self):
        """Test that process failures carry an event identifier."""
        with pytest.raises(ValueError, match="event_id must be provided"):
            ModuleFailure(module="m", phase="process", message="boom")

    def test_invalid_phase_fails(self):
        """Test that unknown phases are rejected."""
        with pytest.raises(ValueError, match="phase must be"):
            ModuleFailure(module="m", phase="setup", message="boom")


class TestJobStatistics:
    """Tests for JobStatistics domain model."""

    def test_event_accounting_must_balance(self):
        """Test that complete plus partial equals read."""
        now = datetime.now()
        with pytest.raises(ValueError, match="must equal events_read"):
            JobStatistics(
                events_read=10,
                events_complete=8,
                events_partial=1,
                start_time=now,
                end_time=now,
            )

    def test_end_before_start_fails(self):
        """Test that end_time must follow start_time."""
        now = datetime.now()
        with pytest.raises(ValueError, match="end_time must be after start_time"):
            JobStatistics(
                events_read=0,
                events_complete=0,
                events_partial=0,
                start_time=now,
                end_time=now - timedelta(seconds=1),
            )

    def test_to_dict(self):
        """Test JSON-ready conversion."""
        now = datetime.now()
        stats = JobStatistics(
            events_read=3,
            events_complete=2,
            events_partial=1,
            start_time=now,
            end_time=now + timedelta(seconds=2),
            abort_message="source failed",
        )
        result = stats.to_dict()
        assert result["events_partial"] == 1
        assert result["aborted"] is True
        assert math.isclose(stats.total_time_sec, 2.0)


class TestAxisConfig:
    """Tests for AxisConfig domain model."""

    def test_width(self):
        assert AxisConfig(bins=10, low=0.0, high=5.0).width == 0.5

    def test_zero_bins_fails(self):
        """Test that bins must be positive."""
        with pytest.raises(ConfigurationError, match="bins must be positive"):
            AxisConfig(bins=0, low=0.0, high=1.0)

    def test_inverted_range_fails(self):
        """Test that low must be below high."""
        with pytest.raises(ConfigurationError, match="must be below high edge"):
            AxisConfig(bins=10, low=1.0, high=1.0)


class TestHistogramConfig:
    """Tests for HistogramConfig domain model."""

    def test_from_dict_shorthand(self):
        """Test the one-dimensional bins/low/high shorthand."""
        config = HistogramConfig.from_dict(
            {"name": "pt", "value": "leading_pt", "bins": 50, "low": 0, "high": 250}
        )
        assert config.values == ("leading_pt",)
        assert config.axes == (AxisConfig(50, 0.0, 250.0),)
        assert config.kind == "scalar"

    def test_pair_needs_two_axes(self):
        """Test that a pair histogram is two-dimensional."""
        with pytest.raises(ConfigurationError, match="needs 2 axes"):
            HistogramConfig.from_dict(
                {"name": "xy", "kind": "pair", "value": ["x", "y"], "bins": 5, "low": 0, "high": 1}
            )

    def test_resolution_versus_needs_two_axes(self):
        """Test that a resolution histogram with versus is two-dimensional."""
        config = HistogramConfig.from_dict({
            "name": "res",
            "kind": "resolution",
            "value": ["gen_pt", "pt"],
            "versus": "gen_pt",
            "axes": [
                {"bins": 10, "low": 0, "high": 100},
                {"bins": 20, "low": -1, "high": 1},
            ],
        })
        assert config.is_paired
        assert len(config.axes) == 2

    def test_unknown_kind_fails(self):
        with pytest.raises(ConfigurationError, match="kind must be one of"):
            HistogramConfig(name="h", axes=(AxisConfig(1, 0, 1),), values=("x",), kind="profile")

    def test_scalar_with_two_values_fails(self):
        with pytest.raises(ConfigurationError, match="value name"):
            HistogramConfig(name="h", axes=(AxisConfig(1, 0, 1),), values=("x", "y"))


class TestModuleConfig:
    """Tests for ModuleConfig domain model."""

    def test_requires_is_added_to_depends_on(self):
        """Test that gating filter modules become dependencies."""
        config = ModuleConfig.from_dict({"name": "plots", "requires": ["preselection"]})
        assert config.depends_on == ("preselection",)
        assert config.requires == ("preselection",)

    def test_filter_module_needs_filters(self):
        with pytest.raises(ConfigurationError, match="needs at least one filter"):
            ModuleConfig(name="sel", type="filter")

    def test_requires_outside_depends_on_fails(self):
        with pytest.raises(ConfigurationError, match="must also be listed in depends_on"):
            ModuleConfig(name="plots", type="histogram", requires=("sel",))


class TestJobConfig:
    """Tests for JobConfig domain model."""

    def test_from_dict(self):
        """Test building a full job configuration."""
        config = JobConfig.from_dict({
            "run_metadata": {"run_name": "zmumu", "show_progress_bar": False},
            "input": {"files": ["a.root", "b.root"], "max_events": 100},
            "values": [{"name": "met_pt", "type": "met"}],
            "modules": [
                {
                    "name": "plots",
                    "histograms": [
                        {"name": "met", "value": "met_pt", "bins": 10, "low": 0, "high": 100},
                    ],
                },
            ],
        })
        assert config.run_name == "zmumu"
        assert config.input.files == ("a.root", "b.root")
        assert config.input.max_events == 100
        assert config.values[0].params == {}
        assert [h.name for h in config.histogram_configs] == ["met"]

    def test_no_modules_fails(self):
        with pytest.raises(ConfigurationError, match="At least one module"):
            JobConfig.from_dict({"modules": []})

    def test_duplicate_module_names_fail(self):
        """Test that module names are unique."""
        with pytest.raises(DuplicateNameError, match="Duplicate module name: 'a'"):
            JobConfig.from_dict({"modules": [{"name": "a"}, {"name": "a"}]})

    def test_duplicate_filter_names_fail(self):
        with pytest.raises(DuplicateNameError, match="Duplicate filter name"):
            JobConfig.from_dict({
                "modules": [{"name": "a"}],
                "filters": [
                    {"name": "f", "type": "trigger", "paths": ["A"]},
                    {"name": "f", "type": "trigger", "paths": ["B"]},
                ],
            })

    def test_batch_index_out_of_range_fails(self):
        with pytest.raises(ConfigurationError, match="must be in 1..2"):
            JobConfig.from_dict({
                "modules": [{"name": "a"}],
                "run_metadata": {"batch_job_index": 3, "total_batch_jobs": 2},
            })

    def test_is_immutable(self):
        config = JobConfig.from_dict({"modules": [{"name": "a"}]})
        with pytest.raises(Exception):  # FrozenInstanceError
            config.run_name = "other"


class TestErrors:
    """Tests for the error taxonomy."""

    def test_setup_errors_are_configuration_errors(self):
        """Test that setup errors share one base class."""
        assert issubclass(DuplicateNameError, ConfigurationError)
        assert issubclass(CycleError, ConfigurationError)

    def test_cycle_message_lists_path(self):
        error = CycleError(["a", "b", "a"])
        assert error.cycle == ("a", "b", "a")
        assert "a -> b -> a" in str(error)
