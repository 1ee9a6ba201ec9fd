"""
Shared fixtures for the test suite.
"""

import awkward as ak
import numpy as np
import pytest
import uproot

from domain.config import AxisConfig
from domain.events import EventView
from services.modules.base import Module, UpstreamRecord


def make_view(event: int, run: int = 1, truth=None, triggers=None, **fields) -> EventView:
    """Build an EventView from keyword fields."""
    data = {"run": run, "luminosityBlock": 1, "event": event}
    data.update(fields)
    return EventView.from_mapping(data, triggers=triggers, truth=truth)


class RecordingModule(Module):
    """Module that records the events it saw and what it saw upstream."""

    def __init__(self, name, depends_on=(), fail_on=(), fail_finalize=False):
        super().__init__(name, depends_on)
        self.seen = []
        self.upstream_seen = []
        self.fail_on = set(fail_on)
        self.fail_finalize = fail_finalize
        self.finalized = False

    def process(self, view: EventView, upstream: UpstreamRecord):
        if view.event_id.event in self.fail_on:
            raise RuntimeError(f"{self.name} cannot handle event {view.event_id.event}")
        self.seen.append(view.event_id.event)
        self.upstream_seen.append(sorted(upstream.keys()))
        return f"{self.name}:{view.event_id.event}"

    def finalize(self):
        if self.fail_finalize:
            raise RuntimeError(f"{self.name} finalize failed")
        self.finalized = True


@pytest.fixture
def view_factory():
    return make_view


@pytest.fixture
def three_events():
    return [make_view(event=i) for i in (1, 2, 3)]


@pytest.fixture
def unit_axis():
    """Ten unit-width bins over [0, 10)."""
    return AxisConfig(bins=10, low=0.0, high=10.0)


@pytest.fixture
def events_file(tmp_path):
    """Small NanoAOD-like tree with three events."""
    path = str(tmp_path / "events.root")
    with uproot.recreate(path) as f:
        f["Events"] = {
            "run": np.array([1, 1, 1], dtype=np.int64),
            "luminosityBlock": np.array([4, 4, 5], dtype=np.int64),
            "event": np.array([10, 11, 12], dtype=np.int64),
            "MET_pt": np.array([12.0, 55.0, 30.0]),
            "Muon": ak.zip({
                "pt": ak.Array([[40.0, 25.0], [], [33.0]]),
                "eta": ak.Array([[0.1, -1.2], [], [2.0]]),
            }),
        }
    return path
