"""
Event-related domain models.

Immutable per-event accessors handed to modules by the event loop.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional
import awkward as ak


# Field names tried, in order, for each component of the event identifier
RUN_FIELDS = ("run", "runNumber", "RunNumber")
LUMI_FIELDS = ("luminosityBlock", "lumi", "lumiBlock", "LumiBlock")
EVENT_FIELDS = ("event", "eventNumber", "EventNumber")

TRIGGER_PREFIX = "HLT_"


@dataclass(frozen=True, order=True)
class EventId:
    """Identifier of one underlying physical event."""

    run: int
    luminosity_block: int
    event: int

    def __post_init__(self):
        """Validate the identifier."""
        if self.run < 0:
            raise ValueError(f"run must be non-negative, got {self.run}")
        if self.event < 0:
            raise ValueError(f"event must be non-negative, got {self.event}")

    def __str__(self) -> str:
        return f"{self.run}:{self.luminosity_block}:{self.event}"

    @classmethod
    def from_fields(cls, data: Mapping, fallback_event: int = 0) -> 'EventId':
        """
        Build an identifier from the usual run/lumi/event fields.

        Args:
            data: Mapping-like event record
            fallback_event: Event number used when no event field exists
                (e.g. the entry index inside the source)

        Returns:
            EventId for the record
        """
        return cls(
            run=int(_first_present(data, RUN_FIELDS, 0)),
            luminosity_block=int(_first_present(data, LUMI_FIELDS, 0)),
            event=int(_first_present(data, EVENT_FIELDS, fallback_event)),
        )


@dataclass(frozen=True)
class MissingEt:
    """Missing transverse energy summary."""

    pt: float
    phi: float
    sum_et: Optional[float] = None


@dataclass(frozen=True, eq=False)
class EventView:
    """
    Read-only accessor to one event's contents.

    Wraps either an awkward Record or a plain mapping. The view is valid
    for a single iteration of the event loop; modules must not keep it.
    """

    event_id: EventId
    data: Any
    triggers: Mapping[str, bool] = field(default_factory=dict)
    truth: Optional['EventView'] = None
    _record_fields: frozenset = field(init=False, repr=False, default=frozenset())

    def __post_init__(self):
        """Freeze plain mappings so modules cannot mutate shared event data."""
        if isinstance(self.data, ak.Record):
            object.__setattr__(self, "_record_fields", frozenset(ak.fields(self.data)))
        elif not isinstance(self.data, MappingProxyType):
            object.__setattr__(self, "data", MappingProxyType(dict(self.data)))
        if not isinstance(self.triggers, MappingProxyType):
            object.__setattr__(self, "triggers", MappingProxyType(dict(self.triggers)))

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        triggers: Optional[Mapping[str, bool]] = None,
        truth: Optional['EventView'] = None,
        fallback_event: int = 0,
    ) -> 'EventView':
        """Create a view over a plain dictionary of event fields."""
        return cls(
            event_id=EventId.from_fields(data, fallback_event),
            data=data,
            triggers=triggers or {},
            truth=truth,
        )

    @classmethod
    def from_record(
        cls,
        record: ak.Record,
        truth: Optional['EventView'] = None,
        fallback_event: int = 0,
    ) -> 'EventView':
        """Create a view over one entry of an awkward Array."""
        id_fields = set(RUN_FIELDS + LUMI_FIELDS + EVENT_FIELDS) & set(ak.fields(record))
        values = {name: record[name] for name in id_fields}
        return cls(
            event_id=EventId.from_fields(values, fallback_event),
            data=record,
            truth=truth,
        )

    @property
    def fields(self) -> list[str]:
        """Names of all top-level fields in the event."""
        if isinstance(self.data, ak.Record):
            return list(ak.fields(self.data))
        return list(self.data.keys())

    def has(self, name: str) -> bool:
        """Check whether a top-level field exists."""
        if isinstance(self.data, ak.Record):
            return name in self._record_fields
        return name in self.data

    def __getitem__(self, name: str) -> Any:
        if not self.has(name):
            raise KeyError(f"Event {self.event_id} has no field '{name}'")
        return self.data[name]

    def get(self, name: str, default: Any = None) -> Any:
        """Return a field value, or default when it is absent."""
        if not self.has(name):
            return default
        return self.data[name]

    def collection(self, name: str) -> tuple:
        """
        Return the physics objects of one collection.

        Either a field holding a list of records (``Muon``), or flat
        branches sharing the ``Muon_`` prefix, zipped object by object.
        """
        if self.has(name):
            return tuple(self.data[name])

        prefix = f"{name}_"
        columns = {
            f[len(prefix):]: self.data[f]
            for f in self.fields
            if f.startswith(prefix)
        }
        if not columns:
            return tuple()

        n_objects = min(len(values) for values in columns.values())
        return tuple(
            MappingProxyType({key: values[i] for key, values in columns.items()})
            for i in range(n_objects)
        )

    def count(self, name: str) -> int:
        """Number of objects in a collection (``nMuon`` if present)."""
        counter = f"n{name}"
        if self.has(counter):
            return int(self.data[counter])
        return len(self.collection(name))

    def trigger(self, path: str) -> bool:
        """
        Decision of one trigger path.

        Looks at the explicit trigger map first, then at ``HLT_<path>``
        or ``<path>`` boolean fields.
        """
        if path in self.triggers:
            return bool(self.triggers[path])
        for candidate in (path, f"{TRIGGER_PREFIX}{path}"):
            if self.has(candidate):
                return bool(self.data[candidate])
        return False

    @property
    def met(self) -> Optional[MissingEt]:
        """Missing transverse energy, from a ``MET`` record or ``MET_*`` fields."""
        if self.has("MET"):
            record = self.data["MET"]
            return MissingEt(pt=float(record["pt"]), phi=float(record["phi"]))
        if self.has("MET_pt") and self.has("MET_phi"):
            sum_et = self.get("MET_sumEt")
            return MissingEt(
                pt=float(self.data["MET_pt"]),
                phi=float(self.data["MET_phi"]),
                sum_et=float(sum_et) if sum_et is not None else None,
            )
        return None

    def with_truth(self, truth: Optional['EventView']) -> 'EventView':
        """Return a copy of this view carrying a generator-level truth view."""
        return replace(self, truth=truth)


def _first_present(data: Mapping, names: tuple[str, ...], default: Any) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return default
