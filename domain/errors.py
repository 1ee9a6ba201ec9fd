"""
Error taxonomy for the event-processing core.

Setup-time errors derive from ConfigurationError and abort the job before
any event is read. Per-event errors are isolated by the caller.
"""

from typing import Optional, Sequence


class ConfigurationError(ValueError):
    """Invalid job setup: duplicate names, missing dependencies, cycles."""


class DuplicateNameError(ConfigurationError):
    """A module, histogram or output entry name is registered twice."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"Duplicate {kind} name: '{name}'")


class MissingDependencyError(ConfigurationError):
    """A module declares a dependency that was never registered."""

    def __init__(self, module: str, dependency: str):
        self.module = module
        self.dependency = dependency
        super().__init__(
            f"Module '{module}' depends on unregistered module '{dependency}'"
        )


class CycleError(ConfigurationError):
    """The module dependency graph is not acyclic."""

    def __init__(self, cycle: Sequence[str]):
        self.cycle = tuple(cycle)
        super().__init__(f"Dependency cycle detected: {' -> '.join(self.cycle)}")


class EventAccessError(RuntimeError):
    """The event source failed to deliver the next event."""


class ModuleProcessError(RuntimeError):
    """A module raised while processing one event."""

    def __init__(self, module: str, event_id, cause: Optional[BaseException] = None):
        self.module = module
        self.event_id = event_id
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Module '{module}' failed on event {event_id}{detail}")


class FilterEvaluationError(RuntimeError):
    """A Filter raised while evaluating an event."""

    def __init__(self, filter_name: str, cause: Optional[BaseException] = None):
        self.filter_name = filter_name
        self.cause = cause
        super().__init__(f"Filter '{filter_name}' failed: {cause}")


class WeightEvaluationError(RuntimeError):
    """A ScaleFactor raised or produced a non-finite weight."""

    def __init__(self, scale_factor: str, message: str):
        self.scale_factor = scale_factor
        super().__init__(f"ScaleFactor '{scale_factor}': {message}")
