"""
EventLoop - Drives one event through the resolved module order.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from domain.errors import ModuleProcessError
from domain.events import EventId, EventView
from services.modules.base import Module, UpstreamRecord


@dataclass(frozen=True)
class EventResult:
    """What happened to one event."""

    event_id: EventId
    completed: tuple[str, ...]
    skipped: tuple[str, ...] = field(default_factory=tuple)
    failure: Optional[ModuleProcessError] = None

    @property
    def is_complete(self) -> bool:
        return self.failure is None


class EventLoop:
    """
    Calls ``process`` on every module in order for one event.

    A module error stops the event: the failing module and every module
    after it are skipped for this event only. Work already done by earlier
    modules is kept.
    """

    def __init__(self, modules: Sequence[Module]):
        """
        Initialize event loop.

        Args:
            modules: Modules in resolved execution order
        """
        self.modules = tuple(modules)
        self.logger = logging.getLogger(self.__class__.__name__)

    def process_event(self, view: EventView) -> EventResult:
        upstream = UpstreamRecord()
        completed: list[str] = []

        for position, module in enumerate(self.modules):
            try:
                output = module.process(view, upstream)
            except Exception as e:
                error = ModuleProcessError(module.name, view.event_id, e)
                skipped = tuple(m.name for m in self.modules[position + 1:])
                self.logger.warning(
                    f"{error}; skipping {len(skipped)} later module(s) for this event"
                )
                return EventResult(
                    event_id=view.event_id,
                    completed=tuple(completed),
                    skipped=skipped,
                    failure=error,
                )

            module.events_processed += 1
            upstream = upstream.extended(module.name, output)
            completed.append(module.name)

        return EventResult(event_id=view.event_id, completed=tuple(completed))
