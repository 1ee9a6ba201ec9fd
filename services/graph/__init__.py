"""
Graph services: dependency resolution and per-event driving.
"""

from .module_graph import ModuleGraph
from .event_loop import EventLoop, EventResult

__all__ = ["ModuleGraph", "EventLoop", "EventResult"]
