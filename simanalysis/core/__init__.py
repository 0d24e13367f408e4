"""Core simulation components."""

from .engine import Engine
from .context import EngineContext
from .event_queue import Event, EventQueue
from .event_source import EventSource
from .exceptions import InvalidSchedule, NoValidEstimate, SimulationError, UnknownEvent

__all__ = [
    "Engine",
    "EngineContext",
    "Event",
    "EventQueue",
    "EventSource",
    "SimulationError",
    "InvalidSchedule",
    "UnknownEvent",
    "NoValidEstimate",
]
