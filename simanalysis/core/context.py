"""Engine context handed to event targets."""

from typing import Any, Callable, Optional

from .event_queue import Event


class EngineContext:
    """Restricted view of an engine passed to every fired event.

    Gives read access to the virtual clock and the ability to schedule and
    cancel events, without exposing run control or the event list.
    """

    def __init__(self, engine):
        self._engine = engine

    @property
    def simulated_time(self) -> float:
        """Current virtual time."""
        return self._engine.current_time

    now = simulated_time

    @property
    def last_event_time(self) -> float:
        return self._engine.last_event_time

    @property
    def total_time(self) -> float:
        """Virtual time accumulated over every run of the engine."""
        return self._engine.total_time

    def schedule(self, target: Callable, fire_time: float, payload: Any = None,
                 priority: int = 0) -> Optional[Event]:
        """Schedule ``target`` to fire at ``fire_time``."""
        return self._engine.schedule(target, fire_time, payload=payload, priority=priority)

    def schedule_in(self, target: Callable, delay: float, payload: Any = None,
                    priority: int = 0) -> Optional[Event]:
        """Schedule ``target`` to fire ``delay`` time units from now."""
        return self._engine.schedule(
            target, self._engine.current_time + delay, payload=payload, priority=priority
        )

    def cancel(self, event: Event) -> None:
        self._engine.cancel(event)

    def __repr__(self) -> str:
        return f"EngineContext(time={self.simulated_time})"
