"""Virtual-time discrete event simulation engine."""

import math
import time
from typing import Any, Callable, Dict, Optional

from .context import EngineContext
from .event_queue import Event, EventQueue
from .event_source import EventSource
from .exceptions import InvalidSchedule
from ..utils.logger import setup_logger


class Engine:
    """Discrete event simulation engine.

    The engine owns the virtual clock and the event list. ``run()``
    repeatedly removes the earliest pending event, advances the clock to its
    fire time and invokes its target with an :class:`EngineContext`, until
    the event list is empty, a run limit is reached or ``stop_now()`` is
    called.

    Run limits:
    - ``max_events``: maximum number of user events fired in one run
    - ``max_time``: events scheduled after this virtual time never fire;
      when the limit stops the run the clock is moved to ``max_time``

    Lifecycle event sources (connect sinks to observe the run):
    - ``begin_of_simulation`` / ``end_of_simulation``
    - ``system_initialization`` / ``system_finalization``
    - ``before_event_firing`` / ``after_event_firing``
    """

    def __init__(self, max_events: Optional[int] = None, max_time: float = math.inf):
        """Initialize engine.

        Args:
            max_events: Maximum number of user events per run (None = unbounded)
            max_time: Maximum virtual time of a run
        """
        if max_events is not None and max_events < 0:
            raise ValueError("max_events must be non-negative")
        if max_time < 0:
            raise ValueError("max_time must be non-negative")

        self.logger = setup_logger(self.__class__.__name__)

        self.max_events = max_events
        self.max_time = max_time

        # Simulation state
        self.event_queue = EventQueue()
        self.current_time = 0.0
        self.last_event_time = 0.0
        self.num_events = 0
        self.num_user_events = 0
        self._running = False
        self._accumulated_time = 0.0
        self._run_start_time = 0.0
        self._stop_requested = False
        self._stop_time = math.inf

        self._statistics: Dict[str, Any] = {}

        # Lifecycle sources
        self.begin_of_simulation = EventSource("Begin of Simulation")
        self.end_of_simulation = EventSource("End of Simulation")
        self.system_initialization = EventSource("System Initialization")
        self.system_finalization = EventSource("System Finalization")
        self.before_event_firing = EventSource("Before Event Firing")
        self.after_event_firing = EventSource("After Event Firing")
        self._internal_sources = {
            self.begin_of_simulation.source_id,
            self.end_of_simulation.source_id,
            self.system_initialization.source_id,
            self.system_finalization.source_id,
            self.before_event_firing.source_id,
            self.after_event_firing.source_id,
        }

        self.context = EngineContext(self)

    @classmethod
    def from_config(cls, config: Dict) -> "Engine":
        """Build an engine from the ``simulation`` section of a config."""
        sim_config = config.get('simulation', config)
        return cls(
            max_events=sim_config.get('max_events'),
            max_time=sim_config.get('max_time', math.inf),
        )

    @property
    def simulated_time(self) -> float:
        return self.current_time

    @property
    def total_time(self) -> float:
        """Virtual time accumulated over every run of this engine."""
        if not self._running:
            return self._accumulated_time
        return self._accumulated_time + (self.current_time - self._run_start_time)

    # Scheduling

    def schedule(self, target: Callable, fire_time: float, payload: Any = None,
                 priority: int = 0) -> Optional[Event]:
        """Schedule an event.

        Args:
            target: Callable invoked as ``target(event, context)``
            fire_time: Virtual time at which the event fires
            payload: Optional event data
            priority: Tie-breaker among events with equal fire time

        Returns:
            The scheduled event, or None if the target is a disabled source

        Raises:
            InvalidSchedule: If fire_time is NaN or earlier than the clock
        """
        if not callable(target):
            raise TypeError(f"Event target must be callable, got {target!r}")
        if math.isnan(fire_time) or fire_time < self.current_time:
            raise InvalidSchedule(
                f"Cannot schedule event at {fire_time}: current time is {self.current_time}"
            )
        if isinstance(target, EventSource) and not target.enabled:
            self.logger.warning(
                f"Tried to schedule an event from the disabled source '{target.name}' "
                f"at time {fire_time} (clock: {self.current_time})"
            )
            return None

        event = Event(
            time=fire_time,
            priority=priority,
            target=target,
            payload=payload,
            schedule_time=self.current_time,
        )
        return self.event_queue.push(event)

    def cancel(self, event: Event) -> None:
        """Cancel a pending event.

        Raises:
            UnknownEvent: If the event already fired or was never scheduled
        """
        self.event_queue.cancel(event)

    def reschedule(self, event: Event, fire_time: float) -> Optional[Event]:
        """Move a pending event to a new fire time.

        Returns:
            The new event handle (the old one is cancelled)

        Raises:
            InvalidSchedule: If fire_time is invalid or the target source is
                disabled; the original event stays pending
        """
        if isinstance(event.target, EventSource) and not event.target.enabled:
            raise InvalidSchedule(
                f"Cannot reschedule event {event.sequence}: source "
                f"'{event.target.name}' is disabled"
            )
        if math.isnan(fire_time) or fire_time < self.current_time:
            raise InvalidSchedule(
                f"Cannot reschedule event at {fire_time}: current time is {self.current_time}"
            )
        self.cancel(event)
        return self.schedule(event.target, fire_time, payload=event.payload,
                             priority=event.priority)

    def next_event_time(self) -> float:
        """Fire time of the earliest pending event (inf if none)."""
        event = self.event_queue.peek()
        return event.time if event is not None else math.inf

    # Statistics registry

    def register_statistic(self, statistic) -> Any:
        """Register a statistic under its name and return it."""
        if statistic.name in self._statistics:
            raise ValueError(f"Statistic '{statistic.name}' already registered")
        self._statistics[statistic.name] = statistic
        return statistic

    def remove_statistic(self, name: str) -> None:
        if name not in self._statistics:
            raise KeyError(f"Statistic '{name}' not registered")
        del self._statistics[name]

    def statistic(self, name: str) -> Any:
        return self._statistics[name]

    @property
    def statistics(self) -> Dict[str, Any]:
        return dict(self._statistics)

    # Run control

    def run(self) -> "Engine":
        """Run the simulation until exhaustion, limits or stop request."""
        start_time = time.time()
        self.logger.debug("Starting simulation run...")

        self._prepare()

        while self._can_continue():
            self._fire_next_event()

        self._finalize()

        elapsed_time = time.time() - start_time
        self.logger.debug(
            f"Simulation run completed in {elapsed_time:.2f}s: "
            f"{self.num_user_events} events, virtual time {self.current_time}"
        )
        return self

    def step(self) -> bool:
        """Fire the next event outside of ``run()``.

        Returns:
            True if an event was fired
        """
        if self.event_queue.is_empty():
            return False
        if not self._running:
            self._begin_run()
        self._fire_next_event()
        return True

    def stop_now(self) -> None:
        """Stop the current run once the event being fired completes."""
        self._stop_requested = True

    def stop_at_time(self, stop_time: float) -> None:
        """Cap the current (or next) run at the given virtual time.

        The cap is cleared when the run ends; ``max_time`` is left untouched.
        """
        if stop_time < self.current_time:
            raise InvalidSchedule("Cannot stop the simulation at a past time")
        self._stop_time = min(self._stop_time, stop_time)

    def reset(self) -> None:
        """Clear the clock, counters and event list."""
        self.event_queue.clear()
        self.current_time = 0.0
        self.last_event_time = 0.0
        self.num_events = 0
        self.num_user_events = 0
        self._accumulated_time = 0.0
        self._run_start_time = 0.0
        self._stop_requested = False
        self._stop_time = math.inf
        self._running = False

    def _begin_run(self) -> None:
        self._running = True
        self._stop_requested = False
        self._run_start_time = self.current_time
        self.num_user_events = 0

    def _prepare(self) -> None:
        self._begin_run()
        self._fire_immediate(self.begin_of_simulation)
        self._fire_immediate(self.system_initialization)

    def _finalize(self) -> None:
        self._fire_immediate(self.system_finalization)
        self.event_queue.clear()
        self._fire_immediate(self.end_of_simulation)
        self._accumulated_time += self.current_time - self._run_start_time
        self._running = False
        self._stop_time = math.inf

    def _can_continue(self) -> bool:
        if self._stop_requested:
            return False
        if self.max_events is not None and self.num_user_events >= self.max_events:
            self.logger.debug(f"Reached maximum number of events ({self.max_events})")
            return False
        next_event = self.event_queue.peek()
        if next_event is None:
            return False
        time_limit = min(self.max_time, self._stop_time)
        if next_event.time > time_limit:
            self.logger.debug(f"Reached maximum simulated time ({time_limit})")
            self.current_time = max(self.current_time, time_limit)
            return False
        return True

    def _fire_next_event(self) -> None:
        event = self.event_queue.pop()

        if isinstance(event.target, EventSource) and not event.target.enabled:
            self.logger.warning(
                f"Event {event.sequence} will not be fired since its source "
                f"'{event.target.name}' is disabled"
            )
            return

        assert event.time >= self.current_time, "event list out of order"
        self.current_time = event.time
        self.num_user_events += 1
        self.logger.debug(f"Firing event #{self.num_events + 1} at {self.current_time}")
        self._fire(event)

    def _fire_immediate(self, source: EventSource) -> None:
        if source.empty:
            return
        event = Event(time=self.current_time, target=source, schedule_time=self.current_time)
        self._fire(event)

    def _fire(self, event: Event) -> None:
        self.num_events += 1
        if not self.before_event_firing.empty:
            self.before_event_firing.emit(self._wrap(event), self.context)
            self.num_events += 1

        event.target(event, self.context)

        if not self.after_event_firing.empty:
            self.after_event_firing.emit(self._wrap(event), self.context)
            self.num_events += 1

        self.last_event_time = self.current_time

    def _wrap(self, event: Event) -> Event:
        return Event(time=self.current_time, target=None, payload=event,
                     schedule_time=self.current_time)

    def __repr__(self) -> str:
        return (
            f"Engine(time={self.current_time}, pending={len(self.event_queue)}, "
            f"events={self.num_events}, running={self._running})"
        )
