"""Event list implementation for discrete event simulation."""

import heapq
import itertools
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .exceptions import UnknownEvent


@dataclass(order=True)
class Event:
    """Event in the discrete event simulation.

    Events are ordered by fire time, then by priority (lower fires first),
    then by insertion order, so that simultaneous events with equal
    priority fire FIFO.

    Attributes:
        time: Virtual time at which the event fires
        priority: Priority for tie-breaking (lower = higher priority)
        sequence: Insertion number assigned by the queue
        target: Callable invoked as ``target(event, context)``
        payload: Event-specific data
        schedule_time: Virtual time at which the event was scheduled
    """
    time: float
    priority: int = 0
    sequence: int = 0
    target: Optional[Callable] = field(default=None, compare=False)
    payload: Any = field(default=None, compare=False)
    schedule_time: float = field(default=0.0, compare=False)
    cancelled: bool = field(default=False, compare=False, repr=False)

    def __post_init__(self):
        """Validate event after initialization."""
        if math.isnan(self.time):
            raise ValueError("Event time cannot be NaN")
        if self.time < 0:
            raise ValueError("Event time cannot be negative")

    @property
    def event_id(self) -> int:
        """Identity of the event within its queue."""
        return self.sequence


class EventQueue:
    """Priority queue for managing simulation events.

    Events are ordered by time, with earlier events processed first.
    Cancellation marks the entry and drops it lazily when it reaches the
    top of the heap, so push, pop and cancel all stay O(log n).
    """

    def __init__(self):
        """Initialize empty event queue."""
        self._queue: List[Event] = []
        self._pending: Dict[int, Event] = {}
        self._counter = itertools.count()
        self._event_count = 0

    def push(self, event: Event) -> Event:
        """Add event to the queue.

        Args:
            event: Event to add

        Returns:
            The queued event (its sequence number is assigned here)
        """
        event.sequence = next(self._counter)
        event.cancelled = False
        heapq.heappush(self._queue, event)
        self._pending[event.sequence] = event
        self._event_count += 1
        return event

    def pop(self) -> Event:
        """Remove and return the next event.

        Returns:
            Next event to process

        Raises:
            IndexError: If queue is empty
        """
        self._discard_cancelled()
        if not self._queue:
            raise IndexError("Cannot pop from empty event queue")
        event = heapq.heappop(self._queue)
        del self._pending[event.sequence]
        return event

    def peek(self) -> Optional[Event]:
        """Return the next event without removing it.

        Returns:
            Next event, or None if queue is empty
        """
        self._discard_cancelled()
        return self._queue[0] if self._queue else None

    def cancel(self, event: Event) -> None:
        """Remove a pending event.

        Args:
            event: Event previously returned by push

        Raises:
            UnknownEvent: If the event is not pending in this queue
        """
        if self._pending.get(event.sequence) is not event:
            raise UnknownEvent(f"Event {event!r} is not pending")
        del self._pending[event.sequence]
        event.cancelled = True
        if len(self._queue) > 2 * len(self._pending) + 16:
            self._compact()

    def contains(self, event: Event) -> bool:
        """Check whether the event is still pending."""
        return self._pending.get(event.sequence) is event

    def is_empty(self) -> bool:
        """Check if queue is empty.

        Returns:
            True if queue is empty
        """
        return not self._pending

    def size(self) -> int:
        """Get number of pending events.

        Returns:
            Number of events
        """
        return len(self._pending)

    def clear(self) -> None:
        """Remove all events from queue."""
        for event in self._pending.values():
            event.cancelled = True
        self._queue.clear()
        self._pending.clear()

    @property
    def total_pushed(self) -> int:
        """Number of events ever pushed."""
        return self._event_count

    def _discard_cancelled(self) -> None:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)

    def _compact(self) -> None:
        """Drop every cancelled entry and rebuild the heap."""
        self._queue = [event for event in self._queue if not event.cancelled]
        heapq.heapify(self._queue)

    def __len__(self) -> int:
        """Get number of events in queue."""
        return len(self._pending)

    def __repr__(self) -> str:
        """String representation of event queue."""
        return f"EventQueue(size={len(self)}, next={self.peek()})"
