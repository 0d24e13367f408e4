"""Named event sources dispatching fired events to attached sinks."""

import itertools
from typing import Callable, List

_source_ids = itertools.count(1)


class EventSource:
    """Callable event target that forwards each fired event to its sinks.

    A sink is any callable accepting ``(event, context)``. Sinks run in the
    order they were connected. A disabled source ignores emitted events.
    """

    def __init__(self, name: str = None):
        self.source_id = next(_source_ids)
        self.name = name or f"Event Source {self.source_id}"
        self.enabled = True
        self._sinks: List[Callable] = []

    def connect(self, sink: Callable) -> Callable:
        """Attach a sink and return it (usable as a decorator)."""
        if not callable(sink):
            raise TypeError(f"Event sink must be callable, got {sink!r}")
        self._sinks.append(sink)
        return sink

    def disconnect(self, sink: Callable) -> None:
        """Detach a previously connected sink."""
        self._sinks.remove(sink)

    def disconnect_all(self) -> None:
        self._sinks.clear()

    def enable(self, value: bool = True) -> None:
        self.enabled = value

    def emit(self, event, context) -> None:
        """Deliver the event to every sink if the source is enabled."""
        if not self.enabled:
            return
        for sink in list(self._sinks):
            sink(event, context)

    __call__ = emit

    @property
    def empty(self) -> bool:
        return not self._sinks

    @property
    def num_sinks(self) -> int:
        return len(self._sinks)

    def __repr__(self) -> str:
        return f"EventSource({self.source_id}, {self.name!r})"
