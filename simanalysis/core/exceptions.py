"""Exceptions raised by the simulation engine and output analysis."""


class SimulationError(Exception):
    """Base class for simulation errors."""


class InvalidSchedule(SimulationError, ValueError):
    """Raised when an event is scheduled before the current virtual time."""


class UnknownEvent(SimulationError, KeyError):
    """Raised when cancelling or rescheduling an event that is not pending.

    Recoverable: the event already fired, was already cancelled, or was
    never scheduled on this engine.
    """


class NoValidEstimate(SimulationError):
    """Raised when a confidence interval is requested from an analysis
    that did not converge."""
