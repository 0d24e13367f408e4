"""Example models built on the engine."""

from .queue import SingleServerQueue

__all__ = ["SingleServerQueue"]
