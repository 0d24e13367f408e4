"""Random streams and distributions."""

from .random_source import RandomSource
from .distributions import (
    Deterministic,
    Distribution,
    Exponential,
    Gamma,
    Normal,
    Uniform,
    make_distribution,
)

__all__ = [
    "RandomSource",
    "Distribution",
    "Exponential",
    "Uniform",
    "Deterministic",
    "Normal",
    "Gamma",
    "make_distribution",
]
