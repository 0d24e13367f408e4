"""Probability distributions sampled from a RandomSource."""

from abc import ABC, abstractmethod
from typing import Dict

from .random_source import RandomSource


class Distribution(ABC):
    """A distribution producing one sample per call."""

    @abstractmethod
    def sample(self, rng: RandomSource) -> float:
        pass

    @abstractmethod
    def mean(self) -> float:
        pass


class Exponential(Distribution):
    """Exponential distribution (memoryless inter-arrival/service times)."""

    def __init__(self, rate: float):
        if rate <= 0:
            raise ValueError(f"Rate must be positive, got {rate}")
        self.rate = rate

    def sample(self, rng: RandomSource) -> float:
        return float(rng.generator.exponential(1.0 / self.rate))

    def mean(self) -> float:
        return 1.0 / self.rate

    def __repr__(self) -> str:
        return f"Exponential(rate={self.rate})"


class Uniform(Distribution):
    def __init__(self, low: float = 0.0, high: float = 1.0):
        if high <= low:
            raise ValueError(f"Upper bound must exceed lower bound: [{low}, {high})")
        self.low = low
        self.high = high

    def sample(self, rng: RandomSource) -> float:
        return self.low + (self.high - self.low) * rng.uniform()

    def mean(self) -> float:
        return (self.low + self.high) / 2.0

    def __repr__(self) -> str:
        return f"Uniform(low={self.low}, high={self.high})"


class Deterministic(Distribution):
    def __init__(self, value: float):
        self.value = value

    def sample(self, rng: RandomSource) -> float:
        return self.value

    def mean(self) -> float:
        return self.value

    def __repr__(self) -> str:
        return f"Deterministic(value={self.value})"


class Normal(Distribution):
    def __init__(self, mean: float = 0.0, std: float = 1.0):
        if std < 0:
            raise ValueError(f"Standard deviation must be non-negative, got {std}")
        self.mu = mean
        self.std = std

    def sample(self, rng: RandomSource) -> float:
        return float(rng.generator.normal(self.mu, self.std))

    def mean(self) -> float:
        return self.mu

    def __repr__(self) -> str:
        return f"Normal(mean={self.mu}, std={self.std})"


class Gamma(Distribution):
    """Gamma distribution (bursty inter-arrival times for shape < 1)."""

    def __init__(self, shape: float, scale: float):
        if shape <= 0 or scale <= 0:
            raise ValueError(f"Shape and scale must be positive, got {shape}, {scale}")
        self.shape = shape
        self.scale = scale

    def sample(self, rng: RandomSource) -> float:
        return float(rng.generator.gamma(self.shape, self.scale))

    def mean(self) -> float:
        return self.shape * self.scale

    def __repr__(self) -> str:
        return f"Gamma(shape={self.shape}, scale={self.scale})"


def make_distribution(config: Dict) -> Distribution:
    """Create a distribution from a configuration dictionary.

    Args:
        config: Dictionary with a ``type`` key and its parameters, e.g.
            ``{'type': 'exponential', 'rate': 2.0}``

    Returns:
        Distribution instance
    """
    dist_type = config.get('type', 'exponential')

    if dist_type == 'exponential':
        if 'rate' in config:
            return Exponential(config['rate'])
        return Exponential(1.0 / config['mean'])
    elif dist_type == 'uniform':
        return Uniform(config.get('low', 0.0), config.get('high', 1.0))
    elif dist_type in ('deterministic', 'constant'):
        return Deterministic(config['value'])
    elif dist_type == 'normal':
        return Normal(config.get('mean', 0.0), config.get('std', 1.0))
    elif dist_type == 'gamma':
        return Gamma(config['shape'], config['scale'])
    else:
        raise ValueError(f"Unknown distribution: {dist_type}")
