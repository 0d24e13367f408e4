"""Base class shared by all online statistic estimators."""

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Tuple

from .confidence import validate_confidence_level


class StatisticCategory(Enum):
    """Kind of quantity an estimator measures."""
    MEAN = "mean"
    MAX = "max"
    MIN = "min"
    QUANTILE = "quantile"
    VARIANCE = "variance"


class Statistic(ABC):
    """Online estimator of a single measured quantity.

    Subclasses accumulate observations through ``collect(value, weight)`` and
    report a point estimate with a confidence half-width. Undefined
    quantities are reported through sentinels (``math.inf`` for unbounded
    imprecision) rather than exceptions.
    """

    category: StatisticCategory = StatisticCategory.MEAN

    def __init__(self, name: str = "", confidence_level: float = 0.95):
        """Initialize statistic.

        Args:
            name: Name of the measured quantity
            confidence_level: Confidence level of the reported interval
        """
        self.name = name
        self.confidence_level = validate_confidence_level(confidence_level)
        self.enabled = True

    def collect(self, value: float, weight: float = 1.0) -> None:
        """Add an observation.

        Args:
            value: Observed value
            weight: Observation weight (ignored by unweighted estimators)
        """
        if self.enabled:
            self._collect(value, weight)

    @abstractmethod
    def _collect(self, value: float, weight: float) -> None:
        pass

    @abstractmethod
    def estimate(self) -> float:
        """Current point estimate."""

    @abstractmethod
    def variance(self) -> float:
        """Current variance estimate."""

    @abstractmethod
    def half_width(self) -> float:
        """Radius of the confidence interval at ``confidence_level``."""

    @abstractmethod
    def num_observations(self) -> int:
        pass

    @abstractmethod
    def _reset(self) -> None:
        pass

    def reset(self) -> None:
        """Discard every observation, keeping name and configuration."""
        self._reset()

    def enable(self, value: bool = True) -> None:
        self.enabled = value

    def standard_deviation(self) -> float:
        return math.sqrt(self.variance())

    def relative_precision(self) -> float:
        """Half-width relative to the magnitude of the estimate.

        Returns inf when the estimate is zero or fewer than two
        observations have been collected.
        """
        estimate = self.estimate()
        if self.num_observations() < 2 or estimate == 0 or math.isnan(estimate):
            return math.inf
        return self.half_width() / abs(estimate)

    def lower(self) -> float:
        return self.estimate() - self.half_width()

    def upper(self) -> float:
        return self.estimate() + self.half_width()

    def confidence_interval(self) -> Tuple[float, float]:
        return self.lower(), self.upper()

    def describe(self) -> Dict:
        """Summary record suitable for reporting.

        Returns:
            Dictionary with estimate, dispersion and interval fields
        """
        return {
            'name': self.name,
            'category': self.category.value,
            'estimate': self.estimate(),
            'stddev': self.standard_deviation(),
            'half_width': self.half_width(),
            'lower': self.lower(),
            'upper': self.upper(),
            'confidence_level': self.confidence_level,
            'relative_precision': self.relative_precision(),
            'num_observations': self.num_observations(),
            'enabled': self.enabled,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name={self.name!r}, "
            f"estimate={self.estimate()}, n={self.num_observations()})"
        )
