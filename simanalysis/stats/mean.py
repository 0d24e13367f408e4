"""Streaming mean estimators."""

import math

from .base import Statistic, StatisticCategory
from .confidence import t_half_width


class MeanEstimator(Statistic):
    """Sample mean with a Student-t confidence interval.

    Uses Welford's incremental update, which avoids the cancellation error
    of the textbook sum-of-squares formula:

        delta = x - mean
        mean += delta / n
        m2 += delta * (x - mean)

    The variance is ``m2 / (n - 1)``; it is reported as inf for fewer than
    two observations.
    """

    category = StatisticCategory.MEAN

    def __init__(self, name: str = "Mean", confidence_level: float = 0.95):
        super().__init__(name, confidence_level)
        self._count = 0
        self._mean = 0.0
        self._m2 = 0.0

    def _collect(self, value: float, weight: float) -> None:
        self._count += 1
        delta = value - self._mean
        self._mean += delta / self._count
        self._m2 += delta * (value - self._mean)

    def estimate(self) -> float:
        return self._mean

    def variance(self) -> float:
        if self._count > 1:
            return self._m2 / (self._count - 1)
        return math.inf

    def half_width(self) -> float:
        return t_half_width(self.standard_deviation(), self._count, self.confidence_level)

    def num_observations(self) -> int:
        return self._count

    def _reset(self) -> None:
        self._count = 0
        self._mean = 0.0
        self._m2 = 0.0


class WeightedMeanEstimator(Statistic):
    """Weighted sample mean (West's incremental algorithm).

    Suited to time-averaged quantities, where each observation is weighted
    by the time the observed value persisted.

    The variance is the weight-normalised ``S / sum(w)``, with no bias
    correction. The half-width still applies a Student-t factor with
    ``n - 1`` degrees of freedom and divides by ``sqrt(n)``, where ``n`` is
    the raw count of positively weighted observations, so the interval is
    an approximation when the weights are very uneven.
    """

    category = StatisticCategory.MEAN

    def __init__(self, name: str = "Weighted Mean", confidence_level: float = 0.95):
        super().__init__(name, confidence_level)
        self._count = 0
        self._mean = 0.0
        self._s2 = 0.0
        self._sum_weights = 0.0

    def _collect(self, value: float, weight: float) -> None:
        if weight < 0:
            raise ValueError(f"Observation weight must be non-negative, got {weight}")
        if weight == 0:
            return
        self._count += 1
        q = value - self._mean
        self._sum_weights += weight
        self._mean += q * weight / self._sum_weights
        if self._count > 1:
            self._s2 += weight * q * (value - self._mean)

    @property
    def sum_weights(self) -> float:
        return self._sum_weights

    def estimate(self) -> float:
        return self._mean

    def variance(self) -> float:
        if self._count > 1:
            return self._s2 / self._sum_weights
        return math.inf

    def half_width(self) -> float:
        return t_half_width(self.standard_deviation(), self._count, self.confidence_level)

    def num_observations(self) -> int:
        return self._count

    def _reset(self) -> None:
        self._count = 0
        self._mean = 0.0
        self._s2 = 0.0
        self._sum_weights = 0.0
