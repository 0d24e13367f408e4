"""Running extremum estimators."""

import math

from .base import Statistic, StatisticCategory


class MaxEstimator(Statistic):
    """Largest value observed so far.

    An extremum is reported as an exact point estimate: variance and
    half-width are always 0.
    """

    category = StatisticCategory.MAX

    def __init__(self, name: str = "Max", confidence_level: float = 0.95):
        super().__init__(name, confidence_level)
        self._count = 0
        self._value = -math.inf

    def _better(self, value: float) -> bool:
        return value > self._value

    def _collect(self, value: float, weight: float) -> None:
        self._count += 1
        if self._better(value):
            self._value = value

    def estimate(self) -> float:
        return self._value

    def variance(self) -> float:
        return 0.0

    def half_width(self) -> float:
        return 0.0

    def num_observations(self) -> int:
        return self._count

    def _reset(self) -> None:
        self._count = 0
        self._value = -math.inf


class MinEstimator(MaxEstimator):
    """Smallest value observed so far."""

    category = StatisticCategory.MIN

    def __init__(self, name: str = "Min", confidence_level: float = 0.95):
        super().__init__(name, confidence_level)
        self._value = math.inf

    def _better(self, value: float) -> bool:
        return value < self._value

    def _reset(self) -> None:
        self._count = 0
        self._value = math.inf
