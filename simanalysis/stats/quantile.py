"""Streaming quantile estimation with the P-square algorithm."""

import math
from typing import List

from .base import Statistic, StatisticCategory
from .confidence import t_quantile


class QuantileEstimator(Statistic):
    """P-square quantile estimator.

    Based on R. Jain and I. Chlamtac, "The P^2 algorithm for dynamic
    calculation of quantiles and histograms without storing observations",
    Communications of the ACM 28(10):1076-1085, 1985.

    Five markers track the minimum, the p/2, p and (1+p)/2 quantiles and
    the maximum. Memory is constant regardless of the number of
    observations. Until five observations have been seen the estimate is
    read from the sorted buffer.

    The half-width is an approximation: it applies a Student-t factor to
    the binomial proportion variance ``p(1-p)/(n-1)``, which is the
    standard error of the fraction of observations below the estimate
    rather than an exact interval for the quantile value itself.
    """

    category = StatisticCategory.QUANTILE

    def __init__(self, probability: float = 0.5, name: str = None,
                 confidence_level: float = 0.95):
        """Initialize quantile estimator.

        Args:
            probability: Target probability p in (0, 1)
            name: Statistic name (defaults to "<p>th Quantile")
            confidence_level: Confidence level of the reported interval
        """
        if not 0.0 < probability < 1.0:
            raise ValueError(f"Quantile probability must be in (0, 1), got {probability}")
        super().__init__(name or f"{probability}th Quantile", confidence_level)
        self.probability = probability
        self._reset()

    def _reset(self) -> None:
        p = self.probability
        self._count = 0
        self._heights: List[float] = []
        self._positions = [1.0, 2.0, 3.0, 4.0, 5.0]
        self._desired = [1.0, 1.0 + 2.0 * p, 1.0 + 4.0 * p, 3.0 + 2.0 * p, 5.0]
        self._increments = [0.0, p / 2.0, p, (1.0 + p) / 2.0, 1.0]

    def _collect(self, value: float, weight: float) -> None:
        self._count += 1
        heights = self._heights

        if self._count <= 5:
            heights.append(value)
            heights.sort()
            return

        # Find the cell k containing the new value, extending the extremes
        if value < heights[0]:
            heights[0] = value
            k = 0
        elif value >= heights[4]:
            heights[4] = value
            k = 3
        else:
            k = 0
            while value >= heights[k + 1]:
                k += 1

        for i in range(k + 1, 5):
            self._positions[i] += 1.0
        for i in range(5):
            self._desired[i] += self._increments[i]

        for i in range(1, 4):
            d = self._desired[i] - self._positions[i]
            if ((d >= 1.0 and self._positions[i + 1] - self._positions[i] > 1.0)
                    or (d <= -1.0 and self._positions[i - 1] - self._positions[i] < -1.0)):
                step = 1.0 if d > 0 else -1.0
                candidate = self._parabolic(i, step)
                if not heights[i - 1] < candidate < heights[i + 1]:
                    candidate = self._linear(i, step)
                heights[i] = candidate
                self._positions[i] += step

    def _parabolic(self, i: int, d: float) -> float:
        q = self._heights
        n = self._positions
        return q[i] + d / (n[i + 1] - n[i - 1]) * (
            (n[i] - n[i - 1] + d) * (q[i + 1] - q[i]) / (n[i + 1] - n[i])
            + (n[i + 1] - n[i] - d) * (q[i] - q[i - 1]) / (n[i] - n[i - 1])
        )

    def _linear(self, i: int, d: float) -> float:
        q = self._heights
        n = self._positions
        j = i + int(d)
        return q[i] + d * (q[j] - q[i]) / (n[j] - n[i])

    def estimate(self) -> float:
        if self._count == 0:
            return math.nan
        if self._count <= 5:
            # Same rank rule the markers converge to
            idx = min(len(self._heights) - 1,
                      max(0, int(math.ceil(self.probability * self._count)) - 1))
            return self._heights[idx]
        return self._heights[2]

    def variance(self) -> float:
        if self._count > 1:
            p = self.probability
            return p * (1.0 - p) / (self._count - 1)
        return math.inf

    def half_width(self) -> float:
        if self._count > 1:
            return t_quantile(self.confidence_level, self._count - 1) * math.sqrt(self.variance())
        return math.inf

    def num_observations(self) -> int:
        return self._count
