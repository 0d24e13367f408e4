"""Batch size detectors for the batch means method."""

import math
from typing import List

import numpy as np
from scipy import stats

from .base import BatchSizeDetector
from ..stats.mean import WeightedMeanEstimator


class DummyBatchSizeDetector(BatchSizeDetector):
    """Degenerate batch size of one observation.

    Every observation is its own batch, so the batch means method reduces
    to a plain sample mean over the steady-state observations.
    """

    def __init__(self):
        super().__init__()
        self._computed: List[float] = []

    def _detect(self, value: float, weight: float) -> None:
        self._computed.append(value)
        self._set_detected()

    def estimated_size(self) -> int:
        return 1

    def computed_estimators(self) -> List[float]:
        return list(self._computed)

    def _reset(self) -> None:
        self._computed = []


def autocovariance(x: np.ndarray, lag: int) -> float:
    """Autocovariance estimator of the given lag."""
    n = len(x)
    centered = x - x.mean()
    return float(np.dot(centered[lag:], centered[:n - lag]) / (n - lag))


def autocorrelation(x: np.ndarray, lag: int) -> float:
    variance = autocovariance(x, 0)
    if variance == 0.0:
        return 0.0
    return autocovariance(x, lag) / variance


def jackknife_autocorrelation(x: np.ndarray, lag: int) -> float:
    """Jackknife estimator of the autocorrelation coefficient of a lag.

    Reduces the bias of the ordinary estimator by combining it with the
    estimators computed on each half of the sequence.
    """
    half = len(x) // 2
    return 2.0 * autocorrelation(x, lag) - (
        autocorrelation(x[:half], lag) + autocorrelation(x[half:], lag)
    ) / 2.0


class Pawlikowski1990BatchSizeDetector(BatchSizeDetector):
    """Sequential batch size selection by testing batch means for correlation.

    Based on K. Pawlikowski, "Steady-state simulation of queueing
    processes: a survey of problems and solutions", ACM Computing Surveys
    22(2):123-170, 1990.

    Batch means of size ``m0`` are accumulated into a reference sequence.
    Each time it holds ``s * k_b0`` means, groups of ``s`` are consolidated
    into ``k_b0`` means of size ``s * m0`` and tested for autocorrelation
    at lags 1..k_b0/10. The batch size ``m* = s * m0`` is accepted after
    two consecutive tests pass; otherwise ``s`` grows by one.
    """

    def __init__(self, n_max: float = math.inf, m0: int = 50, k_b0: int = 100,
                 beta: float = 0.1):
        """Initialize detector.

        Args:
            n_max: Observation budget before aborting
            m0: Initial batch size; the detected size is a multiple of it
            k_b0: Number of batch means tested for autocorrelation
            beta: Significance level of the autocorrelation test
        """
        if not 0.0 < beta < 1.0:
            raise ValueError("Autocorrelation significance level is out of range")
        if m0 < 1:
            raise ValueError("Initial batch size must be positive")
        if k_b0 < 10:
            raise ValueError("At least 10 batch means are needed for the correlation test")

        super().__init__()
        self.n_max = n_max
        self.m0 = m0
        self.k_b0 = k_b0
        self.beta = beta
        self._batch_mean = WeightedMeanEstimator()
        self._reset()

    def _reset(self) -> None:
        self._total_obs = 0
        self._batch_obs = 0
        self._s = 1
        self._m_star = self.m0
        self._acceptable = False
        self._reference: List[float] = []
        self._analyzed = np.empty(0)
        self._batch_mean.reset()

    @property
    def num_observations(self) -> int:
        return self._total_obs

    def _detect(self, value: float, weight: float) -> None:
        if self._total_obs >= self.n_max:
            self._set_aborted(f"no uncorrelated batch size within {self.n_max} observations")
            return

        self._total_obs += 1
        self._batch_mean.collect(value, weight)
        self._batch_obs += 1

        if self._batch_obs == self.m0:
            self._reference.append(self._batch_mean.estimate())
            self._batch_mean.reset()
            self._batch_obs = 0
            if len(self._reference) == self._s * self.k_b0:
                self._test_for_correlation()

    def _test_for_correlation(self) -> None:
        self._consolidate_batches()
        if self.uncorrelated(self._analyzed):
            if self._acceptable:
                self._m_star = self._s * self.m0
                self._set_detected()
                self.logger.debug(f"Accepted batch size {self._m_star}")
                return
            self._acceptable = True
        else:
            self._acceptable = False
        self._s += 1

    def _consolidate_batches(self) -> None:
        reference = np.asarray(self._reference[:self._s * self.k_b0])
        self._analyzed = reference.reshape(self.k_b0, self._s).mean(axis=1)

    def uncorrelated(self, batch_means: np.ndarray) -> bool:
        """Test whether batch means are uncorrelated at every tested lag.

        Args:
            batch_means: Sequence of batch means

        Returns:
            True if no lag shows significant autocorrelation
        """
        k_b = len(batch_means)
        num_lags = max(1, k_b // 10)
        beta_k = self.beta / num_lags
        z = stats.norm.ppf(1.0 - beta_k / 2.0)

        r = np.array([
            jackknife_autocorrelation(batch_means, lag)
            for lag in range(1, num_lags + 1)
        ])
        for k in range(num_lags):
            sigma_sq = (1.0 + 2.0 * np.sum(r[:k] ** 2)) / k_b
            if abs(r[k]) >= z * np.sqrt(sigma_sq):
                return False
        return True

    def estimated_size(self) -> int:
        return self._m_star

    def computed_estimators(self) -> List[float]:
        if not self.detected():
            return []
        return self._analyzed.tolist()
