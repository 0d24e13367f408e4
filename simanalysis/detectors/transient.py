"""Transient (warm-up) period detectors."""

import math
from typing import List

import numpy as np
from scipy import stats

from .base import Sample, TransientDetector
from .spectral import SLOPE_PROTECTION_OFF, schruben_statistic, spectral_anova


class NullTransientDetector(TransientDetector):
    """Treats the whole stream as steady state.

    The first observation ends detection and is handed back as a
    steady-state observation, so nothing is discarded.
    """

    def __init__(self):
        super().__init__()
        self._observations: List[Sample] = []

    def _detect(self, value: float, weight: float) -> None:
        self._observations.append((value, weight))
        self._set_detected()

    def estimated_size(self) -> int:
        return 0

    def steady_state_observations(self) -> List[Sample]:
        return list(self._observations)

    def _reset(self) -> None:
        self._observations = []


class Pawlikowski1990TransientDetector(TransientDetector):
    """Sequential transient detection with the Schruben stationarity test.

    Based on K. Pawlikowski, "Steady-state simulation of queueing
    processes: a survey of problems and solutions", ACM Computing Surveys
    22(2):123-170, 1990.

    Detection runs in two phases:

    1. Heuristic phase (rule R5): the transient is assumed over once the
       series has crossed its running mean ``min_num_mean_crossings``
       times. This gives the first estimate ``n0*``.
    2. Testing phase: ``n_t = max(gamma * n0*, gamma_v * n_v)`` buffered
       observations are tested with Schruben's statistic, using a
       steady-state variance estimated spectrally from the last ``n_v``
       of them. If stationarity is rejected, the oldest ``gamma * n0*``
       observations are discarded as transient and the test is repeated
       once the buffer refills.

    Detection aborts when the transient would exceed ``n0_max``
    observations or the heuristic phase exceeds ``max_heuristic_len``.
    """

    def __init__(self, n0_max: float = math.inf, gamma: float = 0.5,
                 gamma_v: float = 2.0, n_v: int = 100, alpha_t: float = 0.05,
                 safety_factor: float = 1.0, n_ap: int = 25, delta: int = 2,
                 eps: float = 1e-5, min_num_mean_crossings: int = 25,
                 max_heuristic_len: float = None,
                 slope_protection: str = SLOPE_PROTECTION_OFF):
        """Initialize detector.

        Args:
            n0_max: Maximum allowed transient length
            gamma: Exchange coefficient, fraction of n0* replaced per test
            gamma_v: Safety coefficient of the variance estimator (<= 2)
            n_v: Length of the sequence used to estimate the variance
            alpha_t: Significance level of the stationarity test
            safety_factor: Minimum observations before accepting, as a
                multiple of n0*
            n_ap: Number of averaged periodogram points (<= n_v / 4)
            delta: Degree of the polynomial fitted to the log periodogram
            eps: Tolerance for equality in mean crossings
            min_num_mean_crossings: Crossings required by rule R5
            max_heuristic_len: Maximum length of the heuristic phase
                (defaults to n0_max / 2)
            slope_protection: Slope protection mode of the spectral fit
        """
        if not 0.0 < alpha_t < 1.0:
            raise ValueError("Significance level is out of range")
        if gamma <= 0:
            raise ValueError("Exchange coefficient is out of range")
        if gamma_v > 2:
            raise ValueError("Safety coefficient is out of range")
        if n_ap > n_v / 4:
            raise ValueError("Number of periodogram points is out of range")
        if delta <= 0:
            raise ValueError("Polynomial degree is out of range")

        super().__init__()
        self.n0_max = n0_max
        self.gamma = gamma
        self.gamma_v = gamma_v
        self.n_v = n_v
        self.alpha_t = alpha_t
        self.safety_factor = safety_factor
        self.n_ap = n_ap
        self.delta = delta
        self.eps = eps
        self.min_num_mean_crossings = min_num_mean_crossings
        self.max_heuristic_len = n0_max / 2 if max_heuristic_len is None else max_heuristic_len
        self.slope_protection = slope_protection
        self._reset()

    def _reset(self) -> None:
        self._num_obs = 0
        self._sum = 0.0
        self._n0 = 0
        self._n0_star = 0
        self._n_t = 0
        self._gamma_n0_star = 0
        self._stationary = False
        self._values: List[float] = []
        self._weights: List[float] = []

    @property
    def num_observations(self) -> int:
        return self._num_obs

    def _detect(self, value: float, weight: float) -> None:
        if self._n0 + self._n_t > self.n0_max:
            self._set_aborted(f"transient longer than {self.n0_max} observations")
            return

        self._num_obs += 1
        self._values.append(value)
        self._weights.append(weight)

        if self._n0_star == 0:
            self._heuristic_phase(value)
            return

        if not self._stationary:
            self._schruben_phase()
            if not self._stationary:
                return

        if self._num_obs >= self.safety_factor * self._n0_star:
            self._set_detected()

    def _heuristic_phase(self, value: float) -> None:
        if len(self._values) > self.max_heuristic_len:
            self._set_aborted("heuristic phase too long")
            return

        self._sum += value
        mean = self._sum / self._num_obs
        x = np.asarray(self._values)
        prev, cur = x[:-1], x[1:]
        crossings = (
            ((prev < mean) & (mean < cur))
            | ((prev > mean) & (mean > cur))
            | ((np.abs(prev - mean) <= self.eps) & (np.abs(cur - mean) <= self.eps))
        )
        if np.count_nonzero(crossings) >= self.min_num_mean_crossings:
            self._n0 = self._n0_star = self._num_obs
            self._gamma_n0_star = max(1, int(self.gamma * self._n0_star))
            self._n_t = max(self._gamma_n0_star, int(self.gamma_v * self.n_v))
            self._values = []
            self._weights = []
            self.logger.debug(
                f"Heuristic transient length n0*={self._n0_star}, test length n_t={self._n_t}"
            )

    def _schruben_phase(self) -> None:
        if len(self._values) != self._n_t:
            return

        x = np.asarray(self._values)
        variance, kappa = spectral_anova(x[-self.n_v:], self.n_ap, self.delta,
                                         self.slope_protection)
        statistic = abs(schruben_statistic(x, self.n_v, variance))
        threshold = stats.t.ppf(1.0 - self.alpha_t / 2.0, kappa)

        if statistic <= threshold:
            self._stationary = True
        else:
            self._values = self._values[self._gamma_n0_star:]
            self._weights = self._weights[self._gamma_n0_star:]
            self._n0 += self._gamma_n0_star
            self.logger.debug(
                f"Stationarity rejected (|T|={statistic:.4f} > {threshold:.4f}), "
                f"transient extended to {self._n0}"
            )

    def estimated_size(self) -> int:
        return self._n0

    def steady_state_observations(self) -> List[Sample]:
        return list(zip(self._values, self._weights))
