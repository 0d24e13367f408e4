"""Number-of-replications detectors."""

import math

from .base import NumReplicationsDetector
from ..stats.confidence import normal_quantile, t_quantile, validate_confidence_level


class ConstantNumReplicationsDetector(NumReplicationsDetector):
    """Fixed number of replications.

    The decision is known before any replication runs. ``math.inf`` means
    "until told otherwise" and must be bounded by the caller.
    """

    sequential = False

    def __init__(self, num_replications: float = math.inf):
        if num_replications < 1:
            raise ValueError(f"Number of replications must be positive, got {num_replications}")
        super().__init__()
        self.num_replications = num_replications
        self._set_detected()

    def _detect(self, num_replications: int, estimate: float, stddev: float) -> None:
        pass

    def reset(self) -> None:
        super().reset()
        self._set_detected()

    def _reset(self) -> None:
        pass

    def estimated_number(self) -> float:
        return self.num_replications


class Banks2005NumReplicationsDetector(NumReplicationsDetector):
    """Sequential choice of the number of replications.

    Based on J. Banks et al., "Discrete-Event System Simulation", 4th ed.,
    Prentice Hall, 2005. Starting from the normal approximation

        R0 = (z * S / (eps * mean))^2

    the number is increased until ``R >= (t_{R-1} * S / (eps * mean))^2``,
    where ``eps`` is the target relative precision. Detection aborts when
    the required number exceeds ``max_replications``.
    """

    def __init__(self, confidence_level: float = 0.95, relative_precision: float = 0.04,
                 min_replications: int = 2, max_replications: float = math.inf):
        """Initialize detector.

        Args:
            confidence_level: Confidence level of the interval
            relative_precision: Target half-width relative to the mean
            min_replications: Minimum number of replications (>= 2)
            max_replications: Maximum number of replications
        """
        if min_replications < 2:
            raise ValueError("Min number of replications must be >= 2")
        if min_replications > max_replications:
            raise ValueError("Min number of replications must be <= max number of replications")

        super().__init__()
        self.confidence_level = validate_confidence_level(confidence_level)
        self.relative_precision = relative_precision
        self.min_replications = min_replications
        self.max_replications = max_replications
        self._reset()

    def _reset(self) -> None:
        self._r = 0

    def _detect(self, num_replications: int, estimate: float, stddev: float) -> None:
        if num_replications < self.min_replications:
            return
        if num_replications >= self.max_replications:
            self._set_aborted(f"reached {self.max_replications} replications")
            return
        if math.isinf(self.relative_precision):
            self._r = num_replications
            self._set_detected()
            return
        if stddev < 0 or math.isinf(stddev) or math.isnan(stddev):
            self.logger.warning("Standard deviation is negative or infinite")
            return
        if estimate == 0:
            self.logger.warning("Cannot size replications for a zero estimate")
            return

        scale = stddev / (self.relative_precision * abs(estimate))
        r = max(int((normal_quantile(self.confidence_level) * scale) ** 2),
                self.min_replications)

        r_want = (t_quantile(self.confidence_level, r - 1) * scale) ** 2
        while r < r_want and r < self.max_replications:
            r += 1
            r_want = (t_quantile(self.confidence_level, r - 1) * scale) ** 2

        if r < r_want:
            self._r = self.max_replications
            self._set_aborted(f"{math.ceil(r_want)} replications needed, at most "
                              f"{self.max_replications} allowed")
        else:
            self._r = r
            self._set_detected()
            self.logger.debug(f"Detected {r} replications (r_want={r_want:.2f})")

    def estimated_number(self) -> float:
        return self._r
