"""Replication size detectors for the independent replications method."""

import math
from typing import List

from .base import ReplicationSizeDetector, Sample


class DummyReplicationSizeDetector(ReplicationSizeDetector):
    """Leaves the length of a replication to the engine run limits.

    Detection succeeds on the first observation with an unbounded size, so
    the statistic keeps collecting until the engine stops on its own.
    """

    def __init__(self):
        super().__init__()
        self._consumed: List[Sample] = []

    def _detect(self, value: float, weight: float) -> None:
        self._consumed.append((value, weight))
        self._set_detected()

    def estimated_size(self) -> float:
        return math.inf

    def consumed_observations(self) -> List[Sample]:
        return list(self._consumed)

    def _reset(self) -> None:
        self._consumed = []


class FixedNumObsReplicationSizeDetector(ReplicationSizeDetector):
    """Every replication collects exactly ``num_obs`` observations."""

    def __init__(self, num_obs: int = 1000):
        if num_obs < 1:
            raise ValueError(f"Number of observations must be positive, got {num_obs}")
        super().__init__()
        self.num_obs = num_obs
        self._consumed: List[Sample] = []

    def _detect(self, value: float, weight: float) -> None:
        self._consumed.append((value, weight))
        self._set_detected()

    def estimated_size(self) -> int:
        return self.num_obs

    def consumed_observations(self) -> List[Sample]:
        return list(self._consumed)

    def _reset(self) -> None:
        self._consumed = []


class FixedDurationReplicationSizeDetector(ReplicationSizeDetector):
    """Every replication lasts ``duration`` units of virtual time.

    The detector must be attached to the engine of the running replication;
    it becomes detected once the clock reaches the duration, and the
    replication size is the number of observations consumed until then.
    """

    def __init__(self, duration: float):
        if duration <= 0:
            raise ValueError(f"Replication duration must be positive, got {duration}")
        super().__init__()
        self.duration = duration
        self._engine = None
        self._consumed: List[Sample] = []

    def attach(self, engine) -> None:
        self._engine = engine

    def _detect(self, value: float, weight: float) -> None:
        self._consumed.append((value, weight))
        self.refresh()

    def refresh(self) -> bool:
        if self._engine is None:
            raise RuntimeError("FixedDurationReplicationSizeDetector is not attached to an engine")
        if not self.terminal() and self._engine.simulated_time >= self.duration:
            self._set_detected()
        return self.detected()

    def estimated_size(self) -> int:
        return len(self._consumed)

    def consumed_observations(self) -> List[Sample]:
        return list(self._consumed)

    def _reset(self) -> None:
        self._consumed = []

    def __deepcopy__(self, memo):
        # Engine binding is per replication
        clone = FixedDurationReplicationSizeDetector(self.duration)
        memo[id(self)] = clone
        return clone
