"""Detector state machine and base classes."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Tuple

from ..utils.logger import setup_logger

Sample = Tuple[float, float]


class DetectorState(Enum):
    """Phase of a detector.

    ``DETECTED`` and ``ABORTED`` are terminal until ``reset()``.
    """
    SEARCHING = "searching"
    DETECTED = "detected"
    ABORTED = "aborted"


class Detector(ABC):
    """Base class for every detector.

    Subclasses implement ``_reset()`` and move between states with
    ``_set_detected()`` / ``_set_aborted()``. Once a terminal state is
    reached, further ``detect`` calls return the current decision without
    touching any internal state.
    """

    def __init__(self):
        self.logger = setup_logger(self.__class__.__name__)
        self.state = DetectorState.SEARCHING

    def detected(self) -> bool:
        return self.state is DetectorState.DETECTED

    def aborted(self) -> bool:
        return self.state is DetectorState.ABORTED

    def searching(self) -> bool:
        return self.state is DetectorState.SEARCHING

    def terminal(self) -> bool:
        return self.state is not DetectorState.SEARCHING

    def reset(self) -> None:
        """Return to the searching state, discarding all history."""
        self.state = DetectorState.SEARCHING
        self._reset()

    @abstractmethod
    def _reset(self) -> None:
        pass

    def _set_detected(self) -> None:
        self.state = DetectorState.DETECTED
        self.logger.debug(f"{self!r} detected")

    def _set_aborted(self, reason: str = "") -> None:
        self.state = DetectorState.ABORTED
        self.logger.debug(f"{self!r} aborted{': ' + reason if reason else ''}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(state={self.state.value})"


class ObservationDetector(Detector):
    """Detector fed with a stream of weighted observations."""

    def detect(self, value: float, weight: float = 1.0) -> bool:
        """Consume an observation and try to reach a decision.

        Args:
            value: Observed value
            weight: Observation weight

        Returns:
            True if the detector is in the detected state
        """
        if not self.terminal():
            self._detect(value, weight)
        return self.detected()

    @abstractmethod
    def _detect(self, value: float, weight: float) -> None:
        pass


class TransientDetector(ObservationDetector):
    """Decides where the warm-up period of an observation stream ends."""

    @abstractmethod
    def estimated_size(self) -> int:
        """Number of observations belonging to the transient period."""

    @abstractmethod
    def steady_state_observations(self) -> List[Sample]:
        """Buffered observations that lie past the transient period."""


class BatchSizeDetector(ObservationDetector):
    """Decides how many observations make up one batch."""

    @abstractmethod
    def estimated_size(self) -> int:
        """Detected batch size."""

    @abstractmethod
    def computed_estimators(self) -> List[float]:
        """Batch means already formed from the consumed observations."""


class ReplicationSizeDetector(ObservationDetector):
    """Decides how many observations a single replication collects."""

    def attach(self, engine) -> None:
        """Bind to the engine running the current replication."""

    def refresh(self) -> bool:
        """Re-evaluate the decision without a new observation."""
        return self.detected()

    @abstractmethod
    def estimated_size(self) -> float:
        """Observations per replication (``math.inf`` if unbounded)."""

    @abstractmethod
    def consumed_observations(self) -> List[Sample]:
        pass


class NumReplicationsDetector(Detector):
    """Decides how many replications an experiment needs.

    A sequential detector can be reset and consulted again once its
    estimate has been reached without the wanted precision; a
    non-sequential one has nothing more to say.
    """

    sequential = True

    def detect(self, num_replications: int, estimate: float, stddev: float) -> bool:
        """Try to decide the number of replications.

        Args:
            num_replications: Replications completed so far
            estimate: Current across-replication estimate
            stddev: Current across-replication standard deviation

        Returns:
            True if the detector is in the detected state
        """
        if not self.terminal():
            self._detect(num_replications, estimate, stddev)
        return self.detected()

    @abstractmethod
    def _detect(self, num_replications: int, estimate: float, stddev: float) -> None:
        pass

    @abstractmethod
    def estimated_number(self) -> float:
        """Required number of replications (``math.inf`` if unbounded)."""
