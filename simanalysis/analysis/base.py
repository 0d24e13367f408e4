"""Outcomes, summaries and the base class of analyzed statistics."""

import math
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..core.exceptions import NoValidEstimate
from ..detectors.base import TransientDetector
from ..detectors.transient import NullTransientDetector
from ..stats.base import Statistic
from ..utils.logger import setup_logger


class AnalysisOutcome(Enum):
    """Overall result of an output analysis run."""
    CONVERGED = "converged"
    ABORTED = "aborted"


class StatisticPhase(Enum):
    """Lifecycle of an analyzed statistic."""
    WARMING_UP = "warming_up"
    SIZING = "sizing"
    COLLECTING = "collecting"
    CONVERGED = "converged"
    ABORTED = "aborted"


TERMINAL_PHASES = (StatisticPhase.CONVERGED, StatisticPhase.ABORTED)


@dataclass
class StatisticSummary:
    """Final state of one analyzed statistic.

    Attributes:
        name: Statistic name
        phase: Final phase (CONVERGED or ABORTED once a run completes)
        estimate: Point estimate
        half_width: Confidence interval half-width
        confidence_level: Confidence level of the interval
        relative_precision: Half-width relative to the estimate
        target_relative_precision: Precision the statistic aimed for
        num_samples: Replications or batch means behind the estimate
        transient_length: Observations discarded as warm-up
        reason: Why the statistic was aborted, if it was
    """
    name: str
    phase: StatisticPhase
    estimate: float
    half_width: float
    confidence_level: float
    relative_precision: float
    target_relative_precision: float
    num_samples: int
    transient_length: int = 0
    reason: Optional[str] = None

    @property
    def converged(self) -> bool:
        return self.phase is StatisticPhase.CONVERGED

    @property
    def lower(self) -> float:
        return self.estimate - self.half_width

    @property
    def upper(self) -> float:
        return self.estimate + self.half_width

    def to_dict(self) -> Dict:
        record = asdict(self)
        record['phase'] = self.phase.value
        return record


@dataclass
class AnalysisResult:
    """Result of an output analysis run."""
    outcome: AnalysisOutcome
    statistics: Dict[str, StatisticSummary]
    reason: Optional[str] = None
    num_replications: int = 0
    num_events: int = 0
    simulated_time: float = 0.0
    history: List[Dict] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.outcome is AnalysisOutcome.CONVERGED

    def summary(self, name: str) -> StatisticSummary:
        return self.statistics[name]

    def confidence_interval(self, name: str) -> Tuple[float, float]:
        """Confidence interval of a statistic.

        Raises:
            KeyError: If no statistic has that name
            NoValidEstimate: If the statistic did not converge
        """
        summary = self.statistics[name]
        if not summary.converged:
            raise NoValidEstimate(
                f"No statistically valid estimate for '{name}': "
                f"{summary.reason or summary.phase.value}"
            )
        return summary.lower, summary.upper

    def to_dict(self) -> Dict:
        return {
            'outcome': self.outcome.value,
            'reason': self.reason,
            'num_replications': self.num_replications,
            'num_events': self.num_events,
            'simulated_time': self.simulated_time,
            'statistics': {name: s.to_dict() for name, s in self.statistics.items()},
        }


class AnalyzableStatistic(ABC):
    """A statistic driven through warm-up, sizing and collection phases.

    Observations first go to the transient detector. Once the warm-up is
    over, the steady-state observations buffered by the detector are
    replayed into the method-specific sizing and collection logic of the
    subclass.
    """

    def __init__(self, statistic: Statistic,
                 transient_detector: TransientDetector = None,
                 target_relative_precision: float = math.inf,
                 max_num_obs: float = math.inf):
        """Initialize analyzed statistic.

        Args:
            statistic: Estimator of the measured quantity
            transient_detector: Warm-up detector (default: none)
            target_relative_precision: Relative precision to reach
            max_num_obs: Observation budget before the statistic is aborted
        """
        if target_relative_precision < 0:
            raise ValueError("Target relative precision must be non-negative")
        self.statistic = statistic
        self.transient_detector = transient_detector or NullTransientDetector()
        self.target_relative_precision = target_relative_precision
        self.max_num_obs = max_num_obs
        self.logger = setup_logger(self.__class__.__name__)

        self.phase = StatisticPhase.WARMING_UP
        self.reason: Optional[str] = None
        self.transient_length = 0

    @property
    def name(self) -> str:
        return self.statistic.name

    @property
    def confidence_level(self) -> float:
        return self.statistic.confidence_level

    @property
    def enabled(self) -> bool:
        return self.phase is not StatisticPhase.ABORTED

    def terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def collect(self, value: float, weight: float = 1.0) -> None:
        """Feed an observation of the measured quantity."""
        if not self.terminal():
            self._collect(value, weight)

    __call__ = collect

    @abstractmethod
    def _collect(self, value: float, weight: float) -> None:
        pass

    @abstractmethod
    def estimate(self) -> float:
        pass

    @abstractmethod
    def half_width(self) -> float:
        pass

    @abstractmethod
    def num_samples(self) -> int:
        """Independent samples behind the estimate."""

    def relative_precision(self) -> float:
        estimate = self.estimate()
        if self.num_samples() < 2 or estimate == 0:
            return math.inf
        return self.half_width() / abs(estimate)

    def target_precision_reached(self) -> bool:
        return self.relative_precision() <= self.target_relative_precision

    def confidence_interval(self) -> Tuple[float, float]:
        return self.estimate() - self.half_width(), self.estimate() + self.half_width()

    def disable(self, reason: str) -> None:
        """Abort the analysis of this statistic."""
        if self.terminal():
            return
        self.phase = StatisticPhase.ABORTED
        self.reason = reason
        self.logger.warning(f"Statistic '{self.name}' will be disabled: {reason}")

    def _converge(self) -> None:
        self.phase = StatisticPhase.CONVERGED
        self.logger.info(
            f"Statistic '{self.name}' converged: {self.estimate():.6g} "
            f"+/- {self.half_width():.6g} (r.e. {self.relative_precision():.2%})"
        )

    def _detect_transient(self, value: float, weight: float) -> None:
        detector = self.transient_detector
        detector.detect(value, weight)
        if detector.detected():
            self.transient_length = detector.estimated_size()
            steady = detector.steady_state_observations()
            detector.reset()
            self.phase = StatisticPhase.SIZING
            self.logger.debug(
                f"Statistic '{self.name}': transient of {self.transient_length} observations, "
                f"replaying {len(steady)} steady-state observations"
            )
            self._on_steady_state(steady)
        elif detector.aborted():
            self.disable("transient phase detection has been aborted")

    def _on_steady_state(self, observations) -> None:
        for value, weight in observations:
            self.collect(value, weight)

    def summary(self) -> StatisticSummary:
        return StatisticSummary(
            name=self.name,
            phase=self.phase,
            estimate=self.estimate(),
            half_width=self.half_width(),
            confidence_level=self.confidence_level,
            relative_precision=self.relative_precision(),
            target_relative_precision=self.target_relative_precision,
            num_samples=self.num_samples(),
            transient_length=self.transient_length,
            reason=self.reason,
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name={self.name!r}, phase={self.phase.value}, "
            f"estimate={self.estimate()}, samples={self.num_samples()})"
        )
