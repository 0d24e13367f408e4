"""Independent replications output analysis."""

import math
import time
from typing import Callable, Dict, List, Optional

from .base import (
    AnalysisOutcome,
    AnalysisResult,
    AnalyzableStatistic,
    StatisticPhase,
)
from ..core.engine import Engine
from ..detectors.base import NumReplicationsDetector, ReplicationSizeDetector, TransientDetector
from ..detectors.factory import (
    make_num_replications_detector,
    make_replication_size_detector,
    make_transient_detector,
)
from ..detectors.num_replications import ConstantNumReplicationsDetector
from ..detectors.replication_size import DummyReplicationSizeDetector
from ..rng.random_source import RandomSource
from ..stats import MeanEstimator, Statistic, make_estimator
from ..utils.logger import setup_logger


class ReplicationStatistic(AnalyzableStatistic):
    """Statistic analyzed across independent replications.

    Within a replication, observations pass through the transient detector,
    then the replication size detector, then the inner estimator. At the
    end of each replication the inner estimate becomes one sample of an
    across-replication mean, whose Student-t interval is the final answer.
    The number-of-replications detector decides how many samples are
    needed.
    """

    def __init__(self, statistic: Statistic,
                 transient_detector: TransientDetector = None,
                 replication_size_detector: ReplicationSizeDetector = None,
                 num_replications_detector: NumReplicationsDetector = None,
                 target_relative_precision: float = math.inf,
                 max_num_obs: float = math.inf,
                 min_replications: int = 2,
                 max_empty_replications: int = 10):
        """Initialize replication statistic.

        Args:
            statistic: Per-replication estimator
            transient_detector: Warm-up detector applied in every replication
            replication_size_detector: Decides when a replication has enough
                observations (default: left to the engine limits)
            num_replications_detector: Decides how many replications to run
                (default: unbounded constant, so the runner cap applies)
            target_relative_precision: Relative precision to reach
            max_num_obs: Per-replication observation budget
            min_replications: Minimum number of replications (>= 2)
            max_empty_replications: Consecutive replications without
                steady-state observations before the statistic is aborted
        """
        if min_replications < 2:
            raise ValueError("Number of replications must be >= 2")
        super().__init__(statistic, transient_detector, target_relative_precision, max_num_obs)
        self.replication_size_detector = replication_size_detector or DummyReplicationSizeDetector()
        self.num_replications_detector = num_replications_detector or ConstantNumReplicationsDetector()
        self.min_replications = min_replications
        self.max_empty_replications = max_empty_replications
        self._empty_replications = 0

        self._replications = MeanEstimator(statistic.name, statistic.confidence_level)
        self.replication_size: float = 0
        self.required_replications: Optional[float] = None

    # Experiment lifecycle

    def initialize_for_experiment(self) -> None:
        """Discard every replication and restart the analysis."""
        self._replications.reset()
        self.num_replications_detector.reset()
        self.reason = None
        self.phase = StatisticPhase.WARMING_UP
        self._empty_replications = 0
        self.required_replications = None
        if self.num_replications_detector.detected():
            self.required_replications = max(self.min_replications,
                                             self.num_replications_detector.estimated_number())
        self._reset_replication()

    def initialize_for_replication(self, engine: Engine = None) -> None:
        """Prepare per-replication state for a fresh engine."""
        if self.terminal():
            return
        self._reset_replication()
        if engine is not None:
            self.replication_size_detector.attach(engine)

    def _reset_replication(self) -> None:
        self.statistic.reset()
        self.transient_detector.reset()
        self.replication_size_detector.reset()
        self.transient_length = 0
        self.replication_size = 0
        if not self.terminal():
            self.phase = StatisticPhase.WARMING_UP

    def finalize_replication(self) -> None:
        """Record the estimate of the replication that just ended."""
        if self.terminal():
            return
        if not self.replication_done() and not math.isinf(self.replication_size):
            self.logger.warning(
                f"Statistic '{self.name}': replication ended after "
                f"{self.statistic.num_observations()} observations "
                f"(phase: {self.phase.value}, wanted: {self.replication_size or 'undetected'})"
            )
        if self.statistic.num_observations() == 0:
            self.logger.warning(
                f"Statistic '{self.name}': no steady-state observations in this replication"
            )
            self._empty_replications += 1
            if self._empty_replications >= self.max_empty_replications:
                self.disable(f"no steady-state observations in {self._empty_replications} "
                             f"consecutive replications")
            return
        self._empty_replications = 0
        self._record(self.statistic.estimate())

    # Observation handling

    def _collect(self, value: float, weight: float) -> None:
        # The replicate estimate covers exactly replication_size observations
        if self.replication_done():
            return
        if self.statistic.num_observations() >= self.max_num_obs:
            self.disable("collected max number of observations")
            return

        if self.phase is StatisticPhase.COLLECTING:
            self.statistic.collect(value, weight)
        elif self.phase is StatisticPhase.SIZING:
            self.replication_size_detector.detect(value, weight)
            self._detect_replication_size()
        else:
            self._detect_transient(value, weight)

    def _detect_replication_size(self) -> None:
        detector = self.replication_size_detector
        if detector.detected():
            self.replication_size = detector.estimated_size()
            consumed = detector.consumed_observations()
            detector.reset()
            self.phase = StatisticPhase.COLLECTING
            for value, weight in consumed:
                self.collect(value, weight)
        elif detector.aborted():
            self.disable("replication size detection has been aborted")

    def refresh(self) -> None:
        """Re-evaluate time-driven decisions after an event has fired."""
        if self.phase is StatisticPhase.SIZING and self.replication_size_detector.refresh():
            self._detect_replication_size()

    def replication_done(self) -> bool:
        if self.terminal():
            return True
        return (self.phase is StatisticPhase.COLLECTING
                and self.statistic.num_observations() >= self.replication_size)

    # Across-replication estimate

    def _record(self, replicate_estimate: float) -> None:
        self._replications.collect(replicate_estimate)
        r = self._replications.num_observations()
        self.logger.debug(
            f"[Replication #{r}] {self.name}: replicate estimate {replicate_estimate:.6g}, "
            f"estimate {self.estimate():.6g} +/- {self.half_width():.6g}"
        )

        required = self.required_replications
        if required is not None:
            if r < required:
                return
            if self.target_precision_reached():
                self._converge()
                return
            if not self.num_replications_detector.sequential:
                self.disable(
                    f"unable to reach the wanted precision within {r} replications "
                    f"(reached {self.relative_precision():.4g}, "
                    f"wanted {self.target_relative_precision:.4g})"
                )
                return
            self.num_replications_detector.reset()

        detector = self.num_replications_detector
        detector.detect(r, self.estimate(), self.standard_deviation())
        if detector.detected():
            self.required_replications = max(self.min_replications, detector.estimated_number())
            if self.required_replications <= r:
                if self.target_precision_reached():
                    self._converge()
                    return
                self.required_replications = r + 1
            self.logger.debug(
                f"Statistic '{self.name}': {self.required_replications} replications needed "
                f"({r} done)"
            )
        elif detector.aborted():
            self.disable("number of replications detection has been aborted")

    def estimate(self) -> float:
        return self._replications.estimate()

    def half_width(self) -> float:
        return self._replications.half_width()

    def variance(self) -> float:
        return self._replications.variance()

    def standard_deviation(self) -> float:
        return self._replications.standard_deviation()

    def num_samples(self) -> int:
        return self._replications.num_observations()

    @property
    def num_replications(self) -> int:
        return self._replications.num_observations()


class IndependentReplications:
    """Runs a model repeatedly until every statistic is conclusive.

    Each replication gets a fresh :class:`Engine` and an independent random
    stream. The model callable sets the replication up::

        def model(engine, rng):
            ...schedule initial events, feed engine.statistic(name)...

    The engine is the only owner of the stopping condition: the runner asks
    it to stop once every statistic has completed its replication and no
    further event is pending at the current virtual time; engine limits
    (``max_events``, ``max_time``) remain hard caps.
    """

    def __init__(self, model: Callable[[Engine, RandomSource], None],
                 statistics: List[ReplicationStatistic],
                 seed: Optional[int] = None,
                 max_replications: float = math.inf,
                 max_events: Optional[int] = None,
                 max_time: float = math.inf,
                 min_replication_duration: float = 0.0):
        """Initialize runner.

        Args:
            model: Callable setting up one replication on a fresh engine
            statistics: Analyzed statistics (names must be unique)
            seed: Seed of the root random stream
            max_replications: Hard cap on the number of replications
            max_events: Engine event limit per replication
            max_time: Engine virtual time limit per replication
            min_replication_duration: Virtual time every replication must last
        """
        names = [stat.name for stat in statistics]
        if len(set(names)) != len(names):
            raise ValueError(f"Statistic names must be unique: {names}")
        if not statistics:
            raise ValueError("At least one statistic is needed")

        self.model = model
        self.statistics = list(statistics)
        self.seed = seed
        self.max_replications = max_replications
        self.max_events = max_events
        self.max_time = max_time
        self.min_replication_duration = min_replication_duration
        self.logger = setup_logger(self.__class__.__name__)

        self.history: List[Dict] = []
        self.num_replications = 0
        self.total_events = 0
        self.total_time = 0.0

    @classmethod
    def from_config(cls, config: Dict, model: Callable) -> "IndependentReplications":
        """Build a runner from ``simulation`` and ``analysis`` config sections.

        Args:
            config: Configuration dictionary
            model: Model set-up callable

        Returns:
            Configured runner
        """
        sim_config = config.get('simulation', {})
        analysis_config = config.get('analysis', {})

        statistics = []
        for stat_config in analysis_config.get('statistics', []):
            estimator_config = dict(stat_config.get('estimator', {}))
            estimator_config.setdefault('name', stat_config['name'])
            statistics.append(ReplicationStatistic(
                make_estimator(estimator_config),
                transient_detector=make_transient_detector(stat_config.get('transient')),
                replication_size_detector=make_replication_size_detector(
                    stat_config.get('replication_size')),
                num_replications_detector=make_num_replications_detector(
                    stat_config.get('num_replications')),
                target_relative_precision=float(stat_config.get('target_relative_precision', math.inf)),
                max_num_obs=float(stat_config.get('max_num_obs', math.inf)),
                min_replications=stat_config.get('min_replications', 2),
            ))

        return cls(
            model,
            statistics,
            seed=sim_config.get('random_seed'),
            max_replications=float(analysis_config.get('max_replications', math.inf)),
            max_events=sim_config.get('max_events'),
            max_time=float(sim_config.get('max_time', math.inf)),
            min_replication_duration=sim_config.get('min_replication_duration', 0.0),
        )

    def run(self) -> AnalysisResult:
        """Run replications until every statistic converges or aborts.

        Returns:
            Analysis result with one summary per statistic
        """
        self._check_bounds()
        start_time = time.time()
        self.logger.info(f"Starting independent replications for {len(self.statistics)} statistics...")

        root = RandomSource(self.seed)
        self.history = []
        self.num_replications = 0
        self.total_events = 0
        self.total_time = 0.0
        for stat in self.statistics:
            stat.initialize_for_experiment()

        while not all(stat.terminal() for stat in self.statistics):
            if self.num_replications >= self.max_replications:
                for stat in self.statistics:
                    stat.disable(f"reached the maximum number of replications ({self.num_replications})")
                break
            rng = root.spawn(1)[0]
            self._run_replication(rng)

        elapsed_time = time.time() - start_time
        result = self._build_result()
        self.logger.info(
            f"Independent replications completed in {elapsed_time:.2f}s: "
            f"{self.num_replications} replications, outcome {result.outcome.value}"
        )
        return result

    def _check_bounds(self) -> None:
        if math.isinf(self.max_replications):
            for stat in self.statistics:
                detector = stat.num_replications_detector
                if not detector.sequential and math.isinf(detector.estimated_number()):
                    raise ValueError(
                        f"Statistic '{stat.name}' asks for an unbounded number of "
                        f"replications; set max_replications"
                    )
        if self.max_events is None and math.isinf(self.max_time):
            for stat in self.statistics:
                if isinstance(stat.replication_size_detector, DummyReplicationSizeDetector):
                    self.logger.warning(
                        f"Statistic '{stat.name}': replication length is bounded only "
                        f"by the model running out of events"
                    )

    def _run_replication(self, rng: RandomSource) -> None:
        engine = Engine(max_events=self.max_events, max_time=self.max_time)
        for stat in self.statistics:
            engine.register_statistic(stat)
            stat.initialize_for_replication(engine)

        def check_replication(event, context):
            for stat in self.statistics:
                stat.refresh()
            if (context.simulated_time >= self.min_replication_duration
                    and engine.next_event_time() > context.simulated_time
                    and all(stat.replication_done() for stat in self.statistics)):
                engine.stop_now()

        engine.after_event_firing.connect(check_replication)
        self.model(engine, rng)
        engine.run()

        for stat in self.statistics:
            stat.finalize_replication()

        self.num_replications += 1
        self.total_events += engine.num_user_events
        self.total_time += engine.current_time

        record = {'replication': self.num_replications, 'simulated_time': engine.current_time}
        for stat in self.statistics:
            record[stat.name] = {
                'estimate': stat.estimate(),
                'half_width': stat.half_width(),
                'phase': stat.phase.value,
            }
        self.history.append(record)
        self.logger.info(
            f"Replication #{self.num_replications} done at time {engine.current_time:.4g} "
            f"({engine.num_user_events} events)"
        )

    def _build_result(self) -> AnalysisResult:
        summaries = {stat.name: stat.summary() for stat in self.statistics}
        aborted = [s for s in summaries.values() if not s.converged]
        if aborted:
            outcome = AnalysisOutcome.ABORTED
            reason = "; ".join(f"{s.name}: {s.reason}" for s in aborted)
            self.logger.warning(f"No statistically valid answer within budget: {reason}")
        else:
            outcome = AnalysisOutcome.CONVERGED
            reason = None
        return AnalysisResult(
            outcome=outcome,
            statistics=summaries,
            reason=reason,
            num_replications=self.num_replications,
            num_events=self.total_events,
            simulated_time=self.total_time,
            history=list(self.history),
        )
