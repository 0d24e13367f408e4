"""Batch means output analysis."""

import math
import time
from typing import Callable, Dict, List, Optional

from .base import AnalysisOutcome, AnalysisResult, AnalyzableStatistic, StatisticPhase
from ..core.engine import Engine
from ..detectors.base import BatchSizeDetector, TransientDetector
from ..detectors.batch_size import DummyBatchSizeDetector
from ..detectors.factory import make_batch_size_detector, make_transient_detector
from ..rng.random_source import RandomSource
from ..stats import MeanEstimator, Statistic, make_estimator
from ..stats.mean import WeightedMeanEstimator
from ..utils.logger import setup_logger


class BatchMeansStatistic(AnalyzableStatistic):
    """Statistic analyzed by batch means over a single long run.

    Post warm-up observations are grouped into batches whose size is chosen
    by the batch size detector. Each batch mean is one sample of
    ``statistic`` (a mean estimator), and the interval is computed over
    those samples once at least ``min_num_batches`` are available.
    """

    def __init__(self, statistic: Statistic = None,
                 transient_detector: TransientDetector = None,
                 batch_size_detector: BatchSizeDetector = None,
                 target_relative_precision: float = math.inf,
                 max_num_obs: float = math.inf,
                 min_num_batches: int = 10,
                 name: str = None):
        """Initialize batch means statistic.

        Args:
            statistic: Estimator of the mean of batch means
            transient_detector: Warm-up detector
            batch_size_detector: Batch size detector (default: size 1)
            target_relative_precision: Relative precision to reach
            max_num_obs: Observation budget before the statistic is aborted
            min_num_batches: Batches needed before precision is assessed
            name: Name used when no statistic is given
        """
        if min_num_batches < 2:
            raise ValueError("At least 2 batches are needed for an interval")
        statistic = statistic or MeanEstimator(name or "Mean")
        super().__init__(statistic, transient_detector, target_relative_precision, max_num_obs)
        self.batch_size_detector = batch_size_detector or DummyBatchSizeDetector()
        self.min_num_batches = min_num_batches

        self._batch = WeightedMeanEstimator()
        self._batch_obs = 0
        self._count = 0
        self.batch_size = 0
        self.batch_means: List[float] = []

    def reset(self) -> None:
        """Restart the analysis from scratch."""
        self.statistic.reset()
        self.transient_detector.reset()
        self.batch_size_detector.reset()
        self._batch.reset()
        self._batch_obs = 0
        self._count = 0
        self.batch_size = 0
        self.batch_means = []
        self.transient_length = 0
        self.phase = StatisticPhase.WARMING_UP
        self.reason = None

    def _collect(self, value: float, weight: float) -> None:
        self._count += 1
        if self._count > self.max_num_obs:
            self.disable("collected max number of observations")
            return

        if self.phase is StatisticPhase.COLLECTING:
            self._batch.collect(value, weight)
            self._batch_obs += 1
            if self._batch_obs == self.batch_size:
                batch_mean = self._batch.estimate()
                self._batch.reset()
                self._batch_obs = 0
                self._record(batch_mean)
        elif self.phase is StatisticPhase.SIZING:
            detector = self.batch_size_detector
            detector.detect(value, weight)
            if detector.detected():
                self.batch_size = detector.estimated_size()
                means = detector.computed_estimators()
                detector.reset()
                self.phase = StatisticPhase.COLLECTING
                self.logger.debug(
                    f"Statistic '{self.name}': batch size {self.batch_size}, "
                    f"{len(means)} batch means already formed"
                )
                for batch_mean in means:
                    if self.terminal():
                        break
                    self._record(batch_mean)
            elif detector.aborted():
                self.disable("batch size detection has been aborted")
        else:
            self._detect_transient(value, weight)

    def _on_steady_state(self, observations) -> None:
        # Replayed observations were already counted once
        self._count -= len(observations)
        super()._on_steady_state(observations)

    def _record(self, batch_mean: float) -> None:
        self.statistic.collect(batch_mean)
        self.batch_means.append(batch_mean)
        if self.num_batches >= self.min_num_batches and self.target_precision_reached():
            self._converge()

    @property
    def num_batches(self) -> int:
        return self.statistic.num_observations()

    @property
    def num_observations(self) -> int:
        return self._count

    def batch_done(self) -> bool:
        return self.phase is StatisticPhase.COLLECTING and self._batch_obs == 0

    def estimate(self) -> float:
        return self.statistic.estimate()

    def half_width(self) -> float:
        n = self.num_batches
        if n < self.min_num_batches or n < 2:
            return math.inf
        return self.statistic.half_width()

    def variance(self) -> float:
        """Variance of the batch means."""
        return self.statistic.variance()

    def num_samples(self) -> int:
        return self.num_batches


class BatchMeans:
    """Runs a model once until every batch means statistic is conclusive.

    The model callable sets the run up on the engine (see
    :class:`IndependentReplications`). The engine stops as soon as every
    statistic has converged or aborted; engine limits are hard caps, and
    statistics still undecided when they are hit are aborted.
    """

    def __init__(self, model: Callable[[Engine, RandomSource], None],
                 statistics: List[BatchMeansStatistic],
                 seed: Optional[int] = None,
                 max_events: Optional[int] = None,
                 max_time: float = math.inf):
        names = [stat.name for stat in statistics]
        if len(set(names)) != len(names):
            raise ValueError(f"Statistic names must be unique: {names}")
        if not statistics:
            raise ValueError("At least one statistic is needed")

        self.model = model
        self.statistics = list(statistics)
        self.seed = seed
        self.max_events = max_events
        self.max_time = max_time
        self.logger = setup_logger(self.__class__.__name__)
        self.engine: Optional[Engine] = None

    @classmethod
    def from_config(cls, config: Dict, model: Callable) -> "BatchMeans":
        """Build a runner from ``simulation`` and ``analysis`` config sections."""
        sim_config = config.get('simulation', {})
        analysis_config = config.get('analysis', {})

        statistics = []
        for stat_config in analysis_config.get('statistics', []):
            estimator_config = dict(stat_config.get('estimator', {}))
            estimator_config.setdefault('name', stat_config['name'])
            statistics.append(BatchMeansStatistic(
                make_estimator(estimator_config),
                transient_detector=make_transient_detector(stat_config.get('transient')),
                batch_size_detector=make_batch_size_detector(stat_config.get('batch_size')),
                target_relative_precision=float(stat_config.get('target_relative_precision', math.inf)),
                max_num_obs=float(stat_config.get('max_num_obs', math.inf)),
                min_num_batches=stat_config.get('min_num_batches', 10),
            ))

        return cls(
            model,
            statistics,
            seed=sim_config.get('random_seed'),
            max_events=sim_config.get('max_events'),
            max_time=float(sim_config.get('max_time', math.inf)),
        )

    def run(self) -> AnalysisResult:
        """Run the model until every statistic converges or aborts.

        Returns:
            Analysis result with one summary per statistic
        """
        start_time = time.time()
        self.logger.info(f"Starting batch means run for {len(self.statistics)} statistics...")

        engine = Engine(max_events=self.max_events, max_time=self.max_time)
        self.engine = engine
        for stat in self.statistics:
            stat.reset()
            engine.register_statistic(stat)

        def check_completion(event, context):
            if all(stat.terminal() for stat in self.statistics):
                engine.stop_now()

        engine.after_event_firing.connect(check_completion)
        self.model(engine, RandomSource(self.seed))
        engine.run()

        for stat in self.statistics:
            if not stat.terminal():
                stat.disable(
                    f"run ended at time {engine.current_time:.6g} after {engine.num_user_events} "
                    f"events without reaching the wanted precision "
                    f"({stat.num_batches} batches of size {stat.batch_size or 'undetected'})"
                )

        summaries = {stat.name: stat.summary() for stat in self.statistics}
        aborted = [s for s in summaries.values() if not s.converged]
        if aborted:
            outcome = AnalysisOutcome.ABORTED
            reason = "; ".join(f"{s.name}: {s.reason}" for s in aborted)
            self.logger.warning(f"No statistically valid answer within budget: {reason}")
        else:
            outcome = AnalysisOutcome.CONVERGED
            reason = None

        elapsed_time = time.time() - start_time
        self.logger.info(
            f"Batch means run completed in {elapsed_time:.2f}s: {engine.num_user_events} events, "
            f"virtual time {engine.current_time:.6g}, outcome {outcome.value}"
        )
        return AnalysisResult(
            outcome=outcome,
            statistics=summaries,
            reason=reason,
            num_events=engine.num_user_events,
            simulated_time=engine.current_time,
        )
