"""Tests for the independent replications method."""

import math
import unittest

from configs import load_default_config, merge_configs
from simanalysis.analysis import (
    AnalysisOutcome,
    IndependentReplications,
    ReplicationStatistic,
    StatisticPhase,
)
from simanalysis.core.event_source import EventSource
from simanalysis.core.exceptions import NoValidEstimate
from simanalysis.detectors import (
    Banks2005NumReplicationsDetector,
    ConstantNumReplicationsDetector,
    FixedDurationReplicationSizeDetector,
    FixedNumObsReplicationSizeDetector,
)
from simanalysis.models import SingleServerQueue
from simanalysis.rng.distributions import Normal
from simanalysis.stats import MeanEstimator


class NormalSampler:
    """Model producing one normal observation per unit of virtual time."""

    def __init__(self, name, mean=10.0, std=1.0):
        self.name = name
        self.distribution = Normal(mean, std)
        self.num_calls = 0

    def __call__(self, engine, rng):
        self.num_calls += 1
        source = EventSource("Sample")

        def on_sample(event, context):
            engine.statistic(self.name).collect(self.distribution.sample(rng))
            context.schedule_in(source, 1.0)

        source.connect(on_sample)
        engine.schedule(source, 0.0)


class TestReplicationStatistic(unittest.TestCase):
    """Test cases for ReplicationStatistic."""

    def test_min_replications(self):
        """Test fewer than two replications cannot give an interval."""
        with self.assertRaises(ValueError):
            ReplicationStatistic(MeanEstimator("x"), min_replications=1)

    def test_negative_precision(self):
        """Test negative precision targets are rejected."""
        with self.assertRaises(ValueError):
            ReplicationStatistic(MeanEstimator("x"), target_relative_precision=-0.1)

    def test_phases_within_replication(self):
        """Test an observation moves the statistic to collection."""
        stat = ReplicationStatistic(
            MeanEstimator("x"),
            replication_size_detector=FixedNumObsReplicationSizeDetector(3),
            num_replications_detector=ConstantNumReplicationsDetector(5),
        )
        stat.initialize_for_experiment()
        stat.initialize_for_replication()
        self.assertEqual(stat.phase, StatisticPhase.WARMING_UP)

        stat.collect(1.0)
        self.assertEqual(stat.phase, StatisticPhase.COLLECTING)
        self.assertFalse(stat.replication_done())

        stat.collect(2.0)
        stat.collect(3.0)
        self.assertTrue(stat.replication_done())

        stat.finalize_replication()
        self.assertEqual(stat.num_replications, 1)
        self.assertAlmostEqual(stat.estimate(), 2.0)

    def test_observation_budget(self):
        """Test exceeding the per-replication budget aborts the statistic."""
        stat = ReplicationStatistic(MeanEstimator("x"), max_num_obs=3,
                                    num_replications_detector=ConstantNumReplicationsDetector(5))
        stat.initialize_for_experiment()
        stat.initialize_for_replication()

        for x in range(5):
            stat.collect(float(x))

        self.assertEqual(stat.phase, StatisticPhase.ABORTED)
        self.assertFalse(stat.enabled)

    def test_observations_past_replication_size_ignored(self):
        """Test a completed replication stops collecting."""
        stat = ReplicationStatistic(
            MeanEstimator("x"),
            replication_size_detector=FixedNumObsReplicationSizeDetector(3),
            num_replications_detector=ConstantNumReplicationsDetector(5),
            max_num_obs=3,
        )
        stat.initialize_for_experiment()
        stat.initialize_for_replication()

        for x in [1.0, 2.0, 3.0, 100.0, 200.0]:
            stat.collect(x)

        self.assertTrue(stat.replication_done())
        self.assertEqual(stat.phase, StatisticPhase.COLLECTING)
        self.assertEqual(stat.statistic.num_observations(), 3)
        self.assertAlmostEqual(stat.statistic.estimate(), 2.0)


class CountingModel:
    """Model feeding 1, 2, 3, ... to every named statistic, one per tick."""

    def __init__(self, names):
        self.names = names

    def __call__(self, engine, rng):
        source = EventSource("Tick")
        counter = {'value': 0.0}

        def on_tick(event, context):
            counter['value'] += 1.0
            for name in self.names:
                engine.statistic(name).collect(counter['value'])
            context.schedule_in(source, 1.0)

        source.connect(on_tick)
        engine.schedule(source, 0.0)


class TestIndependentReplications(unittest.TestCase):
    """Test cases for IndependentReplications."""

    def test_fixed_number_of_replications(self):
        """Test a constant detector runs exactly that many replications."""
        model = NormalSampler("x")
        stat = ReplicationStatistic(
            MeanEstimator("x"),
            replication_size_detector=FixedNumObsReplicationSizeDetector(10),
            num_replications_detector=ConstantNumReplicationsDetector(30),
        )

        result = IndependentReplications(model, [stat], seed=1).run()

        self.assertEqual(model.num_calls, 30)
        self.assertEqual(result.num_replications, 30)
        self.assertEqual(result.outcome, AnalysisOutcome.CONVERGED)
        summary = result.summary("x")
        self.assertEqual(summary.num_samples, 30)
        lower, upper = result.confidence_interval("x")
        self.assertLess(lower, upper)

    def test_statistics_of_different_sizes(self):
        """Test each statistic keeps its own replication size in a shared run."""
        short = ReplicationStatistic(
            MeanEstimator("a"),
            replication_size_detector=FixedNumObsReplicationSizeDetector(10),
            num_replications_detector=ConstantNumReplicationsDetector(2),
        )
        long = ReplicationStatistic(
            MeanEstimator("b"),
            replication_size_detector=FixedNumObsReplicationSizeDetector(100),
            num_replications_detector=ConstantNumReplicationsDetector(2),
        )

        result = IndependentReplications(CountingModel(["a", "b"]), [short, long], seed=1).run()

        self.assertTrue(result.converged)
        self.assertEqual(result.num_replications, 2)
        self.assertAlmostEqual(result.summary("a").estimate, 5.5)
        self.assertAlmostEqual(result.summary("b").estimate, 50.5)

    def test_replications_are_independent(self):
        """Test each replication draws from its own stream."""
        model = NormalSampler("x")
        stat = ReplicationStatistic(
            MeanEstimator("x"),
            replication_size_detector=FixedNumObsReplicationSizeDetector(5),
            num_replications_detector=ConstantNumReplicationsDetector(4),
        )
        runner = IndependentReplications(model, [stat], seed=3)
        runner.run()

        estimates = [record['x']['estimate'] for record in runner.history]
        self.assertEqual(len(estimates), 4)
        self.assertEqual(len(set(estimates)), 4)

    def test_same_seed_same_result(self):
        """Test runs are reproducible from the seed."""
        def run_once():
            stat = ReplicationStatistic(
                MeanEstimator("x"),
                replication_size_detector=FixedNumObsReplicationSizeDetector(5),
                num_replications_detector=ConstantNumReplicationsDetector(3),
            )
            return IndependentReplications(NormalSampler("x"), [stat], seed=99).run()

        self.assertEqual(run_once().summary("x").estimate, run_once().summary("x").estimate)

    def test_sequential_detector_converges(self):
        """Test the Banks detector reaches the wanted precision."""
        stat = ReplicationStatistic(
            MeanEstimator("x"),
            replication_size_detector=FixedNumObsReplicationSizeDetector(50),
            num_replications_detector=Banks2005NumReplicationsDetector(
                relative_precision=0.01, min_replications=5, max_replications=200),
            target_relative_precision=0.01,
        )

        result = IndependentReplications(NormalSampler("x"), [stat], seed=5).run()

        self.assertTrue(result.converged)
        summary = result.summary("x")
        self.assertLessEqual(summary.relative_precision, 0.01)
        self.assertAlmostEqual(summary.estimate, 10.0, delta=0.25)
        self.assertLess(result.num_replications, 200)

    def test_unreachable_precision_aborts(self):
        """Test a fixed number of replications that cannot reach the precision."""
        stat = ReplicationStatistic(
            MeanEstimator("x"),
            replication_size_detector=FixedNumObsReplicationSizeDetector(10),
            num_replications_detector=ConstantNumReplicationsDetector(5),
            target_relative_precision=1e-9,
        )

        result = IndependentReplications(NormalSampler("x"), [stat], seed=2).run()

        self.assertEqual(result.outcome, AnalysisOutcome.ABORTED)
        self.assertEqual(result.num_replications, 5)
        summary = result.summary("x")
        self.assertEqual(summary.phase, StatisticPhase.ABORTED)
        self.assertIn("precision", summary.reason)
        self.assertIn("x", result.reason)
        with self.assertRaises(NoValidEstimate):
            result.confidence_interval("x")

    def test_replication_cap_aborts(self):
        """Test hitting max_replications aborts undecided statistics."""
        stat = ReplicationStatistic(
            MeanEstimator("x"),
            replication_size_detector=FixedNumObsReplicationSizeDetector(10),
        )

        result = IndependentReplications(NormalSampler("x"), [stat], seed=4,
                                         max_replications=3).run()

        self.assertEqual(result.num_replications, 3)
        self.assertFalse(result.converged)
        self.assertIn("maximum number of replications", result.summary("x").reason)

    def test_unbounded_replications_rejected(self):
        """Test an unbounded constant detector needs a replication cap."""
        stat = ReplicationStatistic(MeanEstimator("x"))
        runner = IndependentReplications(NormalSampler("x"), [stat], max_events=10)

        with self.assertRaises(ValueError):
            runner.run()

    def test_engine_limits_end_replications(self):
        """Test engine limits bound replications of unbounded size."""
        stat = ReplicationStatistic(
            MeanEstimator("x"),
            num_replications_detector=ConstantNumReplicationsDetector(3),
        )

        result = IndependentReplications(NormalSampler("x"), [stat], seed=6,
                                         max_events=20).run()

        self.assertTrue(result.converged)
        self.assertEqual(result.num_events, 60)

    def test_fixed_duration(self):
        """Test replications of fixed virtual duration."""
        stat = ReplicationStatistic(
            MeanEstimator("x"),
            replication_size_detector=FixedDurationReplicationSizeDetector(9.0),
            num_replications_detector=ConstantNumReplicationsDetector(3),
        )
        runner = IndependentReplications(NormalSampler("x"), [stat], seed=8)

        result = runner.run()

        self.assertTrue(result.converged)
        for record in runner.history:
            self.assertEqual(record['simulated_time'], 9.0)

    def test_empty_replications_abort(self):
        """Test a model without observations cannot loop forever."""
        stat = ReplicationStatistic(
            MeanEstimator("x"),
            num_replications_detector=ConstantNumReplicationsDetector(3),
            max_empty_replications=4,
        )

        result = IndependentReplications(lambda engine, rng: None, [stat]).run()

        self.assertEqual(result.num_replications, 4)
        self.assertEqual(result.outcome, AnalysisOutcome.ABORTED)

    def test_duplicate_names(self):
        """Test statistic names must be unique."""
        stats = [ReplicationStatistic(MeanEstimator("x")), ReplicationStatistic(MeanEstimator("x"))]

        with self.assertRaises(ValueError):
            IndependentReplications(NormalSampler("x"), stats)


class TestReplicationsFromConfig(unittest.TestCase):
    """Test cases for configuring independent replications."""

    def setUp(self):
        """Set up test fixtures."""
        overrides = {
            'simulation': {'random_seed': 11},
            'model': {'arrival': {'type': 'exponential', 'rate': 0.5}},
        }
        self.config = merge_configs(load_default_config(), overrides)
        self.config['analysis']['statistics'][0]['replication_size']['num_obs'] = 500

    def test_from_config(self):
        """Test the runner and statistics built from the default config."""
        model = SingleServerQueue.from_config(self.config)
        runner = IndependentReplications.from_config(self.config, model)

        self.assertEqual(runner.seed, 11)
        self.assertEqual(runner.max_replications, 200)
        self.assertEqual(len(runner.statistics), 1)
        stat = runner.statistics[0]
        self.assertEqual(stat.name, "response_time")
        self.assertIsInstance(stat.num_replications_detector, Banks2005NumReplicationsDetector)
        self.assertAlmostEqual(stat.target_relative_precision, 0.1)

    def test_mm1_response_time(self):
        """Test the M/M/1 mean response time 1 / (mu - lambda)."""
        model = SingleServerQueue.from_config(self.config)
        self.assertAlmostEqual(model.utilization, 0.5)

        result = IndependentReplications.from_config(self.config, model).run()

        self.assertTrue(result.converged)
        self.assertAlmostEqual(result.summary("response_time").estimate, 2.0, delta=0.5)
        self.assertTrue(math.isfinite(result.summary("response_time").half_width))


if __name__ == '__main__':
    unittest.main()
