"""M/M/1 queue analyzed with independent replications and with batch means."""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from simanalysis import (
    BatchMeans,
    BatchMeansStatistic,
    IndependentReplications,
    MeanEstimator,
    NoValidEstimate,
    ReplicationStatistic,
    WeightedMeanEstimator,
)
from simanalysis.detectors import (
    Banks2005NumReplicationsDetector,
    FixedNumObsReplicationSizeDetector,
    Pawlikowski1990BatchSizeDetector,
    Pawlikowski1990TransientDetector,
)
from simanalysis.models import SingleServerQueue
from simanalysis.rng import Exponential
from simanalysis.utils.logger import setup_logger

ARRIVAL_RATE = 0.5
SERVICE_RATE = 1.0


def report(logger, result, expected):
    logger.info(f"Outcome: {result.outcome.value}")
    for name, summary in result.statistics.items():
        try:
            lower, upper = result.confidence_interval(name)
        except NoValidEstimate as e:
            logger.warning(str(e))
            continue
        logger.info(
            f"  {name}: {summary.estimate:.4f} in [{lower:.4f}, {upper:.4f}] "
            f"(expected {expected[name]:.4f}, samples {summary.num_samples})"
        )


def main():
    """Estimate M/M/1 steady-state measures with both methods."""
    logger = setup_logger("MM1Example")
    rho = ARRIVAL_RATE / SERVICE_RATE
    expected = {
        'response_time': 1.0 / (SERVICE_RATE - ARRIVAL_RATE),
        'num_in_system': rho / (1.0 - rho),
    }

    model = SingleServerQueue(Exponential(ARRIVAL_RATE), Exponential(SERVICE_RATE))

    logger.info("=== Independent replications ===")
    replications = IndependentReplications(
        model,
        [
            ReplicationStatistic(
                MeanEstimator('response_time'),
                transient_detector=Pawlikowski1990TransientDetector(n0_max=50000),
                replication_size_detector=FixedNumObsReplicationSizeDetector(5000),
                num_replications_detector=Banks2005NumReplicationsDetector(
                    relative_precision=0.05, min_replications=5, max_replications=500),
                target_relative_precision=0.05,
            ),
            ReplicationStatistic(
                WeightedMeanEstimator('num_in_system'),
                replication_size_detector=FixedNumObsReplicationSizeDetector(5000),
                num_replications_detector=Banks2005NumReplicationsDetector(
                    relative_precision=0.05, min_replications=5, max_replications=500),
                target_relative_precision=0.05,
            ),
        ],
        seed=42,
        max_replications=500,
    )
    report(logger, replications.run(), expected)

    logger.info("=== Batch means ===")
    batch_means = BatchMeans(
        model,
        [
            BatchMeansStatistic(
                MeanEstimator('response_time'),
                transient_detector=Pawlikowski1990TransientDetector(n0_max=50000),
                batch_size_detector=Pawlikowski1990BatchSizeDetector(n_max=1000000),
                target_relative_precision=0.05,
                min_num_batches=30,
            ),
        ],
        seed=42,
        max_events=5000000,
    )
    report(logger, batch_means.run(), expected)


if __name__ == "__main__":
    main()
