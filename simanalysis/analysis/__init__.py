"""Output analysis methods."""

from .base import (
    AnalysisOutcome,
    AnalysisResult,
    AnalyzableStatistic,
    StatisticPhase,
    StatisticSummary,
)
from .replications import IndependentReplications, ReplicationStatistic
from .batch_means import BatchMeans, BatchMeansStatistic

__all__ = [
    "AnalysisOutcome",
    "AnalysisResult",
    "AnalyzableStatistic",
    "StatisticPhase",
    "StatisticSummary",
    "ReplicationStatistic",
    "IndependentReplications",
    "BatchMeansStatistic",
    "BatchMeans",
]
