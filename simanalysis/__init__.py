"""simanalysis: discrete event simulation with statistical output analysis."""

from .core.engine import Engine
from .core.context import EngineContext
from .core.event_queue import Event, EventQueue
from .core.event_source import EventSource
from .core.exceptions import InvalidSchedule, NoValidEstimate, SimulationError, UnknownEvent
from .stats import MaxEstimator, MeanEstimator, MinEstimator, QuantileEstimator, WeightedMeanEstimator
from .analysis import (
    AnalysisOutcome,
    AnalysisResult,
    BatchMeans,
    BatchMeansStatistic,
    IndependentReplications,
    ReplicationStatistic,
)
from .rng import RandomSource
from .utils.logger import setup_logger

__version__ = "0.1.0"
__all__ = [
    "Engine",
    "EngineContext",
    "Event",
    "EventQueue",
    "EventSource",
    "SimulationError",
    "InvalidSchedule",
    "UnknownEvent",
    "NoValidEstimate",
    "MeanEstimator",
    "WeightedMeanEstimator",
    "MaxEstimator",
    "MinEstimator",
    "QuantileEstimator",
    "AnalysisOutcome",
    "AnalysisResult",
    "ReplicationStatistic",
    "IndependentReplications",
    "BatchMeansStatistic",
    "BatchMeans",
    "RandomSource",
    "setup_logger",
]
