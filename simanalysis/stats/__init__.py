"""Online statistic estimators."""

from typing import Dict

from .base import Statistic, StatisticCategory
from .mean import MeanEstimator, WeightedMeanEstimator
from .extremum import MaxEstimator, MinEstimator
from .quantile import QuantileEstimator
from .confidence import normal_quantile, t_half_width, t_quantile


def make_estimator(config: Dict) -> Statistic:
    """Create an estimator from a configuration dictionary.

    Args:
        config: Dictionary with a ``type`` key (mean, weighted_mean, max,
            min, quantile) plus optional ``name``, ``confidence_level`` and,
            for quantiles, ``probability``

    Returns:
        A fresh estimator
    """
    estimator_type = config.get('type', 'mean')
    level = config.get('confidence_level', 0.95)
    name = config.get('name')

    if estimator_type == 'mean':
        return MeanEstimator(name or "Mean", level)
    elif estimator_type == 'weighted_mean':
        return WeightedMeanEstimator(name or "Weighted Mean", level)
    elif estimator_type == 'max':
        return MaxEstimator(name or "Max", level)
    elif estimator_type == 'min':
        return MinEstimator(name or "Min", level)
    elif estimator_type == 'quantile':
        return QuantileEstimator(config.get('probability', 0.5), name, level)
    else:
        raise ValueError(f"Unknown estimator type: {estimator_type}")


__all__ = [
    "Statistic",
    "StatisticCategory",
    "MeanEstimator",
    "WeightedMeanEstimator",
    "MaxEstimator",
    "MinEstimator",
    "QuantileEstimator",
    "make_estimator",
    "normal_quantile",
    "t_quantile",
    "t_half_width",
]
