"""Confidence interval helpers."""

import math

from scipy import stats


def validate_confidence_level(level: float) -> float:
    """Check that a confidence level lies strictly between 0 and 1."""
    if not 0.0 < level < 1.0:
        raise ValueError(f"Confidence level must be in (0, 1), got {level}")
    return level


def t_quantile(level: float, dof: float) -> float:
    """Two-sided Student-t critical value.

    Args:
        level: Confidence level (e.g. 0.95)
        dof: Degrees of freedom

    Returns:
        The (1 + level) / 2 quantile, or inf when dof < 1
    """
    if dof < 1:
        return math.inf
    if math.isinf(dof):
        return normal_quantile(level)
    return float(stats.t.ppf((1.0 + level) / 2.0, dof))


def normal_quantile(level: float) -> float:
    """Two-sided standard normal critical value."""
    return float(stats.norm.ppf((1.0 + level) / 2.0))


def t_half_width(stddev: float, n: int, level: float) -> float:
    """Half-width of a Student-t interval for a mean of ``n`` observations.

    Returns inf when fewer than two observations exist.
    """
    if n <= 1 or math.isinf(stddev):
        return math.inf
    return t_quantile(level, n - 1) * stddev / math.sqrt(n)
