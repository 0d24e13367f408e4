"""Spectral variance estimation and the Schruben stationarity statistic.

References:
    P. Heidelberger and P. D. Welch, "A spectral method for confidence
    interval generation and run length control in simulations",
    Communications of the ACM 24(4), 1981.

    L. W. Schruben, H. Singh and L. Tierney, "Optimal tests for
    initialization bias in simulation output", Operations Research 31(6),
    1983.
"""

from typing import Tuple

import numpy as np

# (periodogram points K, polynomial degree d) -> (C1, degrees of freedom)
C1_KAPPA_TABLE = {
    (25, 0): (0.987, 76),
    (25, 1): (0.948, 18),
    (25, 2): (0.882, 7),
    (25, 3): (0.784, 3),
    (50, 0): (0.994, 154),
    (50, 1): (0.974, 37),
    (50, 2): (0.941, 16),
    (50, 3): (0.895, 8),
}

LOG_PERIODOGRAM_OFFSET = 0.270

SLOPE_PROTECTION_OFF = 'off'
SLOPE_PROTECTION_UNCONDITIONAL = 'unconditional'
SLOPE_PROTECTION_CONDITIONAL = 'conditional'


def lookup_c1_kappa(num_points: int, degree: int) -> Tuple[float, int]:
    """Normalising constant and degrees of freedom of the fitted periodogram."""
    try:
        return C1_KAPPA_TABLE[(num_points, degree)]
    except KeyError:
        raise ValueError(
            f"Unsupported combination of periodogram points ({num_points}) "
            f"and polynomial degree ({degree})"
        ) from None


def periodogram(x: np.ndarray, num_values: int) -> np.ndarray:
    """Periodogram values I(j/N) for j = 1..num_values.

    Args:
        x: Observations
        num_values: Number of periodogram values to compute

    Returns:
        Array of length num_values
    """
    x = np.asarray(x, dtype=float)
    spectrum = np.fft.fft(x)
    return np.abs(spectrum[1:num_values + 1]) ** 2 / len(x)


def log_averaged_pairs(p: np.ndarray, offset: float = LOG_PERIODOGRAM_OFFSET) -> np.ndarray:
    """Log of the means of consecutive periodogram pairs, plus a bias offset."""
    pairs = (p[0::2] + p[1::2]) / 2.0
    pairs = np.where(pairs == 0.0, np.finfo(float).tiny, pairs)
    return np.log(pairs) + offset


def least_squares_poly_at0(f: np.ndarray, values: np.ndarray, degree: int) -> Tuple[float, float]:
    """Fit a least-squares polynomial and evaluate it at zero.

    Returns:
        Tuple of (p(0), p'(0))
    """
    coefs = np.polynomial.polynomial.polyfit(f, values, degree)
    slope = coefs[1] if degree > 0 else 0.0
    return float(coefs[0]), float(slope)


def spectral_anova(x: np.ndarray, num_points: int = 25, degree: int = 2,
                   slope_protection: str = SLOPE_PROTECTION_OFF) -> Tuple[float, int]:
    """Estimate the variance of the mean of ``x`` from its spectrum at zero.

    Args:
        x: Observations
        num_points: Number of averaged periodogram points used in the fit
        degree: Degree of the polynomial fitted to the log periodogram
        slope_protection: Fall back on a constant fit when the fitted
            polynomial has positive slope at zero: 'off', 'unconditional'
            or 'conditional' (only when it increases the variance)

    Returns:
        Tuple of (variance estimate, degrees of freedom)
    """
    x = np.asarray(x, dtype=float)
    n = len(x)
    c1, kappa = lookup_c1_kappa(num_points, degree)

    p = periodogram(x, 2 * num_points)
    j = np.arange(1, num_points + 1)
    f = (4 * j - 1) / (2.0 * n)
    log_p = log_averaged_pairs(p)

    a0, da0 = least_squares_poly_at0(f, log_p, degree)
    var = c1 * np.exp(a0) / n

    if slope_protection != SLOPE_PROTECTION_OFF and da0 > 0:
        c1_flat, kappa_flat = lookup_c1_kappa(num_points, 0)
        a0_flat, _ = least_squares_poly_at0(f, log_p, 0)
        var_flat = c1_flat * np.exp(a0_flat) / n
        if slope_protection == SLOPE_PROTECTION_UNCONDITIONAL or var_flat > var:
            var, kappa = var_flat, kappa_flat

    return float(var), kappa


def schruben_statistic(x: np.ndarray, n_v: int, variance: float) -> float:
    """Schruben test statistic for initialization bias.

    Args:
        x: Tested sequence of n_t observations
        n_v: Length of the sequence the variance was estimated from
        variance: Steady-state variance estimate

    Returns:
        The (signed) test statistic
    """
    x = np.asarray(x, dtype=float)
    n_t = len(x)
    k = np.arange(1, n_t + 1, dtype=float)
    mean = x.mean()
    partial_means = np.cumsum(x) / k
    total = np.sum(k * (1.0 - k / n_t) * (mean - partial_means))
    return float(total * np.sqrt(45.0) / (n_t * np.sqrt(n_t * n_v * variance)))
