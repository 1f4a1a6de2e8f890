"""
Likelihood Integration and Normalization.

Each reference cell is treated as a Gaussian belief about the true local
value, N(mean = R[i,j], sd = S[i,j]).  The likelihood that the tag's
observed range [low, high] matches the cell is the probability mass of
that Gaussian inside the range:

    L[i,j] = Phi((high - R) / S) - Phi((low - R) / S)

When the interval lies above R the same mass is taken from the upper
tail, Q((low - R) / S) - Q((high - R) / S) with Q = 1 - Phi.

Cells without a reference value stay NaN (no information).  Cells with a
reference value but no usable SD, or whose integral is not finite, are
failures; if too many of them occur the whole call fails so that the
day's normalization never rests on a partial surface.
"""

import numpy as np
from scipy.stats import norm

from models.aggregation import ComparisonInterval
from models.errors import IntegrationDivergence
from config import MAX_UNDEFINED_FRACTION


def integrate_likelihood(
    reference: np.ndarray,
    uncertainty: np.ndarray,
    low: float,
    high: float,
    max_undefined_fraction: float = MAX_UNDEFINED_FRACTION,
) -> np.ndarray:
    """
    Compute the per-cell probability that the reference value lies in [low, high].

    Args:
        reference: 2-D reference field R (NaN = no data).
        uncertainty: 2-D local SD field S, same shape as R.
        low: Lower bound of the comparison interval.
        high: Upper bound of the comparison interval.
        max_undefined_fraction: Largest tolerated fraction of defined
            reference cells whose integral could not be evaluated.

    Returns:
        2-D array of probabilities in [0, 1]; NaN where undefined.

    Raises:
        IntegrationDivergence: If the interval is degenerate, no reference
            cell is defined, or too many cells fail to integrate.
    """
    reference = np.asarray(reference, dtype=float)
    uncertainty = np.asarray(uncertainty, dtype=float)
    if reference.shape != uncertainty.shape:
        raise ValueError(
            f"Reference shape {reference.shape} != uncertainty shape {uncertainty.shape}"
        )
    interval = ComparisonInterval(float(low), float(high))
    if interval.is_degenerate:
        if not (np.isfinite(interval.low) and np.isfinite(interval.high)):
            raise IntegrationDivergence(f"Non-finite comparison interval [{low}, {high}]")
        raise IntegrationDivergence(f"Inverted comparison interval [{low}, {high}]")

    defined = np.isfinite(reference)
    n_defined = int(defined.sum())
    if n_defined == 0:
        raise IntegrationDivergence("Reference field has no defined cells")

    usable = defined & np.isfinite(uncertainty) & (uncertainty > 0)
    result = np.full(reference.shape, np.nan)

    mean = reference[usable]
    sd = uncertainty[usable]
    with np.errstate(invalid="ignore", over="ignore"):
        # Difference taken in the tail the interval lies in
        mass = np.where(
            low > mean,
            norm.sf(low, loc=mean, scale=sd) - norm.sf(high, loc=mean, scale=sd),
            norm.cdf(high, loc=mean, scale=sd) - norm.cdf(low, loc=mean, scale=sd),
        )
    result[usable] = mass

    failed = defined & ~np.isfinite(result)
    n_failed = int(failed.sum())
    if n_failed == n_defined or n_failed > max_undefined_fraction * n_defined:
        raise IntegrationDivergence(
            f"Integral undefined for {n_failed} of {n_defined} reference cells"
        )

    return np.clip(result, 0.0, 1.0)


def normalize_surface(surface: np.ndarray) -> np.ndarray:
    """
    Scale a surface by its own maximum and fix undefined/negative cells at zero.

    If the surface has no positive finite maximum it is returned as all
    zeros (a true no-match day, not a fault).

    Args:
        surface: 2-D likelihood surface, NaN = no information.

    Returns:
        2-D array with max exactly 1.0, or all zeros.
    """
    surface = np.asarray(surface, dtype=float)
    finite = np.isfinite(surface)
    peak = np.max(surface[finite]) if np.any(finite) else 0.0
    if not peak > 0:
        return np.zeros(surface.shape)

    scaled = np.where(finite, surface / peak, 0.0)
    return np.clip(scaled, 0.0, None)
