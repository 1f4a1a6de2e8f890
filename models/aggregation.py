"""
Comparison Quantity Aggregation.

Turns a day's tag-derived envelope (or raw min/max) into the scalar
[low, high] interval compared against the reference grid, and collapses
the reference grid into the same physical quantity.

Two policies:
    Depth-integrated (ocean heat content):
        OHC = cp * rho * sum_z(T_z - isotherm) / OHC_UNIT_DIVISOR
        applied to the envelope bounds and to every reference grid column.
    Sensor error (surface temperature):
        [min * (1 - err), max * (1 + err)]
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from config import (
    HEAT_CAPACITY_SEAWATER,
    SEAWATER_DENSITY,
    OHC_UNIT_DIVISOR,
    DEFAULT_SENSOR_ERROR_PCT,
)


@dataclass(frozen=True)
class ComparisonInterval:
    """Tag-derived [low, high] range of the matched quantity for one day."""

    low: float
    high: float

    @property
    def is_degenerate(self) -> bool:
        """True when the interval is non-finite or inverted."""
        return not (np.isfinite(self.low) and np.isfinite(self.high) and self.low <= self.high)


def _heat_scale() -> float:
    return HEAT_CAPACITY_SEAWATER * SEAWATER_DENSITY / OHC_UNIT_DIVISOR


def resolve_isotherm(low_bounds: np.ndarray, isotherm: Optional[float] = None) -> float:
    """
    Return the threshold temperature for heat-content integration.

    A caller-supplied isotherm wins; otherwise the coldest predicted low
    bound of the day is used.
    """
    if isotherm is not None:
        return float(isotherm)
    low_bounds = np.asarray(low_bounds, dtype=float)
    if not np.any(np.isfinite(low_bounds)):
        return float("nan")
    return float(np.nanmin(low_bounds))


def heat_content_interval(
    low_bounds: np.ndarray,
    high_bounds: np.ndarray,
    isotherm: float,
) -> ComparisonInterval:
    """
    Integrate the envelope bounds above the isotherm.

    Args:
        low_bounds: Predicted low temperature per matched depth level.
        high_bounds: Predicted high temperature per matched depth level.
        isotherm: Threshold temperature (deg C).

    Returns:
        ComparisonInterval of (low OHC, high OHC).
    """
    scale = _heat_scale()
    low = scale * np.nansum(np.asarray(low_bounds, dtype=float) - isotherm)
    high = scale * np.nansum(np.asarray(high_bounds, dtype=float) - isotherm)
    return ComparisonInterval(float(low), float(high))


def apply_bathymetric_mask(values: np.ndarray, deepest_index: int) -> np.ndarray:
    """
    Blank every water column that has no data at the deepest matched level.

    Args:
        values: 3-D (lon, lat, depth) temperature array.
        deepest_index: Index of the deepest depth level the tag reached.

    Returns:
        A new array with masked columns set to NaN at all depths.
    """
    masked = np.array(values, dtype=float, copy=True)
    reachable = np.isfinite(masked[:, :, deepest_index])
    masked[~reachable, :] = np.nan
    return masked


def reference_heat_content(
    values: np.ndarray,
    depth_indices: np.ndarray,
    isotherm: float,
    deepest_index: Optional[int] = None,
) -> np.ndarray:
    """
    Collapse a 3-D reference temperature grid into 2-D heat content.

    Temperatures below the isotherm contribute nothing.  Columns with no
    contribution at all come back as NaN (no information).  The input array
    is left untouched.

    Args:
        values: 3-D (lon, lat, depth) temperature array.
        depth_indices: Matched depth level indices to integrate over.
        isotherm: Threshold temperature (deg C).
        deepest_index: If given, apply the bathymetric mask at this level first.

    Returns:
        2-D (lon, lat) heat content array.
    """
    if deepest_index is not None:
        work = apply_bathymetric_mask(values, deepest_index)
    else:
        work = np.array(values, dtype=float, copy=True)

    with np.errstate(invalid="ignore"):
        work[work < isotherm] = np.nan
    work -= isotherm

    selected = work[:, :, np.asarray(depth_indices, dtype=int)]
    ohc = _heat_scale() * np.nansum(selected, axis=2)
    ohc[ohc == 0] = np.nan
    return ohc


def sensor_error_interval(
    min_value: float,
    max_value: float,
    sens_err: float = DEFAULT_SENSOR_ERROR_PCT,
) -> ComparisonInterval:
    """Widen a day's raw min/max multiplicatively by a percent sensor error."""
    frac = sens_err / 100.0
    return ComparisonInterval(
        float(min_value) * (1.0 - frac),
        float(max_value) * (1.0 + frac),
    )
