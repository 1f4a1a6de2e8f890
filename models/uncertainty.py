"""
Spatial Uncertainty Field.

Local standard deviation of a 2-D reference field over a square sliding
window, ignoring NaN cells.  Window sums are taken with box filters over
the finite values and a finite-cell count, so the result is independent of
row/column orientation and is returned in the input's own order.
"""

import numpy as np
from scipy.ndimage import uniform_filter

# Variances below this fraction of the window's mean square are treated as 0
ROUNDOFF_TOLERANCE = 1e-10


def _window_sum(values: np.ndarray, size: int) -> np.ndarray:
    # uniform_filter returns the window mean; cells outside the grid count as 0
    return uniform_filter(values, size=size, mode="constant", cval=0.0) * (size * size)


def local_std(field: np.ndarray, window: int) -> np.ndarray:
    """
    Compute the NaN-aware sample standard deviation in a window around each cell.

    Args:
        field: 2-D array; NaN marks undefined cells.
        window: Odd window width in cells (e.g. 3 or 9).

    Returns:
        2-D array, same shape, of non-negative local SDs.  Cells whose window
        holds fewer than two defined values are NaN.
    """
    field = np.asarray(field, dtype=float)
    if field.ndim != 2:
        raise ValueError("local_std expects a 2-D field")
    if window < 1 or window % 2 == 0:
        raise ValueError("window must be a positive odd integer")

    valid = np.isfinite(field)
    if not np.any(valid):
        return np.full(field.shape, np.nan)

    # Center on the global mean to limit cancellation in sum-of-squares
    centered = np.where(valid, field - np.mean(field[valid]), 0.0)

    count = np.rint(_window_sum(valid.astype(float), window))
    total = _window_sum(centered, window)
    total_sq = _window_sum(centered ** 2, window)

    with np.errstate(invalid="ignore", divide="ignore"):
        var = (total_sq - total ** 2 / count) / (count - 1.0)
        # Box-filter roundoff; a constant window is exactly 0
        flat = var <= ROUNDOFF_TOLERANCE * total_sq / count
    var = np.where(flat, 0.0, var)
    var = np.where(count >= 2, np.maximum(var, 0.0), np.nan)
    return np.sqrt(var)
