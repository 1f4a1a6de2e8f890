"""
Depth Envelope Estimation.

Fits smooth local regressions of the tag's minimum and maximum temperature
against depth and predicts both at the reference grid's depth levels.  The
resulting low/high envelope (with standard errors) feeds the heat-content
integral.

The smoother is a tricube-weighted local polynomial: for each target depth
x0 the k = ceil(span * n) nearest observations receive weights
(1 - (d/h)^3)^3 and a degree-p polynomial in (x - x0) is fit by weighted
least squares.  Standard errors follow the usual linear-smoother form

    se(x0) = sigma * ||l(x0)||,   sigma^2 = RSS / (n - 2*tr(L) + tr(L'L))

where l(x0) is the row of smoother weights at x0 and L is the hat matrix
at the observations.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from models.errors import RegressionFailure
from config import LOCAL_FIT_SPAN, LOCAL_FIT_DEGREE, BANDWIDTH_PAD


def match_depth_levels(
    observed_depths: np.ndarray,
    grid_depths: np.ndarray,
) -> Tuple[np.ndarray, int]:
    """
    Map each observed depth to the closest grid depth level.

    Args:
        observed_depths: Depths recorded by the tag (NaN entries ignored).
        grid_depths: Depth axis of the reference grid.

    Returns:
        (indices, deepest) where ``indices`` is the sorted unique set of
        matched grid level indices and ``deepest`` the largest of them.

    Raises:
        ValueError: If no finite observed depth is available.
    """
    obs = np.asarray(observed_depths, dtype=float)
    obs = obs[np.isfinite(obs)]
    if obs.size == 0:
        raise ValueError("No finite observed depths to match")
    grid_depths = np.asarray(grid_depths, dtype=float)

    sq_dist = (obs[:, None] - grid_depths[None, :]) ** 2
    nearest = np.argmin(sq_dist, axis=1)
    indices = np.unique(nearest)
    return indices, int(indices.max())


class LocalRegression:
    """Tricube-weighted local polynomial smoother with standard errors.

    Args:
        span: Fraction of observations inside each local window.
        degree: Local polynomial degree.
    """

    def __init__(self, span: float = LOCAL_FIT_SPAN, degree: int = LOCAL_FIT_DEGREE):
        if not 0.0 < span <= 1.0:
            raise ValueError("span must be in (0, 1]")
        if degree < 0:
            raise ValueError("degree must be >= 0")
        self.span = span
        self.degree = degree
        self.x = None
        self.y = None
        self._degree = degree
        self._sigma = 0.0

    def fit(self, x: np.ndarray, y: np.ndarray) -> "LocalRegression":
        """Fit the smoother to (x, y) pairs, dropping non-finite pairs.

        Raises:
            RegressionFailure: Fewer than two distinct x values remain.
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        keep = np.isfinite(x) & np.isfinite(y)
        x, y = x[keep], y[keep]

        n_distinct = np.unique(x).size
        if n_distinct < 2:
            raise RegressionFailure(
                f"Local regression needs at least 2 distinct depths, got {n_distinct}"
            )

        self.x = x
        self.y = y
        self._degree = min(self.degree, n_distinct - 1)

        hat = np.vstack([self._weights_at(xi) for xi in x])
        residuals = y - hat @ y
        nu1 = np.trace(hat)
        nu2 = np.sum(hat * hat)
        resid_df = x.size - 2.0 * nu1 + nu2
        if resid_df > 1e-8:
            self._sigma = float(np.sqrt(np.sum(residuals ** 2) / resid_df))
        else:
            # Interpolating fit: no residual degrees of freedom left
            self._sigma = 0.0
        return self

    def predict(self, x_new: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Predict the smooth and its standard error at new locations.

        Returns:
            (fit, se) arrays with the shape of ``x_new``.
        """
        if self.x is None:
            raise RegressionFailure("LocalRegression.predict called before fit")
        x_new = np.atleast_1d(np.asarray(x_new, dtype=float))
        fit = np.empty(x_new.shape)
        se = np.empty(x_new.shape)
        for i, x0 in enumerate(x_new):
            weights = self._weights_at(x0)
            fit[i] = weights @ self.y
            se[i] = self._sigma * np.sqrt(np.sum(weights ** 2))
        return fit, se

    def _weights_at(self, x0: float) -> np.ndarray:
        """Row of linear smoother weights l(x0) such that fit(x0) = l(x0) @ y."""
        n = self.x.size
        dist = np.abs(self.x - x0)
        k = min(n, max(int(np.ceil(self.span * n)), self._degree + 1))
        h = np.sort(dist)[k - 1]
        # Window must span degree + 1 distinct depths or the local fit is singular
        distinct = np.sort(np.abs(np.unique(self.x) - x0))
        h = max(h, distinct[self._degree])
        if h <= 0:
            h = 1.0
        h *= BANDWIDTH_PAD

        u = np.clip(dist / h, 0.0, 1.0)
        w = (1.0 - u ** 3) ** 3

        # Local polynomial basis, scaled by h for conditioning
        basis = np.vander((self.x - x0) / h, self._degree + 1, increasing=True)
        wb = basis * w[:, None]
        gram = basis.T @ wb
        try:
            # First row of (B'WB)^-1 B'W gives the intercept weights
            coef = np.linalg.solve(gram, wb.T)
        except np.linalg.LinAlgError as exc:
            raise RegressionFailure(f"Singular local fit at depth {x0:g}") from exc
        weights = coef[0]
        if not np.all(np.isfinite(weights)):
            raise RegressionFailure(f"Non-finite local fit at depth {x0:g}")
        return weights


@dataclass
class Envelope:
    """Predicted low/high temperature bounds at matched grid depth levels.

    Attributes:
        depth: Matched grid depth levels (m).
        low_fit, low_se: Prediction and SE of the minimum-temperature fit.
        high_fit, high_se: Prediction and SE of the maximum-temperature fit.
    """

    depth: np.ndarray
    low_fit: np.ndarray
    low_se: np.ndarray
    high_fit: np.ndarray
    high_se: np.ndarray

    @property
    def n(self) -> int:
        return int(self.depth.size)

    def bounds(self, widen: bool) -> Tuple[np.ndarray, np.ndarray]:
        """Return (low, high), optionally widened by -/+ se * sqrt(n)."""
        if not widen:
            return self.low_fit.copy(), self.high_fit.copy()
        scale = np.sqrt(self.n)
        return self.low_fit - self.low_se * scale, self.high_fit + self.high_se * scale


def estimate_envelope(
    depths: np.ndarray,
    min_temps: np.ndarray,
    max_temps: np.ndarray,
    target_depths: np.ndarray,
    span: float = LOCAL_FIT_SPAN,
    degree: int = LOCAL_FIT_DEGREE,
) -> Envelope:
    """
    Fit min/max temperature against depth and predict at target depths.

    Args:
        depths: Observed depths for one day.
        min_temps: Minimum temperature per observation.
        max_temps: Maximum temperature per observation.
        target_depths: Grid depth levels at which to predict.
        span: Local window fraction.
        degree: Local polynomial degree.

    Returns:
        Envelope aligned to ``target_depths``.

    Raises:
        RegressionFailure: If either fit cannot be produced.
    """
    target_depths = np.asarray(target_depths, dtype=float)
    fit_low = LocalRegression(span, degree).fit(depths, min_temps)
    fit_high = LocalRegression(span, degree).fit(depths, max_temps)
    low, low_se = fit_low.predict(target_depths)
    high, high_se = fit_high.predict(target_depths)
    return Envelope(
        depth=target_depths,
        low_fit=low,
        low_se=low_se,
        high_fit=high,
        high_se=high_se,
    )
