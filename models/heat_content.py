"""
Ocean Heat Content (OHC) likelihood.

Compares tag depth-temperature profiles to a 3-D reference temperature
grid (e.g. HYCOM) through their integrated heat content above an
isotherm, producing one normalized likelihood surface per day.

Per day:
    1. Match tag depths to grid depth levels (deepest level kept for the
       bathymetric mask).
    2. Fit local regressions of min/max temperature vs depth and predict
       the envelope at the matched levels.
    3. Integrate heat content of the envelope bounds and of every grid
       column above the isotherm.
    4. Local SD of the grid heat content (9x9 window).
    5. Gaussian interval likelihood, with one SE-widened retry.
    6. Normalize by the day's maximum.
"""

import logging
import time
import warnings
from datetime import date
from typing import Iterable, Mapping, Optional, Union

import numpy as np
import pandas as pd
import xarray as xr

from data.interfaces import GridProvider, as_provider
from models.aggregation import (
    resolve_isotherm,
    heat_content_interval,
    reference_heat_content,
)
from models.cube import TemporalCubeAssembler
from models.engine import DaySurface, plan_days, first_grid, run_days, empty_cube
from models.envelope import match_depth_levels, estimate_envelope
from models.errors import RegressionFailure, DegenerateDayWarning
from models.grid import ReferenceGrid
from models.likelihood import integrate_likelihood, normalize_surface
from models.measurement import DATE_COLUMN, normalize_date_vector, validate_profile_frame
from models.retry import DegenerateCaseHandler
from models.uncertainty import local_std
from config import (
    DEFAULT_BATHY_MASK,
    DEFAULT_USE_SE,
    OHC_SD_WINDOW,
    LOCAL_FIT_SPAN,
    LOCAL_FIT_DEGREE,
)

logger = logging.getLogger(__name__)


def ohc_day_surface(
    day: date,
    profile: pd.DataFrame,
    grid: ReferenceGrid,
    isotherm: Optional[float] = None,
    bathy: bool = DEFAULT_BATHY_MASK,
    use_se: bool = DEFAULT_USE_SE,
    window: int = OHC_SD_WINDOW,
    span: float = LOCAL_FIT_SPAN,
    degree: int = LOCAL_FIT_DEGREE,
) -> DaySurface:
    """
    Build one day's normalized OHC likelihood surface.

    Args:
        day: Date being processed.
        profile: That day's profile rows (depth, min_temp, max_temp).
        grid: That day's 3-D reference temperature grid (deg C).
        isotherm: Fixed isotherm (deg C); None computes it from the day's
                  coldest predicted low bound.
        bathy: Apply the bathymetric mask at the deepest matched level.
        use_se: Widen predicted bounds by -/+ se * sqrt(n) on the first attempt.
        window: Sliding window for the local SD of grid heat content.
        span, degree: Local regression settings.

    Returns:
        DaySurface holding the normalized surface.

    Raises:
        RegressionFailure: If the depth envelope cannot be fit.
        ValueError: If the grid has no depth axis.
    """
    if not grid.is_3d:
        raise ValueError(f"OHC needs a 3-D reference grid, got {grid.values.ndim}-D for {day}")

    depths = profile["depth"].to_numpy(dtype=float)
    try:
        depth_idx, deepest = match_depth_levels(depths, grid.depth)
        envelope = estimate_envelope(
            depths,
            profile["min_temp"].to_numpy(dtype=float),
            profile["max_temp"].to_numpy(dtype=float),
            grid.depth[depth_idx],
            span=span,
            degree=degree,
        )
    except (RegressionFailure, ValueError) as exc:
        raise RegressionFailure(f"OHC depth envelope fit failed: {exc}", day=day) from exc

    first_low, _ = envelope.bounds(widen=use_se)
    iso = resolve_isotherm(first_low, isotherm)

    ohc = reference_heat_content(
        grid.values,
        depth_idx,
        iso,
        deepest_index=deepest if bathy else None,
    )
    sdx = local_std(ohc, window)

    def attempt(widened: bool) -> np.ndarray:
        low, high = envelope.bounds(widen=widened)
        interval = heat_content_interval(low, high, iso)
        return integrate_likelihood(ohc, sdx, interval.low, interval.high)

    outcome = DegenerateCaseHandler(allow_retry=True).resolve(
        attempt, use_se=use_se, shape=ohc.shape, day=day, label="OHC"
    )
    logger.debug("OHC %s: isotherm %.2f, %s", day, iso, outcome.state.value)
    return DaySurface(day, normalize_surface(outcome.surface), grid.lon, grid.lat, outcome)


def calc_ohc_likelihood(
    pdt: pd.DataFrame,
    grids: Union[GridProvider, Mapping],
    date_vector: Iterable,
    isotherm: Optional[float] = None,
    bathy: bool = DEFAULT_BATHY_MASK,
    use_se: bool = DEFAULT_USE_SE,
    lon_offset: Optional[float] = None,
    max_workers: int = 1,
    skip_failed_regressions: bool = False,
    window: int = OHC_SD_WINDOW,
) -> xr.DataArray:
    """
    Compute daily OHC likelihood surfaces for a whole deployment.

    Args:
        pdt: Profile table with columns date, depth, min_temp, max_temp.
        grids: GridProvider or mapping of day -> 3-D ReferenceGrid.
        date_vector: Every day of the deployment; sizes the cube's time axis.
        isotherm: Fixed isotherm (deg C), or None to compute it daily.
        bathy: Apply the bathymetric mask.
        use_se: Widen predicted bounds by their standard error.
        lon_offset: Longitude shift for the output (None = automatic).
        max_workers: Threads used for the day loop.
        skip_failed_regressions: Warn and leave the day empty instead of
            aborting when a day's envelope cannot be fit.
        window: Sliding window for the local SD.

    Returns:
        DataArray (lat, lon, date) of surfaces in [0, 1].

    Raises:
        InputMisalignment: A tag day is outside ``date_vector`` or a grid's
            coordinates differ from the first grid's.
        RegressionFailure: A day's envelope fit failed (unless skipped).
    """
    t0 = time.time()
    logger.info("Starting OHC likelihood calculation...")

    pdt = validate_profile_frame(pdt)
    provider = as_provider(grids)
    date_vector = normalize_date_vector(date_vector)

    tag_days = sorted(set(pdt[DATE_COLUMN]))
    days = plan_days(tag_days, provider, date_vector, "OHC")
    reference = first_grid(provider, days)
    if reference is None:
        logger.info("No OHC days to process, returning an empty cube")
        return empty_cube(date_vector, "ohc_likelihood")

    assembler = TemporalCubeAssembler(
        date_vector, reference.lon, reference.lat, lon_offset, name="ohc_likelihood"
    )
    by_day = {day: rows for day, rows in pdt.groupby(DATE_COLUMN)}

    def compute(day: date) -> DaySurface:
        grid = provider.get_grid(day)
        assembler.check_alignment(day, grid.lon, grid.lat)
        try:
            return ohc_day_surface(
                day, by_day[day], grid,
                isotherm=isotherm, bathy=bathy, use_se=use_se, window=window,
            )
        except RegressionFailure as exc:
            if not skip_failed_regressions:
                raise
            warnings.warn(f"{exc}; leaving the day empty", DegenerateDayWarning)
            return DaySurface(day, np.zeros(grid.shape_2d), grid.lon, grid.lat)

    run_days(days, compute, assembler, max_workers=max_workers)

    logger.info("Making final likelihood cube...")
    cube = assembler.finalize()
    logger.info("OHC calculations took %.2f minutes", (time.time() - t0) / 60.0)
    return cube
