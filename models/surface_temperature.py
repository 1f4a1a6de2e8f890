"""
Sea Surface Temperature (SST) likelihood.

Compares the tag's daily SST range, widened by the sensor error, to a
2-D remotely sensed SST grid.  No depth regression is involved; the
local SD uses a 3x3 window and a failed integration is not retried.
"""

import logging
import time
from datetime import date
from typing import Iterable, Mapping, Optional, Union

import numpy as np
import pandas as pd
import xarray as xr

from data.interfaces import GridProvider, as_provider
from models.aggregation import sensor_error_interval
from models.cube import TemporalCubeAssembler
from models.engine import DaySurface, plan_days, first_grid, run_days, empty_cube
from models.grid import ReferenceGrid
from models.likelihood import integrate_likelihood, normalize_surface
from models.measurement import DATE_COLUMN, normalize_date_vector, summarize_daily_range
from models.retry import DegenerateCaseHandler
from models.uncertainty import local_std
from config import DEFAULT_SENSOR_ERROR_PCT, SST_SD_WINDOW

logger = logging.getLogger(__name__)


def sst_day_surface(
    day: date,
    min_value: float,
    max_value: float,
    grid: ReferenceGrid,
    sens_err: float = DEFAULT_SENSOR_ERROR_PCT,
    window: int = SST_SD_WINDOW,
) -> DaySurface:
    """
    Build one day's normalized SST likelihood surface.

    Args:
        day: Date being processed.
        min_value: Tag's minimum SST that day.
        max_value: Tag's maximum SST that day.
        grid: That day's 2-D SST grid.
        sens_err: Sensor error in percent.
        window: Sliding window for the local SD.

    Returns:
        DaySurface holding the normalized surface.
    """
    if grid.is_3d:
        raise ValueError(f"SST needs a 2-D reference grid, got 3-D for {day}")

    interval = sensor_error_interval(min_value, max_value, sens_err)
    sdx = local_std(grid.values, window)

    def attempt(widened: bool) -> np.ndarray:
        return integrate_likelihood(grid.values, sdx, interval.low, interval.high)

    outcome = DegenerateCaseHandler(allow_retry=False).resolve(
        attempt, use_se=False, shape=grid.shape_2d, day=day, label="SST"
    )
    return DaySurface(day, normalize_surface(outcome.surface), grid.lon, grid.lat, outcome)


def calc_sst_likelihood(
    tag_sst: pd.DataFrame,
    grids: Union[GridProvider, Mapping],
    date_vector: Iterable,
    sens_err: float = DEFAULT_SENSOR_ERROR_PCT,
    value_column: str = "temperature",
    lon_offset: Optional[float] = None,
    max_workers: int = 1,
    window: int = SST_SD_WINDOW,
) -> xr.DataArray:
    """
    Compute daily SST likelihood surfaces for a whole deployment.

    Args:
        tag_sst: Tag SST records with a date (or timestamp) column and
                 ``value_column``; grouped here into daily min/max.
        grids: GridProvider or mapping of day -> 2-D ReferenceGrid.
        date_vector: Every day of the deployment; sizes the cube's time axis.
        sens_err: Sensor error in percent.
        value_column: Column holding the SST values.
        lon_offset: Longitude shift for the output (None = automatic).
        max_workers: Threads used for the day loop.
        window: Sliding window for the local SD.

    Returns:
        DataArray (lat, lon, date) of surfaces in [0, 1].

    Raises:
        InputMisalignment: A tag day is outside ``date_vector`` or a grid's
            coordinates differ from the first grid's.
    """
    t0 = time.time()
    logger.info("Starting SST likelihood calculation...")

    summary = summarize_daily_range(tag_sst, value_column=value_column)
    provider = as_provider(grids)
    date_vector = normalize_date_vector(date_vector)

    days = plan_days(summary[DATE_COLUMN], provider, date_vector, "SST")
    reference = first_grid(provider, days)
    if reference is None:
        logger.info("No SST days to process, returning an empty cube")
        return empty_cube(date_vector, "sst_likelihood")

    assembler = TemporalCubeAssembler(
        date_vector, reference.lon, reference.lat, lon_offset, name="sst_likelihood"
    )
    ranges = {
        row.date: (row.min_value, row.max_value)
        for row in summary.itertuples(index=False)
    }

    def compute(day: date) -> DaySurface:
        grid = provider.get_grid(day)
        assembler.check_alignment(day, grid.lon, grid.lat)
        low, high = ranges[day]
        return sst_day_surface(day, low, high, grid, sens_err=sens_err, window=window)

    run_days(days, compute, assembler, max_workers=max_workers)

    logger.info("Making final likelihood cube...")
    cube = assembler.finalize()
    logger.info("SST calculations took %.2f minutes", (time.time() - t0) / 60.0)
    return cube
