"""
Shared daily loop for likelihood engines.

Both engines follow the same outline: decide which days to process (tag
days that also have a reference grid), fix the cube's spatial frame from
the first of those grids, compute one normalized surface per day, and
write it into the cube.  Day computations are independent, so they can
run on a thread pool; each result only ever lands in its own slice.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, List, Optional

import numpy as np
import xarray as xr

from data.interfaces import GridProvider
from models.cube import TemporalCubeAssembler
from models.errors import InputMisalignment
from models.grid import ReferenceGrid
from models.retry import IntegrationOutcome

logger = logging.getLogger(__name__)


@dataclass
class DaySurface:
    """One day's finished, normalized likelihood surface.

    Attributes:
        day: Date of the surface.
        surface: 2-D (lon, lat) normalized surface.
        lon, lat: Coordinates of the grid the surface was built on.
        outcome: Integration outcome (None if the day was skipped).
    """

    day: date
    surface: np.ndarray
    lon: np.ndarray
    lat: np.ndarray
    outcome: Optional[IntegrationOutcome] = None


def plan_days(
    tag_days: Iterable[date],
    provider: GridProvider,
    assembler_dates: List[date],
    label: str,
) -> List[date]:
    """
    Select the tag days that have a reference grid.

    Raises:
        InputMisalignment: If a tag day is outside the date vector.
    """
    available = set(provider.available_dates())
    in_vector = set(assembler_dates)
    days = []
    for day in sorted(set(tag_days)):
        if day not in in_vector:
            raise InputMisalignment(f"{label}: tag day {day} is not in the date vector")
        if day not in available:
            logger.info("%s: no reference grid for %s, leaving slice empty", label, day)
            continue
        days.append(day)
    return days


def first_grid(provider: GridProvider, days: List[date]) -> Optional[ReferenceGrid]:
    """Return the grid of the earliest planned day, which fixes the cube frame."""
    if not days:
        return None
    return provider.get_grid(days[0])


def run_days(
    days: List[date],
    compute: Callable[[date], DaySurface],
    assembler: TemporalCubeAssembler,
    max_workers: int = 1,
) -> List[DaySurface]:
    """
    Compute and write one surface per day.

    Results are written in date order whatever ``max_workers`` is; any
    exception from a day (misalignment, regression failure) aborts the run.
    """
    results = []
    if max_workers > 1 and len(days) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            for result in pool.map(compute, days):
                assembler.add(result.day, result.surface, result.lon, result.lat)
                results.append(result)
        return results

    for day in days:
        result = compute(day)
        assembler.add(result.day, result.surface, result.lon, result.lat)
        results.append(result)
    return results


def empty_cube(date_vector: Iterable, name: str) -> xr.DataArray:
    """All-zero cube for runs with no processable day (no spatial frame known)."""
    assembler = TemporalCubeAssembler(date_vector, np.array([]), np.array([]), 0.0, name)
    return assembler.finalize()
