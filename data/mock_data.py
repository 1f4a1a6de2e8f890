"""
Mock Data for the Tag Likelihood Surface engine.

Provides a synthetic deployment: an animal moving across an idealized
ocean with a meridional temperature gradient, an exponential thermocline
and a shallow shelf in the north-west corner, plus the tag records and
daily reference grids such a deployment would produce.  Designed to be
swapped out for real HYCOM/OISST grids and tag files.
"""

from datetime import date
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from data.interfaces import CallableGridProvider
from models.grid import ReferenceGrid
from models.measurement import make_date_vector, DATE_COLUMN
from config import (
    DEMO_START_DATE,
    DEMO_NUM_DAYS,
    DEMO_LON_RANGE,
    DEMO_LAT_RANGE,
    DEMO_RESOLUTION_DEG,
    DEMO_DEPTH_LEVELS,
    DEMO_TRACK_START,
    DEMO_TRACK_STEP,
    DEMO_SEED,
)

# Thermal structure of the idealized ocean
DEEP_TEMP_C = 8.0             # Temperature well below the thermocline
THERMOCLINE_SCALE_M = 120.0   # e-folding depth of surface warmth
SURFACE_TEMP_SOUTH_C = 27.0   # SST at the southern edge
MERIDIONAL_GRADIENT = -0.8    # deg C per deg latitude
SEASONAL_WARMING = 0.05       # deg C per day
SHELF_DEPTH_M = 80.0          # Bottom depth on the shelf
LAND_CORNER = (281.0, 39.0)   # lon <= x and lat >= y is land


def get_deployment_dates(
    start: str = DEMO_START_DATE,
    num_days: int = DEMO_NUM_DAYS,
) -> List[date]:
    """Return the full daily date vector of the synthetic deployment."""
    first = pd.Timestamp(start)
    return make_date_vector(first, first + pd.Timedelta(days=num_days - 1))


def get_grid_axes(
    lon_range: Tuple[float, float] = DEMO_LON_RANGE,
    lat_range: Tuple[float, float] = DEMO_LAT_RANGE,
    resolution: float = DEMO_RESOLUTION_DEG,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return (lon, lat, depth) axes; lon in the 0..360 convention."""
    lon = np.arange(lon_range[0], lon_range[1] + resolution / 2, resolution)
    lat = np.arange(lat_range[0], lat_range[1] + resolution / 2, resolution)
    return lon, lat, np.asarray(DEMO_DEPTH_LEVELS, dtype=float)


def bottom_depth(lon: np.ndarray, lat: np.ndarray) -> np.ndarray:
    """Bottom depth (m) on a (lon, lat) meshgrid; 0 on land."""
    bottom = np.full(np.broadcast(lon, lat).shape, 5000.0)
    shelf = (lon <= LAND_CORNER[0] + 1.5) & (lat >= LAND_CORNER[1] - 1.5)
    bottom[shelf] = SHELF_DEPTH_M
    land = (lon <= LAND_CORNER[0]) & (lat >= LAND_CORNER[1])
    bottom[land] = 0.0
    return bottom


def temperature_at(lon, lat, depth, day_index: int = 0) -> np.ndarray:
    """Noise-free water temperature (deg C) at broadcastable lon/lat/depth."""
    lat = np.asarray(lat, dtype=float)
    depth = np.asarray(depth, dtype=float)
    surface = (
        SURFACE_TEMP_SOUTH_C
        + MERIDIONAL_GRADIENT * (lat - DEMO_LAT_RANGE[0])
        + 0.3 * np.sin(np.radians(np.asarray(lon, dtype=float) * 20.0))
        + SEASONAL_WARMING * day_index
    )
    return DEEP_TEMP_C + (surface - DEEP_TEMP_C) * np.exp(-depth / THERMOCLINE_SCALE_M)


def make_temperature_grid(
    day: date,
    day_index: int = 0,
    noise_sd: float = 0.05,
    seed: int = DEMO_SEED,
) -> ReferenceGrid:
    """Synthetic 3-D (lon, lat, depth) temperature grid, NaN below the bottom."""
    lon, lat, depth = get_grid_axes()
    LON, LAT, Z = np.meshgrid(lon, lat, depth, indexing="ij")
    values = temperature_at(LON, LAT, Z, day_index)
    rng = np.random.default_rng(seed + day_index)
    values = values + rng.normal(0.0, noise_sd, values.shape)

    bottom = bottom_depth(LON[:, :, 0], LAT[:, :, 0])
    values[Z > bottom[:, :, None]] = np.nan
    return ReferenceGrid(values=values, lon=lon, lat=lat, depth=depth, day=day)


def make_sst_grid(
    day: date,
    day_index: int = 0,
    noise_sd: float = 0.1,
    seed: int = DEMO_SEED,
) -> ReferenceGrid:
    """Synthetic 2-D SST grid in the -180..180 longitude convention."""
    lon, lat, _ = get_grid_axes()
    LON, LAT = np.meshgrid(lon, lat, indexing="ij")
    values = temperature_at(LON, LAT, 0.0, day_index)
    rng = np.random.default_rng(seed + 1000 + day_index)
    values = values + rng.normal(0.0, noise_sd, values.shape)
    values[bottom_depth(LON, LAT) <= 0] = np.nan
    return ReferenceGrid(values=values, lon=lon - 360.0, lat=lat, day=day)


def get_track(dates: Sequence[date]) -> pd.DataFrame:
    """Daily (lon, lat) positions of the simulated animal (0..360 longitudes)."""
    steps = np.arange(len(dates))
    return pd.DataFrame({
        DATE_COLUMN: list(dates),
        "lon": DEMO_TRACK_START[0] + DEMO_TRACK_STEP[0] * steps,
        "lat": DEMO_TRACK_START[1] + DEMO_TRACK_STEP[1] * steps,
    })


def get_pdt_records(
    dates: Sequence[date],
    tag_depths: Sequence[float] = (0, 10, 25, 50, 100, 150, 250, 350),
    spread_c: float = 0.4,
    seed: int = DEMO_SEED,
) -> pd.DataFrame:
    """
    Depth-binned min/max temperature records along the synthetic track.

    Returns:
        Profile table with columns date, depth, min_temp, max_temp.
    """
    rng = np.random.default_rng(seed)
    track = get_track(dates)
    rows = []
    for i, pos in enumerate(track.itertuples(index=False)):
        for depth in tag_depths:
            true_t = float(temperature_at(pos.lon, pos.lat, depth, i))
            jitter = rng.normal(0.0, 0.1)
            half = spread_c * (0.5 + rng.random())
            rows.append({
                DATE_COLUMN: pos.date,
                "depth": float(depth),
                "min_temp": true_t + jitter - half,
                "max_temp": true_t + jitter + half,
            })
    return pd.DataFrame(rows)


def get_sst_records(
    dates: Sequence[date],
    readings_per_day: int = 6,
    noise_sd: float = 0.15,
    seed: int = DEMO_SEED,
) -> pd.DataFrame:
    """Per-timestamp tag SST readings along the synthetic track."""
    rng = np.random.default_rng(seed + 1)
    track = get_track(dates)
    rows = []
    for i, pos in enumerate(track.itertuples(index=False)):
        true_sst = float(temperature_at(pos.lon, pos.lat, 0.0, i))
        for k in range(readings_per_day):
            stamp = pd.Timestamp(pos.date) + pd.Timedelta(hours=24 * k / readings_per_day)
            rows.append({DATE_COLUMN: stamp, "temperature": true_sst + rng.normal(0.0, noise_sd)})
    return pd.DataFrame(rows)


def get_ohc_provider(
    dates: Sequence[date],
    missing: Optional[Sequence[date]] = None,
) -> CallableGridProvider:
    """Provider of synthetic 3-D temperature grids, optionally with gaps."""
    dates = list(dates)
    skip = set(missing or [])
    index = {d: i for i, d in enumerate(dates)}
    return CallableGridProvider(
        [d for d in dates if d not in skip],
        lambda day: make_temperature_grid(day, index[day]),
    )


def get_sst_provider(
    dates: Sequence[date],
    missing: Optional[Sequence[date]] = None,
) -> CallableGridProvider:
    """Provider of synthetic 2-D SST grids, optionally with gaps."""
    dates = list(dates)
    skip = set(missing or [])
    index = {d: i for i, d in enumerate(dates)}
    return CallableGridProvider(
        [d for d in dates if d not in skip],
        lambda day: make_sst_grid(day, index[day]),
    )
