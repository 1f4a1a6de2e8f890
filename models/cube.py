"""
Temporal Likelihood Cube assembly.

Stacks normalized daily surfaces into a pre-sized (lon, lat, day) array
keyed by the deployment's full date vector, then wraps the stack as a
georeferenced xarray DataArray.  The spatial frame (longitude/latitude
vectors) is fixed when the assembler is created; every added day must
match it exactly.

Writes for different days touch disjoint slices, so days may be added
from several threads.
"""

import threading
from datetime import date
from typing import Dict, Iterable, Optional

import numpy as np
import pandas as pd
import xarray as xr

from models.errors import InputMisalignment
from models.measurement import normalize_dates, normalize_date_vector
from config import GEOGRAPHIC_CRS, LONGITUDE_WRAP_DEG


def normalize_longitudes(lon: np.ndarray, offset: Optional[float] = None) -> np.ndarray:
    """
    Shift longitudes onto the -180..180 convention.

    Args:
        lon: Longitude vector.
        offset: Fixed shift in degrees; if None, grids in the 0..360
                convention (any value > 180) are shifted by -360.

    Returns:
        Shifted longitude vector (new array).
    """
    lon = np.asarray(lon, dtype=float)
    if offset is None and lon.size == 0:
        offset = 0.0
    if offset is None:
        offset = -LONGITUDE_WRAP_DEG if np.nanmax(lon) > 180.0 else 0.0
    return lon + offset


class TemporalCubeAssembler:
    """Collects daily surfaces into a likelihood cube.

    Args:
        date_vector: Every day of the deployment, in order.
        lon: Longitude vector of the reference grids (grid axis 0).
        lat: Latitude vector of the reference grids (grid axis 1).
        lon_offset: Longitude shift for the final cube (None = automatic).
        name: Name of the resulting DataArray.
    """

    def __init__(
        self,
        date_vector: Iterable,
        lon: np.ndarray,
        lat: np.ndarray,
        lon_offset: Optional[float] = None,
        name: str = "likelihood",
    ):
        self.dates = normalize_date_vector(date_vector)
        if len(set(self.dates)) != len(self.dates):
            raise ValueError("date_vector contains duplicate days")
        self._index: Dict[date, int] = {d: i for i, d in enumerate(self.dates)}

        self.lon = np.asarray(lon, dtype=float).copy()
        self.lat = np.asarray(lat, dtype=float).copy()
        self.lon_offset = lon_offset
        self.name = name
        self.values = np.zeros((self.lon.size, self.lat.size, len(self.dates)))
        self.written = np.zeros(len(self.dates), dtype=bool)
        self._lock = threading.Lock()

    def index_of(self, day) -> int:
        """Position of ``day`` in the date vector.

        Raises:
            InputMisalignment: If the day is not part of the date vector.
        """
        key = normalize_dates(pd.Series([day])).iloc[0]
        try:
            return self._index[key]
        except KeyError:
            raise InputMisalignment(f"Day {key} is not in the date vector") from None

    def check_alignment(self, day, lon: np.ndarray, lat: np.ndarray) -> None:
        """Raise InputMisalignment unless lon/lat equal the cube's frame exactly."""
        if not (np.array_equal(np.asarray(lon, dtype=float), self.lon)
                and np.array_equal(np.asarray(lat, dtype=float), self.lat)):
            raise InputMisalignment(
                f"Grid coordinates for {day} do not match the cube's spatial extent"
            )

    def add(self, day, surface: np.ndarray, lon: np.ndarray, lat: np.ndarray) -> int:
        """
        Write a normalized surface into the slice for ``day``.

        Returns:
            The slice index written.
        """
        idx = self.index_of(day)
        self.check_alignment(day, lon, lat)
        surface = np.asarray(surface, dtype=float)
        if surface.shape != self.values.shape[:2]:
            raise InputMisalignment(
                f"Surface for {day} has shape {surface.shape}, "
                f"expected {self.values.shape[:2]}"
            )
        with self._lock:
            if self.written[idx]:
                raise InputMisalignment(f"Day {day} was already written to the cube")
            self.written[idx] = True
        self.values[:, :, idx] = surface
        return idx

    def finalize(self) -> xr.DataArray:
        """
        Build the georeferenced cube.

        Rows run along latitude in increasing order, columns along
        longitude in -180..180 convention, and the third axis over the
        full date vector.  NaN and negative values are set to zero.

        Returns:
            DataArray with dims ("lat", "lon", "date").
        """
        lon = normalize_longitudes(self.lon, self.lon_offset)
        lat = self.lat

        data = np.nan_to_num(self.values, nan=0.0, posinf=0.0, neginf=0.0)
        data = np.clip(data, 0.0, None)
        data = np.transpose(data, (1, 0, 2))

        lat_order = np.argsort(lat, kind="stable")
        lon_order = np.argsort(lon, kind="stable")
        data = data[lat_order][:, lon_order]

        cube = xr.DataArray(
            data,
            dims=("lat", "lon", "date"),
            coords={
                "lat": lat[lat_order],
                "lon": lon[lon_order],
                "date": pd.to_datetime(self.dates),
            },
            name=self.name,
        )
        cube.attrs["crs"] = GEOGRAPHIC_CRS
        if lon.size and lat.size:
            cube.attrs["extent"] = (
                float(lon.min()), float(lon.max()), float(lat.min()), float(lat.max())
            )
        cube.attrs["long_name"] = f"Daily {self.name} surfaces"
        return cube
