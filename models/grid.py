"""
Reference environmental grid data model.

A ReferenceGrid is one day's gridded environmental field (e.g. HYCOM water
temperature by depth, or a 2-D SST analysis) together with its coordinate
vectors.  Arrays are indexed (lon, lat) or (lon, lat, depth).
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

import numpy as np


@dataclass
class ReferenceGrid:
    """A day's reference grid and its coordinates.

    The engine never writes into ``values``; every mutating step works on
    its own copy.

    Args:
        values: 2-D (lon, lat) or 3-D (lon, lat, depth) array of values
                already in physical units. NaN marks cells with no data.
        lon: Longitude vector matching axis 0.
        lat: Latitude vector matching axis 1.
        depth: Depth vector matching axis 2 (required for 3-D grids).
        day: Date the grid represents, if known.
    """

    values: np.ndarray
    lon: np.ndarray
    lat: np.ndarray
    depth: Optional[np.ndarray] = None
    day: Optional[date] = None

    def __post_init__(self):
        self.values = np.asarray(self.values, dtype=float)
        self.lon = np.asarray(self.lon, dtype=float)
        self.lat = np.asarray(self.lat, dtype=float)
        if self.depth is not None:
            self.depth = np.asarray(self.depth, dtype=float)

        if self.values.ndim not in (2, 3):
            raise ValueError(f"Grid values must be 2-D or 3-D, got {self.values.ndim}-D")
        if self.values.shape[0] != self.lon.size:
            raise ValueError("Grid axis 0 must match the longitude vector")
        if self.values.shape[1] != self.lat.size:
            raise ValueError("Grid axis 1 must match the latitude vector")
        if self.values.ndim == 3:
            if self.depth is None:
                raise ValueError("3-D grids require a depth vector")
            if self.values.shape[2] != self.depth.size:
                raise ValueError("Grid axis 2 must match the depth vector")

    @classmethod
    def from_packed(
        cls,
        raw: np.ndarray,
        scale_factor: float,
        add_offset: float,
        lon: np.ndarray,
        lat: np.ndarray,
        depth: Optional[np.ndarray] = None,
        day: Optional[date] = None,
        fill_value: Optional[float] = None,
    ) -> "ReferenceGrid":
        """Build a grid from packed integer storage: value = raw * scale + offset."""
        raw = np.asarray(raw, dtype=float)
        values = raw * scale_factor + add_offset
        if fill_value is not None:
            values[raw == fill_value] = np.nan
        return cls(values=values, lon=lon, lat=lat, depth=depth, day=day)

    @property
    def is_3d(self) -> bool:
        return self.values.ndim == 3

    @property
    def shape_2d(self):
        """(n_lon, n_lat) shape of one horizontal slice."""
        return self.values.shape[:2]
