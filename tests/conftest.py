"""Shared fixtures for the Tag Likelihood Surface test suite."""

import sys
import os
from datetime import date, timedelta

import pytest
import numpy as np
import pandas as pd

# Ensure project root is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from models.grid import ReferenceGrid

# Small idealized ocean: temperature depends on latitude and (linearly) on depth
TEST_LON = np.arange(280.0, 282.01, 0.25)             # 9 columns, 0..360 convention
TEST_LAT = np.arange(30.0, 35.01, 0.25)               # 21 rows
TEST_DEPTH = np.array([0, 10, 25, 50, 100, 150, 200, 300, 400], dtype=float)
TAG_DEPTHS = TEST_DEPTH[:-1]                           # Tag never reaches 400 m
TRUE_LAT_INDEX = 10


def surface_temp(lat):
    return 25.0 - 2.0 * (np.asarray(lat, dtype=float) - TEST_LAT[0])


def column_temp(lat, depth):
    """Linear-in-depth profile, so local regression recovers it exactly."""
    return surface_temp(lat) - 0.02 * np.asarray(depth, dtype=float)


def make_linear_grid(day=None, lat=TEST_LAT):
    LON, LAT, Z = np.meshgrid(TEST_LON, lat, TEST_DEPTH, indexing="ij")
    return ReferenceGrid(
        values=column_temp(LAT, Z), lon=TEST_LON, lat=lat, depth=TEST_DEPTH, day=day,
    )


def make_profile(day, lat, half_range=0.3, depths=TAG_DEPTHS):
    temps = column_temp(lat, depths)
    return pd.DataFrame({
        "date": [day] * len(depths),
        "depth": depths,
        "min_temp": temps - half_range,
        "max_temp": temps + half_range,
    })


@pytest.fixture
def five_days():
    """Five consecutive deployment days."""
    start = date(2015, 6, 1)
    return [start + timedelta(days=i) for i in range(5)]


@pytest.fixture
def flat_reference():
    """3x3 reference field with constant value 10."""
    return np.full((3, 3), 10.0)


@pytest.fixture
def unit_uncertainty():
    """3x3 uncertainty field with constant SD 1."""
    return np.ones((3, 3))


@pytest.fixture
def linear_grid():
    """3-D reference temperature grid (9 lon x 21 lat x 9 depths)."""
    return make_linear_grid()


@pytest.fixture
def true_lat():
    return TEST_LAT[TRUE_LAT_INDEX]


@pytest.fixture
def day_profile(true_lat):
    """One day's tag profile drawn from the column at TRUE_LAT_INDEX."""
    return make_profile(date(2015, 6, 1), true_lat)


@pytest.fixture
def deployment(five_days, true_lat):
    """(profiles, grids) for five days, all taken at the true latitude."""
    profiles = pd.concat([make_profile(d, true_lat) for d in five_days], ignore_index=True)
    grids = {d: make_linear_grid(d) for d in five_days}
    return profiles, grids


@pytest.fixture
def sst_deployment(five_days, true_lat):
    """(tag SST records, 2-D SST grids) for five days at the true latitude."""
    rows = []
    for d in five_days:
        for hour, offset in ((0, -0.1), (8, 0.0), (16, 0.1)):
            rows.append({
                "date": pd.Timestamp(d) + pd.Timedelta(hours=hour),
                "temperature": float(surface_temp(true_lat)) + offset,
            })
    LON, LAT = np.meshgrid(TEST_LON, TEST_LAT, indexing="ij")
    grids = {
        d: ReferenceGrid(values=surface_temp(LAT), lon=TEST_LON - 360.0, lat=TEST_LAT, day=d)
        for d in five_days
    }
    return pd.DataFrame(rows), grids
