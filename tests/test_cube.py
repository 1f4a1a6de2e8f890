"""Tests for the temporal likelihood cube assembler."""

from concurrent.futures import ThreadPoolExecutor
from datetime import date

import numpy as np
import pandas as pd
import pytest

from models.cube import TemporalCubeAssembler, normalize_longitudes
from models.errors import InputMisalignment
from config import GEOGRAPHIC_CRS

LON = np.array([280.0, 280.5, 281.0])
LAT = np.array([31.0, 30.5, 30.0, 29.5])   # Descending, as many products store it


def marker_surface():
    """surface[i, j] = 10 * i + j + 1 so every cell is identifiable."""
    i, j = np.meshgrid(np.arange(LON.size), np.arange(LAT.size), indexing="ij")
    return 10.0 * i + j + 1.0


class TestNormalizeLongitudes:
    def test_zero_to_360_shifted(self):
        np.testing.assert_array_equal(normalize_longitudes(LON), LON - 360.0)

    def test_signed_longitudes_untouched(self):
        lon = np.array([-80.0, -79.5])
        np.testing.assert_array_equal(normalize_longitudes(lon), lon)

    def test_explicit_offset(self):
        np.testing.assert_array_equal(normalize_longitudes(LON, 0.0), LON)


class TestTemporalCubeAssembler:
    """Tests for TemporalCubeAssembler."""

    def test_full_time_axis_with_empty_days(self, five_days):
        """Only written slices carry data; the rest stay zero."""
        asm = TemporalCubeAssembler(five_days, LON, LAT)
        for k in (0, 2, 4):
            asm.add(five_days[k], np.ones((3, 4)), LON, LAT)
        cube = asm.finalize()
        assert cube.sizes["date"] == 5
        sums = cube.sum(dim=("lat", "lon")).values
        assert np.all(sums[[0, 2, 4]] > 0)
        np.testing.assert_array_equal(sums[[1, 3]], 0.0)

    def test_index_by_exact_date(self, five_days):
        asm = TemporalCubeAssembler(five_days, LON, LAT)
        assert asm.add(five_days[3], np.zeros((3, 4)), LON, LAT) == 3
        assert asm.index_of(pd.Timestamp(five_days[1])) == 1

    def test_unknown_date_rejected(self, five_days):
        asm = TemporalCubeAssembler(five_days, LON, LAT)
        with pytest.raises(InputMisalignment, match="not in the date vector"):
            asm.add(date(2016, 1, 1), np.zeros((3, 4)), LON, LAT)

    def test_mismatched_extent_rejected(self, five_days):
        asm = TemporalCubeAssembler(five_days, LON, LAT)
        with pytest.raises(InputMisalignment, match="spatial extent"):
            asm.add(five_days[0], np.zeros((3, 4)), LON + 0.25, LAT)

    def test_mismatched_shape_rejected(self, five_days):
        asm = TemporalCubeAssembler(five_days, LON, LAT)
        with pytest.raises(InputMisalignment, match="shape"):
            asm.add(five_days[0], np.zeros((4, 3)), LON, LAT)

    def test_day_written_once(self, five_days):
        asm = TemporalCubeAssembler(five_days, LON, LAT)
        asm.add(five_days[0], np.zeros((3, 4)), LON, LAT)
        with pytest.raises(InputMisalignment, match="already written"):
            asm.add(five_days[0], np.zeros((3, 4)), LON, LAT)

    def test_duplicate_dates_rejected(self, five_days):
        with pytest.raises(ValueError, match="duplicate"):
            TemporalCubeAssembler(five_days + five_days[:1], LON, LAT)

    def test_rows_run_with_increasing_latitude(self, five_days):
        """Final rows are latitude-ascending and cells keep their coordinates."""
        asm = TemporalCubeAssembler(five_days, LON, LAT)
        asm.add(five_days[0], marker_surface(), LON, LAT)
        cube = asm.finalize()
        assert list(cube.dims) == ["lat", "lon", "date"]
        assert np.all(np.diff(cube["lat"].values) > 0)
        # LAT[2] == 30.0 is column j=2; LON[1] == 280.5 is row i=1
        assert float(cube.sel(lat=30.0, lon=-79.5).isel(date=0)) == 10.0 * 1 + 2 + 1.0

    def test_georeferencing_attrs(self, five_days):
        cube = TemporalCubeAssembler(five_days, LON, LAT).finalize()
        assert cube.attrs["crs"] == GEOGRAPHIC_CRS
        assert cube.attrs["extent"] == (-80.0, -79.0, 29.5, 31.0)
        np.testing.assert_array_equal(cube["lon"].values, LON - 360.0)

    def test_negative_and_missing_values_clamped(self, five_days):
        asm = TemporalCubeAssembler(five_days, LON, LAT)
        surface = np.full((3, 4), -0.25)
        surface[0, 0] = np.nan
        surface[1, 1] = 0.75
        asm.add(five_days[2], surface, LON, LAT)
        cube = asm.finalize()
        assert float(cube.min()) == 0.0
        assert float(cube.max()) == 0.75

    def test_concurrent_writes_land_in_their_slices(self, five_days):
        """Parallel adds for distinct days never clobber each other."""
        asm = TemporalCubeAssembler(five_days, LON, LAT)

        def write(k):
            asm.add(five_days[k], np.full((3, 4), (k + 1) / 10.0), LON, LAT)

        with ThreadPoolExecutor(max_workers=5) as pool:
            list(pool.map(write, range(5)))
        cube = asm.finalize()
        for k in range(5):
            np.testing.assert_allclose(cube.isel(date=k).values, (k + 1) / 10.0)
