"""Tests for heat-content and sensor-error comparison quantities."""

import numpy as np
import pytest

from models.aggregation import (
    ComparisonInterval,
    resolve_isotherm,
    heat_content_interval,
    apply_bathymetric_mask,
    reference_heat_content,
    sensor_error_interval,
)
from config import HEAT_CAPACITY_SEAWATER, SEAWATER_DENSITY, OHC_UNIT_DIVISOR

SCALE = HEAT_CAPACITY_SEAWATER * SEAWATER_DENSITY / OHC_UNIT_DIVISOR


class TestIsotherm:
    """Tests for isotherm selection."""

    def test_defaults_to_coldest_low_bound(self):
        assert resolve_isotherm(np.array([20.0, 14.5, np.nan, 17.0])) == 14.5

    def test_caller_value_wins(self):
        assert resolve_isotherm(np.array([20.0, 14.5]), isotherm=18.0) == 18.0

    def test_all_missing_gives_nan(self):
        assert np.isnan(resolve_isotherm(np.array([np.nan, np.nan])))


class TestHeatContentInterval:
    """Tests for the tag-side depth integral."""

    def test_known_values(self):
        """OHC = cp * rho * sum(T - iso) / 10000 for each bound."""
        interval = heat_content_interval(
            np.array([20.0, 18.0, 16.0]), np.array([22.0, 20.0, 18.0]), 16.0
        )
        assert interval.low == pytest.approx(SCALE * 6.0)
        assert interval.high == pytest.approx(SCALE * 12.0)

    def test_missing_levels_skipped(self):
        interval = heat_content_interval(
            np.array([20.0, np.nan]), np.array([21.0, np.nan]), 10.0
        )
        assert interval.low == pytest.approx(SCALE * 10.0)
        assert interval.high == pytest.approx(SCALE * 11.0)


class TestReferenceHeatContent:
    """Tests for collapsing the 3-D reference grid."""

    @pytest.fixture
    def column_grid(self):
        """2 x 1 x 3 grid: a warm column and a column with a missing bottom level."""
        values = np.array([
            [[20.0, 18.0, 15.0]],
            [[19.0, 17.0, np.nan]],
        ])
        return values

    def test_sums_above_isotherm(self, column_grid):
        """Levels colder than the isotherm contribute nothing."""
        ohc = reference_heat_content(column_grid, np.array([0, 1, 2]), 16.0)
        assert ohc[0, 0] == pytest.approx(SCALE * (4.0 + 2.0))
        assert ohc[1, 0] == pytest.approx(SCALE * (3.0 + 1.0))

    def test_only_selected_levels_used(self, column_grid):
        ohc = reference_heat_content(column_grid, np.array([0]), 16.0)
        assert ohc[0, 0] == pytest.approx(SCALE * 4.0)

    def test_no_contribution_is_undefined(self, column_grid):
        """Columns entirely below the isotherm become NaN, not zero."""
        ohc = reference_heat_content(column_grid, np.array([0, 1, 2]), 25.0)
        assert np.all(np.isnan(ohc))

    def test_bathymetric_mask_blanks_shallow_columns(self, column_grid):
        """A column without data at the deepest matched level is excluded."""
        ohc = reference_heat_content(column_grid, np.array([0, 1, 2]), 16.0, deepest_index=2)
        assert np.isfinite(ohc[0, 0])
        assert np.isnan(ohc[1, 0])

    def test_input_not_modified(self, column_grid):
        """Thresholding and masking must work on a copy."""
        before = column_grid.copy()
        reference_heat_content(column_grid, np.array([0, 1, 2]), 16.0, deepest_index=2)
        np.testing.assert_array_equal(column_grid, before)

    def test_apply_mask_returns_copy(self, column_grid):
        masked = apply_bathymetric_mask(column_grid, 2)
        assert masked is not column_grid
        assert np.all(np.isnan(masked[1, 0, :]))
        np.testing.assert_array_equal(masked[0, 0, :], column_grid[0, 0, :])


class TestSensorErrorInterval:
    """Tests for the SST sensor-error interval."""

    def test_default_one_percent(self):
        interval = sensor_error_interval(20.0, 25.0)
        assert interval.low == pytest.approx(19.8)
        assert interval.high == pytest.approx(25.25)

    def test_zero_error_passthrough(self):
        interval = sensor_error_interval(20.0, 25.0, sens_err=0.0)
        assert (interval.low, interval.high) == (20.0, 25.0)


class TestComparisonInterval:
    def test_ordered_interval_not_degenerate(self):
        assert not ComparisonInterval(1.0, 2.0).is_degenerate

    def test_inverted_interval_degenerate(self):
        assert ComparisonInterval(3.0, 2.0).is_degenerate

    def test_nan_interval_degenerate(self):
        assert ComparisonInterval(np.nan, 2.0).is_degenerate
