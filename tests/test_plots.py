"""Smoke tests for visualization plot functions.

Each test checks that the function returns a Plotly Figure built from a
small likelihood cube without raising.
"""

import numpy as np
import plotly.graph_objects as go
import pytest

from models.cube import TemporalCubeAssembler
from visualization.plots import (
    create_surface_figure,
    create_comparison_figure,
    create_coverage_figure,
)


@pytest.fixture
def plot_cube(five_days):
    lon = np.array([280.0, 280.5, 281.0])
    lat = np.array([30.0, 30.5, 31.0, 31.5])
    asm = TemporalCubeAssembler(five_days, lon, lat, name="ohc_likelihood")
    for k in (0, 1, 3):
        surface = np.zeros((3, 4))
        surface[1, k % 4] = 1.0
        asm.add(five_days[k], surface, lon, lat)
    return asm.finalize()


@pytest.fixture
def plot_track():
    return [(-80.0, 30.0), (-79.5, 30.5), (-79.5, 31.0), (-79.0, 31.0), (-79.0, 31.5)]


class TestSurfaceFigure:
    def test_returns_figure(self, plot_cube):
        fig = create_surface_figure(plot_cube, 0)
        assert isinstance(fig, go.Figure)
        assert len(fig.data) == 1
        assert "2015-06-01" in fig.layout.title.text

    def test_track_overlay(self, plot_cube, plot_track):
        fig = create_surface_figure(plot_cube, 2, track=plot_track)
        # Heatmap, track line, highlighted position
        assert len(fig.data) == 3

    def test_heatmap_matches_slice(self, plot_cube):
        fig = create_surface_figure(plot_cube, 3)
        np.testing.assert_array_equal(fig.data[0].z, plot_cube.isel(date=3).values)


class TestComparisonFigure:
    def test_one_panel_per_cube(self, plot_cube):
        other = plot_cube.copy()
        other.name = "sst_likelihood"
        fig = create_comparison_figure([plot_cube, other], 1)
        heatmaps = [t for t in fig.data if isinstance(t, go.Heatmap)]
        assert len(heatmaps) == 2

    def test_custom_titles(self, plot_cube, plot_track):
        fig = create_comparison_figure(
            [plot_cube, plot_cube], 0, titles=["OHC", "SST"], track=plot_track
        )
        assert [a.text for a in fig.layout.annotations] == ["OHC", "SST"]


class TestCoverageFigure:
    def test_one_bar_per_day(self, plot_cube):
        fig = create_coverage_figure(plot_cube)
        assert isinstance(fig, go.Figure)
        assert len(fig.data[0].y) == 5
        assert fig.data[0].y[2] == 0.0
