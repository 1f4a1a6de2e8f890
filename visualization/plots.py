"""
Visualization module for the Tag Likelihood Surface engine.

Provides Plotly-based interactive plots of likelihood cubes for the
Streamlit viewer.
"""

import numpy as np
import plotly.graph_objects as go
import xarray as xr
from plotly.subplots import make_subplots
from typing import Optional, Sequence, Tuple


def _day_label(cube: xr.DataArray, index: int) -> str:
    return str(np.datetime_as_string(cube["date"].values[index], unit="D"))


def _add_track(
    fig: go.Figure,
    track: Optional[Sequence[Tuple[float, float]]],
    row: int,
    col: int,
    highlight: Optional[int] = None,
) -> None:
    """Overlay the (lon, lat) positions of a known track, e.g. the synthetic animal."""
    if track is None or len(track) == 0:
        return
    pts = np.asarray(track, dtype=float)
    fig.add_trace(
        go.Scatter(
            x=pts[:, 0],
            y=pts[:, 1],
            mode="lines+markers",
            line=dict(color="cyan", width=2, dash="dash"),
            marker=dict(size=5, color="cyan"),
            name="Track",
            hovertemplate="Track<br>(%{x:.2f}, %{y:.2f})<extra></extra>",
        ),
        row=row, col=col,
    )
    if highlight is not None and 0 <= highlight < len(pts):
        fig.add_trace(
            go.Scatter(
                x=[pts[highlight, 0]],
                y=[pts[highlight, 1]],
                mode="markers",
                marker=dict(size=14, color="lime", symbol="diamond",
                            line=dict(width=1, color="black")),
                name="Position",
                hovertemplate="Position<br>(%{x:.2f}, %{y:.2f})<extra></extra>",
            ),
            row=row, col=col,
        )


def create_surface_figure(
    cube: xr.DataArray,
    day_index: int,
    track: Optional[Sequence[Tuple[float, float]]] = None,
    colorbar_title: str = "Likelihood",
) -> go.Figure:
    """
    Create a single-day likelihood map.

    Args:
        cube: Likelihood cube with dims (lat, lon, date).
        day_index: Index along the date axis.
        track: Optional (lon, lat) positions to overlay (-180..180).
        colorbar_title: Title of the colour bar.
    """
    fig = make_subplots(rows=1, cols=1)
    fig.add_trace(
        go.Heatmap(
            x=cube["lon"].values,
            y=cube["lat"].values,
            z=cube.isel(date=day_index).values,
            colorscale="YlOrRd",
            zmin=0,
            zmax=1,
            colorbar=dict(title=colorbar_title),
            name=cube.name or "likelihood",
            hovertemplate="lon: %{x:.2f}<br>lat: %{y:.2f}<br>L: %{z:.3f}<extra></extra>",
        ),
        row=1, col=1,
    )
    _add_track(fig, track, row=1, col=1, highlight=day_index)

    fig.update_layout(
        height=600,
        template="plotly_dark",
        title=f"{cube.name or 'likelihood'}: {_day_label(cube, day_index)}",
        margin=dict(l=60, r=60, t=60, b=60),
    )
    fig.update_xaxes(title_text="Longitude")
    fig.update_yaxes(title_text="Latitude", scaleanchor="x")
    return fig


def create_comparison_figure(
    cubes: Sequence[xr.DataArray],
    day_index: int,
    titles: Optional[Sequence[str]] = None,
    track: Optional[Sequence[Tuple[float, float]]] = None,
) -> go.Figure:
    """Side-by-side maps of several cubes (e.g. OHC and SST) for one day."""
    titles = list(titles) if titles else [c.name or "likelihood" for c in cubes]
    fig = make_subplots(rows=1, cols=len(cubes), subplot_titles=titles)
    for k, cube in enumerate(cubes, start=1):
        fig.add_trace(
            go.Heatmap(
                x=cube["lon"].values,
                y=cube["lat"].values,
                z=cube.isel(date=day_index).values,
                colorscale="YlOrRd",
                zmin=0,
                zmax=1,
                showscale=(k == len(cubes)),
                name=titles[k - 1],
                hovertemplate="lon: %{x:.2f}<br>lat: %{y:.2f}<br>L: %{z:.3f}<extra></extra>",
            ),
            row=1, col=k,
        )
        _add_track(fig, track, row=1, col=k, highlight=day_index)

    fig.update_layout(
        height=500,
        template="plotly_dark",
        showlegend=False,
        margin=dict(l=50, r=50, t=60, b=50),
    )
    return fig


def create_coverage_figure(cube: xr.DataArray) -> go.Figure:
    """Bar chart of each day's total likelihood mass; empty days show as zero."""
    mass = cube.sum(dim=("lat", "lon")).values
    labels = [_day_label(cube, i) for i in range(cube.sizes["date"])]
    fig = go.Figure(
        go.Bar(
            x=labels,
            y=mass,
            marker_color=["#ff7f0e" if m > 0 else "#555555" for m in mass],
            hovertemplate="%{x}<br>sum L: %{y:.1f}<extra></extra>",
        )
    )
    fig.update_layout(
        height=250,
        template="plotly_dark",
        margin=dict(l=50, r=20, t=30, b=50),
    )
    fig.update_yaxes(title_text="Sum of L")
    return fig
