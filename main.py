"""
Tag Likelihood Surfaces: Streamlit Viewer.

Runs the OHC and SST likelihood engines on the synthetic deployment and
lets the user browse the daily surfaces.

Run with:  streamlit run main.py
"""

import sys
import os

# Ensure the project root is on the Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import logging
import warnings

import numpy as np
import streamlit as st

from data.mock_data import (
    get_deployment_dates,
    get_track,
    get_pdt_records,
    get_sst_records,
    get_ohc_provider,
    get_sst_provider,
)
from models.errors import DegenerateDayWarning
from models.heat_content import calc_ohc_likelihood
from models.surface_temperature import calc_sst_likelihood
from models.cube import normalize_longitudes
from visualization.plots import (
    create_surface_figure,
    create_comparison_figure,
    create_coverage_figure,
)
from config import (
    DEMO_NUM_DAYS,
    DEFAULT_BATHY_MASK,
    DEFAULT_USE_SE,
    DEFAULT_SENSOR_ERROR_PCT,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

# ── Page Config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Tag Likelihood Surfaces",
    layout="wide",
)

st.title("Tag Likelihood Surfaces")
st.markdown(
    "Daily position likelihoods from tag-measured ocean heat content and "
    "sea-surface temperature, matched against reference grids."
)

# ── Sidebar Controls ─────────────────────────────────────────────────────────

st.sidebar.header("Deployment")
num_days = st.sidebar.slider("Deployment length (days)", 3, 30, DEMO_NUM_DAYS)
gap_every = st.sidebar.slider(
    "Drop every n-th reference grid (0 = none)", 0, 5, 0,
    help="Simulates days without reference data; their slices stay empty.",
)

st.sidebar.header("OHC Settings")
auto_iso = st.sidebar.checkbox("Compute isotherm from tag data", value=True)
isotherm = None
if not auto_iso:
    isotherm = st.sidebar.slider("Isotherm (deg C)", 5.0, 25.0, 15.0, step=0.5)
bathy = st.sidebar.checkbox("Bathymetric mask", value=DEFAULT_BATHY_MASK)
use_se = st.sidebar.checkbox("Widen envelope by SE", value=DEFAULT_USE_SE)

st.sidebar.header("SST Settings")
sens_err = st.sidebar.slider(
    "Sensor error (%)", 0.0, 5.0, DEFAULT_SENSOR_ERROR_PCT, step=0.25
)


@st.cache_data(max_entries=8)
def run_engines(num_days, gap_every, isotherm, bathy, use_se, sens_err):
    dates = get_deployment_dates(num_days=num_days)
    missing = dates[1::gap_every] if gap_every else []

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", DegenerateDayWarning)
        ohc = calc_ohc_likelihood(
            get_pdt_records(dates), get_ohc_provider(dates, missing), dates,
            isotherm=isotherm, bathy=bathy, use_se=use_se,
        )
        sst = calc_sst_likelihood(
            get_sst_records(dates), get_sst_provider(dates, missing), dates,
            sens_err=sens_err,
        )
    messages = [str(w.message) for w in caught if issubclass(w.category, DegenerateDayWarning)]
    return dates, ohc, sst, messages


dates, L_ohc, L_sst, degenerate = run_engines(
    num_days, gap_every, isotherm, bathy, use_se, sens_err
)

track = get_track(dates)
track_pts = list(zip(normalize_longitudes(track["lon"].to_numpy()), track["lat"]))

for msg in degenerate:
    st.warning(msg)

# ── Daily Surfaces ───────────────────────────────────────────────────────────

day_index = st.slider("Day", 0, len(dates) - 1, 0, format="%d")
st.caption(f"Date: {dates[day_index]}")

# Joint likelihood of both data streams, rescaled per day
combined = L_ohc * L_sst
day_max = combined.max(dim=("lat", "lon"))
combined = (combined / day_max.where(day_max > 0, 1.0)).rename("combined")

tab_maps, tab_combined, tab_coverage = st.tabs(["OHC vs SST", "Combined", "Coverage"])

with tab_maps:
    st.plotly_chart(
        create_comparison_figure(
            [L_ohc, L_sst], day_index, titles=["OHC", "SST"], track=track_pts
        ),
        use_container_width=True,
    )

with tab_combined:
    st.plotly_chart(
        create_surface_figure(combined, day_index, track=track_pts),
        use_container_width=True,
    )

with tab_coverage:
    st.plotly_chart(create_coverage_figure(L_ohc), use_container_width=True)
    st.plotly_chart(create_coverage_figure(L_sst), use_container_width=True)
    st.caption(
        f"{int(np.count_nonzero(L_ohc.sum(dim=('lat', 'lon')).values))} of "
        f"{len(dates)} days carry OHC information."
    )
