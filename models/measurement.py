"""
Tag measurement data models.

Represents depth-binned temperature ranges recorded by a biologging tag
(one record per depth bin per timestamp) and the daily min/max summaries
used by the surface-temperature policy.

Profile tables handed to the engine are pandas DataFrames with the
columns in PROFILE_COLUMNS; scalar tag records (e.g. surface temperature)
carry DATE_COLUMN and a value column.
"""

from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Iterable, List

import numpy as np
import pandas as pd

DATE_COLUMN = "date"
PROFILE_COLUMNS = [DATE_COLUMN, "depth", "min_temp", "max_temp"]
SUMMARY_COLUMNS = [DATE_COLUMN, "min_value", "max_value"]


@dataclass
class DepthMeasurement:
    """A single depth-bin temperature range reported by the tag.

    Args:
        date: Day (or timestamp) of the record.
        depth: Depth of the bin in meters (positive down).
        min_temp: Minimum temperature observed in the bin (deg C).
        max_temp: Maximum temperature observed in the bin (deg C).
    """

    date: date
    depth: float
    min_temp: float
    max_temp: float

    def __post_init__(self):
        if isinstance(self.date, datetime):
            self.date = self.date.date()
        if np.isfinite(self.min_temp) and np.isfinite(self.max_temp):
            if self.min_temp > self.max_temp:
                raise ValueError("min_temp must be <= max_temp")
        if np.isfinite(self.depth) and self.depth < 0:
            # Pressure sensors drift slightly above the surface
            self.depth = 0.0


def profiles_to_frame(measurements: Iterable[DepthMeasurement]) -> pd.DataFrame:
    """Collect DepthMeasurement records into a profile table.

    Args:
        measurements: Iterable of DepthMeasurement.

    Returns:
        DataFrame with PROFILE_COLUMNS, sorted by date then depth.
    """
    rows = [asdict(m) for m in measurements]
    frame = pd.DataFrame(rows, columns=PROFILE_COLUMNS)
    return frame.sort_values([DATE_COLUMN, "depth"], kind="stable").reset_index(drop=True)


def normalize_dates(values: pd.Series) -> pd.Series:
    """Convert a date/timestamp column to plain ``datetime.date`` values."""
    return pd.to_datetime(values).dt.date


def validate_profile_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Check a profile table and return a copy with normalized dates.

    Raises:
        ValueError: If required columns are missing.
    """
    missing = [c for c in PROFILE_COLUMNS if c not in frame.columns]
    if missing:
        raise ValueError(f"Profile table is missing columns: {missing}")
    out = frame.loc[:, PROFILE_COLUMNS].copy()
    out[DATE_COLUMN] = normalize_dates(out[DATE_COLUMN])
    return out


def summarize_daily_range(
    records: pd.DataFrame,
    value_column: str = "temperature",
) -> pd.DataFrame:
    """
    Collapse per-timestamp scalar tag records into one min/max row per day.

    Args:
        records: DataFrame with DATE_COLUMN (date or timestamp) and
                 ``value_column``.
        value_column: Name of the measured quantity column.

    Returns:
        DataFrame with SUMMARY_COLUMNS, one row per unique day, sorted by date.
        Days whose values are all missing are dropped.
    """
    for col in (DATE_COLUMN, value_column):
        if col not in records.columns:
            raise ValueError(f"Tag records are missing column '{col}'")

    frame = pd.DataFrame({
        DATE_COLUMN: normalize_dates(records[DATE_COLUMN]),
        "value": pd.to_numeric(records[value_column], errors="coerce"),
    }).dropna(subset=["value"])

    summary = (
        frame.groupby(DATE_COLUMN, sort=True)["value"]
        .agg(["min", "max"])
        .reset_index()
    )
    summary.columns = SUMMARY_COLUMNS
    return summary


def normalize_date_vector(date_vector: Iterable) -> List[date]:
    """Return the deployment date vector as a list of ``datetime.date``."""
    return list(normalize_dates(pd.Series(list(date_vector))))


def make_date_vector(start, end) -> List[date]:
    """Every day from ``start`` to ``end`` inclusive."""
    return list(pd.date_range(start=start, end=end, freq="D").date)

