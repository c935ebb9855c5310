"""Bucketing of sensor readings into per-mode averages."""

from typing import Callable, Dict, Optional

import pandas as pd

from data_processing import COLUMNS, METRIC_COLUMNS, dprint
from intervals import Interval, validate_mode


def _hour_key(timestamps: pd.Series) -> pd.Series:
    return timestamps.dt.floor("h").dt.strftime("%Y-%m-%dT%H:00:00")


def _day_key(timestamps: pd.Series) -> pd.Series:
    return timestamps.dt.strftime("%Y-%m-%d")


def _iso_week_key(timestamps: pd.Series) -> pd.Series:
    iso = timestamps.dt.isocalendar()
    return (
        iso["year"].astype(str)
        + "-W"
        + iso["week"].astype(str).str.zfill(2)
    )


# Day mode keeps full resolution, so it has no key function.
BUCKET_KEYS: Dict[str, Optional[Callable[[pd.Series], pd.Series]]] = {
    "day": None,
    "week": _hour_key,
    "month": _day_key,
    "year": _iso_week_key,
}


def bucket_key(timestamps: pd.Series, mode: str) -> Optional[pd.Series]:
    """Return the bucket key of each timestamp for ``mode`` (None for day)."""

    key_fn = BUCKET_KEYS[validate_mode(mode)]
    if key_fn is None:
        return None
    return key_fn(pd.to_datetime(timestamps))


def filter_to_interval(readings: pd.DataFrame, interval: Interval) -> pd.DataFrame:
    """Return the readings with ``interval.start <= DateTime < interval.end``."""

    if readings.empty:
        return readings.loc[:, COLUMNS].copy()
    mask = (readings["DateTime"] >= interval.start) & (readings["DateTime"] < interval.end)
    return readings.loc[mask, COLUMNS].reset_index(drop=True)


def aggregate(readings: pd.DataFrame, mode: str) -> pd.DataFrame:
    """Reduce readings to the points plotted for ``mode``.

    Day mode passes every reading through. Other modes average each metric
    per bucket and stamp the bucket with its earliest reading, then sort
    by that timestamp.
    """

    key_fn = BUCKET_KEYS[validate_mode(mode)]
    if key_fn is None:
        return readings.loc[:, COLUMNS].reset_index(drop=True)
    if readings.empty:
        return readings.loc[:, COLUMNS].copy()

    work = readings.loc[:, COLUMNS].copy()
    work["_bucket"] = key_fn(work["DateTime"])

    agg_spec = {"DateTime": ("DateTime", "min")}
    for col in METRIC_COLUMNS:
        agg_spec[col] = (col, "mean")

    points = (
        work.groupby("_bucket", sort=False)
        .agg(**agg_spec)
        .reset_index(drop=True)
        .sort_values("DateTime", kind="stable")
        .reset_index(drop=True)
    )
    dprint(f"[aggregate] {mode}: {len(readings)} readings -> {len(points)} buckets")
    return points[COLUMNS]
