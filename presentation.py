"""KPI, label and chart helpers for the dashboard."""

import math
from typing import Dict, Optional, Tuple

import altair as alt
import numpy as np
import pandas as pd

from intervals import Interval


METRICS: Dict[str, Dict[str, object]] = {
    "Temperature": {
        "label": "Temperature",
        "unit": "°C",
        "color": "#d24a32",
        "min": 15.0,
        "max": 30.0,
    },
    "Humidity": {
        "label": "Humidity",
        "unit": "%",
        "color": "#226f63",
        "min": 20.0,
        "max": 60.0,
    },
    "Pressure": {
        "label": "Pressure",
        "unit": "hPa",
        "color": "#3f5fca",
        "min": 950.0,
        "max": 1100.0,
    },
}

# Below this many points each sample gets a marker.
MARKER_POINT_LIMIT = 80
MAX_CHART_POINTS = 5000


def format_value(value: Optional[float], unit: str = "") -> str:
    if value is None:
        return "-"
    text = f"{value:.2f}"
    return f"{text} {unit}" if unit else text


def compute_kpis(points: pd.DataFrame) -> Dict[str, Dict[str, Optional[float]]]:
    """Return last / avg / min / max per metric for the focused points."""

    kpis: Dict[str, Dict[str, Optional[float]]] = {}
    for metric in METRICS:
        if points.empty or metric not in points.columns:
            kpis[metric] = {"last": None, "avg": None, "min": None, "max": None}
            continue
        values = points[metric].to_numpy(dtype=float, copy=False)
        kpis[metric] = {
            "last": float(values[-1]),
            "avg": float(np.mean(values)),
            "min": float(np.min(values)),
            "max": float(np.max(values)),
        }
    return kpis


def format_range_label(interval: Interval, mode: str, is_custom: bool = False) -> str:
    start = interval.start
    end = interval.end - pd.Timedelta(seconds=1)

    if is_custom:
        return f"{start.strftime('%d.%m.%Y %H:%M')} - {end.strftime('%d.%m.%Y %H:%M')}"
    if mode == "day":
        return start.strftime("%A, %d. %b %Y")
    if mode == "week":
        week = start.isocalendar()[1]
        return (
            f"Week {week}, {start.strftime('%Y')} "
            f"({start.strftime('%d.%m')} - {end.strftime('%d.%m')})"
        )
    if mode == "month":
        return start.strftime("%B %Y")
    return start.strftime("%Y")


def chart_title(mode: str, count: int) -> str:
    return f"Readings {mode.upper()} ({count} points)"


def clamp_focus(index: int, count: int) -> int:
    if count <= 0:
        return 0
    return max(0, min(index, count - 1))


def format_focus_label(timestamp: Optional[pd.Timestamp]) -> str:
    if timestamp is None or pd.isna(timestamp):
        return "No data"
    return pd.Timestamp(timestamp).strftime("%A, %d.%m.%Y %H:%M")


def _downsample(points: pd.DataFrame, max_points: int = MAX_CHART_POINTS) -> pd.DataFrame:
    """Thin a long point set for drawing only.

    Points are binned into equal-width minute bins (about ``max_points / 2``
    of them across the span). Each bin keeps its earliest ``DateTime`` and
    the mean of every metric column, so the result has the same columns
    in the same order as ``points``. Short point sets are returned as is.
    """

    if points.empty or len(points) <= max_points:
        return points

    first, last = points["DateTime"].min(), points["DateTime"].max()
    span_minutes = max(1, int((last - first).total_seconds() // 60))
    bin_minutes = max(1, math.ceil(span_minutes / max(1, max_points // 2)))
    bins = points["DateTime"].dt.floor(f"{bin_minutes}min").rename("_bin")

    named = {"DateTime": ("DateTime", "min")}
    for col in points.columns:
        if col in METRICS:
            named[col] = (col, "mean")
    thinned = points.groupby(bins, sort=True).agg(**named).reset_index(drop=True)
    return thinned.loc[:, list(points.columns)]


def _vl_datetime(ts: pd.Timestamp) -> alt.DateTime:
    ts = pd.Timestamp(ts)
    return alt.DateTime(
        year=ts.year,
        month=ts.month,
        date=ts.day,
        hours=ts.hour,
        minutes=ts.minute,
        seconds=ts.second,
    )


def build_metric_chart(
    points: pd.DataFrame,
    metric: str,
    axis_range: Tuple[float, float],
    interval: Optional[Interval] = None,
    focus_at: Optional[pd.Timestamp] = None,
) -> alt.LayerChart:
    """Return a line chart of one metric over the aggregated points."""

    info = METRICS[metric]
    color = str(info["color"])
    lo, hi = axis_range

    display = _downsample(points).loc[:, ["DateTime", metric]]
    df_chart = display.rename(columns={metric: "Value"})

    if interval is not None:
        x_scale = alt.Scale(domain=[_vl_datetime(interval.start), _vl_datetime(interval.end)])
    else:
        x_scale = alt.Scale()
    base = alt.Chart(df_chart).encode(
        x=alt.X("DateTime:T", title="Date/Time", scale=x_scale),
        y=alt.Y(
            "Value:Q",
            title=f"{info['label']} ({info['unit']})",
            scale=alt.Scale(domain=[lo, hi], nice=False),
        ),
        tooltip=[
            alt.Tooltip("DateTime:T", title="Time", format="%d.%m.%Y %H:%M"),
            alt.Tooltip("Value:Q", title=str(info["label"]), format=".2f"),
        ],
    )

    layers = []
    if metric == "Temperature":
        layers.append(
            base.mark_area(opacity=0.09, color=color, clip=True).encode(y2=alt.datum(lo))
        )
    layers.append(base.mark_line(color=color, strokeWidth=2.4, interpolate="monotone", clip=True))
    if 0 < len(df_chart) < MARKER_POINT_LIMIT:
        layers.append(base.mark_point(color=color, filled=True, size=36, clip=True))
    if focus_at is not None and not pd.isna(focus_at):
        focus_df = pd.DataFrame({"DateTime": [pd.Timestamp(focus_at)]})
        layers.append(
            alt.Chart(focus_df)
            .mark_rule(strokeDash=[4, 4], color="#45534d")
            .encode(x=alt.X("DateTime:T", scale=x_scale))
        )

    return alt.layer(*layers).properties(
        title={"text": f"{info['label']} ({info['unit']})", "anchor": "start"},
        height=260,
    )
