"""Session context for the dashboard and the transitions that change it."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import pandas as pd

from aggregation import aggregate, filter_to_interval
from data_processing import METRIC_COLUMNS, dprint, empty_readings, parse_sensor_text, read_sensor_text
from intervals import Interval, resolve_interval, step_anchor, validate_mode
from preferences import AxisRanges, default_axis_ranges


DATA_UNAVAILABLE_MESSAGE = (
    "Data could not be loaded. Check the data file path or upload the file again."
)
NO_DATA_MESSAGE = "No data in the selected range."


def _today() -> pd.Timestamp:
    return pd.Timestamp.now().normalize()


@dataclass
class DashboardState:
    readings: pd.DataFrame = field(default_factory=empty_readings)
    mode: str = "day"
    anchor: pd.Timestamp = field(default_factory=_today)
    custom_range: Optional[Interval] = None
    visible_metrics: List[str] = field(default_factory=lambda: list(METRIC_COLUMNS))
    axis_ranges: AxisRanges = field(default_factory=default_axis_ranges)
    focus_index: int = 0
    load_error: Optional[str] = None


def load_readings(state: DashboardState, source) -> DashboardState:
    """Replace the readings with the log at ``source``.

    A source that cannot be read leaves the session with no readings and a
    single ``load_error`` message; the session keeps working.
    """

    try:
        text = read_sensor_text(source)
    except ValueError as exc:
        dprint(f"[load] {exc}: {exc.__cause__!r}")
        state.readings = empty_readings()
        state.load_error = DATA_UNAVAILABLE_MESSAGE
    else:
        state.readings = parse_sensor_text(text)
        state.load_error = None

    if not state.readings.empty:
        state.anchor = state.readings["DateTime"].iloc[-1].normalize()
    return state


def set_mode(state: DashboardState, mode: str) -> DashboardState:
    state.mode = validate_mode(mode)
    state.custom_range = None
    return state


def step_interval(state: DashboardState, direction: int) -> DashboardState:
    """Move one mode unit forward or back; drops any custom range."""

    state.custom_range = None
    state.anchor = step_anchor(state.anchor, state.mode, direction)
    return state


def set_custom_range(state: DashboardState, start, end) -> DashboardState:
    state.custom_range = Interval(start=pd.Timestamp(start), end=pd.Timestamp(end))
    return state


def apply_preset(state: DashboardState, preset: Dict[str, object]) -> DashboardState:
    state.mode = validate_mode(str(preset["mode"]))
    state.anchor = pd.Timestamp(preset["date"])
    state.custom_range = None
    return state


def toggle_metric(state: DashboardState, metric: str) -> DashboardState:
    """Show or hide a metric. The last visible metric stays visible."""

    if metric in state.visible_metrics:
        if len(state.visible_metrics) == 1:
            return state
        state.visible_metrics = [m for m in state.visible_metrics if m != metric]
    else:
        state.visible_metrics = [m for m in METRIC_COLUMNS if m in state.visible_metrics or m == metric]
    return state


def query(state: DashboardState) -> Tuple[pd.DataFrame, Interval]:
    """Return the aggregated points and the interval they were taken from."""

    interval = resolve_interval(state.mode, state.anchor, state.custom_range)
    rows = filter_to_interval(state.readings, interval)
    return aggregate(rows, state.mode), interval


def get_quick_presets(now: Optional[pd.Timestamp] = None) -> List[Dict[str, object]]:
    now = pd.Timestamp.now() if now is None else pd.Timestamp(now)
    today = now.normalize()
    week_start = resolve_interval("week", today).start
    return [
        {"label": "Today", "mode": "day", "date": today},
        {"label": "Yesterday", "mode": "day", "date": today - pd.Timedelta(days=1)},
        {"label": "This week", "mode": "week", "date": week_start},
        {"label": "Last week", "mode": "week", "date": week_start - pd.Timedelta(weeks=1)},
        {"label": "This month", "mode": "month", "date": resolve_interval("month", today).start},
        {"label": "This year", "mode": "year", "date": resolve_interval("year", today).start},
    ]


def status_message(points: pd.DataFrame) -> Tuple[str, str]:
    """Return ``(text, tone)`` describing the points in focus."""

    if points.empty:
        return NO_DATA_MESSAGE, "error"
    newest = points["DateTime"].iloc[-1].strftime("%d.%m.%Y %H:%M")
    return f"{len(points)} values in focus. Last point: {newest}", "ok"
