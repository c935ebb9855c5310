"""Calendar intervals for the day / week / month / year views."""

import os
from dataclasses import dataclass
from typing import Dict, Optional

import pandas as pd


MODES = ("day", "week", "month", "year")

# Calendar unit stepped per mode, as a ``pd.DateOffset`` keyword.
MODE_UNITS: Dict[str, str] = {
    "day": "days",
    "week": "weeks",
    "month": "months",
    "year": "years",
}


def _read_week_start(default: int = 0) -> int:
    value = os.getenv("SP_WEEK_START")
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if 0 <= parsed <= 6 else default


# 0 = Monday ... 6 = Sunday
WEEK_START = _read_week_start()


@dataclass(frozen=True)
class Interval:
    """Half-open time range ``[start, end)``."""

    start: pd.Timestamp
    end: pd.Timestamp

    def contains(self, ts: pd.Timestamp) -> bool:
        return self.start <= ts < self.end


def validate_mode(mode: str) -> str:
    if mode not in MODE_UNITS:
        raise ValueError(f"Unknown mode {mode!r}; expected one of {', '.join(MODES)}")
    return mode


def floor_to_mode(anchor, mode: str, week_start: int = WEEK_START) -> pd.Timestamp:
    """Return the start of the day, week, month or year containing ``anchor``."""

    validate_mode(mode)
    day = pd.Timestamp(anchor).normalize()
    if mode == "day":
        return day
    if mode == "week":
        return day - pd.Timedelta(days=(day.weekday() - week_start) % 7)
    if mode == "month":
        return day.replace(day=1)
    return day.replace(month=1, day=1)


def resolve_interval(
    mode: str,
    anchor,
    custom_range: Optional[Interval] = None,
    week_start: int = WEEK_START,
) -> Interval:
    """Return the interval to display.

    A custom range wins and is returned as given, without flooring and
    without checking ``start < end``. Otherwise the anchor is floored to
    its mode unit and the interval spans exactly one calendar unit.
    """

    if custom_range is not None:
        return custom_range

    start = floor_to_mode(anchor, mode, week_start=week_start)
    end = start + pd.DateOffset(**{MODE_UNITS[mode]: 1})
    return Interval(start=start, end=pd.Timestamp(end))


def step_anchor(anchor, mode: str, direction: int) -> pd.Timestamp:
    """Move ``anchor`` one calendar unit forward (direction > 0) or back."""

    validate_mode(mode)
    sign = 1 if direction > 0 else -1
    return pd.Timestamp(anchor) + pd.DateOffset(**{MODE_UNITS[mode]: sign})
