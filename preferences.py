"""Persisted y-axis bounds per metric."""

import json
import math
import os
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from data_processing import dprint
from presentation import METRICS


DEFAULT_PREFS_PATH = os.getenv(
    "SP_PREFS_PATH", str(Path.home() / ".sensor-panorama-axis-ranges-v1.json")
)

AxisRanges = Dict[str, Tuple[float, float]]


def default_axis_ranges() -> AxisRanges:
    return {key: (float(info["min"]), float(info["max"])) for key, info in METRICS.items()}


def _coerce_bounds(lo: object, hi: object) -> Optional[Tuple[float, float]]:
    try:
        lo_f = float(lo)  # type: ignore[arg-type]
        hi_f = float(hi)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lo_f) and math.isfinite(hi_f)) or lo_f >= hi_f:
        return None
    return lo_f, hi_f


def _read_stored(path: Union[str, Path]) -> Optional[dict]:
    try:
        raw = Path(path).expanduser().read_text(encoding="utf-8")
    except OSError:
        return None
    if not raw.strip():
        return None
    try:
        parsed = json.loads(raw)
    except ValueError:
        dprint(f"[prefs] ignoring corrupt axis preferences in {path}")
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def load_axis_ranges(path: Union[str, Path] = DEFAULT_PREFS_PATH) -> AxisRanges:
    """Return stored axis bounds, falling back to defaults per metric."""

    stored = _read_stored(path)
    ranges = default_axis_ranges()
    if not stored:
        return ranges

    for key in METRICS:
        entry = stored.get(key)
        if not isinstance(entry, dict):
            continue
        bounds = _coerce_bounds(entry.get("min"), entry.get("max"))
        if bounds is not None:
            ranges[key] = bounds
    return ranges


def save_axis_ranges(ranges: AxisRanges, path: Union[str, Path] = DEFAULT_PREFS_PATH) -> bool:
    """Write axis bounds as JSON. Storage errors are reported, not raised."""

    payload = {key: {"min": lo, "max": hi} for key, (lo, hi) in ranges.items()}
    target = Path(path).expanduser()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    except OSError as exc:
        dprint(f"[prefs] could not store axis preferences in {target}: {exc}")
        return False
    return True


def apply_axis_range(ranges: AxisRanges, metric: str, lo: object, hi: object) -> AxisRanges:
    """Set the bounds of one metric; invalid bounds raise ``ValueError``."""

    if metric not in METRICS:
        raise ValueError(f"Unknown metric {metric!r}")
    bounds = _coerce_bounds(lo, hi)
    if bounds is None:
        raise ValueError("Invalid y-axis: min must be smaller than max.")
    ranges[metric] = bounds
    return ranges
