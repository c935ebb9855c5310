import json
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from preferences import (
    apply_axis_range,
    default_axis_ranges,
    load_axis_ranges,
    save_axis_ranges,
)


def test_missing_file_falls_back_to_defaults(tmp_path):
    assert load_axis_ranges(tmp_path / "absent.json") == default_axis_ranges()


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("{not json", encoding="utf-8")

    assert load_axis_ranges(path) == default_axis_ranges()


def test_invalid_entries_fall_back_per_metric(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text(
        json.dumps(
            {
                "Temperature": {"min": 10, "max": 35},
                "Humidity": {"min": 70, "max": 30},
                "Pressure": {"min": "low", "max": 1050},
            }
        ),
        encoding="utf-8",
    )

    ranges = load_axis_ranges(path)

    assert ranges["Temperature"] == (10.0, 35.0)
    assert ranges["Humidity"] == (20.0, 60.0)
    assert ranges["Pressure"] == (950.0, 1100.0)


def test_saved_ranges_are_loaded_back(tmp_path):
    path = tmp_path / "nested" / "prefs.json"
    ranges = apply_axis_range(default_axis_ranges(), "Pressure", 980, 1040)

    assert save_axis_ranges(ranges, path)
    assert load_axis_ranges(path)["Pressure"] == (980.0, 1040.0)


def test_storage_errors_are_not_raised(tmp_path):
    assert save_axis_ranges(default_axis_ranges(), tmp_path) is False


@pytest.mark.parametrize("lo, hi", [(30, 15), (20, 20), (float("nan"), 10), ("", 5)])
def test_apply_axis_range_rejects_invalid_bounds(lo, hi):
    ranges = default_axis_ranges()

    with pytest.raises(ValueError, match="min must be smaller than max"):
        apply_axis_range(ranges, "Temperature", lo, hi)
    assert ranges["Temperature"] == (15.0, 30.0)
