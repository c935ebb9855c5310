from pathlib import Path
import sys

import pandas as pd
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from data_processing import COLUMNS, empty_readings
from intervals import Interval
from presentation import (
    METRICS,
    _downsample,
    build_metric_chart,
    chart_title,
    clamp_focus,
    compute_kpis,
    format_focus_label,
    format_range_label,
    format_value,
)


def _points():
    df = pd.DataFrame(
        [
            ("2024-01-08 10:00", 20.0, 40.0, 1000.0),
            ("2024-01-08 11:00", 24.0, 44.0, 1004.0),
            ("2024-01-08 12:00", 22.0, 48.0, 1002.0),
        ],
        columns=COLUMNS,
    )
    df["DateTime"] = pd.to_datetime(df["DateTime"])
    return df


def test_compute_kpis_reports_last_avg_min_max():
    kpis = compute_kpis(_points())

    assert set(kpis) == set(METRICS)
    assert kpis["Temperature"] == {"last": 22.0, "avg": pytest.approx(22.0), "min": 20.0, "max": 24.0}
    assert kpis["Humidity"]["avg"] == pytest.approx(44.0)


def test_compute_kpis_on_empty_points():
    kpis = compute_kpis(empty_readings())

    assert all(value is None for metric in kpis.values() for value in metric.values())
    assert format_value(kpis["Pressure"]["last"], "hPa") == "-"


def test_range_labels_per_mode():
    week = Interval(pd.Timestamp("2024-01-08"), pd.Timestamp("2024-01-15"))
    month = Interval(pd.Timestamp("2024-01-01"), pd.Timestamp("2024-02-01"))
    day = Interval(pd.Timestamp("2024-01-08"), pd.Timestamp("2024-01-09"))
    custom = Interval(pd.Timestamp("2024-01-03 10:15"), pd.Timestamp("2024-01-05 08:00"))

    assert format_range_label(week, "week") == "Week 2, 2024 (08.01 - 14.01)"
    assert format_range_label(month, "month") == "January 2024"
    assert format_range_label(month, "year") == "2024"
    assert format_range_label(day, "day") == "Monday, 08. Jan 2024"
    assert format_range_label(custom, "day", is_custom=True) == "03.01.2024 10:15 - 05.01.2024 07:59"


def test_chart_title_and_focus_helpers():
    assert chart_title("week", 12) == "Readings WEEK (12 points)"
    assert clamp_focus(5, 3) == 2
    assert clamp_focus(-1, 3) == 0
    assert clamp_focus(4, 0) == 0
    assert format_focus_label(None) == "No data"
    assert format_focus_label(pd.Timestamp("2024-01-08 10:00")) == "Monday, 08.01.2024 10:00"


def test_build_metric_chart_uses_axis_range_and_focus_rule():
    interval = Interval(pd.Timestamp("2024-01-08"), pd.Timestamp("2024-01-09"))

    chart = build_metric_chart(
        _points(), "Temperature", (15.0, 30.0), interval, pd.Timestamp("2024-01-08 11:00")
    )
    chart_dict = chart.to_dict()

    marks = [layer["mark"]["type"] for layer in chart_dict["layer"]]
    assert marks == ["area", "line", "point", "rule"]
    assert chart_dict["layer"][1]["encoding"]["y"]["scale"]["domain"] == [15.0, 30.0]


def test_build_metric_chart_without_markers_for_dense_series():
    points = pd.DataFrame(
        {
            "DateTime": pd.date_range("2024-01-01", periods=200, freq="h"),
            "Temperature": 20.0,
            "Humidity": 40.0,
            "Pressure": 1000.0,
        }
    )

    chart_dict = build_metric_chart(points, "Pressure", (950.0, 1100.0)).to_dict()

    assert [layer["mark"]["type"] for layer in chart_dict["layer"]] == ["line"]


def test_downsample_only_shrinks_large_series():
    small = _points()
    large = pd.DataFrame(
        {
            "DateTime": pd.date_range("2024-01-01", periods=12000, freq="min"),
            "Temperature": 21.0,
            "Humidity": 40.0,
            "Pressure": 1000.0,
        }
    )

    assert _downsample(small) is small
    reduced = _downsample(large, max_points=1000)
    assert 0 < len(reduced) <= 1000
    assert list(reduced.columns) == COLUMNS
    assert reduced["DateTime"].iloc[0] == pd.Timestamp("2024-01-01")
    assert reduced["DateTime"].is_monotonic_increasing
    assert (reduced["Pressure"] == 1000.0).all()


def test_downsample_keeps_column_order_of_chart_slice():
    large = pd.DataFrame(
        {
            "Humidity": range(6000),
            "DateTime": pd.date_range("2024-01-01", periods=6000, freq="min"),
        }
    )

    reduced = _downsample(large)

    assert list(reduced.columns) == ["Humidity", "DateTime"]
    assert len(reduced) < len(large)
