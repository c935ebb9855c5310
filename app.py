import hashlib
import io
from datetime import datetime, time
from pathlib import Path
import sys

import streamlit as st

# Ensure imports work whether the app is executed as a module or as a script
# where the repository directory might not already be on ``sys.path``.
CURRENT_DIR = Path(__file__).resolve().parent

if __package__:
    from .data_processing import DEFAULT_DATA_PATH
    from .dashboard_state import (
        DashboardState,
        apply_preset,
        get_quick_presets,
        load_readings,
        query,
        set_custom_range,
        set_mode,
        status_message,
        step_interval,
        toggle_metric,
    )
    from .intervals import MODES
    from .preferences import (
        DEFAULT_PREFS_PATH,
        apply_axis_range,
        default_axis_ranges,
        load_axis_ranges,
        save_axis_ranges,
    )
    from .presentation import (
        METRICS,
        build_metric_chart,
        chart_title,
        clamp_focus,
        compute_kpis,
        format_focus_label,
        format_range_label,
        format_value,
    )
else:
    if str(CURRENT_DIR) not in sys.path:
        sys.path.insert(0, str(CURRENT_DIR))
    from data_processing import DEFAULT_DATA_PATH
    from dashboard_state import (
        DashboardState,
        apply_preset,
        get_quick_presets,
        load_readings,
        query,
        set_custom_range,
        set_mode,
        status_message,
        step_interval,
        toggle_metric,
    )
    from intervals import MODES
    from preferences import (
        DEFAULT_PREFS_PATH,
        apply_axis_range,
        default_axis_ranges,
        load_axis_ranges,
        save_axis_ranges,
    )
    from presentation import (
        METRICS,
        build_metric_chart,
        chart_title,
        clamp_focus,
        compute_kpis,
        format_focus_label,
        format_range_label,
        format_value,
    )


st.set_page_config(page_title="Sensor Panorama", layout="wide", page_icon="🌡️")

if "dashboard" not in st.session_state:
    st.session_state["dashboard"] = DashboardState(axis_ranges=load_axis_ranges(DEFAULT_PREFS_PATH))
state: DashboardState = st.session_state["dashboard"]


def _axis_keys(metric: str):
    return f"axis_min_{metric}", f"axis_max_{metric}"


def _sync_axis_inputs() -> None:
    for metric, (lo, hi) in state.axis_ranges.items():
        min_key, max_key = _axis_keys(metric)
        st.session_state[min_key] = float(lo)
        st.session_state[max_key] = float(hi)


def _on_axis_change(metric: str) -> None:
    min_key, max_key = _axis_keys(metric)
    try:
        apply_axis_range(state.axis_ranges, metric, st.session_state[min_key], st.session_state[max_key])
    except ValueError as exc:
        st.session_state["axis_error"] = str(exc)
        _sync_axis_inputs()
        return
    st.session_state.pop("axis_error", None)
    save_axis_ranges(state.axis_ranges, DEFAULT_PREFS_PATH)


def _on_reset_axes() -> None:
    state.axis_ranges = default_axis_ranges()
    _sync_axis_inputs()
    save_axis_ranges(state.axis_ranges, DEFAULT_PREFS_PATH)
    st.session_state.pop("axis_error", None)


def _on_mode_change() -> None:
    set_mode(state, st.session_state["mode_choice"])


def _on_preset(preset) -> None:
    apply_preset(state, preset)
    st.session_state["mode_choice"] = state.mode


def _on_metric_toggle(metric: str) -> None:
    toggle_metric(state, metric)
    st.session_state[f"show_{metric}"] = metric in state.visible_metrics


def _on_custom_range() -> None:
    dates = st.session_state.get("custom_dates") or ()
    if len(dates) != 2:
        st.session_state["range_error"] = "Pick a start and an end date for the custom range."
        return
    start = datetime.combine(dates[0], st.session_state.get("custom_start_time") or time(0, 0))
    end = datetime.combine(dates[1], st.session_state.get("custom_end_time") or time(0, 0))
    st.session_state.pop("range_error", None)
    set_custom_range(state, start, end)


def _on_focus_slider() -> None:
    state.focus_index = int(st.session_state["focus_slider"])


def _on_focus_step(delta: int) -> None:
    state.focus_index += delta


# --- Data source ---------------------------------------------------------
st.sidebar.header("🌡️ Sensor Data")
uploaded = st.sidebar.file_uploader("Upload sensor log (optional)", type=["txt", "csv"], key="sensor_upload")
data_path = st.sidebar.text_input("Sensor log path", value=DEFAULT_DATA_PATH, key="data_path")

if uploaded is not None:
    file_bytes = uploaded.getvalue()
    digest = hashlib.sha1(file_bytes).hexdigest()[:10]
    source_key = f"upload:{uploaded.name}:{digest}"
    source = io.BytesIO(file_bytes)
else:
    source_key = f"path:{data_path}"
    source = data_path

if st.sidebar.button("Reload data", key="reload_data"):
    st.session_state.pop("loaded_source", None)

if st.session_state.get("loaded_source") != source_key:
    load_readings(state, source)
    st.session_state["loaded_source"] = source_key
    st.session_state["load_error_shown"] = False
    st.session_state["mode_choice"] = state.mode

if state.load_error and not st.session_state.get("load_error_shown"):
    st.error(state.load_error)
    st.session_state["load_error_shown"] = True

st.sidebar.caption(f"{len(state.readings):,} readings loaded")

# --- Range controls ------------------------------------------------------
st.sidebar.markdown("### Period")
st.session_state.setdefault("mode_choice", state.mode)
st.sidebar.radio(
    "View",
    options=list(MODES),
    format_func=str.capitalize,
    horizontal=True,
    key="mode_choice",
    on_change=_on_mode_change,
)
back_col, fwd_col = st.sidebar.columns(2)
back_col.button("◀ Back", key="step_back", on_click=step_interval, args=(state, -1), use_container_width=True)
fwd_col.button("Forward ▶", key="step_forward", on_click=step_interval, args=(state, 1), use_container_width=True)

st.sidebar.markdown("### Quick picks")
preset_cols = st.sidebar.columns(2)
for idx, preset in enumerate(get_quick_presets()):
    preset_cols[idx % 2].button(
        str(preset["label"]),
        key=f"preset_{idx}",
        on_click=_on_preset,
        args=(preset,),
        use_container_width=True,
    )

with st.sidebar.expander("Custom range"):
    st.date_input("Dates", value=(), key="custom_dates")
    st.time_input("Start time", value=time(0, 0), key="custom_start_time")
    st.time_input("End time", value=time(23, 59), key="custom_end_time")
    st.button("Apply range", key="apply_custom_range", on_click=_on_custom_range)
    if st.session_state.get("range_error"):
        st.warning(st.session_state["range_error"])

# --- Metrics & axes ------------------------------------------------------
st.sidebar.markdown("### Metrics")
for metric, info in METRICS.items():
    show_key = f"show_{metric}"
    st.session_state.setdefault(show_key, metric in state.visible_metrics)
    st.sidebar.checkbox(str(info["label"]), key=show_key, on_change=_on_metric_toggle, args=(metric,))

st.sidebar.markdown("### Y-axis ranges")
for metric, (lo, hi) in state.axis_ranges.items():
    min_key, max_key = _axis_keys(metric)
    st.session_state.setdefault(min_key, float(lo))
    st.session_state.setdefault(max_key, float(hi))
    unit = METRICS[metric]["unit"]
    min_col, max_col = st.sidebar.columns(2)
    min_col.number_input(f"{metric} min ({unit})", key=min_key, on_change=_on_axis_change, args=(metric,))
    max_col.number_input(f"{metric} max ({unit})", key=max_key, on_change=_on_axis_change, args=(metric,))
st.sidebar.button("Reset axes", key="reset_axes", on_click=_on_reset_axes)
if st.session_state.get("axis_error"):
    st.sidebar.error(st.session_state["axis_error"])

# --- Main view -----------------------------------------------------------
points, interval = query(state)
state.focus_index = clamp_focus(state.focus_index, len(points))

st.title(format_range_label(interval, state.mode, is_custom=state.custom_range is not None))
status_text, tone = status_message(points)
if tone == "error":
    st.warning(status_text)
else:
    st.info(status_text)

kpis = compute_kpis(points)
kpi_cols = st.columns(len(METRICS))
for col, (metric, info) in zip(kpi_cols, METRICS.items()):
    values = kpis[metric]
    with col:
        st.metric(str(info["label"]), format_value(values["last"], str(info["unit"])))
        st.caption(
            f"Avg {format_value(values['avg'])} | "
            f"Min {format_value(values['min'])} | "
            f"Max {format_value(values['max'])}"
        )

st.subheader(chart_title(state.mode, len(points)))
focus_at = points["DateTime"].iloc[state.focus_index] if not points.empty else None
for metric in state.visible_metrics:
    chart = build_metric_chart(points, metric, state.axis_ranges[metric], interval, focus_at)
    st.altair_chart(chart, use_container_width=True)

st.markdown("### Focus")
st.caption(format_focus_label(focus_at))
if len(points) > 1:
    st.session_state["focus_slider"] = state.focus_index
    st.slider(
        "Point",
        min_value=0,
        max_value=len(points) - 1,
        key="focus_slider",
        on_change=_on_focus_slider,
    )
    prev_col, next_col = st.columns(2)
    prev_col.button("Previous point", key="focus_prev", on_click=_on_focus_step, args=(-1,))
    next_col.button("Next point", key="focus_next", on_click=_on_focus_step, args=(1,))
if not points.empty:
    focused = points.iloc[[state.focus_index]].set_index("DateTime")
    st.dataframe(focused.round(2), use_container_width=True)
