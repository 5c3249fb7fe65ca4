"""Streamlit demo UI for taskly-calendar."""

from __future__ import annotations

import asyncio
import tempfile
from collections import Counter
from datetime import date, datetime
from html import escape
from pathlib import Path
from typing import Any

from taskly_calendar.adapters import csv_adapter, json_adapter
from taskly_calendar.colors import CategoryColorStore, hex_to_rgba
from taskly_calendar.config import LayoutConfig
from taskly_calendar.geometry import MAX_HOUR_HEIGHT, MIN_HOUR_HEIGHT, current_time_offset, grid_height, slot_offsets
from taskly_calendar.intervals import derive_intervals
from taskly_calendar.storage import JsonFileStore
from taskly_calendar.views import TIME_GRID_VIEWS, filter_by_categories, layout_view

COLOR_STORE_PATH = "outputs/category_colors.json"


def _parse_tasks_from_path(file_path: str) -> list:
    suffix = Path(file_path).suffix.lower()
    if suffix == ".csv":
        return csv_adapter.parse(file_path)
    if suffix == ".json":
        return json_adapter.parse(file_path)
    raise ValueError("Unsupported file type. Please use .csv or .json")


def _parse_uploaded(uploaded_file) -> list:
    suffix = Path(uploaded_file.name).suffix.lower()
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as handle:
        handle.write(uploaded_file.getbuffer())
        temp_path = handle.name
    return _parse_tasks_from_path(temp_path)


def _build_summary(tasks: list, fallbacks: list) -> dict[str, Any]:
    categories = Counter(task.category_name for task in tasks)
    return {
        "total_tasks": len(tasks),
        "completed": sum(1 for task in tasks if task.is_completed),
        "with_duration": sum(1 for task in tasks if task.duration_minutes),
        "timestamp_fallbacks": len(fallbacks),
        "categories": dict(categories),
    }


def run_layout(tasks: list, view: str, anchor: date, colors, config: LayoutConfig, enabled: list[str]) -> dict[str, Any]:
    """Run every layout step and return a UI-friendly payload."""

    fallbacks: list[tuple[str, str]] = []
    intervals = derive_intervals(tasks, on_fallback=lambda task, field, raw: fallbacks.append((task.task_id, field)))
    visible = filter_by_categories(intervals, enabled)
    return {
        "summary": _build_summary(tasks, fallbacks),
        "fallbacks": fallbacks,
        "days": layout_view(visible, view, anchor, colors, config),
    }


def _render_grid(days: dict, config: LayoutConfig) -> str:
    height = grid_height(config.hour_height)
    parts = [
        f"<div style='position:relative;height:{height:.0f}px;width:{config.viewport_width:.0f}px;"
        f"margin-left:{config.time_label_width:.0f}px;border-left:1px solid #ddd'>"
    ]
    for hour, minute, top in slot_offsets(config.hour_height):
        line = "#eee" if minute == 0 else "#f6f6f6"
        if minute == 0:
            parts.append(
                f"<div style='position:absolute;top:{top:.1f}px;left:-{config.time_label_width:.0f}px;"
                f"font-size:10px;color:#888'>{hour:02d}:00</div>"
            )
        parts.append(f"<div style='position:absolute;top:{top:.1f}px;left:0;right:0;border-top:1px solid {line}'></div>")
    for blocks in days.values():
        for block in blocks:
            rect = block.rect
            opacity = "0.5" if block.interval.is_completed else "1"
            parts.append(
                f"<div style='position:absolute;top:{rect.top:.1f}px;left:{rect.left:.1f}px;"
                f"width:{rect.width:.1f}px;height:{rect.height:.1f}px;opacity:{opacity};"
                f"background:{hex_to_rgba(block.color, 0.12)};border-left:3px solid {block.color};"
                f"font-size:11px;overflow:hidden;border-radius:4px'>"
                f"{escape(block.interval.title)}</div>"
            )
    now = datetime.now()
    if now.date() in days:
        now_top = current_time_offset(now, config.hour_height)
        parts.append(f"<div style='position:absolute;top:{now_top:.1f}px;left:0;right:0;border-top:2px solid #EA4335'></div>")
    parts.append("</div>")
    return "".join(parts)


def main() -> None:
    import streamlit as st

    st.set_page_config(page_title="Taskly Calendar Demo", layout="wide")
    st.title("Taskly Calendar — Layout Demo")

    if "colors" not in st.session_state:
        colors = CategoryColorStore(JsonFileStore(COLOR_STORE_PATH))
        asyncio.run(colors.load())
        st.session_state["colors"] = colors
    colors = st.session_state["colors"]

    with st.sidebar:
        st.header("Controls")
        uploaded = st.file_uploader("Upload tasks", type=["csv", "json"])
        use_demo = st.checkbox("Load demo tasks", value=True)
        view = st.selectbox("View", options=[v.value for v in TIME_GRID_VIEWS], index=0)
        anchor = st.date_input("Date", value=date(2025, 3, 10))
        hour_height = st.slider(
            "Hour height", min_value=int(MIN_HOUR_HEIGHT), max_value=int(MAX_HOUR_HEIGHT), value=64
        )
        viewport_width = st.slider("Viewport width", min_value=320, max_value=1400, value=720)
        enabled_raw = st.text_input("Categories (comma separated, empty = all)", value="")

    try:
        if use_demo:
            tasks = csv_adapter.parse("examples/sample_tasks.csv")
        elif uploaded is not None:
            tasks = _parse_uploaded(uploaded)
        else:
            st.info("Upload a CSV/JSON file or enable 'Load demo tasks'.")
            return

        colors.assign_colors(sorted({task.category_name for task in tasks}))
        config = LayoutConfig(hour_height=hour_height, viewport_width=viewport_width)
        enabled = [name.strip() for name in enabled_raw.split(",") if name.strip()]
        result = run_layout(tasks, view, anchor, colors, config, enabled)

        summary = result["summary"]
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Tasks", summary["total_tasks"])
        c2.metric("Completed", summary["completed"])
        c3.metric("With duration", summary["with_duration"])
        c4.metric("Timestamp fallbacks", summary["timestamp_fallbacks"])

        st.subheader("Categories")
        st.table([{"category": name or "(none)", "color": colors.get_color(name)} for name in summary["categories"]])

        st.subheader("Layout")
        st.markdown(_render_grid(result["days"], config), unsafe_allow_html=True)

    except ValueError as exc:
        st.error(f"Input error: {exc}")


if __name__ == "__main__":
    main()
