"""Lay out a calendar view from a CSV/JSON task file and print it as JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from taskly_calendar.adapters import csv_adapter, json_adapter
from taskly_calendar.colors import CategoryColorStore
from taskly_calendar.config import LayoutConfig
from taskly_calendar.geometry import initial_scroll_offset
from taskly_calendar.intervals import derive_intervals
from taskly_calendar.storage import JsonFileStore
from taskly_calendar.views import TIME_GRID_VIEWS, ViewType, agenda_sections, layout_view, month_cells

logger = logging.getLogger("render_layout")


def _load_tasks(path: Path):
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return csv_adapter.parse(str(path))
    if suffix == ".json":
        return json_adapter.parse(str(path))
    raise ValueError("Unsupported input format, expected .csv or .json")


def _interval_payload(interval) -> dict:
    return {
        "task_id": interval.task_id,
        "title": interval.title,
        "start": interval.start.isoformat(),
        "end": interval.end.isoformat(),
        "duration_minutes": interval.duration_minutes,
        "category": interval.category_name,
    }


def build_report(tasks, view: ViewType, anchor: date, colors: CategoryColorStore, config: LayoutConfig) -> dict:
    intervals = derive_intervals(
        tasks,
        on_fallback=lambda task, field, raw: logger.warning("task %s: %s %r replaced by now", task.task_id, field, raw),
    )
    report: dict = {"view": view.value, "anchor": anchor.isoformat(), "hour_height": config.hour_height}

    if view in TIME_GRID_VIEWS:
        days = layout_view(intervals, view, anchor, colors, config)
        report["scroll_to"] = initial_scroll_offset(anchor, datetime.now(), config.hour_height)
        report["days"] = {
            day.isoformat(): [
                {
                    **_interval_payload(block.interval),
                    "column": block.column,
                    "total_columns": block.total_columns,
                    "rect": {
                        "top": block.rect.top,
                        "height": block.rect.height,
                        "left": block.rect.left,
                        "width": block.rect.width,
                    },
                    "color": block.color,
                }
                for block in blocks
            ]
            for day, blocks in days.items()
        }
    elif view is ViewType.MONTH:
        report["weeks"] = [
            [
                {
                    "day": cell.day.isoformat(),
                    "in_month": cell.in_month,
                    "chips": [_interval_payload(chip) for chip in cell.chips],
                    "overflow": cell.overflow,
                }
                for cell in week
            ]
            for week in month_cells(intervals, anchor)
        ]
    else:
        report["sections"] = [
            {"day": section.day.isoformat(), "items": [_interval_payload(item) for item in section.intervals]}
            for section in agenda_sections(intervals, anchor, days=config.agenda_days)
        ]
    return report


async def _run(args: argparse.Namespace) -> dict:
    config = LayoutConfig.from_env()
    if args.hour_height is not None:
        config = config.with_hour_height(args.hour_height)
    colors = CategoryColorStore(JsonFileStore(args.colors))
    await colors.load()

    tasks = _load_tasks(Path(args.data))
    report = build_report(tasks, ViewType(args.view), date.fromisoformat(args.date), colors, config)
    await colors.flush()
    return report


def main() -> None:
    parser = argparse.ArgumentParser(description="Render a calendar layout as JSON")
    parser.add_argument("--data", required=True, help="Path to CSV/JSON tasks file")
    parser.add_argument("--view", default="day", choices=[view.value for view in ViewType])
    parser.add_argument("--date", default=date.today().isoformat(), help="Anchor date, YYYY-MM-DD")
    parser.add_argument("--hour-height", type=float, default=None, help="Pixels per hour (zoom)")
    parser.add_argument("--colors", default="outputs/category_colors.json", help="Category color store file")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    report = asyncio.run(_run(args))
    print(json.dumps(report, indent=2))

    outputs_dir = Path("outputs")
    outputs_dir.mkdir(parents=True, exist_ok=True)
    out_path = outputs_dir / f"layout_{args.view}_{args.date}.json"
    out_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    logger.info("Saved layout to %s", out_path)


if __name__ == "__main__":
    main()
