"""JSON adapter for task records."""

from __future__ import annotations

import json

from taskly_calendar.schema import TaskRecord

_TEXT_FIELDS = ("category_name", "priority", "status")
_TIME_FIELDS = ("start_time", "end_time")


def _parse_duration(raw, index: int):
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise ValueError(f"Item {index}: invalid duration_minutes")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Item {index}: invalid duration_minutes") from exc


def _parse_item(item: dict, index: int) -> TaskRecord:
    if not isinstance(item, dict):
        raise ValueError(f"Item {index}: expected an object")

    task_id = item.get("task_id", item.get("id"))
    if task_id in (None, ""):
        raise ValueError(f"Item {index}: missing task_id")
    if not item.get("title"):
        raise ValueError(f"Item {index}: missing title")

    # Timestamps are passed through untouched; the interval deriver owns their fallback.
    times = {name: (None if item.get(name) is None else str(item[name])) for name in _TIME_FIELDS}
    texts = {name: str(item.get(name) or "").strip() for name in _TEXT_FIELDS}
    description = item.get("description")

    return TaskRecord(
        task_id=str(task_id).strip(),
        title=str(item["title"]).strip(),
        description=None if description is None else str(description),
        duration_minutes=_parse_duration(item.get("duration_minutes"), index),
        **texts,
        **times,
    )


def parse(file_path: str) -> list[TaskRecord]:
    """Parse JSON file into task records."""

    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    if isinstance(payload, dict) and isinstance(payload.get("tasks"), list):
        payload = payload["tasks"]
    if not isinstance(payload, list):
        raise ValueError("JSON payload must be a list of task objects")

    return [_parse_item(item, i) for i, item in enumerate(payload, start=1)]
