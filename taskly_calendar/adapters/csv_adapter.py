"""CSV adapter for task records."""

from __future__ import annotations

import csv

from taskly_calendar.schema import TaskRecord

_REQUIRED_FIELDS = {"task_id", "title"}


def _optional(row: dict, field: str):
    value = row.get(field)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_row(row: dict, row_number: int) -> TaskRecord:
    missing = sorted(field for field in _REQUIRED_FIELDS if not (row.get(field) or "").strip())
    if missing:
        raise ValueError(f"Row {row_number}: missing required fields {missing}")

    duration_raw = _optional(row, "duration_minutes")
    duration = None
    if duration_raw is not None:
        try:
            duration = int(duration_raw)
        except ValueError as exc:
            raise ValueError(f"Row {row_number}: invalid duration_minutes") from exc

    return TaskRecord(
        task_id=row["task_id"].strip(),
        title=row["title"].strip(),
        description=_optional(row, "description"),
        category_name=_optional(row, "category_name") or "",
        priority=_optional(row, "priority") or "",
        status=_optional(row, "status") or "",
        start_time=_optional(row, "start_time"),
        end_time=_optional(row, "end_time"),
        duration_minutes=duration,
    )


def parse(file_path: str) -> list[TaskRecord]:
    """Parse CSV file into a list of task records."""

    with open(file_path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            return []

        tasks: list[TaskRecord] = []
        for row_number, row in enumerate(reader, start=2):
            tasks.append(_parse_row(row, row_number))
        return tasks
