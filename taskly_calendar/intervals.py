"""Display interval derivation for calendar tasks."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from taskly_calendar.schema import CalendarInterval, TaskRecord

logger = logging.getLogger(__name__)

MIN_DISPLAY_MINUTES = 30
DEFAULT_BLOCK_MINUTES = 30

FallbackHook = Callable[[TaskRecord, str, Optional[str]], None]


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning None when missing or malformed."""

    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _explicit_duration(value) -> int:
    if isinstance(value, bool) or value is None:
        return 0
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        return 0
    return minutes if minutes > 0 else 0


def _has_value(raw: Optional[str]) -> bool:
    return raw is not None and bool(str(raw).strip())


def _resolve(
    task: TaskRecord,
    field: str,
    raw: Optional[str],
    now: datetime,
    on_fallback: Optional[FallbackHook],
) -> datetime:
    parsed = parse_timestamp(raw)
    if parsed is not None:
        return parsed

    if _has_value(raw):
        logger.debug("task %s: malformed %s %r, using now", task.task_id, field, raw)
    else:
        logger.debug("task %s: missing %s, using now", task.task_id, field)
    if on_fallback is not None:
        try:
            on_fallback(task, field, raw)
        except Exception:  # noqa: BLE001
            logger.exception("fallback hook failed for task %s", task.task_id)
    return now


def derive_interval(
    task: TaskRecord,
    now: Optional[datetime] = None,
    on_fallback: Optional[FallbackHook] = None,
) -> CalendarInterval:
    """Derive the display interval of a task.

    Rules, in order:
      1) explicit positive duration: ends at the deadline, starts duration earlier
      2) deadline without duration: 30-minute block ending at the deadline
      3) no deadline: 30-minute block starting at the creation time

    The duration is clamped to MIN_DISPLAY_MINUTES; when clamping applies the
    start moves back so the block still ends where the rule placed it. For an
    explicit duration D below that floor this gives up `start == deadline - D`:
    `end` stays on the deadline and `end - start` equals `duration_minutes`
    (30), so `start` is `deadline - 30`. Missing or
    malformed timestamps fall back to `now` and are reported through the module
    logger and `on_fallback`.
    """

    now = now or datetime.now().astimezone()
    duration = _explicit_duration(task.duration_minutes)

    if duration:
        if _has_value(task.end_time):
            end = _resolve(task, "end_time", task.end_time, now, on_fallback)
        else:
            end = _resolve(task, "start_time", task.start_time, now, on_fallback)
        start = end - timedelta(minutes=duration)
    elif _has_value(task.end_time):
        end = _resolve(task, "end_time", task.end_time, now, on_fallback)
        duration = DEFAULT_BLOCK_MINUTES
        start = end - timedelta(minutes=duration)
    else:
        start = _resolve(task, "start_time", task.start_time, now, on_fallback)
        duration = DEFAULT_BLOCK_MINUTES
        end = start + timedelta(minutes=duration)

    if duration < MIN_DISPLAY_MINUTES:
        duration = MIN_DISPLAY_MINUTES
        start = end - timedelta(minutes=duration)

    return CalendarInterval(
        task_id=task.task_id,
        title=task.title,
        start=start,
        end=end,
        duration_minutes=duration,
        category_name=task.category_name or "",
        status=task.status or "",
        priority=task.priority or "",
        description=task.description,
        # Tasks are point-in-time deadlines; they never span days.
        is_all_day=False,
        is_multi_day=False,
    )


def derive_intervals(
    tasks: Iterable[TaskRecord],
    now: Optional[datetime] = None,
    on_fallback: Optional[FallbackHook] = None,
) -> list[CalendarInterval]:
    """Derive intervals for every task, sharing one `now` across the pass."""

    now = now or datetime.now().astimezone()
    return [derive_interval(task, now=now, on_fallback=on_fallback) for task in tasks]
