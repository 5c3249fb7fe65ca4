"""Pixel geometry for calendar time blocks."""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Sequence

import numpy as np

from taskly_calendar.schema import ColumnAssignment, Rectangle

VISUAL_MIN_HEIGHT = 24.0
COLUMN_GUTTER = 2.0

MIN_HOUR_HEIGHT = 40.0
MAX_HOUR_HEIGHT = 140.0
DEFAULT_HOUR_HEIGHT = 64.0

DEFAULT_SCROLL_HOUR = 7


def _hour_of_day(moment: datetime) -> float:
    return moment.hour + moment.minute / 60.0


def map_geometry(
    assignment: ColumnAssignment,
    hour_height: float,
    column_width: float,
    day_index: int = 0,
    min_height: float = VISUAL_MIN_HEIGHT,
    gutter: float = COLUMN_GUTTER,
) -> Rectangle:
    """Map a column assignment to a rectangle inside its day column.

    `column_width` is the width of one day; `day_index` shifts the block into
    the matching day of a multi-day view.
    """

    interval = assignment.interval
    top = _hour_of_day(interval.start) * hour_height
    height = max((interval.duration_minutes / 60.0) * hour_height, min_height)

    if assignment.total_columns <= 0 or column_width <= 0:
        return Rectangle(top=top, height=height, left=day_index * max(column_width, 0.0), width=0.0)

    lane = column_width / assignment.total_columns
    width = max(lane - gutter, 0.0)
    left = day_index * column_width + assignment.column * lane + gutter / 2.0
    return Rectangle(top=top, height=height, left=left, width=width)


def map_geometries(
    assignments: Sequence[ColumnAssignment],
    hour_height: float,
    column_width: float,
    day_index: int = 0,
    min_height: float = VISUAL_MIN_HEIGHT,
    gutter: float = COLUMN_GUTTER,
) -> list[Rectangle]:
    """Vectorised `map_geometry` over one day's assignments."""

    if not assignments:
        return []

    hours = np.asarray([_hour_of_day(a.interval.start) for a in assignments], dtype=float)
    durations = np.asarray([a.interval.duration_minutes for a in assignments], dtype=float)
    columns = np.asarray([a.column for a in assignments], dtype=float)
    totals = np.asarray([a.total_columns for a in assignments], dtype=float)

    tops = hours * hour_height
    heights = np.maximum(durations / 60.0 * hour_height, min_height)

    valid = (totals > 0) & (column_width > 0)
    lanes = np.divide(column_width, totals, out=np.zeros_like(totals), where=valid)
    widths = np.where(valid, np.maximum(lanes - gutter, 0.0), 0.0)
    day_offset = day_index * max(column_width, 0.0)
    lefts = np.where(valid, day_offset + columns * lanes + gutter / 2.0, day_offset)

    return [
        Rectangle(top=float(t), height=float(h), left=float(l), width=float(w))
        for t, h, l, w in zip(tops, heights, lefts, widths)
    ]


def clamp_hour_height(hour_height: float) -> float:
    if not math.isfinite(hour_height):
        return DEFAULT_HOUR_HEIGHT
    return min(MAX_HOUR_HEIGHT, max(MIN_HOUR_HEIGHT, hour_height))


def zoom_hour_height(initial: float, scale: float) -> float:
    """Hour height after a pinch gesture of relative `scale`."""

    if not math.isfinite(scale) or scale <= 0:
        return clamp_hour_height(initial)
    return clamp_hour_height(initial * scale)


def column_width_for(viewport_width: float, label_width: float, day_count: int, padding: float = 16.0) -> float:
    """Width of one day column once the time labels and padding are removed."""

    if day_count <= 0:
        return 0.0
    return max(viewport_width - label_width - padding, 0.0) / day_count


def current_time_offset(now: datetime, hour_height: float) -> float:
    return _hour_of_day(now) * hour_height


def initial_scroll_offset(day: date, now: datetime, hour_height: float) -> float:
    """Scroll to one hour before now on today, else to the start of the working day."""

    if day == now.date():
        return max(0.0, (now.hour - 1) * hour_height)
    return DEFAULT_SCROLL_HOUR * hour_height


def grid_height(hour_height: float) -> float:
    return 24 * hour_height


def slot_offsets(hour_height: float, slot_minutes: int = 30) -> list[tuple[int, int, float]]:
    """(hour, minute, top) for every tappable slot of a day column."""

    return [
        (hour, minute, (hour + minute / 60.0) * hour_height)
        for hour in range(24)
        for minute in range(0, 60, slot_minutes)
    ]

