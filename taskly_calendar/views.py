"""Calendar view modes: visible ranges, day bucketing and per-view layout."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional, Protocol, Sequence

from taskly_calendar.colors import normalize_category
from taskly_calendar.columns import assign_columns
from taskly_calendar.config import LayoutConfig
from taskly_calendar.geometry import column_width_for, map_geometries
from taskly_calendar.schema import CalendarInterval, Rectangle

MAX_CHIPS = 2
AGENDA_DAYS = 30


class ViewType(str, Enum):
    MONTH = "month"
    WEEK = "week"
    THREE_DAY = "3day"
    DAY = "day"
    AGENDA = "agenda"


TIME_GRID_VIEWS = (ViewType.DAY, ViewType.THREE_DAY, ViewType.WEEK)


class ColorSource(Protocol):
    def get_color(self, category_name: Optional[str]) -> str: ...


@dataclass(frozen=True)
class LaidOutBlock:
    interval: CalendarInterval
    day: date
    day_index: int
    column: int
    total_columns: int
    rect: Rectangle
    color: str


@dataclass(frozen=True)
class MonthCell:
    day: date
    in_month: bool
    is_today: bool
    chips: tuple[CalendarInterval, ...]
    overflow: int


@dataclass(frozen=True)
class AgendaSection:
    day: date
    is_today: bool
    intervals: tuple[CalendarInterval, ...]


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def _days(first: date, count: int) -> list[date]:
    return [first + timedelta(days=offset) for offset in range(count)]


def visible_days(view: ViewType | str, current: date, agenda_days: int = AGENDA_DAYS) -> list[date]:
    """Dates shown by a view anchored at `current`."""

    view = ViewType(view)
    if view is ViewType.DAY:
        return [current]
    if view is ViewType.THREE_DAY:
        return _days(current, 3)
    if view is ViewType.WEEK:
        return _days(current - timedelta(days=current.weekday()), 7)
    if view is ViewType.MONTH:
        first = current.replace(day=1)
        last = current.replace(day=calendar.monthrange(current.year, current.month)[1])
        grid_start = first - timedelta(days=first.weekday())
        grid_end = last + timedelta(days=6 - last.weekday())
        return _days(grid_start, (grid_end - grid_start).days + 1)
    return _days(current, max(agenda_days, 0))


def navigate(view: ViewType | str, current: date, direction: int) -> date:
    """Anchor date after swiping forward (+1) or back (-1)."""

    view = ViewType(view)
    step = 1 if direction > 0 else -1
    if view in (ViewType.DAY, ViewType.THREE_DAY):
        return current + timedelta(days=step)
    if view is ViewType.WEEK:
        return current + timedelta(weeks=step)
    return _add_months(current, step)


def occurs_on(interval: CalendarInterval, day: date) -> bool:
    if interval.is_multi_day or interval.is_all_day:
        return interval.start.date() <= day <= interval.end.date()
    return interval.start.date() == day


def tasks_on_day(intervals: Iterable[CalendarInterval], day: date) -> list[CalendarInterval]:
    return [interval for interval in intervals if occurs_on(interval, day)]


def filter_by_categories(
    intervals: Iterable[CalendarInterval], enabled: Optional[Iterable[str]]
) -> list[CalendarInterval]:
    """Keep intervals of the enabled categories; an empty selection keeps all."""

    keys = {normalize_category(name) for name in (enabled or ())}
    if not keys:
        return list(intervals)
    return [interval for interval in intervals if normalize_category(interval.category_name) in keys]


def search_intervals(intervals: Iterable[CalendarInterval], query: str) -> list[CalendarInterval]:
    needle = (query or "").strip().lower()
    if not needle:
        return []
    return [
        interval
        for interval in intervals
        if needle in (interval.title or "").lower()
        or needle in (interval.description or "").lower()
        or needle in (interval.category_name or "").lower()
    ]


def layout_day(
    intervals: Iterable[CalendarInterval],
    day: date,
    colors: ColorSource,
    hour_height: float,
    column_width: float,
    day_index: int = 0,
    config: Optional[LayoutConfig] = None,
) -> list[LaidOutBlock]:
    """Lay out the timed intervals of one day."""

    config = config or LayoutConfig()
    timed = [interval for interval in tasks_on_day(intervals, day) if not interval.is_all_day]
    assignments = assign_columns(timed)
    rects = map_geometries(
        assignments,
        hour_height,
        column_width,
        day_index=day_index,
        min_height=config.min_block_height,
        gutter=config.column_gutter,
    )
    return [
        LaidOutBlock(
            interval=assignment.interval,
            day=day,
            day_index=day_index,
            column=assignment.column,
            total_columns=assignment.total_columns,
            rect=rect,
            color=colors.get_color(assignment.interval.category_name),
        )
        for assignment, rect in zip(assignments, rects)
    ]


def layout_view(
    intervals: Sequence[CalendarInterval],
    view: ViewType | str,
    current: date,
    colors: ColorSource,
    config: Optional[LayoutConfig] = None,
) -> dict[date, list[LaidOutBlock]]:
    """Lay out every visible day of a time-grid view (day, 3day, week)."""

    view = ViewType(view)
    if view not in TIME_GRID_VIEWS:
        raise ValueError(f"{view.value} view has no time grid")

    config = config or LayoutConfig()
    days = visible_days(view, current)
    column_width = column_width_for(config.viewport_width, config.time_label_width, len(days))
    return {
        day: layout_day(
            intervals,
            day,
            colors,
            config.hour_height,
            column_width,
            day_index=index,
            config=config,
        )
        for index, day in enumerate(days)
    }


def month_cells(
    intervals: Sequence[CalendarInterval],
    current: date,
    today: Optional[date] = None,
    max_chips: int = MAX_CHIPS,
) -> list[list[MonthCell]]:
    """Month grid as weeks of cells, each with up to `max_chips` chips."""

    today = today or datetime.now().date()
    cells = []
    for day in visible_days(ViewType.MONTH, current):
        on_day = sorted(tasks_on_day(intervals, day), key=lambda interval: interval.start_ms)
        cells.append(
            MonthCell(
                day=day,
                in_month=day.month == current.month,
                is_today=day == today,
                chips=tuple(on_day[:max_chips]),
                overflow=max(0, len(on_day) - max_chips),
            )
        )
    return [cells[index : index + 7] for index in range(0, len(cells), 7)]


def agenda_sections(
    intervals: Sequence[CalendarInterval],
    current: date,
    days: int = AGENDA_DAYS,
    today: Optional[date] = None,
) -> list[AgendaSection]:
    """One section per day from `current`, all-day entries first then by start."""

    today = today or datetime.now().date()
    sections = []
    for day in visible_days(ViewType.AGENDA, current, agenda_days=days):
        # The agenda lists a block on every date it touches.
        on_day = [interval for interval in intervals if interval.start.date() <= day <= interval.end.date()]
        on_day.sort(key=lambda interval: (not interval.is_all_day, interval.start_ms))
        sections.append(AgendaSection(day=day, is_today=day == today, intervals=tuple(on_day)))
    return sections
