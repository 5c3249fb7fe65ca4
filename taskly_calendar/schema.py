"""Core data schema for calendar layout."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

_COMPLETED_STATUSES = {"completato", "completed"}


@dataclass(frozen=True)
class TaskRecord:
    """Task as delivered by the task store; timestamps are raw ISO-8601 strings."""

    task_id: str
    title: str
    category_name: str = ""
    priority: str = ""
    status: str = ""
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_minutes: Optional[int] = None
    description: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return (self.status or "").strip().lower() in _COMPLETED_STATUSES


@dataclass(frozen=True)
class CalendarInterval:
    """Display interval derived from a task; recomputed on every render pass."""

    task_id: str
    title: str
    start: datetime
    end: datetime
    duration_minutes: int
    category_name: str
    status: str
    priority: str
    description: Optional[str] = None
    is_all_day: bool = False
    is_multi_day: bool = False

    @property
    def start_ms(self) -> int:
        return int(round(self.start.timestamp() * 1000))

    @property
    def end_ms(self) -> int:
        return int(round(self.end.timestamp() * 1000))

    @property
    def is_completed(self) -> bool:
        return (self.status or "").strip().lower() in _COMPLETED_STATUSES


@dataclass(frozen=True)
class ColumnAssignment:
    interval: CalendarInterval
    column: int
    total_columns: int


@dataclass(frozen=True)
class Rectangle:
    top: float
    height: float
    left: float
    width: float
