"""Layout configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

from taskly_calendar.geometry import COLUMN_GUTTER, DEFAULT_HOUR_HEIGHT, VISUAL_MIN_HEIGHT, clamp_hour_height

ENV_PREFIX = "TASKLY_CALENDAR_"


@dataclass(frozen=True)
class LayoutConfig:
    """Rendering parameters shared by the calendar views."""

    hour_height: float = DEFAULT_HOUR_HEIGHT
    column_gutter: float = COLUMN_GUTTER
    min_block_height: float = VISUAL_MIN_HEIGHT
    time_label_width: float = 44.0
    viewport_width: float = 390.0
    agenda_days: int = 30

    def __post_init__(self) -> None:
        object.__setattr__(self, "hour_height", clamp_hour_height(float(self.hour_height)))
        if self.column_gutter < 0:
            raise ValueError("column_gutter must be >= 0")
        if self.min_block_height < 0:
            raise ValueError("min_block_height must be >= 0")
        if self.viewport_width <= 0:
            raise ValueError("viewport_width must be > 0")
        if self.agenda_days < 1:
            raise ValueError("agenda_days must be >= 1")

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "LayoutConfig":
        """Build a config from loose values, e.g. parsed JSON or CLI options."""

        known = {field.name for field in fields(cls)}
        kwargs: dict[str, object] = {}
        for name, raw in values.items():
            if name not in known or raw is None:
                continue
            caster = int if name == "agenda_days" else float
            try:
                kwargs[name] = caster(raw)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Invalid value for {name}: {raw!r}") from exc
        return cls(**kwargs)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, prefix: str = ENV_PREFIX) -> "LayoutConfig":
        environ = os.environ if environ is None else environ
        values = {
            field.name: environ[prefix + field.name.upper()]
            for field in fields(cls)
            if prefix + field.name.upper() in environ
        }
        return cls.from_mapping(values)

    def with_hour_height(self, hour_height: float) -> "LayoutConfig":
        return replace(self, hour_height=hour_height)
