import pytest

from taskly_calendar.config import LayoutConfig
from taskly_calendar.geometry import DEFAULT_HOUR_HEIGHT, MAX_HOUR_HEIGHT


def test_defaults():
    config = LayoutConfig()
    assert config.hour_height == DEFAULT_HOUR_HEIGHT
    assert config.agenda_days == 30


def test_hour_height_is_clamped():
    assert LayoutConfig(hour_height=500).hour_height == MAX_HOUR_HEIGHT
    assert LayoutConfig().with_hour_height(90).hour_height == 90


def test_from_env_reads_prefixed_values():
    env = {"TASKLY_CALENDAR_HOUR_HEIGHT": "72", "TASKLY_CALENDAR_AGENDA_DAYS": "14", "OTHER": "x"}
    config = LayoutConfig.from_env(env)
    assert config.hour_height == 72
    assert config.agenda_days == 14


def test_from_mapping_rejects_bad_values():
    with pytest.raises(ValueError, match="viewport_width"):
        LayoutConfig.from_mapping({"viewport_width": "wide"})
    with pytest.raises(ValueError):
        LayoutConfig.from_mapping({"agenda_days": 0})


def test_from_mapping_ignores_unknown_keys():
    assert LayoutConfig.from_mapping({"theme": "dark", "column_gutter": "4"}).column_gutter == 4
