from datetime import datetime, timedelta

from taskly_calendar.intervals import MIN_DISPLAY_MINUTES, derive_interval, derive_intervals, parse_timestamp
from taskly_calendar.schema import TaskRecord

NOW = datetime.fromisoformat("2025-03-10T12:00:00")


def make_task(**fields):
    base = {"task_id": "t1", "title": "Task", "category_name": "Work", "status": "In sospeso"}
    base.update(fields)
    return TaskRecord(**base)


def test_explicit_duration_ends_at_deadline():
    task = make_task(start_time="2025-03-01T08:00:00", end_time="2025-03-10T11:00:00", duration_minutes=90)
    interval = derive_interval(task, now=NOW)
    assert interval.end == datetime.fromisoformat("2025-03-10T11:00:00")
    assert interval.start == interval.end - timedelta(minutes=90)
    assert interval.duration_minutes == 90


def test_deadline_without_duration_is_thirty_minute_block():
    task = make_task(start_time="2025-03-01T08:00:00", end_time="2025-03-10T10:30:00")
    interval = derive_interval(task, now=NOW)
    assert interval.end == datetime.fromisoformat("2025-03-10T10:30:00")
    assert interval.start == datetime.fromisoformat("2025-03-10T10:00:00")
    assert interval.duration_minutes == 30


def test_no_deadline_starts_at_creation_time():
    task = make_task(start_time="2025-03-10T18:00:00")
    interval = derive_interval(task, now=NOW)
    assert interval.start == datetime.fromisoformat("2025-03-10T18:00:00")
    assert interval.end == datetime.fromisoformat("2025-03-10T18:30:00")
    assert interval.duration_minutes == 30


def test_short_duration_is_clamped_and_start_moves_back():
    task = make_task(end_time="2025-03-10T09:30:00", duration_minutes=15)
    interval = derive_interval(task, now=NOW)
    assert interval.duration_minutes == MIN_DISPLAY_MINUTES
    assert interval.end == datetime.fromisoformat("2025-03-10T09:30:00")
    assert interval.start == datetime.fromisoformat("2025-03-10T09:00:00")
    assert round((interval.end - interval.start).total_seconds() / 60) == interval.duration_minutes


def test_non_positive_duration_is_ignored():
    task = make_task(end_time="2025-03-10T09:30:00", duration_minutes=0)
    assert derive_interval(task, now=NOW).duration_minutes == 30
    task = make_task(end_time="2025-03-10T09:30:00", duration_minutes=-20)
    assert derive_interval(task, now=NOW).start == datetime.fromisoformat("2025-03-10T09:00:00")


def test_duration_without_deadline_ends_at_creation_time():
    task = make_task(start_time="2025-03-10T08:00:00", duration_minutes=60)
    interval = derive_interval(task, now=NOW)
    assert interval.end == datetime.fromisoformat("2025-03-10T08:00:00")
    assert interval.start == datetime.fromisoformat("2025-03-10T07:00:00")


def test_malformed_timestamps_fall_back_to_now_and_notify_hook():
    seen = []
    task = make_task(start_time="not-a-date", end_time="garbage")
    interval = derive_interval(task, now=NOW, on_fallback=lambda t, field, raw: seen.append((t.task_id, field, raw)))
    assert interval.end == NOW
    assert interval.start == NOW - timedelta(minutes=30)
    assert seen == [("t1", "end_time", "garbage")]


def test_missing_timestamps_fall_back_to_now():
    interval = derive_interval(make_task(), now=NOW)
    assert interval.start == NOW
    assert interval.duration_minutes == 30


def test_failing_hook_does_not_break_derivation():
    def explode(task, field, raw):
        raise RuntimeError("boom")

    interval = derive_interval(make_task(start_time="bad"), now=NOW, on_fallback=explode)
    assert interval.start == NOW


def test_flags_are_never_set_for_day_spanning_tasks():
    task = make_task(end_time="2025-03-12T10:00:00", duration_minutes=3 * 24 * 60)
    interval = derive_interval(task, now=NOW)
    assert interval.is_all_day is False
    assert interval.is_multi_day is False


def test_parse_timestamp_accepts_zulu_suffix():
    parsed = parse_timestamp("2025-03-10T10:00:00Z")
    assert parsed is not None
    assert parsed.utcoffset() == timedelta(0)
    assert parse_timestamp("") is None
    assert parse_timestamp("10/03/2025") is None


def test_derive_intervals_preserves_order_and_fields():
    tasks = [
        make_task(task_id="a", title="A", end_time="2025-03-10T09:00:00", priority="Alta"),
        make_task(task_id="b", title="B", start_time="2025-03-10T10:00:00", description="notes"),
    ]
    intervals = derive_intervals(tasks, now=NOW)
    assert [interval.task_id for interval in intervals] == ["a", "b"]
    assert intervals[0].priority == "Alta"
    assert intervals[1].description == "notes"
    assert intervals[0].category_name == "Work"
