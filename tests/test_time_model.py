"""
Tests for minute-granularity time arithmetic.
"""

from datetime import date, datetime, time

import pytest

from booking_engine.domain.time_model import (
    Ordering,
    TimeRange,
    add_minutes,
    add_months,
    compare,
    day_of_week,
    format_date_long,
    format_time,
    format_time_12h,
    from_minutes,
    iter_dates,
    minutes_of,
    parse_date,
    parse_time,
)


def test_minutes_of_truncates_seconds():
    """Seconds never change the minute of day."""
    assert minutes_of(time(9, 30, 59)) == 570
    assert compare(time(9, 0, 10), time(9, 0, 50)) == Ordering.EQUAL
    assert compare(time(9, 0), time(9, 1)) == Ordering.BEFORE
    assert compare(time(10, 0), time(9, 59)) == Ordering.AFTER


def test_add_minutes_within_day():
    assert add_minutes(time(9, 0), 45) == time(9, 45)
    assert add_minutes(time(23, 0), 59) == time(23, 59)


def test_add_minutes_rejects_midnight_wrap():
    """A result at or past midnight is not representable."""
    with pytest.raises(ValueError):
        add_minutes(time(23, 30), 30)
    with pytest.raises(ValueError):
        add_minutes(time(23, 30), 90)


def test_from_minutes_bounds():
    assert from_minutes(0) == time(0, 0)
    assert from_minutes(1439) == time(23, 59)
    with pytest.raises(ValueError):
        from_minutes(1440)


def test_day_of_week_starts_on_sunday():
    assert day_of_week(date(2024, 1, 7)) == 0  # Sunday
    assert day_of_week(date(2024, 1, 1)) == 1  # Monday
    assert day_of_week(date(2024, 1, 6)) == 6  # Saturday


def test_add_months_clamps_to_month_end():
    assert add_months(datetime(2024, 8, 31, 9, 0), 6) == datetime(2025, 2, 28, 9, 0)
    assert add_months(datetime(2024, 1, 15), 1) == datetime(2024, 2, 15)


def test_iter_dates_inclusive():
    assert list(iter_dates(date(2024, 1, 30), date(2024, 2, 1))) == [
        date(2024, 1, 30),
        date(2024, 1, 31),
        date(2024, 2, 1),
    ]
    assert list(iter_dates(date(2024, 2, 1), date(2024, 1, 30))) == []


def test_time_range_is_half_open():
    """Back-to-back ranges touch but do not overlap."""
    first = TimeRange(time(10, 0), time(10, 30))
    second = TimeRange(time(10, 30), time(11, 0))
    assert not first.overlaps(second)
    assert not second.overlaps(first)
    assert first.gap_to(second) == 0
    assert first.overlaps(TimeRange(time(10, 15), time(10, 45)))


def test_time_range_rejects_empty():
    with pytest.raises(ValueError):
        TimeRange(time(10, 0), time(10, 0))
    with pytest.raises(ValueError):
        TimeRange(time(11, 0), time(10, 0))


def test_time_range_contains_and_expands():
    window = TimeRange(time(9, 0), time(12, 0))
    assert window.contains(TimeRange(time(11, 30), time(12, 0)))
    assert not window.contains(TimeRange(time(11, 45), time(12, 15)))
    assert TimeRange(time(0, 10), time(0, 40)).expanded_bounds(15) == (0, 55)
    assert TimeRange(time(23, 30), time(23, 50)).expanded_bounds(30) == (1380, 1440)


def test_parse_and_format():
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_time("09:30") == time(9, 30)
    assert parse_time("09:30:15") == time(9, 30, 15)
    assert format_time(time(9, 5)) == "09:05"
    assert format_time_12h(time(9, 30)) == "9:30 AM"
    assert format_time_12h(time(0, 15)) == "12:15 AM"
    assert format_time_12h(time(13, 0)) == "1:00 PM"
    assert format_date_long(date(2024, 1, 1)) == "Monday, January 1, 2024"


def test_parse_rejects_garbage():
    with pytest.raises(ValueError):
        parse_date("15/01/2024")
    with pytest.raises(ValueError):
        parse_time("9:30")
    with pytest.raises(ValueError):
        parse_time("25:00")
