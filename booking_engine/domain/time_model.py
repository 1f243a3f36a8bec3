"""
Naive wall-clock time helpers.

Everything here works in host-local time with no tzinfo attached. Booking
windows never cross midnight, so arithmetic that would leave the day is an
error rather than a wrap.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum

MINUTES_PER_DAY = 24 * 60


class Ordering(str, Enum):
    BEFORE = "before"
    EQUAL = "equal"
    AFTER = "after"


def minutes_of(value: time) -> int:
    """Minute of day, seconds truncated."""
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValueError(f"Minute offset {minutes} is outside a single day")
    return time(hour=minutes // 60, minute=minutes % 60)


def truncate(value: time) -> time:
    return value.replace(second=0, microsecond=0)


def add_minutes(value: time, minutes: int) -> time:
    total = minutes_of(value) + minutes
    if total < 0 or total > MINUTES_PER_DAY:
        raise ValueError(f"Adding {minutes} minutes to {format_time(value)} crosses midnight")
    if total == MINUTES_PER_DAY:
        # 24:00 is only meaningful as an exclusive end; the day has no such time.
        raise ValueError(f"Adding {minutes} minutes to {format_time(value)} ends at midnight")
    return time(hour=total // 60, minute=total % 60, second=value.second)


def compare(a: time, b: time) -> Ordering:
    left, right = minutes_of(a), minutes_of(b)
    if left < right:
        return Ordering.BEFORE
    if left > right:
        return Ordering.AFTER
    return Ordering.EQUAL


def combine(day: date, value: time) -> datetime:
    return datetime.combine(day, value)


def day_of_week(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def add_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def iter_dates(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as e:
        raise ValueError(f"Invalid date '{value}'. Use YYYY-MM-DD") from e


def parse_time(value: str) -> time:
    text = (value or "").strip()
    parts = text.split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() and len(p) == 2 for p in parts):
        raise ValueError(f"Invalid time '{value}'. Use HH:MM or HH:MM:SS")
    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    try:
        return time(hour=hour, minute=minute, second=second)
    except ValueError as e:
        raise ValueError(f"Invalid time '{value}'. Use HH:MM or HH:MM:SS") from e


def format_time(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def format_time_12h(value: time) -> str:
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def format_date_long(day: date) -> str:
    return f"{day.strftime('%A')}, {day.strftime('%B')} {day.day}, {day.year}"


@dataclass(frozen=True)
class TimeRange:
    """Half-open wall-clock range [start, end) compared at minute granularity."""

    start: time
    end: time

    def __post_init__(self) -> None:
        if minutes_of(self.start) >= minutes_of(self.end):
            raise ValueError(
                f"Range start {format_time(self.start)} must be before end {format_time(self.end)}"
            )

    @property
    def start_minute(self) -> int:
        return minutes_of(self.start)

    @property
    def end_minute(self) -> int:
        return minutes_of(self.end)

    @property
    def duration_minutes(self) -> int:
        return self.end_minute - self.start_minute

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start_minute < other.end_minute and other.start_minute < self.end_minute

    def contains(self, other: "TimeRange") -> bool:
        return self.start_minute <= other.start_minute and other.end_minute <= self.end_minute

    def expanded_bounds(self, minutes: int) -> tuple[int, int]:
        """Minute bounds widened by ``minutes`` on both sides, clamped to the day."""
        return max(0, self.start_minute - minutes), min(MINUTES_PER_DAY, self.end_minute + minutes)

    def intersects_bounds(self, bounds: tuple[int, int]) -> bool:
        low, high = bounds
        return self.start_minute < high and low < self.end_minute

    def gap_to(self, other: "TimeRange") -> int:
        """Idle minutes between two non-overlapping ranges; 0 when they touch or overlap."""
        if self.end_minute <= other.start_minute:
            return other.start_minute - self.end_minute
        if other.end_minute <= self.start_minute:
            return self.start_minute - other.end_minute
        return 0

    def __str__(self) -> str:
        return f"{format_time(self.start)}-{format_time(self.end)}"
