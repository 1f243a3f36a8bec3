from __future__ import annotations

from datetime import datetime, time

import pytest

from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate
from booking_engine.infrastructure.store.memory_store import MemoryBookingStore

# Monday 2024-01-01, 08:00
NOW = datetime(2024, 1, 1, 8, 0)


def fixed_clock() -> datetime:
    return NOW


class RecordingNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.confirmed: list = []
        self.cancelled: list = []

    def notify_booking_confirmed(self, booking, calendar, template=None) -> None:
        if self.fail:
            raise RuntimeError("smtp down")
        self.confirmed.append((booking, calendar, template))

    def notify_booking_cancelled(self, booking, calendar) -> None:
        if self.fail:
            raise RuntimeError("smtp down")
        self.cancelled.append((booking, calendar))


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def calendar() -> Calendar:
    return Calendar(
        id="cal-1",
        owner_id="owner-1",
        title="Consultation",
        owner_name="Dr. Lee",
        owner_email="lee@example.com",
    )


@pytest.fixture
def monday_template(calendar) -> TimeSlotTemplate:
    return TimeSlotTemplate(
        id="slot-mon",
        calendar_id=calendar.id,
        day_of_week=1,
        start_time=time(9, 0),
        end_time=time(12, 0),
        duration_minutes=30,
    )


@pytest.fixture
def store(calendar, monday_template) -> MemoryBookingStore:
    s = MemoryBookingStore()
    s.save_calendar(calendar)
    s.save_time_slot(monday_template)
    return s


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
