"""
Contract tests shared by the in-memory and SQL booking stores.
"""

from __future__ import annotations

from datetime import date, time

import pytest

from booking_engine.application.exceptions import UniquenessViolation
from booking_engine.domain.entities.booking import BookingStatus, NewBooking
from booking_engine.domain.time_model import add_minutes
from booking_engine.infrastructure.store.memory_store import MemoryBookingStore
from booking_engine.infrastructure.store.sql_store import SqlBookingStore


@pytest.fixture(params=["memory", "sql"])
def seeded(request, calendar, monday_template):
    if request.param == "memory":
        s = MemoryBookingStore()
    else:
        s = SqlBookingStore("sqlite://")
    s.save_calendar(calendar)
    s.save_time_slot(monday_template)
    return s


def _new(start=time(10, 0), token="tok-1", booking_date=date(2024, 1, 1), **overrides) -> NewBooking:
    fields = dict(
        calendar_id="cal-1",
        time_slot_id="slot-mon",
        booking_date=booking_date,
        start_time=start,
        end_time=add_minutes(start, 30),
        guest_name="Ann",
        guest_email="ann@example.com",
        cancellation_token=token,
    )
    fields.update(overrides)
    return NewBooking(**fields)


def test_reads_calendar_and_templates(seeded, calendar, monday_template):
    assert seeded.get_calendar("cal-1") == calendar
    assert seeded.get_active_calendar("cal-1") == calendar
    assert seeded.get_active_time_slot("slot-mon") == monday_template
    assert seeded.list_time_slots("cal-1") == [monday_template]
    assert seeded.get_calendar("missing") is None


def test_insert_and_lookup(seeded):
    created = seeded.insert_booking(_new())

    assert created.id
    assert created.status == BookingStatus.CONFIRMED
    assert created.created_at is not None
    assert seeded.get_booking(created.id) == created
    assert seeded.get_booking_by_token("tok-1") == created
    assert seeded.list_confirmed_bookings("cal-1", date(2024, 1, 1)) == [created]
    assert seeded.list_confirmed_bookings("cal-1", date(2024, 1, 2), date(2024, 1, 31)) == []


def test_second_confirmed_start_is_rejected(seeded):
    """At most one confirmed booking per calendar, date and start."""
    seeded.insert_booking(_new())
    with pytest.raises(UniquenessViolation):
        seeded.insert_booking(_new(token="tok-2"))


def test_cancelled_rows_do_not_hold_the_start(seeded):
    first = seeded.insert_booking(_new())
    seeded.update_booking_status(first.id, BookingStatus.CANCELLED)

    second = seeded.insert_booking(_new(token="tok-2"))
    assert seeded.list_confirmed_bookings("cal-1", date(2024, 1, 1)) == [second]

    # Restoring the cancelled one would make two confirmed rows
    with pytest.raises(UniquenessViolation):
        seeded.update_booking_status(first.id, BookingStatus.CONFIRMED, BookingStatus.CANCELLED)


def test_conditional_status_update(seeded):
    created = seeded.insert_booking(_new())

    assert seeded.update_booking_status(created.id, BookingStatus.COMPLETED, BookingStatus.CANCELLED) is None
    updated = seeded.update_booking_status(created.id, BookingStatus.COMPLETED, BookingStatus.CONFIRMED)
    assert updated.status == BookingStatus.COMPLETED
    assert seeded.get_booking(created.id).status == BookingStatus.COMPLETED
    assert seeded.update_booking_status("missing", BookingStatus.CANCELLED) is None


def test_count_future_bookings(seeded):
    seeded.insert_booking(_new(booking_date=date(2023, 12, 25), token="past"))
    seeded.insert_booking(_new(booking_date=date(2024, 1, 8), token="future"))
    cancelled = seeded.insert_booking(_new(booking_date=date(2024, 1, 15), token="cancelled"))
    seeded.update_booking_status(cancelled.id, BookingStatus.CANCELLED)

    assert seeded.count_future_bookings(date(2024, 1, 1)) == 1
    assert seeded.count_future_bookings(date(2024, 1, 1), calendar_id="cal-1") == 1
    assert seeded.count_future_bookings(date(2024, 1, 1), time_slot_id="other") == 0


def test_delete_time_slot_keeps_bookings(seeded):
    created = seeded.insert_booking(_new())

    assert seeded.delete_time_slot("slot-mon")
    assert not seeded.delete_time_slot("slot-mon")
    assert seeded.get_time_slot("slot-mon") is None
    assert seeded.get_booking(created.id).time_slot_id is None


def test_delete_calendar(seeded):
    assert seeded.delete_calendar("cal-1")
    assert seeded.get_calendar("cal-1") is None
    assert seeded.list_time_slots("cal-1") == []
    assert not seeded.delete_calendar("cal-1")
