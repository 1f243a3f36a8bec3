"""
Tests for interactive pre-validation of a proposed booking.
"""

from __future__ import annotations

from datetime import date, time

from booking_engine.application.use_cases.validate_booking import ValidateBookingUseCase
from booking_engine.domain.entities.booking import NewBooking
from booking_engine.domain.entities.conflict import ConflictKind

from conftest import fixed_clock


def _seed_booking(store, start=time(10, 0), end=time(10, 30)):
    return store.insert_booking(
        NewBooking(
            calendar_id="cal-1",
            time_slot_id="slot-mon",
            booking_date=date(2024, 1, 1),
            start_time=start,
            end_time=end,
            guest_name="Ann",
            guest_email="ann@example.com",
            cancellation_token=f"tok-{start}",
        )
    )


def test_free_time_is_valid(store):
    uc = ValidateBookingUseCase(store, clock=fixed_clock)
    assert uc.execute("cal-1", date(2024, 1, 1), time(10, 30), time_slot_id="slot-mon").is_valid


def test_reports_overlap_with_existing(store):
    _seed_booking(store)
    uc = ValidateBookingUseCase(store, clock=fixed_clock)

    result = uc.execute("cal-1", date(2024, 1, 1), time(10, 0), time_slot_id="slot-mon")
    assert result.kinds() == {ConflictKind.OVERLAP}


def test_excluding_the_booking_being_edited(store):
    existing = _seed_booking(store)
    uc = ValidateBookingUseCase(store, clock=fixed_clock)

    result = uc.execute(
        "cal-1",
        date(2024, 1, 1),
        time(10, 0),
        time_slot_id="slot-mon",
        exclude_booking_id=existing.id,
    )
    assert result.is_valid


def test_explicit_end_time_without_template(store):
    _seed_booking(store)
    uc = ValidateBookingUseCase(store, clock=fixed_clock)

    result = uc.execute("cal-1", date(2024, 1, 1), time(9, 0), end_time=time(11, 0))
    assert result.kinds() == {ConflictKind.OVERLAP}


def test_end_time_not_after_start_is_unavailable(store):
    uc = ValidateBookingUseCase(store, clock=fixed_clock)

    for end in (time(10, 0), time(9, 30)):
        result = uc.execute("cal-1", date(2024, 1, 1), time(10, 0), end_time=end)
        assert result.kinds() == {ConflictKind.TEMPLATE_UNAVAILABLE}
        assert result.messages == ["Booking end time must be after its start time."]


def test_unknown_calendar_or_template(store):
    uc = ValidateBookingUseCase(store, clock=fixed_clock)

    missing_calendar = uc.execute("nope", date(2024, 1, 1), time(10, 0), time_slot_id="slot-mon")
    assert missing_calendar.kinds() == {ConflictKind.TEMPLATE_UNAVAILABLE}

    missing_slot = uc.execute("cal-1", date(2024, 1, 1), time(10, 0), time_slot_id="nope")
    assert missing_slot.kinds() == {ConflictKind.TEMPLATE_UNAVAILABLE}


def test_past_time_is_reported(store):
    uc = ValidateBookingUseCase(store, clock=fixed_clock)
    result = uc.execute("cal-1", date(2023, 12, 25), time(10, 0), time_slot_id="slot-mon")
    assert result.kinds() == {ConflictKind.PAST_BOOKING}
