"""
Tests for cancel, complete and restore transitions.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from booking_engine.application.exceptions import ErrorKind
from booking_engine.application.use_cases.admit_booking import AdmitBookingUseCase
from booking_engine.application.use_cases.booking_status import CHANGED_CONCURRENTLY, BookingStatusUseCase
from booking_engine.application.utils.booking_input import BookingRequest
from booking_engine.domain.entities.booking import BookingStatus
from booking_engine.infrastructure.store.memory_store import MemoryBookingStore

from conftest import fixed_clock


def _book(store, start_time="10:00", email="ann@example.com"):
    result = AdmitBookingUseCase(store, clock=fixed_clock).execute(
        BookingRequest(
            calendar_id="cal-1",
            booking_date="2024-01-01",
            start_time=start_time,
            guest_name="Ann",
            guest_email=email,
        )
    )
    assert result.ok
    return result.booking


def test_guest_cancels_with_token(store, notifier):
    booking = _book(store)
    uc = BookingStatusUseCase(store, notifier=notifier, clock=fixed_clock)

    result = uc.cancel_by_token(booking.cancellation_token)

    assert result.ok
    assert result.booking.status == BookingStatus.CANCELLED
    assert store.get_booking(booking.id).status == BookingStatus.CANCELLED
    assert [b.id for b, _ in notifier.cancelled] == [booking.id]


def test_cancelled_slot_can_be_booked_again(store):
    booking = _book(store)
    BookingStatusUseCase(store, clock=fixed_clock).cancel_by_token(booking.cancellation_token)

    again = _book(store, email="bo@example.com")
    assert again.start_time == booking.start_time


def test_cancel_by_token_errors(store):
    booking = _book(store)
    uc = BookingStatusUseCase(store, clock=fixed_clock)

    assert uc.cancel_by_token("").error.kind == ErrorKind.VALIDATION
    assert uc.cancel_by_token("unknown").error.kind == ErrorKind.NOT_FOUND

    assert uc.cancel_by_token(booking.cancellation_token).ok
    again = uc.cancel_by_token(booking.cancellation_token)
    assert again.error.kind == ErrorKind.VALIDATION
    assert again.error.messages == ("Booking is already cancelled.",)


def test_cannot_cancel_past_appointment(store):
    booking = _book(store)
    later = BookingStatusUseCase(store, clock=lambda: datetime(2024, 1, 1, 11, 0))

    result = later.cancel_by_token(booking.cancellation_token)
    assert result.error.kind == ErrorKind.PAST_OR_OUT_OF_RANGE
    assert store.get_booking(booking.id).status == BookingStatus.CONFIRMED


def test_owner_actions_require_ownership(store):
    booking = _book(store)
    uc = BookingStatusUseCase(store, clock=fixed_clock)

    assert uc.cancel_by_owner("someone-else", booking.id).error.kind == ErrorKind.NOT_FOUND
    assert uc.complete("someone-else", booking.id).error.kind == ErrorKind.NOT_FOUND
    assert uc.complete("owner-1", "missing").error.kind == ErrorKind.NOT_FOUND


def test_complete_is_terminal(store):
    booking = _book(store)
    uc = BookingStatusUseCase(store, clock=fixed_clock)

    completed = uc.complete("owner-1", booking.id)
    assert completed.booking.status == BookingStatus.COMPLETED

    assert uc.cancel_by_owner("owner-1", booking.id).error.kind == ErrorKind.VALIDATION
    assert uc.cancel_by_token(booking.cancellation_token).error.kind == ErrorKind.VALIDATION
    assert uc.restore("owner-1", booking.id).error.kind == ErrorKind.VALIDATION


def test_restore_when_time_is_still_free(store):
    booking = _book(store)
    uc = BookingStatusUseCase(store, clock=fixed_clock)
    uc.cancel_by_owner("owner-1", booking.id)

    restored = uc.restore("owner-1", booking.id)
    assert restored.ok
    assert restored.booking.status == BookingStatus.CONFIRMED


def test_restore_refuses_when_time_was_taken(store):
    booking = _book(store)
    uc = BookingStatusUseCase(store, clock=fixed_clock)
    uc.cancel_by_owner("owner-1", booking.id)
    _book(store, start_time="10:15", email="bo@example.com")

    result = uc.restore("owner-1", booking.id)
    assert result.error.kind == ErrorKind.CONFLICT
    assert store.get_booking(booking.id).status == BookingStatus.CANCELLED


def test_restore_refuses_once_the_start_has_passed(store):
    booking = _book(store)
    BookingStatusUseCase(store, clock=fixed_clock).cancel_by_owner("owner-1", booking.id)
    next_day = BookingStatusUseCase(store, clock=lambda: datetime(2024, 1, 2, 12, 0))

    result = next_day.restore("owner-1", booking.id)
    assert result.error.kind == ErrorKind.PAST_OR_OUT_OF_RANGE
    assert "Cannot book appointments in the past." in result.error.messages
    assert store.get_booking(booking.id).status == BookingStatus.CANCELLED


def test_restore_refuses_when_template_was_deactivated(store, monday_template):
    booking = _book(store)
    uc = BookingStatusUseCase(store, clock=fixed_clock)
    uc.cancel_by_owner("owner-1", booking.id)
    store.save_time_slot(replace(monday_template, is_active=False))

    result = uc.restore("owner-1", booking.id)
    assert result.error.kind == ErrorKind.PAST_OR_OUT_OF_RANGE
    assert store.get_booking(booking.id).status == BookingStatus.CANCELLED


class StaleStatusStore(MemoryBookingStore):
    """Reads report confirmed even after another request changed the row."""

    def get_booking(self, booking_id):
        booking = super().get_booking(booking_id)
        return replace(booking, status=BookingStatus.CONFIRMED) if booking else None


def test_concurrent_status_change_is_a_conflict(calendar, monday_template):
    store = StaleStatusStore()
    store.save_calendar(calendar)
    store.save_time_slot(monday_template)
    booking = _book(store)
    store.update_booking_status(booking.id, BookingStatus.CANCELLED)

    result = BookingStatusUseCase(store, clock=fixed_clock).complete("owner-1", booking.id)

    assert result.error.kind == ErrorKind.CONFLICT
    assert result.error.messages == (CHANGED_CONCURRENTLY,)
    assert super(StaleStatusStore, store).get_booking(booking.id).status == BookingStatus.CANCELLED
