from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from booking_engine.application.exceptions import (
    AdmissionResult,
    ErrorKind,
    StorageError,
    UniquenessViolation,
)
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.application.ports.notifications import NotificationPort
from booking_engine.application.use_cases.conflict_detector import ConflictDetector, to_booked_ranges
from booking_engine.application.use_cases.notify_booking import Defer, NotifyBookingUseCase
from booking_engine.domain.entities.booking import BookingInstance, BookingStatus
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.conflict import CandidateBooking, ConflictKind

CHANGED_CONCURRENTLY = "Booking was changed by another request. Please reload and try again."
_OUT_OF_RANGE = (ConflictKind.PAST_BOOKING, ConflictKind.TEMPLATE_UNAVAILABLE)


class BookingStatusUseCase:
    """
    Status transitions of an existing booking.

        confirmed -> cancelled   guest (token) or owner
        confirmed -> completed   owner
        cancelled -> confirmed   owner-only restore, re-checked like an admission

    Every transition is a single conditional update on one booking row.
    """

    def __init__(
        self,
        store: BookingStorePort,
        notifier: NotificationPort | None = None,
        clock: Callable[[], datetime] = datetime.now,
        detector: ConflictDetector | None = None,
    ) -> None:
        self._store = store
        self._notify = NotifyBookingUseCase(notifier)
        self._clock = clock
        self._detector = detector or ConflictDetector()
        self._logger = logging.getLogger(__name__)

    def cancel_by_token(self, token: str, defer: Defer | None = None) -> AdmissionResult:
        if not (token or "").strip():
            return AdmissionResult.failure(ErrorKind.VALIDATION, "Cancellation token is required.")
        try:
            booking = self._store.get_booking_by_token(token.strip())
            if booking is None:
                return AdmissionResult.failure(ErrorKind.NOT_FOUND, "Booking not found or invalid token.")
            if booking.status == BookingStatus.CANCELLED:
                return AdmissionResult.failure(ErrorKind.VALIDATION, "Booking is already cancelled.")
            if booking.status == BookingStatus.COMPLETED:
                return AdmissionResult.failure(ErrorKind.VALIDATION, "Completed bookings cannot be cancelled.")
            if booking.starts_at < self._clock():
                return AdmissionResult.failure(ErrorKind.PAST_OR_OUT_OF_RANGE, "Cannot cancel past appointments.")

            result = self._transition(booking, BookingStatus.CANCELLED, BookingStatus.CONFIRMED)
            calendar = self._store.get_calendar(booking.calendar_id) if result.ok else None
        except StorageError as e:
            return self._storage_failure("cancel", e)

        if result.ok and calendar is not None:
            self._notify.cancelled(result.booking, calendar, defer=defer)
        return result

    def cancel_by_owner(self, owner_id: str, booking_id: str, defer: Defer | None = None) -> AdmissionResult:
        try:
            booking, calendar = self._owned_booking(owner_id, booking_id)
            if booking is None:
                return AdmissionResult.failure(ErrorKind.NOT_FOUND, "Booking not found.")
            if booking.status != BookingStatus.CONFIRMED:
                return AdmissionResult.failure(ErrorKind.VALIDATION, "Booking not cancellable.")
            result = self._transition(booking, BookingStatus.CANCELLED, BookingStatus.CONFIRMED)
        except StorageError as e:
            return self._storage_failure("cancel", e)

        if result.ok:
            self._notify.cancelled(result.booking, calendar, defer=defer)
        return result

    def complete(self, owner_id: str, booking_id: str) -> AdmissionResult:
        try:
            booking, _ = self._owned_booking(owner_id, booking_id)
            if booking is None:
                return AdmissionResult.failure(ErrorKind.NOT_FOUND, "Booking not found.")
            if booking.status != BookingStatus.CONFIRMED:
                return AdmissionResult.failure(ErrorKind.VALIDATION, "Only confirmed bookings can be completed.")
            return self._transition(booking, BookingStatus.COMPLETED, BookingStatus.CONFIRMED)
        except StorageError as e:
            return self._storage_failure("complete", e)

    def restore(self, owner_id: str, booking_id: str) -> AdmissionResult:
        """Owner override: cancelled -> confirmed, re-checked like a new admission."""
        try:
            booking, _ = self._owned_booking(owner_id, booking_id)
            if booking is None:
                return AdmissionResult.failure(ErrorKind.NOT_FOUND, "Booking not found.")
            if booking.status != BookingStatus.CANCELLED:
                return AdmissionResult.failure(ErrorKind.VALIDATION, "Only cancelled bookings can be restored.")

            templates = self._store.list_time_slots(booking.calendar_id)
            template = next((t for t in templates if t.id == booking.time_slot_id), None)
            candidate = CandidateBooking(
                calendar_id=booking.calendar_id,
                booking_date=booking.booking_date,
                start_time=booking.start_time,
                end_time=booking.end_time,
                buffer_minutes=template.buffer_minutes if template is not None else 0,
                time_slot_id=booking.time_slot_id,
            )
            existing = to_booked_ranges(
                self._store.list_confirmed_bookings(booking.calendar_id, booking.booking_date),
                templates,
            )
            result = self._detector.check(
                candidate,
                existing,
                exclude_id=booking.id,
                now=self._clock(),
                templates=templates,
            )
            out_of_range = [c for c in result.conflicts if c.kind in _OUT_OF_RANGE]
            if out_of_range:
                return AdmissionResult.failure(ErrorKind.PAST_OR_OUT_OF_RANGE, *(c.message for c in out_of_range))
            if not result.is_valid:
                return AdmissionResult.failure(ErrorKind.CONFLICT, *result.messages)

            try:
                return self._transition(booking, BookingStatus.CONFIRMED, BookingStatus.CANCELLED)
            except UniquenessViolation:
                self._logger.warning("Restore lost race on uniqueness constraint", extra={"booking_id": booking.id})
                return AdmissionResult.failure(
                    ErrorKind.CONFLICT, "This time slot was booked by someone else in the meantime."
                )
        except StorageError as e:
            return self._storage_failure("restore", e)

    def _owned_booking(
        self, owner_id: str, booking_id: str
    ) -> tuple[BookingInstance | None, Calendar | None]:
        booking = self._store.get_booking(booking_id)
        if booking is None:
            return None, None
        calendar = self._store.get_calendar(booking.calendar_id)
        if calendar is None or calendar.owner_id != owner_id:
            return None, None
        return booking, calendar

    def _transition(
        self,
        booking: BookingInstance,
        new_status: BookingStatus,
        expected_status: BookingStatus,
    ) -> AdmissionResult:
        updated = self._store.update_booking_status(booking.id, new_status, expected_status=expected_status)
        if updated is None:
            return AdmissionResult.failure(ErrorKind.CONFLICT, CHANGED_CONCURRENTLY)
        self._logger.info(
            "Booking status changed",
            extra={"booking_id": booking.id, "calendar_id": booking.calendar_id, "reason": new_status.value},
        )
        return AdmissionResult.success(updated)

    def _storage_failure(self, action: str, error: StorageError) -> AdmissionResult:
        self._logger.exception("Storage failure during %s", action, extra={"error": str(error)})
        return AdmissionResult.failure(ErrorKind.STORAGE_ERROR, "Unable to update booking. Please try again.")
