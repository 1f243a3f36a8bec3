from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, time

from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.application.use_cases.conflict_detector import ConflictDetector, to_booked_ranges
from booking_engine.domain.entities.conflict import (
    CandidateBooking,
    Conflict,
    ConflictKind,
    ConflictResult,
)
from booking_engine.domain.time_model import add_minutes, minutes_of


class ValidateBookingUseCase:
    """Interactive pre-validation: returns every conflict instead of stopping at the first."""

    def __init__(
        self,
        store: BookingStorePort,
        clock: Callable[[], datetime] = datetime.now,
        detector: ConflictDetector | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._detector = detector or ConflictDetector()
        self._logger = logging.getLogger(__name__)

    def execute(
        self,
        calendar_id: str,
        booking_date: date,
        start_time: time,
        time_slot_id: str | None = None,
        end_time: time | None = None,
        exclude_booking_id: str | None = None,
    ) -> ConflictResult:
        calendar = self._store.get_active_calendar(calendar_id)
        if calendar is None:
            return _unavailable("Calendar not found or inactive.")

        templates = self._store.list_time_slots(calendar_id)
        template = next((t for t in templates if t.id == time_slot_id), None) if time_slot_id else None

        if end_time is None:
            if template is None or not template.is_well_formed:
                return _unavailable("Time slot not found or is inactive.", time_slot_id)
            try:
                end_time = add_minutes(start_time, template.duration_minutes)
            except ValueError:
                return _unavailable("Booking time does not fall within the available time slot.", time_slot_id)
        elif minutes_of(end_time) <= minutes_of(start_time):
            return _unavailable("Booking end time must be after its start time.", time_slot_id)

        candidate = CandidateBooking(
            calendar_id=calendar_id,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            buffer_minutes=template.buffer_minutes if template is not None else 0,
            time_slot_id=time_slot_id,
        )
        existing = to_booked_ranges(
            self._store.list_confirmed_bookings(calendar_id, booking_date),
            templates,
        )
        return self._detector.check(
            candidate,
            existing,
            exclude_id=exclude_booking_id,
            now=self._clock(),
            templates=templates,
        )


def _unavailable(message: str, time_slot_id: str | None = None) -> ConflictResult:
    return ConflictResult(
        conflicts=(Conflict(ConflictKind.TEMPLATE_UNAVAILABLE, message, conflicting_id=time_slot_id),)
    )
