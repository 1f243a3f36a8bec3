from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from booking_engine.application.exceptions import AdmissionError, ErrorKind, StorageError
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate
from booking_engine.domain.time_model import TimeRange, format_time_12h, minutes_of

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


@dataclass(frozen=True)
class TimeSlotResult:
    template: TimeSlotTemplate | None = None
    calendar: Calendar | None = None
    deleted: bool = False
    error: AdmissionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _failure(kind: ErrorKind, *messages: str) -> TimeSlotResult:
    return TimeSlotResult(error=AdmissionError.of(kind, *messages))


class ManageTimeSlotsUseCase:
    """
    Owner-side template and calendar maintenance.

    Deleting a template or calendar is refused while confirmed bookings from
    today onwards still reference it; deactivating is the way out.
    """

    def __init__(self, store: BookingStorePort, clock: Callable[[], datetime] = datetime.now) -> None:
        self._store = store
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def validate(self, template: TimeSlotTemplate, exclude_slot_id: str | None = None) -> list[str]:
        errors = _shape_errors(template)
        if errors or not template.is_active:
            return errors

        window = template.window
        for other in self._store.list_time_slots(template.calendar_id):
            if other.id in (template.id, exclude_slot_id) or not other.is_active:
                continue
            if other.day_of_week != template.day_of_week or not other.is_well_formed:
                continue
            if window.overlaps(other.window):
                errors.append(
                    f"This time slot overlaps with an existing {DAY_NAMES[other.day_of_week]} time slot "
                    f"from {format_time_12h(other.start_time)} to {format_time_12h(other.end_time)}."
                )
        return errors

    def save_calendar(self, owner_id: str, calendar: Calendar) -> TimeSlotResult:
        if calendar.owner_id != owner_id:
            return _failure(ErrorKind.NOT_FOUND, "Calendar not found.")
        try:
            existing = self._store.get_calendar(calendar.id)
            if existing is not None and existing.owner_id != owner_id:
                return _failure(ErrorKind.NOT_FOUND, "Calendar not found.")
            saved = self._store.save_calendar(calendar)
        except StorageError as e:
            return self._storage_failure(e)

        self._logger.info("Calendar saved", extra={"calendar_id": saved.id})
        return TimeSlotResult(calendar=saved)

    def save(self, owner_id: str, template: TimeSlotTemplate) -> TimeSlotResult:
        try:
            calendar = self._store.get_calendar(template.calendar_id)
            if calendar is None or calendar.owner_id != owner_id:
                return _failure(ErrorKind.NOT_FOUND, "Calendar not found.")
            existing = self._store.get_time_slot(template.id)
            if existing is not None and existing.calendar_id != template.calendar_id:
                return _failure(ErrorKind.NOT_FOUND, "Time slot not found.")

            errors = self.validate(template)
            if errors:
                return _failure(ErrorKind.VALIDATION, *errors)

            saved = self._store.save_time_slot(template)
        except StorageError as e:
            return self._storage_failure(e)

        self._logger.info(
            "Time slot saved",
            extra={"time_slot_id": saved.id, "calendar_id": saved.calendar_id},
        )
        return TimeSlotResult(template=saved)

    def delete(self, owner_id: str, time_slot_id: str) -> TimeSlotResult:
        try:
            template = self._store.get_time_slot(time_slot_id)
            if template is None:
                return _failure(ErrorKind.NOT_FOUND, "Time slot not found.")
            calendar = self._store.get_calendar(template.calendar_id)
            if calendar is None or calendar.owner_id != owner_id:
                return _failure(ErrorKind.NOT_FOUND, "Time slot not found.")

            upcoming = self._store.count_future_bookings(self._clock().date(), time_slot_id=time_slot_id)
            if upcoming:
                return _failure(
                    ErrorKind.CONFLICT,
                    f"Cannot delete a time slot with {upcoming} upcoming booking(s). "
                    "Cancel them first or deactivate the time slot.",
                )
            deleted = self._store.delete_time_slot(time_slot_id)
        except StorageError as e:
            return self._storage_failure(e)

        self._logger.info("Time slot deleted", extra={"time_slot_id": time_slot_id})
        return TimeSlotResult(template=template, deleted=deleted)

    def delete_calendar(self, owner_id: str, calendar_id: str) -> TimeSlotResult:
        try:
            calendar = self._store.get_calendar(calendar_id)
            if calendar is None or calendar.owner_id != owner_id:
                return _failure(ErrorKind.NOT_FOUND, "Calendar not found.")

            upcoming = self._store.count_future_bookings(self._clock().date(), calendar_id=calendar_id)
            if upcoming:
                return _failure(
                    ErrorKind.CONFLICT,
                    f"Cannot delete a calendar with {upcoming} upcoming booking(s). "
                    "Cancel them first or deactivate the calendar.",
                )
            deleted = self._store.delete_calendar(calendar_id)
        except StorageError as e:
            return self._storage_failure(e)

        self._logger.info("Calendar deleted", extra={"calendar_id": calendar_id})
        return TimeSlotResult(deleted=deleted)

    def _storage_failure(self, error: StorageError) -> TimeSlotResult:
        self._logger.exception("Storage failure while managing time slots", extra={"error": str(error)})
        return _failure(ErrorKind.STORAGE_ERROR, "Unable to save changes. Please try again.")


def _shape_errors(template: TimeSlotTemplate) -> list[str]:
    errors: list[str] = []
    if not 0 <= template.day_of_week <= 6:
        errors.append("Day of week must be between 0 (Sunday) and 6 (Saturday).")
    if template.duration_minutes <= 0:
        errors.append("Duration must be greater than 0 minutes.")
    if template.buffer_minutes < 0:
        errors.append("Buffer time cannot be negative.")
    if minutes_of(template.start_time) >= minutes_of(template.end_time):
        errors.append("Start time must be before end time.")
    elif template.duration_minutes > TimeRange(template.start_time, template.end_time).duration_minutes:
        errors.append("Duration cannot be longer than the time slot window.")
    return errors
