from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from datetime import date, datetime

from booking_engine.application.exceptions import UniquenessViolation
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.domain.entities.booking import BookingInstance, BookingStatus, NewBooking
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate


class MemoryBookingStore(BookingStorePort):
    """
    In-process store for dev and tests.

    A single lock serialises writes and snapshot reads. The confirmed-start uniqueness rule
    is enforced inside it the same way a partial unique index would be.
    """

    def __init__(self) -> None:
        self._calendars: dict[str, Calendar] = {}
        self._time_slots: dict[str, TimeSlotTemplate] = {}
        self._bookings: dict[str, BookingInstance] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def get_calendar(self, calendar_id: str) -> Calendar | None:
        return self._calendars.get(calendar_id)

    def get_active_calendar(self, calendar_id: str) -> Calendar | None:
        calendar = self._calendars.get(calendar_id)
        return calendar if calendar is not None and calendar.is_active else None

    def get_time_slot(self, time_slot_id: str) -> TimeSlotTemplate | None:
        return self._time_slots.get(time_slot_id)

    def get_active_time_slot(self, time_slot_id: str) -> TimeSlotTemplate | None:
        template = self._time_slots.get(time_slot_id)
        return template if template is not None and template.is_active else None

    def list_time_slots(self, calendar_id: str) -> list[TimeSlotTemplate]:
        return sorted(
            (t for t in self._snapshot(self._time_slots) if t.calendar_id == calendar_id),
            key=lambda t: (t.day_of_week, t.start_time, t.id),
        )

    def list_confirmed_bookings(
        self,
        calendar_id: str,
        start_date: date,
        end_date: date | None = None,
    ) -> list[BookingInstance]:
        end_date = end_date or start_date
        return sorted(
            (
                b
                for b in self._snapshot(self._bookings)
                if b.calendar_id == calendar_id
                and b.status == BookingStatus.CONFIRMED
                and start_date <= b.booking_date <= end_date
            ),
            key=lambda b: (b.booking_date, b.start_time, b.id),
        )

    def get_booking(self, booking_id: str) -> BookingInstance | None:
        return self._bookings.get(booking_id)

    def get_booking_by_token(self, token: str) -> BookingInstance | None:
        return next((b for b in self._snapshot(self._bookings) if b.cancellation_token == token), None)

    def insert_booking(self, booking: NewBooking) -> BookingInstance:
        with self._lock:
            if booking.status == BookingStatus.CONFIRMED:
                self._ensure_start_free(booking.calendar_id, booking.booking_date, booking.start_time)
            if any(b.cancellation_token == booking.cancellation_token for b in self._bookings.values()):
                raise UniquenessViolation("cancellation_token already exists")
            now = datetime.now()
            created = BookingInstance(
                id=str(next(self._ids)),
                calendar_id=booking.calendar_id,
                time_slot_id=booking.time_slot_id,
                booking_date=booking.booking_date,
                start_time=booking.start_time,
                end_time=booking.end_time,
                guest_name=booking.guest_name,
                guest_email=booking.guest_email,
                cancellation_token=booking.cancellation_token,
                status=booking.status,
                notes=booking.notes,
                created_at=now,
                updated_at=now,
            )
            self._bookings[created.id] = created
            return created

    def update_booking_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        expected_status: BookingStatus | None = None,
    ) -> BookingInstance | None:
        with self._lock:
            current = self._bookings.get(booking_id)
            if current is None:
                return None
            if expected_status is not None and current.status != expected_status:
                return None
            if new_status == BookingStatus.CONFIRMED and current.status != BookingStatus.CONFIRMED:
                self._ensure_start_free(current.calendar_id, current.booking_date, current.start_time)
            updated = replace(current, status=new_status, updated_at=datetime.now())
            self._bookings[booking_id] = updated
            return updated

    def save_calendar(self, calendar: Calendar) -> Calendar:
        with self._lock:
            self._calendars[calendar.id] = calendar
        return calendar

    def delete_calendar(self, calendar_id: str) -> bool:
        with self._lock:
            if self._calendars.pop(calendar_id, None) is None:
                return False
            # Cascades to the calendar's templates and bookings.
            for slot_id in [t.id for t in self._time_slots.values() if t.calendar_id == calendar_id]:
                del self._time_slots[slot_id]
            for booking_id in [b.id for b in self._bookings.values() if b.calendar_id == calendar_id]:
                del self._bookings[booking_id]
            return True

    def save_time_slot(self, template: TimeSlotTemplate) -> TimeSlotTemplate:
        with self._lock:
            self._time_slots[template.id] = template
        return template

    def delete_time_slot(self, time_slot_id: str) -> bool:
        with self._lock:
            if time_slot_id not in self._time_slots:
                return False
            self._detach_time_slot(time_slot_id)
            return True

    def count_future_bookings(
        self,
        from_date: date,
        calendar_id: str | None = None,
        time_slot_id: str | None = None,
    ) -> int:
        return sum(
            1
            for b in self._snapshot(self._bookings)
            if b.status == BookingStatus.CONFIRMED
            and b.booking_date >= from_date
            and (calendar_id is None or b.calendar_id == calendar_id)
            and (time_slot_id is None or b.time_slot_id == time_slot_id)
        )

    def _snapshot(self, items: dict) -> list:
        with self._lock:
            return list(items.values())

    def _ensure_start_free(self, calendar_id: str, booking_date: date, start_time) -> None:
        for b in self._bookings.values():
            if (
                b.status == BookingStatus.CONFIRMED
                and b.calendar_id == calendar_id
                and b.booking_date == booking_date
                and b.start_time == start_time
            ):
                raise UniquenessViolation(
                    f"confirmed booking already exists for {calendar_id} {booking_date} {start_time}"
                )

    def _detach_time_slot(self, time_slot_id: str) -> None:
        # Bookings outlive their template; only the reference is dropped.
        del self._time_slots[time_slot_id]
        for b in list(self._bookings.values()):
            if b.time_slot_id == time_slot_id:
                self._bookings[b.id] = replace(b, time_slot_id=None)
