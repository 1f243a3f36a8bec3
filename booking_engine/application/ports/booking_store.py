from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from booking_engine.domain.entities.booking import BookingInstance, BookingStatus, NewBooking
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate


class BookingStorePort(ABC):
    """
    Storage the engine reads templates and bookings from.

    Implementations raise StorageError for transient failures and
    UniquenessViolation when a confirmed booking already holds the same
    (calendar, date, start). They never retry on their own.
    """

    @abstractmethod
    def get_calendar(self, calendar_id: str) -> Calendar | None:
        raise NotImplementedError

    @abstractmethod
    def get_active_calendar(self, calendar_id: str) -> Calendar | None:
        raise NotImplementedError

    @abstractmethod
    def get_time_slot(self, time_slot_id: str) -> TimeSlotTemplate | None:
        raise NotImplementedError

    @abstractmethod
    def get_active_time_slot(self, time_slot_id: str) -> TimeSlotTemplate | None:
        raise NotImplementedError

    @abstractmethod
    def list_time_slots(self, calendar_id: str) -> list[TimeSlotTemplate]:
        """All templates of a calendar, active or not."""
        raise NotImplementedError

    @abstractmethod
    def list_confirmed_bookings(
        self,
        calendar_id: str,
        start_date: date,
        end_date: date | None = None,
    ) -> list[BookingInstance]:
        """Confirmed bookings with start_date <= booking_date <= end_date (single day when end_date is None)."""
        raise NotImplementedError

    @abstractmethod
    def get_booking(self, booking_id: str) -> BookingInstance | None:
        raise NotImplementedError

    @abstractmethod
    def get_booking_by_token(self, token: str) -> BookingInstance | None:
        raise NotImplementedError

    @abstractmethod
    def insert_booking(self, booking: NewBooking) -> BookingInstance:
        raise NotImplementedError

    @abstractmethod
    def update_booking_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        expected_status: BookingStatus | None = None,
    ) -> BookingInstance | None:
        """
        Conditional single-row update.
        Returns the updated booking, or None when the id is unknown or the
        current status differs from expected_status.
        """
        raise NotImplementedError

    @abstractmethod
    def save_calendar(self, calendar: Calendar) -> Calendar:
        raise NotImplementedError

    @abstractmethod
    def delete_calendar(self, calendar_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def save_time_slot(self, template: TimeSlotTemplate) -> TimeSlotTemplate:
        raise NotImplementedError

    @abstractmethod
    def delete_time_slot(self, time_slot_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def count_future_bookings(
        self,
        from_date: date,
        calendar_id: str | None = None,
        time_slot_id: str | None = None,
    ) -> int:
        """Confirmed bookings on or after from_date, scoped by calendar and/or template."""
        raise NotImplementedError
