from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum

from booking_engine.domain.time_model import TimeRange, combine


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass(frozen=True)
class BookingInstance:
    id: str
    calendar_id: str
    time_slot_id: str | None
    booking_date: date
    start_time: time
    end_time: time
    guest_name: str
    guest_email: str
    cancellation_token: str
    status: BookingStatus = BookingStatus.CONFIRMED
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    @property
    def starts_at(self) -> datetime:
        return combine(self.booking_date, self.start_time)


@dataclass(frozen=True)
class NewBooking:
    """Fields handed to storage for insertion; storage assigns id and timestamps."""

    calendar_id: str
    time_slot_id: str | None
    booking_date: date
    start_time: time
    end_time: time
    guest_name: str
    guest_email: str
    cancellation_token: str
    notes: str | None = None
    status: BookingStatus = BookingStatus.CONFIRMED
