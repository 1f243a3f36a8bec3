from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum

from booking_engine.domain.entities.booking import BookingStatus


class ConflictKind(str, Enum):
    OVERLAP = "OVERLAP"
    BUFFER_VIOLATION = "BUFFER_VIOLATION"
    PAST_BOOKING = "PAST_BOOKING"
    TEMPLATE_UNAVAILABLE = "TEMPLATE_UNAVAILABLE"


@dataclass(frozen=True)
class Conflict:
    kind: ConflictKind
    message: str
    conflicting_id: str | None = None


@dataclass(frozen=True)
class ConflictResult:
    conflicts: tuple[Conflict, ...] = ()

    @property
    def is_valid(self) -> bool:
        return len(self.conflicts) == 0

    @property
    def messages(self) -> list[str]:
        return [c.message for c in self.conflicts]

    def kinds(self) -> set[ConflictKind]:
        return {c.kind for c in self.conflicts}


@dataclass(frozen=True)
class CandidateBooking:
    calendar_id: str
    booking_date: date
    start_time: time
    end_time: time
    buffer_minutes: int = 0
    time_slot_id: str | None = None


@dataclass(frozen=True)
class BookedRange:
    """An existing booking as seen by the conflict detector, buffer resolved from its template."""

    id: str
    calendar_id: str
    booking_date: date
    start_time: time
    end_time: time
    buffer_minutes: int = 0
    status: BookingStatus = BookingStatus.CONFIRMED
    guest_name: str | None = field(default=None, compare=False)
