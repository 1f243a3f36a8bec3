from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, time

from booking_engine.domain.time_model import parse_date, parse_time, truncate

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_NAME_LENGTH = 200
MAX_NOTES_LENGTH = 2000


@dataclass(frozen=True)
class BookingRequest:
    """Raw admission input as it arrives from a form or API call."""

    calendar_id: str
    booking_date: str | date
    start_time: str | time
    guest_name: str
    guest_email: str
    time_slot_id: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class ParsedBookingRequest:
    calendar_id: str
    booking_date: date
    start_time: time
    guest_name: str
    guest_email: str
    time_slot_id: str | None = None
    notes: str | None = None


def parse_booking_request(request: BookingRequest) -> tuple[ParsedBookingRequest | None, list[str]]:
    """Validate field presence and shape. Returns (parsed, []) or (None, errors)."""
    errors: list[str] = []

    calendar_id = (request.calendar_id or "").strip()
    if not calendar_id:
        errors.append("Calendar is required.")

    name = (request.guest_name or "").strip()
    if not name:
        errors.append("Please enter your full name.")
    elif len(name) > MAX_NAME_LENGTH:
        errors.append(f"Name must be at most {MAX_NAME_LENGTH} characters.")

    email = (request.guest_email or "").strip().lower()
    if not email:
        errors.append("Please enter your email address.")
    elif not EMAIL_PATTERN.match(email):
        errors.append("Please enter a valid email address.")

    notes = (request.notes or "").strip() or None
    if notes and len(notes) > MAX_NOTES_LENGTH:
        errors.append(f"Notes must be at most {MAX_NOTES_LENGTH} characters.")

    booking_date = _coerce(request.booking_date, date, parse_date, errors)
    start_time = _coerce(request.start_time, time, parse_time, errors)

    time_slot_id = (request.time_slot_id or "").strip() or None

    if errors:
        return None, errors
    # Bookings are minute-granular; stray seconds would defeat the uniqueness key.
    start_time = truncate(start_time)
    return (
        ParsedBookingRequest(
            calendar_id=calendar_id,
            booking_date=booking_date,
            start_time=start_time,
            guest_name=name,
            guest_email=email,
            time_slot_id=time_slot_id,
            notes=notes,
        ),
        [],
    )


def _coerce(value, expected_type, parser, errors: list[str]):
    if isinstance(value, expected_type):
        return value
    if not value:
        errors.append(f"Booking {'date' if expected_type is date else 'time'} is required.")
        return None
    try:
        return parser(str(value))
    except ValueError as e:
        errors.append(str(e))
        return None
