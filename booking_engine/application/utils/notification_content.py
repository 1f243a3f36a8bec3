from __future__ import annotations

from dataclasses import dataclass

from booking_engine.domain.entities.booking import BookingInstance
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate
from booking_engine.domain.time_model import format_date_long, format_time_12h, minutes_of


@dataclass(frozen=True)
class RenderedMessage:
    to: str
    subject: str
    body: str


def cancellation_url(site_url: str, token: str) -> str:
    return f"{site_url.rstrip('/')}/cancel/{token}"


def _host_name(calendar: Calendar) -> str:
    return calendar.owner_name or "your host"


def render_booking_confirmation(
    booking: BookingInstance,
    calendar: Calendar,
    site_url: str,
    template: TimeSlotTemplate | None = None,
) -> RenderedMessage:
    duration = (
        template.duration_minutes
        if template is not None
        else minutes_of(booking.end_time) - minutes_of(booking.start_time)
    )
    title = calendar.title or "Booking"
    lines = [
        f"Hi {booking.guest_name},",
        "",
        f"Your booking with {_host_name(calendar)} is confirmed.",
        "",
        f"What: {title}",
        f"When: {format_date_long(booking.booking_date)}",
        f"Time: {format_time_12h(booking.start_time)} - {format_time_12h(booking.end_time)} ({duration} minutes)",
    ]
    if booking.notes:
        lines.append(f"Notes: {booking.notes}")
    lines += [
        "",
        "Need to cancel? Use this link:",
        cancellation_url(site_url, booking.cancellation_token),
    ]
    return RenderedMessage(
        to=booking.guest_email,
        subject=f"Booking Confirmation - {title}",
        body="\n".join(lines),
    )


def render_booking_cancellation(booking: BookingInstance, calendar: Calendar) -> RenderedMessage:
    title = calendar.title or "Booking"
    lines = [
        f"Hi {booking.guest_name},",
        "",
        f"Your booking with {_host_name(calendar)} has been cancelled.",
        "",
        f"What: {title}",
        f"When: {format_date_long(booking.booking_date)}",
        f"Time: {format_time_12h(booking.start_time)} - {format_time_12h(booking.end_time)}",
    ]
    return RenderedMessage(
        to=booking.guest_email,
        subject=f"Booking Cancelled - {title}",
        body="\n".join(lines),
    )
