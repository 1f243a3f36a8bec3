"""
Conflict Detector

Checks a candidate booking against confirmed bookings on the same calendar
and date, and optionally against the evaluation time and the calendar's
weekly templates.

Rules:
- Ranges are half-open [start, end) compared at minute granularity, so
  back-to-back bookings never overlap.
- OVERLAP when the two core ranges intersect.
- BUFFER_VIOLATION when they do not intersect but the candidate falls
  inside the other booking widened by the required buffer on both sides.
  The required buffer for a pair is the larger of the two bookings' buffers.
- Every applicable conflict is collected; nothing short-circuits.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

from booking_engine.domain.entities.booking import BookingInstance, BookingStatus
from booking_engine.domain.entities.conflict import (
    BookedRange,
    CandidateBooking,
    Conflict,
    ConflictKind,
    ConflictResult,
)
from booking_engine.domain.entities.time_slot import TimeSlotTemplate
from booking_engine.domain.time_model import TimeRange, combine, day_of_week, format_time_12h, truncate

logger = logging.getLogger(__name__)


def to_booked_ranges(
    bookings: Iterable[BookingInstance],
    templates: Iterable[TimeSlotTemplate],
) -> list[BookedRange]:
    """Attach each booking's buffer from the template it was made against (0 when unknown)."""
    buffers = {t.id: t.buffer_minutes for t in templates}
    return [
        BookedRange(
            id=b.id,
            calendar_id=b.calendar_id,
            booking_date=b.booking_date,
            start_time=b.start_time,
            end_time=b.end_time,
            buffer_minutes=buffers.get(b.time_slot_id, 0) if b.time_slot_id else 0,
            status=b.status,
            guest_name=b.guest_name,
        )
        for b in bookings
    ]


class ConflictDetector:
    def check(
        self,
        candidate: CandidateBooking,
        existing: Sequence[BookedRange],
        exclude_id: str | None = None,
        now: datetime | None = None,
        templates: Iterable[TimeSlotTemplate] | None = None,
    ) -> ConflictResult:
        """
        Full diagnostic check.

        The past check runs only when ``now`` is given and the template check
        only when ``templates`` is given, so interactive pre-validation can
        skip either.
        """
        conflicts: list[Conflict] = []
        if now is not None:
            conflicts.extend(self.check_past(candidate, now))
        if templates is not None:
            conflicts.extend(self.check_template(candidate, templates))
        conflicts.extend(self.check_bookings(candidate, existing, exclude_id))
        return ConflictResult(conflicts=tuple(conflicts))

    def check_past(self, candidate: CandidateBooking, now: datetime) -> list[Conflict]:
        starts_at = combine(candidate.booking_date, truncate(candidate.start_time))
        if starts_at <= now:
            return [Conflict(ConflictKind.PAST_BOOKING, "Cannot book appointments in the past.")]
        return []

    def check_template(
        self,
        candidate: CandidateBooking,
        templates: Iterable[TimeSlotTemplate],
    ) -> list[Conflict]:
        requested = TimeRange(candidate.start_time, candidate.end_time)
        weekday = day_of_week(candidate.booking_date)
        same_calendar = [t for t in templates if t.calendar_id == candidate.calendar_id]

        if candidate.time_slot_id is not None:
            template = next((t for t in same_calendar if t.id == candidate.time_slot_id), None)
            if template is None or not template.is_active or not template.is_well_formed:
                return [
                    Conflict(
                        ConflictKind.TEMPLATE_UNAVAILABLE,
                        "Time slot not found or is inactive.",
                        conflicting_id=candidate.time_slot_id,
                    )
                ]
            if template.day_of_week != weekday or not template.window.contains(requested):
                return [
                    Conflict(
                        ConflictKind.TEMPLATE_UNAVAILABLE,
                        "Booking time does not fall within the available time slot.",
                        conflicting_id=template.id,
                    )
                ]
            return []

        for template in same_calendar:
            if (
                template.is_active
                and template.is_well_formed
                and template.day_of_week == weekday
                and template.window.contains(requested)
            ):
                return []
        return [
            Conflict(
                ConflictKind.TEMPLATE_UNAVAILABLE,
                "No available time slot covers the requested time.",
            )
        ]

    def check_bookings(
        self,
        candidate: CandidateBooking,
        existing: Sequence[BookedRange],
        exclude_id: str | None = None,
    ) -> list[Conflict]:
        requested = TimeRange(candidate.start_time, candidate.end_time)
        relevant = sorted(
            (
                other
                for other in existing
                if other.calendar_id == candidate.calendar_id
                and other.booking_date == candidate.booking_date
                and other.status == BookingStatus.CONFIRMED
                and other.id != exclude_id
            ),
            key=lambda other: (other.start_time, other.id),
        )

        conflicts: list[Conflict] = []
        for other in relevant:
            try:
                other_range = TimeRange(other.start_time, other.end_time)
            except ValueError:
                logger.warning("Ignoring booking with an empty time range", extra={"booking_id": other.id})
                continue

            if requested.overlaps(other_range):
                conflicts.append(
                    Conflict(ConflictKind.OVERLAP, _overlap_message(other), conflicting_id=other.id)
                )
                continue

            buffer = max(candidate.buffer_minutes, other.buffer_minutes)
            if buffer > 0 and requested.intersects_bounds(other_range.expanded_bounds(buffer)):
                conflicts.append(
                    Conflict(
                        ConflictKind.BUFFER_VIOLATION,
                        _buffer_message(other, buffer, requested.gap_to(other_range)),
                        conflicting_id=other.id,
                    )
                )
        return conflicts


def _describe(other: BookedRange) -> str:
    who = f" for {other.guest_name}" if other.guest_name else ""
    return f"an existing booking{who} from {format_time_12h(other.start_time)} to {format_time_12h(other.end_time)}"


def _overlap_message(other: BookedRange) -> str:
    return f"This time slot conflicts with {_describe(other)}."


def _buffer_message(other: BookedRange, buffer: int, gap: int) -> str:
    return (
        f"This time slot leaves {gap} minutes next to {_describe(other)}; "
        f"{buffer} minutes of buffer time are required."
    )
