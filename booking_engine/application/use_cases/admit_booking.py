from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from booking_engine.application.exceptions import (
    AdmissionError,
    AdmissionResult,
    ErrorKind,
    StorageError,
    UniquenessViolation,
)
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.application.ports.notifications import NotificationPort
from booking_engine.application.use_cases.conflict_detector import ConflictDetector, to_booked_ranges
from booking_engine.application.use_cases.notify_booking import Defer, NotifyBookingUseCase
from booking_engine.application.utils.booking_input import (
    BookingRequest,
    ParsedBookingRequest,
    parse_booking_request,
)
from booking_engine.domain.entities.booking import NewBooking
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.conflict import CandidateBooking
from booking_engine.domain.entities.time_slot import TimeSlotTemplate
from booking_engine.domain.time_model import (
    add_minutes,
    add_months,
    combine,
    day_of_week,
    minutes_of,
    truncate,
)

RACE_LOST_MESSAGE = "This time slot was just booked by someone else. Please select another time."
STORAGE_FAILED_MESSAGE = "Unable to check availability. Please try again."


class _Rejected(Exception):
    """Internal short-circuit carrying the first failed gate."""

    def __init__(self, error: AdmissionError) -> None:
        super().__init__(error.message)
        self.error = error


def _reject(kind: ErrorKind, *messages: str) -> _Rejected:
    return _Rejected(AdmissionError.of(kind, *messages))


@dataclass(frozen=True)
class _Context:
    calendar: Calendar
    template: TimeSlotTemplate
    candidate: CandidateBooking


class AdmitBookingUseCase:
    """
    Final admission of a booking.

    Each gate fails fast with its own error kind. The conflict check here is
    optimistic; the store's uniqueness constraint on confirmed
    (calendar, date, start) is the authoritative guard, and losing that race
    is reported as CONFLICT rather than a storage failure.
    """

    def __init__(
        self,
        store: BookingStorePort,
        notifier: NotificationPort | None = None,
        clock: Callable[[], datetime] = datetime.now,
        detector: ConflictDetector | None = None,
        min_lead_minutes: int = 0,
        max_advance_months: int = 6,
        require_grid_alignment: bool = False,
        token_factory: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._notify = NotifyBookingUseCase(notifier)
        self._clock = clock
        self._detector = detector or ConflictDetector()
        self._min_lead_minutes = min_lead_minutes
        self._max_advance_months = max_advance_months
        self._require_grid_alignment = require_grid_alignment
        self._token_factory = token_factory or (lambda: secrets.token_urlsafe(32))
        self._logger = logging.getLogger(__name__)

    def execute(self, request: BookingRequest, defer: Defer | None = None) -> AdmissionResult:
        parsed, errors = parse_booking_request(request)
        if parsed is None:
            return AdmissionResult.failure(ErrorKind.VALIDATION, *errors)

        try:
            ctx = self._prepare(parsed)
            booking = self._insert(parsed, ctx)
        except _Rejected as rejected:
            self._logger.info(
                "Booking rejected",
                extra={
                    "calendar_id": parsed.calendar_id,
                    "kind": rejected.error.kind.value,
                    "reason": rejected.error.message,
                },
            )
            return AdmissionResult(error=rejected.error)
        except StorageError as e:
            self._logger.exception(
                "Storage failure during admission",
                extra={"calendar_id": parsed.calendar_id, "error": str(e)},
            )
            return AdmissionResult.failure(ErrorKind.STORAGE_ERROR, STORAGE_FAILED_MESSAGE)

        self._logger.info(
            "Booking admitted",
            extra={"booking_id": booking.id, "calendar_id": booking.calendar_id, "time_slot_id": booking.time_slot_id},
        )
        self._notify.confirmed(booking, ctx.calendar, ctx.template, defer=defer)
        return AdmissionResult.success(booking)

    def _prepare(self, parsed: ParsedBookingRequest) -> _Context:
        calendar = self._store.get_active_calendar(parsed.calendar_id)
        if calendar is None:
            raise _reject(ErrorKind.NOT_FOUND, "Calendar not found or inactive.")

        templates = {t.id: t for t in self._store.list_time_slots(calendar.id)}
        template = self._resolve_template(parsed, calendar, templates)
        templates[template.id] = template

        try:
            end_time = add_minutes(parsed.start_time, template.duration_minutes)
        except ValueError:
            raise _reject(
                ErrorKind.PAST_OR_OUT_OF_RANGE,
                "Booking time does not fall within the available time slot.",
            ) from None

        candidate = CandidateBooking(
            calendar_id=calendar.id,
            booking_date=parsed.booking_date,
            start_time=parsed.start_time,
            end_time=end_time,
            buffer_minutes=template.buffer_minutes,
            time_slot_id=template.id,
        )

        unavailable = self._detector.check_template(candidate, templates.values())
        if unavailable:
            raise _reject(ErrorKind.PAST_OR_OUT_OF_RANGE, *(c.message for c in unavailable))
        if self._require_grid_alignment and not _on_grid(template, parsed):
            raise _reject(ErrorKind.PAST_OR_OUT_OF_RANGE, "Booking time does not match an available time slot.")

        self._check_time_policy(candidate)

        existing = to_booked_ranges(
            self._store.list_confirmed_bookings(calendar.id, parsed.booking_date),
            templates.values(),
        )
        conflicts = self._detector.check_bookings(candidate, existing)
        if conflicts:
            raise _Rejected(
                AdmissionError(
                    kind=ErrorKind.CONFLICT,
                    messages=tuple(c.message for c in conflicts),
                    conflicts=tuple(conflicts),
                )
            )

        return _Context(calendar=calendar, template=template, candidate=candidate)

    def _resolve_template(
        self,
        parsed: ParsedBookingRequest,
        calendar: Calendar,
        templates: dict[str, TimeSlotTemplate],
    ) -> TimeSlotTemplate:
        if parsed.time_slot_id is not None:
            template = self._store.get_active_time_slot(parsed.time_slot_id)
            if template is None or template.calendar_id != calendar.id or not template.is_well_formed:
                raise _reject(ErrorKind.NOT_FOUND, "Time slot not found or inactive.")
            return template

        weekday = day_of_week(parsed.booking_date)
        start = minutes_of(parsed.start_time)
        matching = sorted(
            (
                t
                for t in templates.values()
                if t.is_active
                and t.is_well_formed
                and t.day_of_week == weekday
                and minutes_of(t.start_time) <= start < minutes_of(t.end_time)
            ),
            key=lambda t: (t.start_time, t.id),
        )
        if not matching:
            raise _reject(ErrorKind.PAST_OR_OUT_OF_RANGE, "No available time slot covers the requested time.")
        return matching[0]

    def _check_time_policy(self, candidate: CandidateBooking) -> None:
        now = self._clock()
        past = self._detector.check_past(candidate, now)
        if past:
            raise _reject(ErrorKind.PAST_OR_OUT_OF_RANGE, *(c.message for c in past))

        starts_at = combine(candidate.booking_date, truncate(candidate.start_time))
        if self._min_lead_minutes and starts_at <= now + timedelta(minutes=self._min_lead_minutes):
            raise _reject(
                ErrorKind.PAST_OR_OUT_OF_RANGE,
                f"Bookings must be made at least {self._min_lead_minutes} minutes in advance.",
            )
        if starts_at > add_months(now, self._max_advance_months):
            raise _reject(
                ErrorKind.PAST_OR_OUT_OF_RANGE,
                f"Cannot book appointments more than {self._max_advance_months} months in advance.",
            )

    def _insert(self, parsed: ParsedBookingRequest, ctx: _Context):
        new_booking = NewBooking(
            calendar_id=ctx.calendar.id,
            time_slot_id=ctx.template.id,
            booking_date=parsed.booking_date,
            start_time=parsed.start_time,
            end_time=ctx.candidate.end_time,
            guest_name=parsed.guest_name,
            guest_email=parsed.guest_email,
            notes=parsed.notes,
            cancellation_token=self._token_factory(),
        )
        try:
            return self._store.insert_booking(new_booking)
        except UniquenessViolation:
            self._logger.warning(
                "Booking race lost on uniqueness constraint",
                extra={"calendar_id": ctx.calendar.id, "time_slot_id": ctx.template.id},
            )
            raise _reject(ErrorKind.CONFLICT, RACE_LOST_MESSAGE) from None


def _on_grid(template: TimeSlotTemplate, parsed: ParsedBookingRequest) -> bool:
    offset = minutes_of(parsed.start_time) - minutes_of(template.start_time)
    return offset >= 0 and offset % template.step_minutes == 0
