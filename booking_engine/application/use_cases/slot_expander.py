from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import date, datetime, timedelta

from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.application.use_cases.conflict_detector import to_booked_ranges
from booking_engine.domain.entities.bookable_instance import BookableInstance
from booking_engine.domain.entities.conflict import BookedRange
from booking_engine.domain.entities.time_slot import TimeSlotTemplate
from booking_engine.domain.time_model import (
    add_months,
    combine,
    day_of_week,
    from_minutes,
    iter_dates,
    minutes_of,
)

logger = logging.getLogger(__name__)


class ExpandedSlots:
    """
    Bookable instances for a date window, generated on demand.

    Iterating twice re-runs the generation from the same inputs, so the
    sequence is restartable and always yields the same instances in the
    same order: by date, then start time, then template id.
    """

    def __init__(
        self,
        templates: Iterable[TimeSlotTemplate],
        window_start: date,
        window_end: date,
        booked: Iterable[BookedRange] = (),
        now: datetime | None = None,
        min_lead_minutes: int = 0,
    ) -> None:
        self._templates = tuple(templates)
        self._window_start = window_start
        self._window_end = window_end
        self._booked: dict[date, list[tuple[int, int, int]]] = {}
        for b in booked:
            start, end = minutes_of(b.start_time), minutes_of(b.end_time)
            if end > start:
                self._booked.setdefault(b.booking_date, []).append((start, end, b.buffer_minutes))
        self._cutoff = (now + timedelta(minutes=min_lead_minutes)) if now is not None else None

    def __iter__(self) -> Iterator[BookableInstance]:
        for day in iter_dates(self._window_start, self._window_end):
            weekday = day_of_week(day)
            instances: list[BookableInstance] = []
            for template in self._templates:
                if template.is_active and template.day_of_week == weekday:
                    instances.extend(self._instances_for_day(template, day))
            instances.sort(key=lambda i: (minutes_of(i.start_time), i.time_slot_id))
            yield from instances

    def _instances_for_day(self, template: TimeSlotTemplate, day: date) -> Iterator[BookableInstance]:
        if not template.is_well_formed:
            logger.warning(
                "Skipping malformed time slot template",
                extra={"time_slot_id": template.id, "calendar_id": template.calendar_id},
            )
            return

        window_end = minutes_of(template.end_time)
        current = minutes_of(template.start_time)
        while current + template.duration_minutes <= window_end:
            start = from_minutes(current)
            is_past = self._cutoff is not None and combine(day, start) <= self._cutoff
            end = current + template.duration_minutes
            if not is_past and not self._is_taken(day, current, end, template.buffer_minutes):
                yield BookableInstance(
                    date=day,
                    start_time=start,
                    end_time=from_minutes(end),
                    time_slot_id=template.id,
                    duration_minutes=template.duration_minutes,
                    buffer_minutes=template.buffer_minutes,
                )
            current += template.step_minutes

    def _is_taken(self, day: date, start: int, end: int, buffer: int) -> bool:
        # Taken when it overlaps a booking or sits closer than the larger of the two buffers.
        for booked_start, booked_end, booked_buffer in self._booked.get(day, ()):
            gap = max(buffer, booked_buffer)
            if start < booked_end + gap and booked_start < end + gap:
                return True
        return False


def expand_template(
    template: TimeSlotTemplate,
    window_start: date,
    window_end: date,
    booked: Iterable[BookedRange] = (),
    now: datetime | None = None,
    min_lead_minutes: int = 0,
) -> ExpandedSlots:
    return ExpandedSlots([template], window_start, window_end, booked, now, min_lead_minutes)


class ListBookableSlotsUseCase:
    def __init__(
        self,
        store: BookingStorePort,
        clock: Callable[[], datetime] = datetime.now,
        min_lead_minutes: int = 0,
        max_advance_months: int = 6,
    ) -> None:
        self._store = store
        self._clock = clock
        self._min_lead_minutes = min_lead_minutes
        self._max_advance_months = max_advance_months
        self._logger = logging.getLogger(__name__)

    def execute(self, calendar_id: str, window_start: date, window_end: date) -> ExpandedSlots:
        """
        Load templates and confirmed bookings for the window and return the lazy
        instance sequence. Storage errors propagate to the caller.
        """
        now = self._clock()
        start = max(window_start, now.date())
        end = min(window_end, add_months(now, self._max_advance_months).date())

        calendar = self._store.get_active_calendar(calendar_id)
        if calendar is None or end < start:
            return ExpandedSlots((), start, start - timedelta(days=1))

        all_templates = self._store.list_time_slots(calendar_id)
        templates = [t for t in all_templates if t.is_active]
        if not templates:
            return ExpandedSlots((), start, start - timedelta(days=1))

        bookings = self._store.list_confirmed_bookings(calendar_id, start, end)
        self._logger.debug(
            "Expanding time slots",
            extra={"calendar_id": calendar_id, "templates": len(templates), "bookings": len(bookings)},
        )
        return ExpandedSlots(
            templates,
            start,
            end,
            booked=to_booked_ranges(bookings, all_templates),
            now=now,
            min_lead_minutes=self._min_lead_minutes,
        )
