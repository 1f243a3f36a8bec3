"""
Tests for expanding weekly templates into bookable instances.
"""

from __future__ import annotations

from datetime import date, datetime, time

from booking_engine.application.use_cases.slot_expander import (
    ExpandedSlots,
    ListBookableSlotsUseCase,
    expand_template,
)
from booking_engine.domain.entities.booking import NewBooking
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.conflict import BookedRange
from booking_engine.domain.entities.time_slot import TimeSlotTemplate
from booking_engine.infrastructure.store.memory_store import MemoryBookingStore

from conftest import NOW, fixed_clock


def _template(**overrides) -> TimeSlotTemplate:
    fields = dict(
        id="slot-mon",
        calendar_id="cal-1",
        day_of_week=1,
        start_time=time(9, 0),
        end_time=time(10, 0),
        duration_minutes=30,
    )
    fields.update(overrides)
    return TimeSlotTemplate(**fields)


def test_month_of_mondays_yields_two_per_monday():
    """09:00-10:00 with 30 minute duration gives 09:00 and 09:30 on every Monday."""
    slots = list(expand_template(_template(), date(2024, 1, 1), date(2024, 1, 31)))

    mondays = [date(2024, 1, d) for d in (1, 8, 15, 22, 29)]
    assert len(slots) == 10
    assert [s.date for s in slots] == [d for d in mondays for _ in range(2)]
    assert {s.start_time for s in slots} == {time(9, 0), time(9, 30)}
    assert all(s.time_slot_id == "slot-mon" for s in slots)
    assert slots[0].end_time == time(9, 30)


def _booked(day, start, end, buffer_minutes=0) -> BookedRange:
    return BookedRange(
        id=f"b-{day}-{start}",
        calendar_id="cal-1",
        booking_date=day,
        start_time=start,
        end_time=end,
        buffer_minutes=buffer_minutes,
    )


def test_booked_instances_are_removed():
    booked = [_booked(date(2024, 1, 8), time(9, 30), time(10, 0))]
    slots = list(expand_template(_template(), date(2024, 1, 1), date(2024, 1, 14), booked=booked))

    keys = [(s.date, s.start_time) for s in slots]
    assert (date(2024, 1, 8), time(9, 30)) not in keys
    assert len(keys) == 3


def test_off_grid_booking_removes_every_instance_it_overlaps():
    """A 09:15-09:45 booking leaves neither 09:00 nor 09:30 open."""
    booked = [_booked(date(2024, 1, 1), time(9, 15), time(9, 45))]
    slots = list(expand_template(_template(), date(2024, 1, 1), date(2024, 1, 8), booked=booked))

    assert [(s.date, s.start_time) for s in slots] == [
        (date(2024, 1, 8), time(9, 0)),
        (date(2024, 1, 8), time(9, 30)),
    ]


def test_instances_inside_a_booking_buffer_are_removed():
    """The larger of the two buffers applies, so a 20 minute booking buffer hides a neighbour 15 minutes away."""
    template = _template(end_time=time(11, 0), buffer_minutes=15)
    booked = [_booked(date(2024, 1, 1), time(10, 0), time(10, 15), buffer_minutes=20)]
    slots = list(expand_template(template, date(2024, 1, 1), date(2024, 1, 1), booked=booked))

    assert [s.start_time for s in slots] == [time(9, 0)]


def test_sequence_is_restartable():
    """Iterating twice yields the same instances in the same order."""
    slots = expand_template(_template(), date(2024, 1, 1), date(2024, 1, 31))
    assert list(slots) == list(slots)


def test_partial_trailing_slot_is_dropped():
    """A 50 minute window with a 30 minute duration only fits one instance."""
    template = _template(end_time=time(9, 50))
    slots = list(expand_template(template, date(2024, 1, 1), date(2024, 1, 1)))
    assert [s.start_time for s in slots] == [time(9, 0)]


def test_buffer_extends_the_step():
    template = _template(end_time=time(11, 0), buffer_minutes=15)
    slots = list(expand_template(template, date(2024, 1, 1), date(2024, 1, 1)))
    assert [s.start_time for s in slots] == [time(9, 0), time(9, 45), time(10, 30)]
    assert all(s.buffer_minutes == 15 for s in slots)


def test_past_and_lead_time_instances_are_dropped():
    now = datetime(2024, 1, 1, 9, 0)
    slots = list(expand_template(_template(), date(2024, 1, 1), date(2024, 1, 1), now=now))
    assert [s.start_time for s in slots] == [time(9, 30)]

    early = datetime(2024, 1, 1, 8, 45)
    slots = list(
        expand_template(_template(), date(2024, 1, 1), date(2024, 1, 1), now=early, min_lead_minutes=30)
    )
    assert [s.start_time for s in slots] == [time(9, 30)]


def test_same_day_templates_are_merged_in_start_order():
    afternoon = _template(id="slot-b", start_time=time(14, 0), end_time=time(14, 30))
    morning = _template(id="slot-a", start_time=time(9, 0), end_time=time(9, 30))
    slots = list(ExpandedSlots([afternoon, morning], date(2024, 1, 1), date(2024, 1, 1)))
    assert [(s.time_slot_id, s.start_time) for s in slots] == [
        ("slot-a", time(9, 0)),
        ("slot-b", time(14, 0)),
    ]


def test_inactive_and_malformed_templates_yield_nothing():
    inactive = _template(is_active=False)
    too_long = _template(id="slot-x", duration_minutes=90)
    slots = list(ExpandedSlots([inactive, too_long], date(2024, 1, 1), date(2024, 1, 31)))
    assert slots == []


def test_list_slots_use_case_reads_store(store, monday_template):
    """Confirmed bookings are excluded, and the window is clamped to today."""
    store.insert_booking(
        NewBooking(
            calendar_id="cal-1",
            time_slot_id=monday_template.id,
            booking_date=date(2024, 1, 1),
            start_time=time(9, 0),
            end_time=time(9, 30),
            guest_name="Ann",
            guest_email="ann@example.com",
            cancellation_token="tok-1",
        )
    )
    uc = ListBookableSlotsUseCase(store, clock=fixed_clock)
    slots = list(uc.execute("cal-1", date(2023, 12, 1), date(2024, 1, 1)))

    assert slots[0].date == NOW.date()
    assert (date(2024, 1, 1), time(9, 0)) not in [(s.date, s.start_time) for s in slots]
    assert len(slots) == 5  # 09:30 .. 11:30


def test_list_slots_respects_booking_horizon(store):
    uc = ListBookableSlotsUseCase(store, clock=fixed_clock, max_advance_months=1)
    slots = list(uc.execute("cal-1", date(2024, 1, 1), date(2024, 12, 31)))
    assert max(s.date for s in slots) == date(2024, 1, 29)


def test_list_slots_empty_without_templates_or_calendar():
    store = MemoryBookingStore()
    store.save_calendar(Calendar(id="cal-empty", owner_id="o"))
    uc = ListBookableSlotsUseCase(store, clock=fixed_clock)

    assert list(uc.execute("cal-empty", date(2024, 1, 1), date(2024, 1, 31))) == []
    assert list(uc.execute("missing", date(2024, 1, 1), date(2024, 1, 31))) == []


def test_inactive_calendar_lists_nothing(store, calendar):
    from dataclasses import replace

    store.save_calendar(replace(calendar, is_active=False))
    uc = ListBookableSlotsUseCase(store, clock=fixed_clock)
    assert list(uc.execute("cal-1", date(2024, 1, 1), date(2024, 1, 31))) == []
