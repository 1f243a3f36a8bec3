#!/usr/bin/env python3
"""
Local booking harness (no HTTP, no database).

Usage:
  python3 scripts/booking_local.py
  python3 scripts/booking_local.py --days 14 --duration 45 --buffer 15 --racers 10

What it does:
- Seeds an in-memory store with one calendar and weekday templates
- Prints the first bookable instances from today
- Admits one booking, then races several guests for the same instance
"""

from __future__ import annotations

import argparse
import sys
import threading
from datetime import date, time, timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from booking_engine.application.use_cases.admit_booking import AdmitBookingUseCase
from booking_engine.application.use_cases.slot_expander import ListBookableSlotsUseCase
from booking_engine.application.utils.booking_input import BookingRequest
from booking_engine.core.log_format import configure_logging
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate
from booking_engine.domain.time_model import format_date_long, format_time
from booking_engine.infrastructure.notifications.logging_notifier import LoggingNotifier
from booking_engine.infrastructure.store.memory_store import MemoryBookingStore


def _seed(store: MemoryBookingStore, duration: int, buffer: int) -> None:
    store.save_calendar(Calendar(id="demo", owner_id="owner", title="Demo calendar", owner_name="Demo Host"))
    for weekday in range(1, 6):
        store.save_time_slot(
            TimeSlotTemplate(
                id=f"demo-{weekday}",
                calendar_id="demo",
                day_of_week=weekday,
                start_time=time(9, 0),
                end_time=time(17, 0),
                duration_minutes=duration,
                buffer_minutes=buffer,
            )
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Expand availability and admit bookings locally.")
    parser.add_argument("--days", type=int, default=7)
    parser.add_argument("--duration", type=int, default=30)
    parser.add_argument("--buffer", type=int, default=0)
    parser.add_argument("--racers", type=int, default=5)
    parser.add_argument("--show", type=int, default=10, help="instances to print")
    args = parser.parse_args()

    configure_logging("INFO")

    store = MemoryBookingStore()
    _seed(store, args.duration, args.buffer)

    today = date.today()
    slots = list(ListBookableSlotsUseCase(store).execute("demo", today, today + timedelta(days=args.days)))
    print(f"\n{len(slots)} bookable instances in the next {args.days} days")
    print("-" * 60)
    for s in slots[: args.show]:
        print(f"{format_date_long(s.date):32} {format_time(s.start_time)}-{format_time(s.end_time)}  [{s.time_slot_id}]")
    if not slots:
        return

    admit = AdmitBookingUseCase(store, notifier=LoggingNotifier())
    target = slots[0]

    def request(n: int) -> BookingRequest:
        return BookingRequest(
            calendar_id="demo",
            booking_date=target.date,
            start_time=target.start_time,
            guest_name=f"Guest {n}",
            guest_email=f"guest{n}@example.com",
            time_slot_id=target.time_slot_id,
        )

    print("\nRacing", args.racers, "guests for", format_date_long(target.date), format_time(target.start_time))
    barrier = threading.Barrier(args.racers)
    results = [None] * args.racers

    def attempt(n: int) -> None:
        barrier.wait()
        results[n] = admit.execute(request(n))

    threads = [threading.Thread(target=attempt, args=(n,)) for n in range(args.racers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for n, result in enumerate(results):
        if result.ok:
            print(f"  Guest {n}: admitted (booking {result.booking.id})")
        else:
            print(f"  Guest {n}: {result.error.kind.value} - {result.error.message}")

    remaining = list(ListBookableSlotsUseCase(store).execute("demo", target.date, target.date))
    print(f"\n{len(remaining)} instances left on {format_date_long(target.date)}\n")


if __name__ == "__main__":
    main()
