#!/usr/bin/env python3
"""Smoke test against a running server (uvicorn booking_engine.main:app --port 8001)."""

import sys
from datetime import date, timedelta

import httpx


BASE_URL = "http://127.0.0.1:8001"
OWNER = "smoke-owner"
CALENDAR = "smoke-calendar"


def _check(resp: httpx.Response, expected: int, label: str) -> dict:
    if resp.status_code != expected:
        print(f"❌ {label}: HTTP {resp.status_code} (expected {expected})")
        print(f"Response: {resp.text}")
        sys.exit(1)
    print(f"✅ {label}")
    return resp.json() if resp.content else {}


def main():
    try:
        httpx.get(f"{BASE_URL}/health", timeout=5.0)
    except httpx.HTTPError:
        print("❌ Server is not running!")
        print("   Please start it with: uvicorn booking_engine.main:app --reload --port 8001")
        sys.exit(1)

    client = httpx.Client(base_url=f"{BASE_URL}/api/v1", timeout=10.0)
    target = date.today() + timedelta(days=7)
    weekday = (target.weekday() + 1) % 7

    _check(
        client.put(f"/calendars/{CALENDAR}", json={"owner_id": OWNER, "title": "Smoke test"}),
        200,
        "Create calendar",
    )
    _check(
        client.put(
            f"/calendars/{CALENDAR}/time-slots/smoke-slot",
            json={
                "owner_id": OWNER,
                "day_of_week": weekday,
                "start_time": "09:00",
                "end_time": "12:00",
                "duration_minutes": 30,
                "buffer_minutes": 0,
            },
        ),
        200,
        "Create time slot",
    )

    slots = _check(
        client.get(f"/calendars/{CALENDAR}/slots", params={"start": target.isoformat(), "end": target.isoformat()}),
        200,
        "List slots",
    )["slots"]
    print(f"   {len(slots)} instances on {target}")
    first = slots[0]

    payload = {
        "calendar_id": CALENDAR,
        "booking_date": target.isoformat(),
        "start_time": first["start_time"],
        "guest_name": "Smoke Guest",
        "guest_email": "smoke@example.com",
        "time_slot_id": first["time_slot_id"],
    }
    created = _check(client.post("/bookings", json=payload), 201, "Admit booking")
    _check(client.post("/bookings", json=payload), 409, "Reject double booking")
    _check(client.post(f"/bookings/cancel/{created['cancellation_token']}"), 200, "Cancel by token")
    _check(client.post("/bookings", json=payload), 201, "Re-book cancelled instance")

    print("\n" + "=" * 60)
    print("✅ Smoke test complete!")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    main()
