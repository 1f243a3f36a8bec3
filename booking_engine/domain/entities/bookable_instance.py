from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time


@dataclass(frozen=True)
class BookableInstance:
    date: date
    start_time: time
    end_time: time
    time_slot_id: str
    duration_minutes: int
    buffer_minutes: int = 0
