from __future__ import annotations

from dataclasses import dataclass
from datetime import time

from booking_engine.domain.time_model import TimeRange, minutes_of


@dataclass(frozen=True)
class TimeSlotTemplate:
    """Recurring weekly availability window of a calendar."""

    id: str
    calendar_id: str
    day_of_week: int  # 0 = Sunday ... 6 = Saturday
    start_time: time
    end_time: time
    duration_minutes: int
    buffer_minutes: int = 0
    is_active: bool = True

    @property
    def window(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    @property
    def window_minutes(self) -> int:
        return minutes_of(self.end_time) - minutes_of(self.start_time)

    @property
    def step_minutes(self) -> int:
        return self.duration_minutes + self.buffer_minutes

    @property
    def is_well_formed(self) -> bool:
        return (
            0 <= self.day_of_week <= 6
            and self.duration_minutes > 0
            and self.buffer_minutes >= 0
            and minutes_of(self.start_time) < minutes_of(self.end_time)
            and self.duration_minutes <= self.window_minutes
        )
