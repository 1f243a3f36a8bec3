from __future__ import annotations

from abc import ABC, abstractmethod

from booking_engine.domain.entities.booking import BookingInstance
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate


class NotificationPort(ABC):
    @abstractmethod
    def notify_booking_confirmed(
        self,
        booking: BookingInstance,
        calendar: Calendar,
        template: TimeSlotTemplate | None = None,
    ) -> None:
        """Tell the guest (and host) a booking was admitted. Raises NotificationError on failure."""
        raise NotImplementedError

    @abstractmethod
    def notify_booking_cancelled(self, booking: BookingInstance, calendar: Calendar) -> None:
        """Tell the guest a booking was cancelled. Raises NotificationError on failure."""
        raise NotImplementedError
