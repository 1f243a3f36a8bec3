from __future__ import annotations

import logging
from collections.abc import Sequence

from booking_engine.application.exceptions import NotificationError
from booking_engine.application.ports.notifications import NotificationPort
from booking_engine.domain.entities.booking import BookingInstance
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate


class CompositeNotifier(NotificationPort):
    """Fans out to every notifier; one failing channel does not stop the others."""

    def __init__(self, notifiers: Sequence[NotificationPort]) -> None:
        self._notifiers = list(notifiers)
        self._logger = logging.getLogger(__name__)

    def notify_booking_confirmed(
        self,
        booking: BookingInstance,
        calendar: Calendar,
        template: TimeSlotTemplate | None = None,
    ) -> None:
        self._fan_out("notify_booking_confirmed", booking, calendar, template)

    def notify_booking_cancelled(self, booking: BookingInstance, calendar: Calendar) -> None:
        self._fan_out("notify_booking_cancelled", booking, calendar)

    def _fan_out(self, method: str, booking: BookingInstance, *args) -> None:
        failures: list[str] = []
        for notifier in self._notifiers:
            try:
                getattr(notifier, method)(booking, *args)
            except NotificationError as e:
                self._logger.warning(
                    "Notification channel failed",
                    extra={"booking_id": booking.id, "reason": type(notifier).__name__, "error": str(e)},
                )
                failures.append(f"{type(notifier).__name__}: {e}")
        if failures:
            raise NotificationError("; ".join(failures))
