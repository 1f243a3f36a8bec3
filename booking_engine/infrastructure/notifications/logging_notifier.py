from __future__ import annotations

import logging

from booking_engine.application.ports.notifications import NotificationPort
from booking_engine.application.utils.notification_content import (
    render_booking_cancellation,
    render_booking_confirmation,
)
from booking_engine.domain.entities.booking import BookingInstance
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate


class LoggingNotifier(NotificationPort):
    def __init__(self, site_url: str = "http://localhost:3000") -> None:
        self._site_url = site_url
        self._logger = logging.getLogger(__name__)

    def notify_booking_confirmed(
        self,
        booking: BookingInstance,
        calendar: Calendar,
        template: TimeSlotTemplate | None = None,
    ) -> None:
        message = render_booking_confirmation(booking, calendar, self._site_url, template)
        self._logger.info(
            "Mock send booking confirmation to %s: %s",
            message.to,
            message.subject,
            extra={"booking_id": booking.id, "calendar_id": calendar.id},
        )

    def notify_booking_cancelled(self, booking: BookingInstance, calendar: Calendar) -> None:
        message = render_booking_cancellation(booking, calendar)
        self._logger.info(
            "Mock send booking cancellation to %s: %s",
            message.to,
            message.subject,
            extra={"booking_id": booking.id, "calendar_id": calendar.id},
        )
