from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from booking_engine.application.exceptions import ErrorKind
from booking_engine.application.ports.notifications import NotificationPort
from booking_engine.domain.entities.booking import BookingInstance
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate

Defer = Callable[..., Any]


class NotifyBookingUseCase:
    """
    Best-effort booking notifications.

    Failures are logged and swallowed here so an admitted or cancelled
    booking is never reported as failed because a message could not be sent.
    With ``defer`` (e.g. BackgroundTasks.add_task) the send runs after the
    response; without it, inline.
    """

    def __init__(self, notifier: NotificationPort | None) -> None:
        self._notifier = notifier
        self._logger = logging.getLogger(__name__)

    def confirmed(
        self,
        booking: BookingInstance,
        calendar: Calendar,
        template: TimeSlotTemplate | None = None,
        defer: Defer | None = None,
    ) -> None:
        self._dispatch(defer, self._send_confirmed, booking, calendar, template)

    def cancelled(
        self,
        booking: BookingInstance,
        calendar: Calendar,
        defer: Defer | None = None,
    ) -> None:
        self._dispatch(defer, self._send_cancelled, booking, calendar)

    def _dispatch(self, defer: Defer | None, fn: Callable[..., None], *args: Any) -> None:
        if self._notifier is None:
            return
        if defer is not None:
            defer(fn, *args)
        else:
            fn(*args)

    def _send_confirmed(
        self,
        booking: BookingInstance,
        calendar: Calendar,
        template: TimeSlotTemplate | None,
    ) -> None:
        try:
            self._notifier.notify_booking_confirmed(booking, calendar, template)
        except Exception as e:
            self._log_failure(booking, "confirmation", e)

    def _send_cancelled(self, booking: BookingInstance, calendar: Calendar) -> None:
        try:
            self._notifier.notify_booking_cancelled(booking, calendar)
        except Exception as e:
            self._log_failure(booking, "cancellation", e)

    def _log_failure(self, booking: BookingInstance, what: str, error: Exception) -> None:
        self._logger.warning(
            "Failed to send booking %s (non-blocking)",
            what,
            extra={
                "booking_id": booking.id,
                "calendar_id": booking.calendar_id,
                "kind": ErrorKind.NOTIFICATION_FAILURE.value,
                "error": str(error),
            },
        )
