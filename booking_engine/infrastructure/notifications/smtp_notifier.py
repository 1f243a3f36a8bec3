from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from booking_engine.application.exceptions import NotificationError
from booking_engine.application.ports.notifications import NotificationPort
from booking_engine.application.utils.notification_content import (
    RenderedMessage,
    render_booking_cancellation,
    render_booking_confirmation,
)
from booking_engine.domain.entities.booking import BookingInstance
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate


class SmtpNotifier(NotificationPort):
    """Plain-text booking emails over SMTP (STARTTLS on by default)."""

    def __init__(
        self,
        host: str,
        from_email: str,
        site_url: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        if not host or not from_email:
            raise ValueError("SMTP host and sender address are required.")
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._from_email = from_email
        self._use_tls = use_tls
        self._timeout = timeout
        self._site_url = site_url
        self._logger = logging.getLogger(__name__)

    def notify_booking_confirmed(
        self,
        booking: BookingInstance,
        calendar: Calendar,
        template: TimeSlotTemplate | None = None,
    ) -> None:
        self._send(render_booking_confirmation(booking, calendar, self._site_url, template), booking)

    def notify_booking_cancelled(self, booking: BookingInstance, calendar: Calendar) -> None:
        self._send(render_booking_cancellation(booking, calendar), booking)

    def _send(self, message: RenderedMessage, booking: BookingInstance) -> None:
        msg = EmailMessage()
        msg["From"] = self._from_email
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg.set_content(message.body)

        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                if self._use_tls:
                    server.starttls()
                if self._username and self._password:
                    server.login(self._username, self._password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            self._logger.error(
                "SMTP send failed",
                extra={"booking_id": booking.id, "error": str(e)},
            )
            raise NotificationError(f"Failed to send email to {message.to}: {e}") from e

        self._logger.info("Email sent", extra={"booking_id": booking.id, "reason": message.subject})
