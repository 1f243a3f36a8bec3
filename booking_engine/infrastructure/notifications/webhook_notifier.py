from __future__ import annotations

import logging
from typing import Any

import httpx

from booking_engine.application.exceptions import NotificationError
from booking_engine.application.ports.notifications import NotificationPort
from booking_engine.application.utils.notification_content import cancellation_url
from booking_engine.domain.entities.booking import BookingInstance
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate
from booking_engine.domain.time_model import format_time


class WebhookNotifier(NotificationPort):
    def __init__(self, url: str, site_url: str, client: httpx.Client | None = None) -> None:
        self._url = url
        self._site_url = site_url
        self._client = client or httpx.Client(timeout=10.0)
        self._logger = logging.getLogger(__name__)

    def notify_booking_confirmed(
        self,
        booking: BookingInstance,
        calendar: Calendar,
        template: TimeSlotTemplate | None = None,
    ) -> None:
        payload = _booking_payload("booking.confirmed", booking, calendar)
        payload["booking"]["cancel_url"] = cancellation_url(self._site_url, booking.cancellation_token)
        if template is not None:
            payload["booking"]["duration_minutes"] = template.duration_minutes
        self._post(payload, booking)

    def notify_booking_cancelled(self, booking: BookingInstance, calendar: Calendar) -> None:
        self._post(_booking_payload("booking.cancelled", booking, calendar), booking)

    def _post(self, payload: dict[str, Any], booking: BookingInstance) -> None:
        try:
            resp = self._client.post(self._url, json=payload)
        except httpx.HTTPError as e:
            self._logger.error("Webhook request failed", extra={"booking_id": booking.id, "error": str(e)})
            raise NotificationError(f"Webhook request failed: {e}") from e

        if resp.status_code >= 400:
            self._logger.error(
                "Webhook rejected notification",
                extra={"booking_id": booking.id, "reason": f"status={resp.status_code}", "error": resp.text[:200]},
            )
            raise NotificationError(f"Webhook returned {resp.status_code}")


def _booking_payload(event: str, booking: BookingInstance, calendar: Calendar) -> dict[str, Any]:
    return {
        "event": event,
        "calendar": {"id": calendar.id, "title": calendar.title},
        "booking": {
            "id": booking.id,
            "date": booking.booking_date.isoformat(),
            "start_time": format_time(booking.start_time),
            "end_time": format_time(booking.end_time),
            "guest_name": booking.guest_name,
            "guest_email": booking.guest_email,
            "status": booking.status.value,
        },
    }
