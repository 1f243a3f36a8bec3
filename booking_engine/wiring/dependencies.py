from functools import lru_cache
import logging

from booking_engine.core.config import settings
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.application.ports.notifications import NotificationPort
from booking_engine.application.use_cases.admit_booking import AdmitBookingUseCase
from booking_engine.application.use_cases.booking_status import BookingStatusUseCase
from booking_engine.application.use_cases.manage_time_slots import ManageTimeSlotsUseCase
from booking_engine.application.use_cases.slot_expander import ListBookableSlotsUseCase
from booking_engine.application.use_cases.validate_booking import ValidateBookingUseCase
from booking_engine.infrastructure.notifications.composite_notifier import CompositeNotifier
from booking_engine.infrastructure.notifications.logging_notifier import LoggingNotifier
from booking_engine.infrastructure.notifications.smtp_notifier import SmtpNotifier
from booking_engine.infrastructure.notifications.webhook_notifier import WebhookNotifier
from booking_engine.infrastructure.store.memory_store import MemoryBookingStore
from booking_engine.infrastructure.store.sql_store import SqlBookingStore


@lru_cache
def get_booking_store() -> BookingStorePort:
    logger = logging.getLogger(__name__)
    if settings.DATABASE_URL:
        logger.info("Using SqlBookingStore")
        return SqlBookingStore(settings.DATABASE_URL)
    if settings.ENV.lower() not in {"dev", "local"}:
        raise ValueError("DATABASE_URL is required outside dev/local.")
    logger.info("Using MemoryBookingStore (DATABASE_URL missing, ENV=dev/local)")
    return MemoryBookingStore()


@lru_cache
def get_notifier() -> NotificationPort:
    logger = logging.getLogger(__name__)
    notifiers: list[NotificationPort] = []
    if settings.SMTP_HOST and (settings.SMTP_FROM_EMAIL or settings.SMTP_USERNAME):
        notifiers.append(
            SmtpNotifier(
                host=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USERNAME,
                password=settings.SMTP_PASSWORD,
                from_email=settings.SMTP_FROM_EMAIL or settings.SMTP_USERNAME,
                use_tls=settings.SMTP_USE_TLS,
                site_url=settings.SITE_URL,
            )
        )
    if settings.NOTIFY_WEBHOOK_URL:
        notifiers.append(WebhookNotifier(url=settings.NOTIFY_WEBHOOK_URL, site_url=settings.SITE_URL))

    if not notifiers:
        logger.info("Using LoggingNotifier (no SMTP or webhook configured)")
        return LoggingNotifier(site_url=settings.SITE_URL)
    if len(notifiers) == 1:
        return notifiers[0]
    return CompositeNotifier(notifiers)


def get_list_slots_use_case() -> ListBookableSlotsUseCase:
    return ListBookableSlotsUseCase(
        store=get_booking_store(),
        min_lead_minutes=settings.BOOKING_MIN_LEAD_MINUTES,
        max_advance_months=settings.BOOKING_MAX_ADVANCE_MONTHS,
    )


def get_validate_booking_use_case() -> ValidateBookingUseCase:
    return ValidateBookingUseCase(store=get_booking_store())


def get_admit_booking_use_case() -> AdmitBookingUseCase:
    return AdmitBookingUseCase(
        store=get_booking_store(),
        notifier=get_notifier(),
        min_lead_minutes=settings.BOOKING_MIN_LEAD_MINUTES,
        max_advance_months=settings.BOOKING_MAX_ADVANCE_MONTHS,
        require_grid_alignment=settings.BOOKING_REQUIRE_GRID_ALIGNMENT,
    )


def get_booking_status_use_case() -> BookingStatusUseCase:
    return BookingStatusUseCase(store=get_booking_store(), notifier=get_notifier())


def get_manage_time_slots_use_case() -> ManageTimeSlotsUseCase:
    return ManageTimeSlotsUseCase(store=get_booking_store())
