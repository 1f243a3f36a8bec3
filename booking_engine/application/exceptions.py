from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from booking_engine.domain.entities.booking import BookingInstance
    from booking_engine.domain.entities.conflict import Conflict


class StorageError(RuntimeError):
    """Raised when the booking store fails (connection loss, timeouts). Safe to retry."""
    pass


class UniquenessViolation(StorageError):
    """Raised when storage rejects a second confirmed booking for the same calendar, date and start."""
    pass


class NotificationError(RuntimeError):
    """Raised by notifier adapters when a message could not be delivered."""
    pass


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    PAST_OR_OUT_OF_RANGE = "PAST_OR_OUT_OF_RANGE"
    STORAGE_ERROR = "STORAGE_ERROR"
    NOTIFICATION_FAILURE = "NOTIFICATION_FAILURE"


@dataclass(frozen=True)
class AdmissionError:
    kind: ErrorKind
    messages: tuple[str, ...] = ()
    conflicts: tuple["Conflict", ...] = ()

    @property
    def retryable(self) -> bool:
        return self.kind == ErrorKind.STORAGE_ERROR

    @property
    def message(self) -> str:
        return " ".join(self.messages)

    @staticmethod
    def of(kind: ErrorKind, *messages: str) -> "AdmissionError":
        return AdmissionError(kind=kind, messages=tuple(messages))


@dataclass(frozen=True)
class AdmissionResult:
    booking: "BookingInstance | None" = None
    error: AdmissionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.booking is not None

    @staticmethod
    def success(booking: "BookingInstance") -> "AdmissionResult":
        return AdmissionResult(booking=booking)

    @staticmethod
    def failure(kind: ErrorKind, *messages: str) -> "AdmissionResult":
        return AdmissionResult(error=AdmissionError.of(kind, *messages))
