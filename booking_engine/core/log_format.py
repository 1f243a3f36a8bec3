import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Fields passed through ``extra=`` that are worth seeing on every line.
CONTEXT_FIELDS = (
    "booking_id",
    "calendar_id",
    "time_slot_id",
    "kind",
    "reason",
    "error",
    "templates",
    "bookings",
)


class ContextFormatter(logging.Formatter):
    """Renders the message, then any context fields present on the record as ``key=value``."""

    def __init__(self, fmt: str | None = LOG_FORMAT, fields: tuple[str, ...] = CONTEXT_FIELDS) -> None:
        super().__init__(fmt)
        self._fields = fields

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{field}={getattr(record, field)}"
            for field in self._fields
            if getattr(record, field, None) not in (None, "")
        )
        return f"{line} | {context}" if context else line


def configure_logging(level: str) -> logging.Handler:
    """Replace the root handlers with one stream handler using ContextFormatter."""
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)
    return handler
