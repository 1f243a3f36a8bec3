from fastapi import FastAPI

from booking_engine.api.v1.bookings import router as bookings_router
from booking_engine.api.v1.time_slots import router as time_slots_router
from booking_engine.core.config import settings
from booking_engine.core.log_format import configure_logging

configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="Booking Availability Engine", version="1.0.0")

app.include_router(bookings_router, prefix="/api/v1", tags=["bookings"])
app.include_router(time_slots_router, prefix="/api/v1", tags=["time-slots"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
