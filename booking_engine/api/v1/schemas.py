from datetime import date
from pydantic import BaseModel, Field


class SlotSchema(BaseModel):
    date: date
    start_time: str
    end_time: str
    time_slot_id: str
    duration_minutes: int
    buffer_minutes: int = 0


class SlotListResponseSchema(BaseModel):
    calendar_id: str
    slots: list[SlotSchema]


class BookingRequestSchema(BaseModel):
    calendar_id: str
    booking_date: str
    start_time: str
    guest_name: str
    guest_email: str
    time_slot_id: str | None = None
    notes: str | None = None


class ValidateBookingRequestSchema(BaseModel):
    calendar_id: str
    booking_date: str
    start_time: str
    end_time: str | None = None
    time_slot_id: str | None = None
    exclude_booking_id: str | None = None


class ConflictSchema(BaseModel):
    kind: str
    message: str
    conflicting_id: str | None = None


class ValidateBookingResponseSchema(BaseModel):
    valid: bool
    conflicts: list[ConflictSchema] = Field(default_factory=list)


class BookingSchema(BaseModel):
    id: str
    calendar_id: str
    time_slot_id: str | None = None
    booking_date: date
    start_time: str
    end_time: str
    guest_name: str
    guest_email: str
    status: str
    notes: str | None = None


class BookingCreatedSchema(BaseModel):
    booking: BookingSchema
    cancellation_token: str


class OwnerActionSchema(BaseModel):
    owner_id: str


class TimeSlotSchema(BaseModel):
    id: str | None = None
    day_of_week: int
    start_time: str
    end_time: str
    duration_minutes: int
    buffer_minutes: int = 0
    is_active: bool = True


class ValidateTimeSlotRequestSchema(TimeSlotSchema):
    exclude_slot_id: str | None = None


class SaveTimeSlotRequestSchema(TimeSlotSchema):
    owner_id: str


class ValidateTimeSlotResponseSchema(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)


class SaveCalendarRequestSchema(BaseModel):
    owner_id: str
    title: str = ""
    owner_name: str | None = None
    owner_email: str | None = None
    is_active: bool = True


class CalendarSchema(BaseModel):
    id: str
    owner_id: str
    title: str
    owner_name: str | None = None
    owner_email: str | None = None
    is_active: bool
