from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from booking_engine.api.v1.errors import http_error
from booking_engine.api.v1.schemas import (
    BookingCreatedSchema,
    BookingRequestSchema,
    BookingSchema,
    ConflictSchema,
    OwnerActionSchema,
    SlotListResponseSchema,
    SlotSchema,
    ValidateBookingRequestSchema,
    ValidateBookingResponseSchema,
)
from booking_engine.application.exceptions import AdmissionResult, StorageError
from booking_engine.application.use_cases.admit_booking import AdmitBookingUseCase
from booking_engine.application.use_cases.booking_status import BookingStatusUseCase
from booking_engine.application.use_cases.slot_expander import ListBookableSlotsUseCase
from booking_engine.application.use_cases.validate_booking import ValidateBookingUseCase
from booking_engine.application.utils.booking_input import BookingRequest
from booking_engine.domain.entities.booking import BookingInstance
from booking_engine.domain.time_model import format_time, parse_date, parse_time
from booking_engine.wiring.dependencies import (
    get_admit_booking_use_case,
    get_booking_status_use_case,
    get_list_slots_use_case,
    get_validate_booking_use_case,
)

router = APIRouter()


def _booking_schema(booking: BookingInstance) -> BookingSchema:
    return BookingSchema(
        id=booking.id,
        calendar_id=booking.calendar_id,
        time_slot_id=booking.time_slot_id,
        booking_date=booking.booking_date,
        start_time=format_time(booking.start_time),
        end_time=format_time(booking.end_time),
        guest_name=booking.guest_name,
        guest_email=booking.guest_email,
        status=booking.status.value,
        notes=booking.notes,
    )


def _unwrap(result: AdmissionResult) -> BookingSchema:
    if not result.ok:
        raise http_error(result.error)
    return _booking_schema(result.booking)


@router.get("/calendars/{calendar_id}/slots", response_model=SlotListResponseSchema)
def list_slots(
    calendar_id: str,
    start: date = Query(...),
    end: date = Query(...),
    uc: ListBookableSlotsUseCase = Depends(get_list_slots_use_case),
):
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    try:
        slots = list(uc.execute(calendar_id, start, end))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return SlotListResponseSchema(
        calendar_id=calendar_id,
        slots=[
            SlotSchema(
                date=s.date,
                start_time=format_time(s.start_time),
                end_time=format_time(s.end_time),
                time_slot_id=s.time_slot_id,
                duration_minutes=s.duration_minutes,
                buffer_minutes=s.buffer_minutes,
            )
            for s in slots
        ],
    )


@router.post("/bookings/validate", response_model=ValidateBookingResponseSchema)
def validate_booking(
    req: ValidateBookingRequestSchema,
    uc: ValidateBookingUseCase = Depends(get_validate_booking_use_case),
):
    try:
        result = uc.execute(
            calendar_id=req.calendar_id,
            booking_date=parse_date(req.booking_date),
            start_time=parse_time(req.start_time),
            time_slot_id=req.time_slot_id,
            end_time=parse_time(req.end_time) if req.end_time else None,
            exclude_booking_id=req.exclude_booking_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return ValidateBookingResponseSchema(
        valid=result.is_valid,
        conflicts=[
            ConflictSchema(kind=c.kind.value, message=c.message, conflicting_id=c.conflicting_id)
            for c in result.conflicts
        ],
    )


@router.post("/bookings", response_model=BookingCreatedSchema, status_code=201)
def create_booking(
    req: BookingRequestSchema,
    background_tasks: BackgroundTasks,
    uc: AdmitBookingUseCase = Depends(get_admit_booking_use_case),
):
    result = uc.execute(
        BookingRequest(
            calendar_id=req.calendar_id,
            booking_date=req.booking_date,
            start_time=req.start_time,
            guest_name=req.guest_name,
            guest_email=req.guest_email,
            time_slot_id=req.time_slot_id,
            notes=req.notes,
        ),
        defer=background_tasks.add_task,
    )
    booking = _unwrap(result)
    return BookingCreatedSchema(booking=booking, cancellation_token=result.booking.cancellation_token)


@router.post("/bookings/cancel/{token}", response_model=BookingSchema)
def cancel_by_token(
    token: str,
    background_tasks: BackgroundTasks,
    uc: BookingStatusUseCase = Depends(get_booking_status_use_case),
):
    return _unwrap(uc.cancel_by_token(token, defer=background_tasks.add_task))


@router.post("/bookings/{booking_id}/cancel", response_model=BookingSchema)
def cancel_by_owner(
    booking_id: str,
    req: OwnerActionSchema,
    background_tasks: BackgroundTasks,
    uc: BookingStatusUseCase = Depends(get_booking_status_use_case),
):
    return _unwrap(uc.cancel_by_owner(req.owner_id, booking_id, defer=background_tasks.add_task))


@router.post("/bookings/{booking_id}/complete", response_model=BookingSchema)
def complete_booking(
    booking_id: str,
    req: OwnerActionSchema,
    uc: BookingStatusUseCase = Depends(get_booking_status_use_case),
):
    return _unwrap(uc.complete(req.owner_id, booking_id))


@router.post("/bookings/{booking_id}/restore", response_model=BookingSchema)
def restore_booking(
    booking_id: str,
    req: OwnerActionSchema,
    uc: BookingStatusUseCase = Depends(get_booking_status_use_case),
):
    return _unwrap(uc.restore(req.owner_id, booking_id))
