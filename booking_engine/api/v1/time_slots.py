import uuid

from fastapi import APIRouter, Depends, HTTPException, Query

from booking_engine.api.v1.errors import http_error
from booking_engine.api.v1.schemas import (
    CalendarSchema,
    SaveCalendarRequestSchema,
    SaveTimeSlotRequestSchema,
    TimeSlotSchema,
    ValidateTimeSlotRequestSchema,
    ValidateTimeSlotResponseSchema,
)
from booking_engine.application.exceptions import StorageError
from booking_engine.application.use_cases.manage_time_slots import ManageTimeSlotsUseCase
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate
from booking_engine.domain.time_model import format_time, parse_time
from booking_engine.wiring.dependencies import get_manage_time_slots_use_case

router = APIRouter()


def _to_template(calendar_id: str, req: TimeSlotSchema, slot_id: str | None = None) -> TimeSlotTemplate:
    try:
        start_time = parse_time(req.start_time)
        end_time = parse_time(req.end_time)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TimeSlotTemplate(
        id=slot_id or req.id or uuid.uuid4().hex,
        calendar_id=calendar_id,
        day_of_week=req.day_of_week,
        start_time=start_time,
        end_time=end_time,
        duration_minutes=req.duration_minutes,
        buffer_minutes=req.buffer_minutes,
        is_active=req.is_active,
    )


def _slot_schema(template: TimeSlotTemplate) -> TimeSlotSchema:
    return TimeSlotSchema(
        id=template.id,
        day_of_week=template.day_of_week,
        start_time=format_time(template.start_time),
        end_time=format_time(template.end_time),
        duration_minutes=template.duration_minutes,
        buffer_minutes=template.buffer_minutes,
        is_active=template.is_active,
    )


@router.post("/calendars/{calendar_id}/time-slots/validate", response_model=ValidateTimeSlotResponseSchema)
def validate_time_slot(
    calendar_id: str,
    req: ValidateTimeSlotRequestSchema,
    uc: ManageTimeSlotsUseCase = Depends(get_manage_time_slots_use_case),
):
    template = _to_template(calendar_id, req)
    try:
        errors = uc.validate(template, exclude_slot_id=req.exclude_slot_id)
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return ValidateTimeSlotResponseSchema(valid=not errors, errors=errors)


@router.put("/calendars/{calendar_id}/time-slots/{time_slot_id}", response_model=TimeSlotSchema)
def save_time_slot(
    calendar_id: str,
    time_slot_id: str,
    req: SaveTimeSlotRequestSchema,
    uc: ManageTimeSlotsUseCase = Depends(get_manage_time_slots_use_case),
):
    result = uc.save(req.owner_id, _to_template(calendar_id, req, slot_id=time_slot_id))
    if not result.ok:
        raise http_error(result.error)
    return _slot_schema(result.template)


@router.delete("/time-slots/{time_slot_id}", status_code=204)
def delete_time_slot(
    time_slot_id: str,
    owner_id: str = Query(...),
    uc: ManageTimeSlotsUseCase = Depends(get_manage_time_slots_use_case),
):
    result = uc.delete(owner_id, time_slot_id)
    if not result.ok:
        raise http_error(result.error)


@router.put("/calendars/{calendar_id}", response_model=CalendarSchema)
def save_calendar(
    calendar_id: str,
    req: SaveCalendarRequestSchema,
    uc: ManageTimeSlotsUseCase = Depends(get_manage_time_slots_use_case),
):
    result = uc.save_calendar(
        req.owner_id,
        Calendar(
            id=calendar_id,
            owner_id=req.owner_id,
            is_active=req.is_active,
            title=req.title,
            owner_name=req.owner_name,
            owner_email=req.owner_email,
        ),
    )
    if not result.ok:
        raise http_error(result.error)
    saved = result.calendar
    return CalendarSchema(
        id=saved.id,
        owner_id=saved.owner_id,
        title=saved.title,
        owner_name=saved.owner_name,
        owner_email=saved.owner_email,
        is_active=saved.is_active,
    )


@router.delete("/calendars/{calendar_id}", status_code=204)
def delete_calendar(
    calendar_id: str,
    owner_id: str = Query(...),
    uc: ManageTimeSlotsUseCase = Depends(get_manage_time_slots_use_case),
):
    result = uc.delete_calendar(owner_id, calendar_id)
    if not result.ok:
        raise http_error(result.error)
