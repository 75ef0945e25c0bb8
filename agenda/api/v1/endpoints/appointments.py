"""Appointment endpoints: booking, lifecycle, availability and statistics."""

from datetime import date, datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.appointment_constants import AppointmentStatus, DURATION_MIN, DURATION_MAX
from agenda.core.database import get_db
from agenda.core.deps import get_brand, get_brand_member, get_brand_staff, get_request_time
from agenda.models.brand import Brand
from agenda.models.user import User
from agenda.schemas.appointment import (
    AppointmentCreate,
    AppointmentCreateByStaff,
    AppointmentListOut,
    AppointmentOut,
    AppointmentStatistics,
    AppointmentUpdate,
    AppointmentValidateRequest,
    VerdictOut,
)
from agenda.schemas.scheduling import DayAvailability, TimeSlot
from agenda.services import appointments as appointment_service
from agenda.services.schedule import get_or_create_settings, load_schedule_snapshot
from agenda.services.scheduling import available_time_slots, weekly_availability

router = APIRouter()


async def _slot_duration(db: AsyncSession, brand_id: int, duration: Optional[int]) -> int:
    if duration is not None:
        return duration
    return (await get_or_create_settings(db, brand_id)).default_duration


# ============================================================================
# BOOKING
# ============================================================================

@router.post("", response_model=AppointmentOut, status_code=201)
async def book_appointment(
    data: AppointmentCreate,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_request_time),
):
    """Book an appointment for the current user.

    Returns 409 with the conflicting appointment id when the slot is taken,
    400 with the rejection reason for every other scheduling rule.
    """
    return await appointment_service.create_appointment(db, brand, current_user, data, now)


@router.post("/admin", response_model=AppointmentOut, status_code=201)
async def book_appointment_for_client(
    data: AppointmentCreateByStaff,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_request_time),
):
    """Staff booking on behalf of a client (or unassigned when client_id is empty)."""
    return await appointment_service.create_appointment(db, brand, current_user, data, now)


@router.get("", response_model=AppointmentListOut)
async def list_appointments(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status: Optional[AppointmentStatus] = Query(None),
    client_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
    db: AsyncSession = Depends(get_db),
):
    """List appointments. Clients only see their own."""
    items, total = await appointment_service.list_appointments(
        db,
        brand,
        current_user,
        start_date=start_date,
        end_date=end_date,
        status_filter=status,
        client_id=client_id,
        page=page,
        limit=limit,
    )
    return AppointmentListOut(
        appointments=[AppointmentOut.model_validate(a) for a in items],
        total=total,
        page=page,
        pages=appointment_service.page_count(total, limit),
    )


# ============================================================================
# AVAILABILITY
# ============================================================================

@router.get("/availability/slots", response_model=list[TimeSlot])
async def get_available_slots(
    day: date = Query(..., alias="date", description="Day to list, YYYY-MM-DD"),
    duration: Optional[int] = Query(None, ge=DURATION_MIN, le=DURATION_MAX),
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_request_time),
):
    """Slots for one day, each flagged available or not."""
    slot_duration = await _slot_duration(db, brand.id, duration)
    snapshot = await load_schedule_snapshot(db, brand.id, day)
    return available_time_slots(day, slot_duration, snapshot, appointment_service.to_brand_local(now, brand))


@router.get("/availability/week", response_model=list[DayAvailability])
async def get_weekly_availability(
    start_date: date = Query(...),
    duration: Optional[int] = Query(None, ge=DURATION_MIN, le=DURATION_MAX),
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_request_time),
):
    slot_duration = await _slot_duration(db, brand.id, duration)
    snapshot = await load_schedule_snapshot(db, brand.id, start_date, start_date + timedelta(days=6))
    return weekly_availability(start_date, slot_duration, snapshot, appointment_service.to_brand_local(now, brand))


@router.post("/validate", response_model=VerdictOut)
async def validate_appointment_slot(
    data: AppointmentValidateRequest,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_request_time),
):
    """Dry run: report whether a booking would be accepted, without booking it."""
    verdict = await appointment_service.validate_only(
        db, brand, data.start_time, data.duration, now, exclude_appointment_id=data.exclude_appointment_id
    )
    return VerdictOut(**verdict.model_dump())


@router.get("/statistics/summary", response_model=AppointmentStatistics)
async def get_statistics(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    return await appointment_service.appointment_statistics(db, brand.id, start_date, end_date)


# ============================================================================
# SINGLE APPOINTMENT
# ============================================================================

@router.get("/{appointment_id}", response_model=AppointmentOut)
async def get_appointment(
    appointment_id: int,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
    db: AsyncSession = Depends(get_db),
):
    return await appointment_service.get_appointment(db, brand, current_user, appointment_id)


@router.put("/{appointment_id}", response_model=AppointmentOut)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_request_time),
):
    """Reschedule, change status or edit notes.

    Rescheduling re-runs every scheduling rule, ignoring the appointment
    itself when checking conflicts.
    """
    return await appointment_service.update_appointment(db, brand, current_user, appointment_id, data, now)


@router.delete("/{appointment_id}", response_model=AppointmentOut)
async def cancel_appointment(
    appointment_id: int,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_request_time),
):
    """Cancel an appointment. The record is kept with status CANCELLED."""
    return await appointment_service.cancel_appointment(db, brand, current_user, appointment_id, now)
