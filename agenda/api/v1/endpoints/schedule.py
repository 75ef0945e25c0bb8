"""Brand schedule endpoints: weekly hours, special hours, booking settings."""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.database import get_db
from agenda.core.deps import get_brand, get_brand_member, get_brand_staff
from agenda.models.brand import Brand
from agenda.models.schedule import BusinessHours
from agenda.models.user import User
from agenda.schemas.schedule import (
    AppointmentSettingsOut,
    AppointmentSettingsUpdate,
    BusinessHoursOut,
    BusinessHoursUpdate,
    SpecialHoursCreate,
    SpecialHoursOut,
    SpecialHoursUpdate,
)
from agenda.services import schedule as schedule_service
from agenda.services.time_utils import day_name

router = APIRouter()


def _hours_out(rows: list[BusinessHours]) -> list[BusinessHoursOut]:
    return [
        BusinessHoursOut(
            id=bh.id,
            day_of_week=bh.day_of_week,
            day_name=day_name(bh.day_of_week),
            is_open=bh.is_open,
            open_time=bh.open_time,
            close_time=bh.close_time,
            updated_at=bh.updated_at,
        )
        for bh in rows
    ]


# ============================================================================
# BUSINESS HOURS
# ============================================================================

@router.get("/business-hours", response_model=list[BusinessHoursOut])
async def get_business_hours(
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
    db: AsyncSession = Depends(get_db),
):
    """Weekly hours (0=Sunday). Defaults are created on first access."""
    return _hours_out(await schedule_service.get_or_create_business_hours(db, brand.id))


@router.put("/business-hours", response_model=list[BusinessHoursOut])
async def update_business_hours(
    data: BusinessHoursUpdate,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    return _hours_out(await schedule_service.upsert_business_hours(db, brand.id, data.business_hours))


# ============================================================================
# SPECIAL HOURS
# ============================================================================

@router.get("/special-hours", response_model=list[SpecialHoursOut])
async def get_special_hours(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
    db: AsyncSession = Depends(get_db),
):
    return await schedule_service.list_special_hours(db, brand.id, start_date, end_date)


@router.post("/special-hours", response_model=SpecialHoursOut, status_code=201)
async def create_special_hours(
    data: SpecialHoursCreate,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    """Override the weekly hours for one date (holiday, extended day, ...)."""
    return await schedule_service.create_special_hour(db, brand.id, data)


@router.put("/special-hours/{special_hour_id}", response_model=SpecialHoursOut)
async def update_special_hours(
    special_hour_id: int,
    data: SpecialHoursUpdate,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    return await schedule_service.update_special_hour(db, brand.id, special_hour_id, data)


@router.delete("/special-hours/{special_hour_id}", status_code=204)
async def delete_special_hours(
    special_hour_id: int,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    await schedule_service.delete_special_hour(db, brand.id, special_hour_id)
    return Response(status_code=204)


# ============================================================================
# APPOINTMENT SETTINGS
# ============================================================================

@router.get("/appointment-settings", response_model=AppointmentSettingsOut)
async def get_appointment_settings(
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
    db: AsyncSession = Depends(get_db),
):
    return await schedule_service.get_or_create_settings(db, brand.id)


@router.put("/appointment-settings", response_model=AppointmentSettingsOut)
async def update_appointment_settings(
    data: AppointmentSettingsUpdate,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    return await schedule_service.update_settings(db, brand.id, data)
