"""Brand schedule persistence: weekly hours, special hours, booking settings.

Also builds the ScheduleSnapshot the scheduling validator runs on.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional
from fastapi import HTTPException
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.appointment_constants import AppointmentStatus
from agenda.models.appointment import Appointment
from agenda.models.schedule import AppointmentSettings, BusinessHours, SpecialHours
from agenda.schemas.schedule import (
    AppointmentSettingsUpdate,
    BusinessHoursIn,
    SpecialHoursCreate,
    SpecialHoursUpdate,
)
from agenda.schemas.scheduling import (
    BookedAppointment,
    BookingPolicy,
    BusinessHoursEntry,
    ScheduleSnapshot,
    SpecialHoursEntry,
)

logger = logging.getLogger(__name__)

# Mon-Fri 08:00-17:00, weekend closed
DEFAULT_BUSINESS_HOURS = [
    {"day_of_week": 1, "is_open": True, "open_time": "08:00", "close_time": "17:00"},
    {"day_of_week": 2, "is_open": True, "open_time": "08:00", "close_time": "17:00"},
    {"day_of_week": 3, "is_open": True, "open_time": "08:00", "close_time": "17:00"},
    {"day_of_week": 4, "is_open": True, "open_time": "08:00", "close_time": "17:00"},
    {"day_of_week": 5, "is_open": True, "open_time": "08:00", "close_time": "17:00"},
    {"day_of_week": 6, "is_open": False},
    {"day_of_week": 0, "is_open": False},
]


# ============================================================================
# BUSINESS HOURS
# ============================================================================

async def list_business_hours(db: AsyncSession, brand_id: int) -> list[BusinessHours]:
    result = await db.execute(
        select(BusinessHours).where(BusinessHours.brand_id == brand_id).order_by(BusinessHours.day_of_week)
    )
    return list(result.scalars().all())


async def get_or_create_business_hours(db: AsyncSession, brand_id: int) -> list[BusinessHours]:
    """Weekly hours for a brand, creating the defaults on first access."""
    hours = await list_business_hours(db, brand_id)
    if hours:
        return hours

    for data in DEFAULT_BUSINESS_HOURS:
        db.add(BusinessHours(brand_id=brand_id, **data))
    await db.commit()
    logger.info("Initialised default business hours for brand %s", brand_id)
    return await list_business_hours(db, brand_id)


def init_brand_schedule(db: AsyncSession, brand_id: int) -> None:
    """Stage default weekly hours and settings for a new brand. The caller commits."""
    for data in DEFAULT_BUSINESS_HOURS:
        db.add(BusinessHours(brand_id=brand_id, **data))
    db.add(AppointmentSettings(brand_id=brand_id))


async def upsert_business_hours(db: AsyncSession, brand_id: int, entries: list[BusinessHoursIn]) -> list[BusinessHours]:
    """Create or update the given days in one transaction. Closed days drop their times."""
    existing = {bh.day_of_week: bh for bh in await list_business_hours(db, brand_id)}

    for entry in entries:
        row = existing.get(entry.day_of_week)
        if row is None:
            row = BusinessHours(brand_id=brand_id, day_of_week=entry.day_of_week)
            db.add(row)
        row.is_open = entry.is_open
        row.open_time = entry.open_time if entry.is_open else None
        row.close_time = entry.close_time if entry.is_open else None

    await db.commit()
    logger.info("Updated %d business-hours rows for brand %s", len(entries), brand_id)
    return await list_business_hours(db, brand_id)


# ============================================================================
# SPECIAL HOURS
# ============================================================================

async def list_special_hours(
    db: AsyncSession,
    brand_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[SpecialHours]:
    query = select(SpecialHours).where(SpecialHours.brand_id == brand_id)
    if start_date:
        query = query.where(SpecialHours.date >= start_date)
    if end_date:
        query = query.where(SpecialHours.date <= end_date)
    result = await db.execute(query.order_by(SpecialHours.date))
    return list(result.scalars().all())


async def _get_special_hour(db: AsyncSession, brand_id: int, special_hour_id: int) -> SpecialHours:
    result = await db.execute(select(SpecialHours).where(SpecialHours.id == special_hour_id))
    special_hour = result.scalar_one_or_none()
    if not special_hour or special_hour.brand_id != brand_id:
        raise HTTPException(status_code=404, detail="Special hours not found")
    return special_hour


async def create_special_hour(db: AsyncSession, brand_id: int, data: SpecialHoursCreate) -> SpecialHours:
    """Add a date override; one per date per brand."""
    result = await db.execute(
        select(SpecialHours).where(and_(SpecialHours.brand_id == brand_id, SpecialHours.date == data.date))
    )
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Special hours already exist for this date")

    special_hour = SpecialHours(
        brand_id=brand_id,
        date=data.date,
        is_open=data.is_open,
        open_time=data.open_time if data.is_open else None,
        close_time=data.close_time if data.is_open else None,
        reason=data.reason,
        description=data.description,
    )
    db.add(special_hour)
    await db.commit()
    await db.refresh(special_hour)
    logger.info("Brand %s: special hours on %s (open=%s)", brand_id, data.date, data.is_open)
    return special_hour


async def update_special_hour(
    db: AsyncSession, brand_id: int, special_hour_id: int, data: SpecialHoursUpdate
) -> SpecialHours:
    special_hour = await _get_special_hour(db, brand_id, special_hour_id)

    special_hour.is_open = data.is_open
    special_hour.open_time = data.open_time if data.is_open else None
    special_hour.close_time = data.close_time if data.is_open else None
    # Omitted text fields keep their previous value
    if data.reason is not None:
        special_hour.reason = data.reason
    if data.description is not None:
        special_hour.description = data.description

    await db.commit()
    await db.refresh(special_hour)
    return special_hour


async def delete_special_hour(db: AsyncSession, brand_id: int, special_hour_id: int) -> None:
    special_hour = await _get_special_hour(db, brand_id, special_hour_id)
    await db.delete(special_hour)
    await db.commit()
    logger.info("Brand %s: deleted special hours %s", brand_id, special_hour_id)


# ============================================================================
# APPOINTMENT SETTINGS
# ============================================================================

async def get_settings(db: AsyncSession, brand_id: int) -> Optional[AppointmentSettings]:
    result = await db.execute(select(AppointmentSettings).where(AppointmentSettings.brand_id == brand_id))
    return result.scalar_one_or_none()


async def get_or_create_settings(db: AsyncSession, brand_id: int) -> AppointmentSettings:
    """Booking settings for a brand, created with defaults on first access."""
    settings_row = await get_settings(db, brand_id)
    if settings_row:
        return settings_row

    settings_row = AppointmentSettings(brand_id=brand_id)
    db.add(settings_row)
    await db.commit()
    await db.refresh(settings_row)
    logger.info("Initialised default appointment settings for brand %s", brand_id)
    return settings_row


async def update_settings(db: AsyncSession, brand_id: int, data: AppointmentSettingsUpdate) -> AppointmentSettings:
    settings_row = await get_settings(db, brand_id)
    if settings_row is None:
        settings_row = AppointmentSettings(brand_id=brand_id)
        db.add(settings_row)

    for key, value in data.model_dump().items():
        setattr(settings_row, key, value)

    await db.commit()
    await db.refresh(settings_row)
    return settings_row


# ============================================================================
# SNAPSHOT
# ============================================================================

async def load_schedule_snapshot(
    db: AsyncSession,
    brand_id: int,
    start_day: date,
    end_day: Optional[date] = None,
    timezone: Optional[str] = None,
) -> ScheduleSnapshot:
    """Load everything the validator needs for [start_day, end_day].

    Appointments are fetched one day either side so buffers around midnight
    are still seen. Missing settings fall back to the defaults without
    writing anything.
    """
    end_day = end_day or start_day
    settings_row = await get_settings(db, brand_id)
    business_hours = await list_business_hours(db, brand_id)
    special_hours = await list_special_hours(db, brand_id, start_day, end_day)

    window_start = datetime.combine(start_day - timedelta(days=1), datetime.min.time())
    window_end = datetime.combine(end_day + timedelta(days=2), datetime.min.time())
    result = await db.execute(
        select(Appointment).where(
            and_(
                Appointment.brand_id == brand_id,
                Appointment.status != AppointmentStatus.CANCELLED,
                Appointment.start_time < window_end,
                Appointment.end_time > window_start,
            )
        ).order_by(Appointment.id)
    )
    appointments = result.scalars().all()

    return ScheduleSnapshot(
        brand_id=brand_id,
        timezone=timezone,
        policy=BookingPolicy.model_validate(settings_row) if settings_row else BookingPolicy(),
        business_hours=[BusinessHoursEntry.model_validate(bh) for bh in business_hours],
        special_hours=[SpecialHoursEntry.model_validate(sh) for sh in special_hours],
        appointments=[BookedAppointment.model_validate(a) for a in appointments],
    )
