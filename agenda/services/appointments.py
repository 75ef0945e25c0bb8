"""Appointment booking, rescheduling and queries.

Every write that places an appointment in time runs check-then-insert under
a row lock on the brand (SELECT ... FOR UPDATE), so two concurrent bookings
for the same brand are serialised and cannot both pass the conflict check.
SQLite has no row locks; its single writer gives the same ordering.
"""

import logging
import math
from datetime import date, datetime, timedelta
from typing import Optional
import pytz
from fastapi import HTTPException, status
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agenda.core.appointment_constants import AppointmentStatus, RejectionReason, TERMINAL_STATUSES, MESSAGES
from agenda.core.config import settings
from agenda.models.appointment import Appointment
from agenda.models.brand import Brand
from agenda.models.user import User, UserRole
from agenda.schemas.appointment import (
    AppointmentCreate,
    AppointmentCreateByStaff,
    AppointmentUpdate,
    AppointmentStatistics,
)
from agenda.schemas.scheduling import ScheduleSnapshot, ValidationVerdict
from agenda.services.access import (
    can_transition,
    check_appointment_access,
    check_brand_staff,
    check_status_change,
)
from agenda.services.schedule import get_or_create_settings, load_schedule_snapshot
from agenda.services.scheduling import coerce_start, validate_appointment

logger = logging.getLogger(__name__)


# ============================================================================
# TIME ZONES
# ============================================================================

def brand_zone(brand: Brand):
    name = brand.timezone or settings.DEFAULT_TIMEZONE
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown timezone %r for brand %s; using UTC", name, brand.id)
        return pytz.UTC


def to_brand_local(value: datetime, brand: Brand) -> datetime:
    """Naive brand-local wall-clock time. Naive input is taken as already local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(brand_zone(brand)).replace(tzinfo=None)


# ============================================================================
# HELPERS
# ============================================================================

def raise_for_verdict(verdict: ValidationVerdict) -> None:
    """Turn a rejection into an HTTP error: 409 for conflicts, 400 otherwise."""
    if verdict.ok:
        return
    status_code = status.HTTP_409_CONFLICT if verdict.reason == RejectionReason.TIME_CONFLICT else status.HTTP_400_BAD_REQUEST
    raise HTTPException(
        status_code=status_code,
        detail={
            "reason": verdict.reason.value,
            "message": verdict.message,
            "conflicting_appointment_id": verdict.conflicting_appointment_id,
        },
    )


def _forbid(reason: Optional[str]) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=reason or MESSAGES["ACCESS_DENIED"])


async def _lock_brand(db: AsyncSession, brand_id: int) -> None:
    await db.execute(select(Brand.id).where(Brand.id == brand_id).with_for_update())


async def _load(db: AsyncSession, appointment_id: int) -> Optional[Appointment]:
    result = await db.execute(
        select(Appointment)
        .options(selectinload(Appointment.client))
        .where(Appointment.id == appointment_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _get_brand_appointment(db: AsyncSession, brand_id: int, appointment_id: int) -> Appointment:
    appointment = await _load(db, appointment_id)
    if not appointment or appointment.brand_id != brand_id:
        raise HTTPException(status_code=404, detail=MESSAGES["APPOINTMENT_NOT_FOUND"])
    return appointment


async def _get_brand_client(db: AsyncSession, brand_id: int, client_id: int) -> User:
    result = await db.execute(
        select(User).where(and_(User.id == client_id, User.brand_id == brand_id, User.is_active == True))
    )
    client = result.scalar_one_or_none()
    if not client:
        raise HTTPException(status_code=404, detail=MESSAGES["CLIENT_NOT_FOUND"])
    return client


async def _check_slot(
    db: AsyncSession,
    brand: Brand,
    start: datetime,
    duration: int,
    now: datetime,
    exclude_appointment_id: Optional[int] = None,
) -> None:
    snapshot = await load_schedule_snapshot(db, brand.id, start.date(), timezone=brand_zone(brand).zone)
    verdict = validate_appointment(
        start,
        duration,
        snapshot,
        now,
        exclude_appointment_id=exclude_appointment_id,
        logger=logger,
    )
    if not verdict.ok:
        logger.info("Brand %s: rejected %s (+%s min): %s", brand.id, start, duration, verdict.reason.value)
    raise_for_verdict(verdict)


# ============================================================================
# BOOKING
# ============================================================================

async def create_appointment(
    db: AsyncSession,
    brand: Brand,
    actor: User,
    data: AppointmentCreate,
    now: datetime,
) -> Appointment:
    """Book an appointment.

    Clients always book for themselves. Staff may pass client_id (or leave
    it empty for an unassigned booking) via AppointmentCreateByStaff.
    """
    client_id = actor.id
    if isinstance(data, AppointmentCreateByStaff):
        decision = check_brand_staff(actor.role)
        if not decision.allowed:
            raise _forbid(decision.reason)
        client_id = data.client_id
        if client_id is not None:
            await _get_brand_client(db, brand.id, client_id)

    appointment_settings = await get_or_create_settings(db, brand.id)
    duration = data.duration if data.duration is not None else appointment_settings.default_duration
    start = to_brand_local(data.start_time, brand)

    await _lock_brand(db, brand.id)
    await _check_slot(db, brand, start, duration, now)

    appointment = Appointment(
        brand_id=brand.id,
        client_id=client_id,
        created_by_id=actor.id,
        start_time=start,
        end_time=start + timedelta(minutes=duration),
        duration=duration,
        status=AppointmentStatus.SCHEDULED,
        notes=data.notes,
    )
    db.add(appointment)
    await db.commit()
    logger.info("Brand %s: appointment %s booked for %s by user %s", brand.id, appointment.id, start, actor.id)
    return await _load(db, appointment.id)


async def update_appointment(
    db: AsyncSession,
    brand: Brand,
    actor: User,
    appointment_id: int,
    data: AppointmentUpdate,
    now: datetime,
) -> Appointment:
    """Reschedule, change status, reassign or annotate an appointment."""
    appointment = await _get_brand_appointment(db, brand.id, appointment_id)

    decision = check_appointment_access(actor.role, actor.id, appointment.client_id)
    if not decision.allowed:
        raise _forbid(decision.reason)

    is_staff = check_brand_staff(actor.role).allowed
    changes = data.model_dump(exclude_unset=True)

    if "client_id" in changes:
        if not is_staff:
            raise _forbid("Only brand staff can reassign an appointment")
        if data.client_id is not None:
            await _get_brand_client(db, brand.id, data.client_id)
        appointment.client_id = data.client_id

    if data.start_time is not None or data.duration is not None:
        if appointment.status in TERMINAL_STATUSES:
            raise HTTPException(status_code=400, detail=f"Cannot reschedule a {appointment.status.value} appointment")
        start = to_brand_local(data.start_time, brand) if data.start_time else appointment.start_time
        duration = data.duration if data.duration is not None else appointment.duration

        await _lock_brand(db, brand.id)
        await _check_slot(db, brand, start, duration, now, exclude_appointment_id=appointment.id)

        appointment.start_time = start
        appointment.duration = duration
        appointment.end_time = start + timedelta(minutes=duration)

    if data.status is not None:
        if not can_transition(appointment.status, data.status):
            raise HTTPException(
                status_code=400,
                detail=f"Cannot change status from {appointment.status.value} to {data.status.value}",
            )
        decision = check_status_change(actor.role, actor.id, appointment.client_id, appointment.status, data.status)
        if not decision.allowed:
            raise _forbid(decision.reason)
        appointment.status = data.status

    if "notes" in changes:
        appointment.notes = data.notes

    appointment.updated_at = datetime.utcnow()
    await db.commit()
    logger.info("Brand %s: appointment %s updated by user %s (%s)", brand.id, appointment.id, actor.id, ", ".join(changes))
    return await _load(db, appointment.id)


async def cancel_appointment(
    db: AsyncSession,
    brand: Brand,
    actor: User,
    appointment_id: int,
    now: datetime,
) -> Appointment:
    return await update_appointment(
        db, brand, actor, appointment_id, AppointmentUpdate(status=AppointmentStatus.CANCELLED), now
    )


async def validate_only(
    db: AsyncSession,
    brand: Brand,
    raw_start,
    raw_duration,
    now: datetime,
    exclude_appointment_id: Optional[int] = None,
) -> ValidationVerdict:
    """Run the validator without booking anything."""
    start = coerce_start(raw_start)
    if start is None:
        return validate_appointment(raw_start, raw_duration, ScheduleSnapshot(brand_id=brand.id), now)

    start = to_brand_local(start, brand)
    if raw_duration is None:
        raw_duration = (await get_or_create_settings(db, brand.id)).default_duration

    snapshot = await load_schedule_snapshot(db, brand.id, start.date(), timezone=brand_zone(brand).zone)
    return validate_appointment(
        start,
        raw_duration,
        snapshot,
        now,
        exclude_appointment_id=exclude_appointment_id,
        logger=logger,
    )


# ============================================================================
# QUERIES
# ============================================================================

async def get_appointment(db: AsyncSession, brand: Brand, actor: User, appointment_id: int) -> Appointment:
    appointment = await _get_brand_appointment(db, brand.id, appointment_id)
    decision = check_appointment_access(actor.role, actor.id, appointment.client_id)
    if not decision.allowed:
        raise _forbid(decision.reason)
    return appointment


async def list_appointments(
    db: AsyncSession,
    brand: Brand,
    actor: User,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status_filter: Optional[AppointmentStatus] = None,
    client_id: Optional[int] = None,
    page: int = 1,
    limit: int = 20,
    newest_first: bool = False,
) -> tuple[list[Appointment], int]:
    """Paginated appointments; clients only ever see their own."""
    conditions = [Appointment.brand_id == brand.id]

    if actor.role == UserRole.CLIENT.value:
        conditions.append(Appointment.client_id == actor.id)
    elif client_id is not None:
        conditions.append(Appointment.client_id == client_id)

    if start_date:
        conditions.append(Appointment.start_time >= datetime.combine(start_date, datetime.min.time()))
    if end_date:
        conditions.append(Appointment.start_time < datetime.combine(end_date + timedelta(days=1), datetime.min.time()))
    if status_filter:
        conditions.append(Appointment.status == status_filter)

    total_result = await db.execute(select(func.count(Appointment.id)).where(and_(*conditions)))
    total = total_result.scalar_one()

    if newest_first:
        ordering = (Appointment.start_time.desc(), Appointment.id.desc())
    else:
        ordering = (Appointment.start_time, Appointment.id)

    result = await db.execute(
        select(Appointment)
        .options(selectinload(Appointment.client))
        .where(and_(*conditions))
        .order_by(*ordering)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


async def appointment_statistics(
    db: AsyncSession,
    brand_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> AppointmentStatistics:
    """Appointment counts per status over an optional date range."""
    conditions = [Appointment.brand_id == brand_id]
    if start_date:
        conditions.append(Appointment.start_time >= datetime.combine(start_date, datetime.min.time()))
    if end_date:
        conditions.append(Appointment.start_time < datetime.combine(end_date + timedelta(days=1), datetime.min.time()))

    result = await db.execute(
        select(Appointment.status, func.count(Appointment.id)).where(and_(*conditions)).group_by(Appointment.status)
    )
    by_status = {s.value: 0 for s in AppointmentStatus}
    for status_value, count in result.all():
        key = status_value.value if isinstance(status_value, AppointmentStatus) else str(status_value)
        by_status[key] = count

    return AppointmentStatistics(
        start_date=start_date,
        end_date=end_date,
        total=sum(by_status.values()),
        by_status=by_status,
    )
