"""Per-brand client directory: search, profile edits, deactivation and summaries.

Clients are User rows with the CLIENT role inside a brand. Deactivating a
client is a soft delete: the row and its appointments stay.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
import pytz
from fastapi import HTTPException
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.appointment_constants import AppointmentStatus, MESSAGES
from agenda.models.appointment import Appointment
from agenda.models.brand import Brand
from agenda.models.user import User, UserRole
from agenda.schemas.client import (
    CheckEmailOut,
    ClientOut,
    ClientSegments,
    ClientsSummary,
    ClientUpdate,
    ExistingClient,
)
from agenda.services.appointments import to_brand_local
from agenda.services.auth import get_user_by_email

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "created_at": User.created_at,
    "first_name": User.first_name,
    "email": User.email,
    "last_login_at": User.last_login_at,
}

# None means no lower bound
SUMMARY_PERIODS = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "1y": timedelta(days=365),
    "all": None,
}


def _is_client(brand_id: int):
    return and_(User.brand_id == brand_id, User.role == UserRole.CLIENT.value)


async def _appointment_stats(db: AsyncSession, client_ids: list[int]) -> dict[int, tuple[int, Optional[datetime]]]:
    """Non-cancelled appointment count and latest start per client."""
    if not client_ids:
        return {}
    result = await db.execute(
        select(Appointment.client_id, func.count(Appointment.id), func.max(Appointment.start_time))
        .where(
            Appointment.client_id.in_(client_ids),
            Appointment.status != AppointmentStatus.CANCELLED,
        )
        .group_by(Appointment.client_id)
    )
    return {client_id: (count, last) for client_id, count, last in result.all()}


def _client_out(client: User, stats: dict[int, tuple[int, Optional[datetime]]]) -> ClientOut:
    out = ClientOut.model_validate(client)
    count, last = stats.get(client.id, (0, None))
    out.appointments_count = count
    out.last_appointment_at = last
    return out


async def list_clients(
    db: AsyncSession,
    brand_id: int,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    active: Optional[bool] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> tuple[list[ClientOut], int]:
    """Paginated clients of a brand, searchable by name, email or phone."""
    conditions = [_is_client(brand_id)]
    if active is not None:
        conditions.append(User.is_active == active)
    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(or_(
            User.email.ilike(pattern),
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
            User.phone.ilike(pattern),
        ))

    total_result = await db.execute(select(func.count(User.id)).where(and_(*conditions)))
    total = total_result.scalar_one()

    column = SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_order == "asc" else column.desc()
    result = await db.execute(
        select(User)
        .where(and_(*conditions))
        .order_by(ordering, User.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    clients = list(result.scalars().all())
    stats = await _appointment_stats(db, [c.id for c in clients])
    return [_client_out(c, stats) for c in clients], total


async def get_client(db: AsyncSession, brand_id: int, client_id: int) -> User:
    """A client of the brand, active or not. 404 otherwise."""
    result = await db.execute(select(User).where(User.id == client_id, _is_client(brand_id)))
    client = result.scalar_one_or_none()
    if not client:
        raise HTTPException(status_code=404, detail=MESSAGES["CLIENT_NOT_FOUND"])
    return client


async def get_client_profile(db: AsyncSession, brand_id: int, client_id: int) -> ClientOut:
    client = await get_client(db, brand_id, client_id)
    return _client_out(client, await _appointment_stats(db, [client.id]))


async def update_client(db: AsyncSession, brand_id: int, client_id: int, data: ClientUpdate) -> ClientOut:
    client = await get_client(db, brand_id, client_id)
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(client, field, value)
    client.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(client)
    logger.info("Brand %s: client %s updated (%s)", brand_id, client_id, ", ".join(changes))
    return _client_out(client, await _appointment_stats(db, [client.id]))


async def deactivate_client(db: AsyncSession, brand_id: int, client_id: int) -> None:
    client = await get_client(db, brand_id, client_id)
    client.is_active = False
    client.updated_at = datetime.utcnow()
    await db.commit()
    logger.info("Brand %s: client %s deactivated", brand_id, client_id)


async def check_email(db: AsyncSession, brand_id: int, email: str) -> CheckEmailOut:
    """Whether an email is free to register in this brand."""
    user = await get_user_by_email(db, email, brand_id)
    if user is None:
        return CheckEmailOut(available=True, message="Email available")

    existing = ExistingClient.model_validate(user) if user.role == UserRole.CLIENT.value else None
    return CheckEmailOut(
        available=False,
        message="Email already registered in this brand",
        existing_client=existing,
    )


def segment_for(count: int) -> str:
    if count < 3:
        return "new"
    if count <= 10:
        return "regular"
    if count <= 20:
        return "frequent"
    return "vip"


async def clients_summary(db: AsyncSession, brand: Brand, period: str, now: datetime) -> ClientsSummary:
    """Client counts for a brand over a trailing period ending at ``now`` (aware).

    Sign-ups are compared on created_at (naive UTC); "clients with
    appointments" counts distinct clients whose non-cancelled appointments
    start inside the period, on the brand's wall clock.
    """
    brand_id = brand.id
    window = SUMMARY_PERIODS[period]
    since = None
    since_local = None
    if window is not None:
        since = now.astimezone(pytz.UTC).replace(tzinfo=None) - window
        since_local = to_brand_local(now, brand) - window

    result = await db.execute(select(User.id, User.is_active, User.created_at).where(_is_client(brand_id)))
    rows = result.all()
    active_ids = [row.id for row in rows if row.is_active]
    new_clients = sum(1 for row in rows if since is None or (row.created_at and row.created_at >= since))

    stats = await _appointment_stats(db, active_ids)
    segments = ClientSegments(inactive=len(rows) - len(active_ids))
    for client_id in active_ids:
        bucket = segment_for(stats.get(client_id, (0, None))[0])
        setattr(segments, bucket, getattr(segments, bucket) + 1)

    booked_conditions = [
        Appointment.brand_id == brand_id,
        Appointment.client_id.is_not(None),
        Appointment.status != AppointmentStatus.CANCELLED,
    ]
    if since_local is not None:
        booked_conditions.append(Appointment.start_time >= since_local)
    booked = await db.execute(
        select(func.count(func.distinct(Appointment.client_id))).where(and_(*booked_conditions))
    )

    return ClientsSummary(
        period=period,
        since=since,
        total_clients=len(rows),
        active_clients=len(active_ids),
        inactive_clients=len(rows) - len(active_ids),
        new_clients=new_clients,
        clients_with_appointments=booked.scalar_one(),
        segments=segments,
    )
