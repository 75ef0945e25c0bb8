"""Brand administration: the owner's user management, plan and usage stats."""

import logging
from datetime import datetime
from typing import Optional
from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.appointment_constants import AppointmentStatus
from agenda.models.appointment import Appointment
from agenda.models.brand import Brand
from agenda.models.catalog import Feature, Plan
from agenda.models.user import User, UserRole
from agenda.schemas.brand import BrandPlanOut, BrandStats, BrandUserCreate, BrandUserUpdate
from agenda.services.auth import get_user_by_email, hash_password
from agenda.services.catalog import resolve_plan

logger = logging.getLogger(__name__)

# Platform admins live outside brands
BRAND_ROLES = (UserRole.ROOT, UserRole.CLIENT)


def _check_brand_role(role: UserRole) -> None:
    if role not in BRAND_ROLES:
        raise HTTPException(status_code=400, detail=f"Role {role.value} cannot be assigned inside a brand")


# ============================================================================
# USERS
# ============================================================================

async def list_brand_users(
    db: AsyncSession,
    brand_id: int,
    role: Optional[UserRole] = None,
    active: Optional[bool] = None,
) -> list[User]:
    query = select(User).where(User.brand_id == brand_id)
    if role is not None:
        query = query.where(User.role == role.value)
    if active is not None:
        query = query.where(User.is_active == active)
    result = await db.execute(query.order_by(User.created_at, User.id))
    return list(result.scalars().all())


async def get_brand_user(db: AsyncSession, brand_id: int, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id, User.brand_id == brand_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found in this brand")
    return user


async def create_brand_user(db: AsyncSession, brand_id: int, data: BrandUserCreate) -> User:
    _check_brand_role(data.role)
    if await get_user_by_email(db, data.email, brand_id):
        raise HTTPException(status_code=409, detail="Email already registered in this brand")

    user = User(
        email=data.email.lower(),
        hashed_password=hash_password(data.password),
        brand_id=brand_id,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        role=data.role.value,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Brand %s: %s user %s created", brand_id, user.role, user.id)
    return user


async def update_brand_user(
    db: AsyncSession,
    brand_id: int,
    user_id: int,
    data: BrandUserUpdate,
    actor: User,
) -> User:
    """Edit a brand user. Owners cannot demote or disable themselves."""
    user = await get_brand_user(db, brand_id, user_id)
    changes = data.model_dump(exclude_unset=True)

    if "role" in changes:
        _check_brand_role(data.role)
    if user.id == actor.id and (
        changes.get("role", UserRole(user.role)) != UserRole(user.role) or changes.get("is_active") is False
    ):
        raise HTTPException(status_code=400, detail="You cannot demote or deactivate your own account")

    password = changes.pop("password", None)
    if password is not None:
        user.hashed_password = hash_password(password)
    if "role" in changes:
        changes["role"] = data.role.value
    for field, value in changes.items():
        setattr(user, field, value)

    user.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(user)
    logger.info("Brand %s: user %s updated by %s", brand_id, user.id, actor.id)
    return user


async def deactivate_brand_user(db: AsyncSession, brand_id: int, user_id: int, actor: User) -> None:
    user = await get_brand_user(db, brand_id, user_id)
    if user.id == actor.id:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    user.is_active = False
    user.updated_at = datetime.utcnow()
    await db.commit()
    logger.info("Brand %s: user %s deactivated by %s", brand_id, user.id, actor.id)


# ============================================================================
# PLAN
# ============================================================================

async def brand_plan(db: AsyncSession, brand: Brand) -> BrandPlanOut:
    """The brand's plan priced with its selected features."""
    plan = None
    if brand.plan_id is not None:
        plan = (await db.execute(select(Plan).where(Plan.id == brand.plan_id))).scalar_one_or_none()

    keys = list(brand.feature_keys or [])
    features_price = 0.0
    if keys:
        result = await db.execute(select(func.coalesce(func.sum(Feature.price), 0)).where(Feature.key.in_(keys)))
        features_price = float(result.scalar_one())

    base_price = plan.base_price if plan else 0.0
    return BrandPlanOut(
        plan_id=plan.id if plan else None,
        plan_type=plan.type if plan else None,
        plan_name=plan.name if plan else None,
        plan_description=plan.description if plan else None,
        base_price=base_price,
        feature_keys=keys,
        features_price=features_price,
        total_price=round(base_price + features_price, 2),
    )


async def update_brand_plan(db: AsyncSession, brand: Brand, plan_type: str) -> BrandPlanOut:
    plan = await resolve_plan(db, plan_type)
    brand.plan_id = plan.id
    await db.commit()
    await db.refresh(brand)
    logger.info("Brand %s moved to plan %s", brand.id, plan.type)
    return await brand_plan(db, brand)


# ============================================================================
# STATS
# ============================================================================

async def brand_stats(db: AsyncSession, brand: Brand, now_local: datetime) -> BrandStats:
    """Headline numbers for the owner dashboard. ``now_local`` is brand wall clock."""
    result = await db.execute(
        select(User.role, User.is_active, func.count(User.id))
        .where(User.brand_id == brand.id)
        .group_by(User.role, User.is_active)
    )
    total_users = root_users = clients = active_clients = 0
    for role, is_active, count in result.all():
        total_users += count
        if role == UserRole.ROOT.value:
            root_users += count
        elif role == UserRole.CLIENT.value:
            clients += count
            if is_active:
                active_clients += count

    result = await db.execute(
        select(Appointment.status, func.count(Appointment.id))
        .where(Appointment.brand_id == brand.id)
        .group_by(Appointment.status)
    )
    by_status = {s.value: 0 for s in AppointmentStatus}
    for status_value, count in result.all():
        by_status[AppointmentStatus(status_value).value] = count

    upcoming = await db.execute(
        select(func.count(Appointment.id)).where(
            Appointment.brand_id == brand.id,
            Appointment.start_time >= now_local,
            Appointment.status.in_([AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED]),
        )
    )

    return BrandStats(
        total_users=total_users,
        root_users=root_users,
        clients=clients,
        active_clients=active_clients,
        features=len(brand.feature_keys or []),
        appointments_total=sum(by_status.values()),
        appointments_upcoming=upcoming.scalar_one(),
        appointments_by_status=by_status,
    )
