"""Brand endpoints: read and manage the brand profile, plan and features."""

import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.database import get_db
from agenda.core.deps import (
    get_brand,
    get_brand_member,
    get_brand_root,
    get_brand_staff,
    get_request_time,
    require_role,
)
from agenda.models.brand import Brand
from agenda.models.user import User, UserRole
from agenda.schemas.auth import UserOut
from agenda.schemas.brand import (
    BrandOut,
    BrandUpdate,
    BrandFeaturesUpdate,
    BrandPlanOut,
    BrandPlanUpdate,
    BrandStats,
    BrandUserCreate,
    BrandUserUpdate,
)
from agenda.services import brands as brand_service
from agenda.services.appointments import to_brand_local
from agenda.services.catalog import check_business_type, check_feature_keys, check_timezone, resolve_plan

router = APIRouter()
logger = logging.getLogger(__name__)

require_admin = require_role(UserRole.ADMIN.value)


@router.get("/", response_model=list[BrandOut])
async def list_brands(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """List every brand. Platform ADMIN only."""
    result = await db.execute(select(Brand).order_by(Brand.created_at.desc(), Brand.id.desc()))
    return result.scalars().all()


@router.get("/{brand_id}", response_model=BrandOut)
async def get_brand_profile(
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
):
    return brand


@router.put("/{brand_id}", response_model=BrandOut)
async def update_brand(
    data: BrandUpdate,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_root),
    db: AsyncSession = Depends(get_db),
):
    """Update brand profile. Only provided fields are changed."""
    changes = data.model_dump(exclude_unset=True)
    if "timezone" in changes:
        check_timezone(data.timezone)
    if "business_type_key" in changes:
        await check_business_type(db, data.business_type_key)

    for field, value in changes.items():
        setattr(brand, field, value)

    await db.commit()
    await db.refresh(brand)
    logger.info("Brand %s updated by user %s (%s)", brand.id, current_user.id, ", ".join(changes))
    return brand


@router.put("/{brand_id}/features", response_model=BrandOut)
async def update_brand_features(
    data: BrandFeaturesUpdate,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_root),
    db: AsyncSession = Depends(get_db),
):
    """Replace the brand's feature set and, optionally, its plan."""
    brand.feature_keys = await check_feature_keys(db, data.feature_keys)
    if data.plan_type is not None:
        plan = await resolve_plan(db, data.plan_type)
        brand.plan_id = plan.id

    await db.commit()
    await db.refresh(brand)
    logger.info("Brand %s features set to %s", brand.id, brand.feature_keys)
    return brand


@router.get("/{brand_id}/users", response_model=list[UserOut])
async def list_users(
    role: Optional[UserRole] = None,
    active: Optional[bool] = None,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    return await brand_service.list_brand_users(db, brand.id, role=role, active=active)


@router.post("/{brand_id}/users", response_model=UserOut, status_code=201)
async def create_user(
    data: BrandUserCreate,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_root),
    db: AsyncSession = Depends(get_db),
):
    """Create another ROOT user or a CLIENT inside the brand."""
    return await brand_service.create_brand_user(db, brand.id, data)


@router.put("/{brand_id}/users/{user_id}", response_model=UserOut)
async def update_user(
    user_id: int,
    data: BrandUserUpdate,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_root),
    db: AsyncSession = Depends(get_db),
):
    return await brand_service.update_brand_user(db, brand.id, user_id, data, current_user)


@router.delete("/{brand_id}/users/{user_id}", status_code=204)
async def delete_user(
    user_id: int,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_root),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate a brand user. The account and its history are kept."""
    await brand_service.deactivate_brand_user(db, brand.id, user_id, current_user)
    return Response(status_code=204)


@router.get("/{brand_id}/plan", response_model=BrandPlanOut)
async def get_plan(
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_member),
    db: AsyncSession = Depends(get_db),
):
    return await brand_service.brand_plan(db, brand)


@router.put("/{brand_id}/plan", response_model=BrandPlanOut)
async def update_plan(
    data: BrandPlanUpdate,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_root),
    db: AsyncSession = Depends(get_db),
):
    return await brand_service.update_brand_plan(db, brand, data.plan_type)


@router.get("/{brand_id}/stats", response_model=BrandStats)
async def get_stats(
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_request_time),
):
    return await brand_service.brand_stats(db, brand, to_brand_local(now, brand))
