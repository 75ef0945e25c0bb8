"""Authentication endpoints: brand onboarding, per-brand login, admin login."""

import logging
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.database import get_db
from agenda.core.deps import get_current_user, get_brand
from agenda.models.brand import Brand
from agenda.models.user import User, UserRole
from agenda.schemas.auth import (
    BrandRegister,
    BrandRegistrationOut,
    ClientRegister,
    UserLogin,
    Token,
    UserOut,
)
from agenda.services.auth import (
    hash_password,
    authenticate_user,
    authenticate_admin,
    create_user_token,
    get_user_by_email,
)
from agenda.services.catalog import check_business_type, check_feature_keys, check_timezone, resolve_plan
from agenda.services.schedule import init_brand_schedule

router = APIRouter()
logger = logging.getLogger(__name__)


def _token_response(user: User) -> dict:
    return {
        "access_token": create_user_token(user),
        "token_type": "bearer",
        "user_id": user.id,
        "brand_id": user.brand_id,
        "role": user.role,
    }


@router.post("/register-brand", response_model=BrandRegistrationOut, status_code=201)
async def register_brand(data: BrandRegister, db: AsyncSession = Depends(get_db)):
    """Register a new brand and its ROOT user.

    Creates the Brand, the ROOT User, default weekly hours and default
    appointment settings in a single transaction.
    """
    result = await db.execute(select(Brand).where(Brand.slug == data.slug))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Brand slug already taken")

    check_timezone(data.timezone)
    await check_business_type(db, data.business_type_key)
    plan = await resolve_plan(db, data.plan_type)
    feature_keys = await check_feature_keys(db, data.feature_keys)

    brand = Brand(
        name=data.brand_name,
        slug=data.slug,
        business_type_key=data.business_type_key,
        plan_id=plan.id if plan else None,
        feature_keys=feature_keys,
        timezone=data.timezone,
        is_active=True,
    )
    db.add(brand)
    await db.flush()  # Get brand.id without committing

    user = User(
        email=data.email.lower(),
        hashed_password=hash_password(data.password),
        brand_id=brand.id,
        first_name=data.first_name,
        last_name=data.last_name,
        role=UserRole.ROOT.value,
        is_active=True,
    )
    db.add(user)
    init_brand_schedule(db, brand.id)
    await db.commit()
    await db.refresh(user)

    logger.info("Brand registered: %s (id=%s, root=%s)", brand.slug, brand.id, user.email)
    return {
        "brand_id": brand.id,
        "slug": brand.slug,
        "user": user,
        "access_token": create_user_token(user),
        "token_type": "bearer",
    }


@router.post("/brand/{brand_id}/register", response_model=Token, status_code=201)
async def register_client(
    data: ClientRegister,
    brand: Brand = Depends(get_brand),
    db: AsyncSession = Depends(get_db),
):
    """Register a CLIENT inside a brand. Emails are unique per brand."""
    existing_user = await get_user_by_email(db, data.email, brand.id)
    if existing_user:
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=data.email.lower(),
        hashed_password=hash_password(data.password),
        brand_id=brand.id,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        role=UserRole.CLIENT.value,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("Client registered in brand %s: %s", brand.id, user.email)
    return _token_response(user)


@router.post("/brand/{brand_id}/login", response_model=Token)
async def login(
    credentials: UserLogin,
    brand: Brand = Depends(get_brand),
    db: AsyncSession = Depends(get_db),
):
    """Login with email and password inside a brand."""
    user = await authenticate_user(db, credentials.email, credentials.password, brand.id)

    if not user:
        raise HTTPException(status_code=401, detail="Incorrect email or password")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="User account is disabled")

    user.last_login_at = datetime.utcnow()
    await db.commit()

    logger.info("User logged in: %s (brand: %s, role: %s)", user.email, brand.id, user.role)
    return _token_response(user)


@router.post("/admin/login", response_model=Token)
async def admin_login(credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    """Login for platform ADMIN users (not bound to a brand)."""
    user = await authenticate_admin(db, credentials.email, credentials.password)

    if not user:
        raise HTTPException(status_code=401, detail="Incorrect email or password")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="User account is disabled")

    user.last_login_at = datetime.utcnow()
    await db.commit()

    logger.info("Admin logged in: %s", user.email)
    return _token_response(user)


@router.get("/me", response_model=UserOut)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user."""
    return current_user
