"""Landing catalog queries and the lookups brand onboarding validates against."""

from typing import Optional
import pytz
from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.models.catalog import BusinessType, Feature, Plan
from agenda.schemas.landing import BusinessTypeOut, FeatureOut

# Sort order for feature categories, cheapest tier first
CATEGORY_ORDER = {"ESSENTIAL": 0, "BUSINESS": 1, "ADVANCED": 2}


async def list_business_types(db: AsyncSession) -> list[BusinessType]:
    result = await db.execute(
        select(BusinessType)
        .where(BusinessType.is_active == True)
        .order_by(BusinessType.order, BusinessType.title)
    )
    return list(result.scalars().all())


async def get_business_type(db: AsyncSession, key: str) -> Optional[BusinessType]:
    result = await db.execute(
        select(BusinessType).where(BusinessType.key == key, BusinessType.is_active == True)
    )
    return result.scalar_one_or_none()


async def list_features(db: AsyncSession, business_type_key: Optional[str] = None) -> list[Feature]:
    """Active features, optionally only those offered to a business type."""
    result = await db.execute(select(Feature).where(Feature.is_active == True))
    features = list(result.scalars().all())
    # JSON arrays are filtered here; containment operators differ per backend
    if business_type_key is not None:
        features = [f for f in features if business_type_key in (f.business_types or [])]
    features.sort(key=lambda f: (CATEGORY_ORDER.get(f.category, len(CATEGORY_ORDER)), f.order, f.title))
    return features


async def list_plans(db: AsyncSession) -> list[Plan]:
    result = await db.execute(select(Plan).where(Plan.is_active == True).order_by(Plan.type))
    return list(result.scalars().all())


async def get_plan_by_type(db: AsyncSession, plan_type: str) -> Optional[Plan]:
    result = await db.execute(select(Plan).where(Plan.type == plan_type, Plan.is_active == True))
    return result.scalar_one_or_none()


async def business_type_with_features(db: AsyncSession, key: str) -> BusinessTypeOut:
    business_type = await get_business_type(db, key)
    if not business_type:
        raise HTTPException(status_code=404, detail=f"Business type '{key}' not found")

    features = await list_features(db, key)
    out = BusinessTypeOut.model_validate(business_type)
    out.recommended_features = [FeatureOut.model_validate(f) for f in features]
    return out


# ============================================================================
# ONBOARDING CHECKS
# ============================================================================

def check_timezone(name: Optional[str]) -> None:
    if name is None:
        return
    try:
        pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        raise HTTPException(status_code=400, detail=f"Unknown timezone '{name}'")


async def check_business_type(db: AsyncSession, key: Optional[str]) -> None:
    if key is not None and not await get_business_type(db, key):
        raise HTTPException(status_code=400, detail=f"Unknown business type '{key}'")


async def resolve_plan(db: AsyncSession, plan_type: Optional[str]) -> Optional[Plan]:
    if plan_type is None:
        return None
    plan = await get_plan_by_type(db, plan_type)
    if not plan:
        raise HTTPException(status_code=400, detail=f"Unknown plan '{plan_type}'")
    return plan


async def check_feature_keys(db: AsyncSession, keys: list[str]) -> list[str]:
    """Deduplicate feature keys, rejecting any not in the active catalog."""
    unique_keys = list(dict.fromkeys(keys))
    if not unique_keys:
        return []
    result = await db.execute(select(Feature.key).where(Feature.key.in_(unique_keys), Feature.is_active == True))
    known = set(result.scalars().all())
    unknown = [k for k in unique_keys if k not in known]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown features: {', '.join(unknown)}")
    return unique_keys
