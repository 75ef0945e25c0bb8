"""Public landing catalog: business types, features and plans for onboarding."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.database import get_db
from agenda.schemas.landing import (
    BusinessTypeConfigOut,
    BusinessTypeOut,
    FeatureOut,
    LandingConfigOut,
    PlanOut,
)
from agenda.services import catalog

router = APIRouter()


@router.get("/config", response_model=LandingConfigOut)
async def get_landing_config(db: AsyncSession = Depends(get_db)):
    """Everything the landing page needs in one call."""
    return LandingConfigOut(
        business_types=[BusinessTypeOut.model_validate(bt) for bt in await catalog.list_business_types(db)],
        features=[FeatureOut.model_validate(f) for f in await catalog.list_features(db)],
        plans=[PlanOut.model_validate(p) for p in await catalog.list_plans(db)],
    )


@router.get("/business-types", response_model=list[BusinessTypeOut])
async def get_business_types(db: AsyncSession = Depends(get_db)):
    return [BusinessTypeOut.model_validate(bt) for bt in await catalog.list_business_types(db)]


@router.get("/features", response_model=list[FeatureOut])
async def get_features(db: AsyncSession = Depends(get_db)):
    return await catalog.list_features(db)


@router.get("/features/business-type/{business_type_key}", response_model=list[FeatureOut])
async def get_features_for_business_type(business_type_key: str, db: AsyncSession = Depends(get_db)):
    """Features offered to one business type. Unknown keys yield an empty list."""
    return await catalog.list_features(db, business_type_key)


@router.get("/plans", response_model=list[PlanOut])
async def get_plans(db: AsyncSession = Depends(get_db)):
    return await catalog.list_plans(db)


@router.get("/business-type/{business_type_key}/config", response_model=BusinessTypeConfigOut)
async def get_business_type_config(business_type_key: str, db: AsyncSession = Depends(get_db)):
    """A business type with its recommended features, plus the plans on offer."""
    business_type = await catalog.business_type_with_features(db, business_type_key)
    return BusinessTypeConfigOut(
        business_type=business_type,
        features=business_type.recommended_features,
        plans=[PlanOut.model_validate(p) for p in await catalog.list_plans(db)],
    )
