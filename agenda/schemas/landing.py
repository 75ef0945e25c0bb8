"""Pydantic schemas for the public landing catalog."""

from typing import Optional, Literal
from pydantic import BaseModel


class FeatureOut(BaseModel):
    id: int
    key: str
    title: str
    subtitle: Optional[str] = None
    description: str
    price: float
    category: Literal["ESSENTIAL", "BUSINESS", "ADVANCED"]
    is_recommended: bool
    is_popular: bool
    order: int
    business_types: list[str] | None = None

    class Config:
        from_attributes = True


class BusinessTypeOut(BaseModel):
    id: int
    key: str
    title: str
    subtitle: Optional[str] = None
    description: str
    icon: str
    order: int
    recommended_features: list[FeatureOut] = []

    class Config:
        from_attributes = True


class PlanOut(BaseModel):
    id: int
    type: Literal["web", "app", "complete"]
    name: str
    description: Optional[str] = None
    base_price: float

    class Config:
        from_attributes = True


class LandingConfigOut(BaseModel):
    business_types: list[BusinessTypeOut]
    features: list[FeatureOut]
    plans: list[PlanOut]


class BusinessTypeConfigOut(BaseModel):
    business_type: BusinessTypeOut
    features: list[FeatureOut]
    plans: list[PlanOut]
