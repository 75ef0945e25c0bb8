"""Pydantic schemas for Brand."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from agenda.models.user import UserRole


class BrandOut(BaseModel):
    id: int
    name: str
    slug: str
    business_type_key: Optional[str] = None
    plan_id: Optional[int] = None
    feature_keys: Optional[list[str]] = None
    timezone: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BrandUpdate(BaseModel):
    """Partial update: only provided fields are changed."""
    name: Optional[str] = Field(default=None, min_length=2)
    business_type_key: Optional[str] = None
    timezone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: Optional[str]) -> str:
        # Runs only when the field is sent; the column is NOT NULL
        if v is None:
            raise ValueError("name cannot be null")
        return v


class BrandFeaturesUpdate(BaseModel):
    plan_type: Optional[str] = None  # "web", "app", "complete"
    feature_keys: list[str]


class BrandUserCreate(BaseModel):
    """A user created by the brand owner: another ROOT or a CLIENT."""
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole = UserRole.CLIENT


class BrandUserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator("role", "is_active")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v


class BrandPlanOut(BaseModel):
    """Current plan plus the priced feature selection."""
    plan_id: Optional[int] = None
    plan_type: Optional[str] = None
    plan_name: Optional[str] = None
    plan_description: Optional[str] = None
    base_price: float = 0.0
    feature_keys: list[str] = []
    features_price: float = 0.0
    total_price: float = 0.0


class BrandPlanUpdate(BaseModel):
    plan_type: str  # "web", "app", "complete"


class BrandStats(BaseModel):
    total_users: int
    root_users: int
    clients: int
    active_clients: int
    features: int
    appointments_total: int
    appointments_upcoming: int
    appointments_by_status: dict[str, int]
