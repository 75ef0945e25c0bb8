"""Pydantic schemas for authentication endpoints."""

from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from agenda.models.user import UserRole


class BrandRegister(BaseModel):
    """Request schema for brand onboarding: creates the brand and its ROOT user."""
    brand_name: str = Field(min_length=2)
    slug: str = Field(min_length=2, pattern=r"^[a-z0-9-]+$")
    business_type_key: str | None = None
    plan_type: str | None = None  # "web", "app", "complete"
    feature_keys: list[str] = []
    timezone: str | None = None
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str | None = None
    last_name: str | None = None


class ClientRegister(BaseModel):
    """Request schema for client registration inside a brand."""
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None


class UserLogin(BaseModel):
    """Request schema for user login."""
    email: EmailStr
    password: str


class Token(BaseModel):
    """Response schema for login, carrying the JWT."""
    access_token: str
    token_type: str = "bearer"
    user_id: int | None = None
    brand_id: int | None = None
    role: UserRole | None = None


class UserOut(BaseModel):
    """Response schema for user info."""
    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    brand_id: int | None = None
    role: UserRole
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class BrandRegistrationOut(BaseModel):
    brand_id: int
    slug: str
    user: UserOut
    access_token: str
    token_type: str = "bearer"
