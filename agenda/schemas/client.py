"""Pydantic schemas for the per-brand client directory."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"


class ClientOut(BaseModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    appointments_count: int = 0  # cancelled ones excluded
    last_appointment_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientListOut(BaseModel):
    clients: list[ClientOut]
    total: int
    page: int
    pages: int


class ClientUpdate(BaseModel):
    """Partial update of a client's profile and active flag."""
    first_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    is_active: Optional[bool] = None

    @field_validator("is_active")
    @classmethod
    def is_active_not_null(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("is_active cannot be null")
        return v


class CheckEmailRequest(BaseModel):
    email: EmailStr


class ExistingClient(BaseModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    class Config:
        from_attributes = True


class CheckEmailOut(BaseModel):
    available: bool
    message: str
    existing_client: Optional[ExistingClient] = None


class ClientSegments(BaseModel):
    """Active clients bucketed by non-cancelled appointment count."""
    new: int = 0  # fewer than 3
    regular: int = 0  # 3-10
    frequent: int = 0  # 11-20
    vip: int = 0  # more than 20
    inactive: int = 0


class ClientsSummary(BaseModel):
    period: str
    since: Optional[datetime] = None
    total_clients: int
    active_clients: int
    inactive_clients: int
    new_clients: int
    clients_with_appointments: int
    segments: ClientSegments
