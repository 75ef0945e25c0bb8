"""Pydantic schemas for Appointments."""

from datetime import datetime, date
from typing import Any, Optional
from pydantic import BaseModel, Field

from agenda.core.appointment_constants import AppointmentStatus, RejectionReason


class AppointmentCreate(BaseModel):
    """Schema for a client booking an appointment."""
    start_time: datetime
    duration: Optional[int] = None  # settings default if omitted; bounds checked by the validator
    notes: Optional[str] = Field(default=None, min_length=3, max_length=500)


class AppointmentCreateByStaff(AppointmentCreate):
    """Staff may book on behalf of a client, or leave the slot unassigned."""
    client_id: Optional[int] = None


class AppointmentUpdate(BaseModel):
    start_time: Optional[datetime] = None
    duration: Optional[int] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    client_id: Optional[int] = None


class AppointmentValidateRequest(BaseModel):
    """Dry-run validation. Raw values so malformed input yields INVALID_INPUT."""
    start_time: Any
    duration: Any = None
    exclude_appointment_id: Optional[int] = None


class PersonSummary(BaseModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str

    class Config:
        from_attributes = True


class AppointmentOut(BaseModel):
    """Schema for returning appointment details."""
    id: int
    brand_id: int
    client_id: Optional[int] = None
    created_by_id: Optional[int] = None
    start_time: datetime
    end_time: datetime
    duration: int
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    client: Optional[PersonSummary] = None

    class Config:
        from_attributes = True


class AppointmentListOut(BaseModel):
    appointments: list[AppointmentOut]
    total: int
    page: int
    pages: int


class VerdictOut(BaseModel):
    ok: bool
    reason: Optional[RejectionReason] = None
    message: Optional[str] = None
    conflicting_appointment_id: Optional[int] = None


class AppointmentStatistics(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total: int
    by_status: dict[str, int]
