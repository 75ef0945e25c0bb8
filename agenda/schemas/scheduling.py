"""Pydantic models for the scheduling validator: config snapshot and verdict.

The validator only reads these. ORM rows convert directly thanks to
from_attributes.
"""

from datetime import date, datetime, timedelta
from typing import Optional
import pytz
from pydantic import BaseModel, Field, field_validator

from agenda.core.appointment_constants import (
    AppointmentStatus,
    RejectionReason,
    MESSAGES,
    DURATION_DEFAULT,
    BUFFER_TIME_DEFAULT,
    MIN_ADVANCE_HOURS_DEFAULT,
    MAX_ADVANCE_DAYS_DEFAULT,
    ALLOW_SAME_DAY_DEFAULT,
)


class BusinessHoursEntry(BaseModel):
    """Weekly opening hours for one day (0=Sunday .. 6=Saturday)."""
    day_of_week: int = Field(ge=0, le=6)
    is_open: bool
    open_time: Optional[str] = None  # "09:00"
    close_time: Optional[str] = None  # "18:00"

    class Config:
        from_attributes = True


class SpecialHoursEntry(BaseModel):
    """Date-specific override of the weekly hours."""
    date: date
    is_open: bool
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    reason: Optional[str] = None

    class Config:
        from_attributes = True


class BookingPolicy(BaseModel):
    default_duration: int = DURATION_DEFAULT
    buffer_time: int = BUFFER_TIME_DEFAULT
    min_advance_booking_hours: int = MIN_ADVANCE_HOURS_DEFAULT
    max_advance_booking_days: int = MAX_ADVANCE_DAYS_DEFAULT
    allow_same_day_booking: bool = ALLOW_SAME_DAY_DEFAULT

    class Config:
        from_attributes = True


class BookedAppointment(BaseModel):
    """An existing appointment as seen by the conflict detector."""
    id: int
    brand_id: Optional[int] = None
    start_time: datetime
    duration: int
    status: AppointmentStatus
    created_at: Optional[datetime] = None

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration)

    class Config:
        from_attributes = True


class ScheduleSnapshot(BaseModel):
    """Everything the validator needs for one brand, loaded up front.

    ``timezone`` is the brand's zone name. Without it every time handed to
    the validator must already be naive brand-local wall-clock time.
    """
    brand_id: Optional[int] = None
    timezone: Optional[str] = None  # "America/Costa_Rica"
    policy: BookingPolicy = Field(default_factory=BookingPolicy)
    business_hours: list[BusinessHoursEntry] = []
    special_hours: list[SpecialHoursEntry] = []
    appointments: list[BookedAppointment] = []

    @field_validator("timezone")
    @classmethod
    def timezone_known(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone '{v}'")
        return v

    @property
    def zone(self):
        return pytz.timezone(self.timezone) if self.timezone else None


class ValidationVerdict(BaseModel):
    """Outcome of a validation: ok, or a reason with its canonical message."""
    ok: bool
    reason: Optional[RejectionReason] = None
    message: Optional[str] = None
    conflicting_appointment_id: Optional[int] = None

    @classmethod
    def accept(cls) -> "ValidationVerdict":
        return cls(ok=True)

    @classmethod
    def reject(cls, reason: RejectionReason, conflicting_appointment_id: Optional[int] = None) -> "ValidationVerdict":
        return cls(
            ok=False,
            reason=reason,
            message=MESSAGES[reason],
            conflicting_appointment_id=conflicting_appointment_id,
        )


class TimeSlot(BaseModel):
    time: str  # "09:00"
    available: bool
    reason: Optional[str] = None


class DayAvailability(BaseModel):
    date: date
    day_name: str
    slots: list[TimeSlot]
