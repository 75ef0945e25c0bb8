"""Pydantic schemas for business hours, special hours and appointment settings."""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from agenda.core.appointment_constants import (
    MESSAGES,
    DURATION_MIN,
    DURATION_MAX,
    BUFFER_TIME_MIN,
    BUFFER_TIME_MAX,
    MIN_ADVANCE_HOURS_MIN,
    MIN_ADVANCE_HOURS_MAX,
    MAX_ADVANCE_DAYS_MIN,
    MAX_ADVANCE_DAYS_MAX,
)
from agenda.services.time_utils import is_valid_time_format, validate_time_range


def _check_open_hours(is_open: bool, open_time: Optional[str], close_time: Optional[str]):
    """Times are required iff open, must be HH:MM and open < close."""
    if not is_open:
        return
    if not open_time or not close_time:
        raise ValueError("Opening and closing times are required when open")
    if not (is_valid_time_format(open_time) and is_valid_time_format(close_time)):
        raise ValueError(MESSAGES["INVALID_TIME_FORMAT"])
    if not validate_time_range(open_time, close_time):
        raise ValueError("Opening time must be before closing time")


class BusinessHoursIn(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=Sunday
    is_open: bool
    open_time: Optional[str] = None  # "09:00"
    close_time: Optional[str] = None  # "18:00"

    @model_validator(mode="after")
    def check_times(self):
        _check_open_hours(self.is_open, self.open_time, self.close_time)
        return self


class BusinessHoursUpdate(BaseModel):
    business_hours: list[BusinessHoursIn] = Field(min_length=1)

    @model_validator(mode="after")
    def check_unique_days(self):
        days = [bh.day_of_week for bh in self.business_hours]
        if len(days) != len(set(days)):
            raise ValueError("Each day of week may appear only once")
        return self


class BusinessHoursOut(BaseModel):
    id: int
    day_of_week: int
    day_name: str
    is_open: bool
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    updated_at: Optional[datetime] = None


class SpecialHoursCreate(BaseModel):
    date: date
    is_open: bool
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    reason: Optional[str] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def check_times(self):
        _check_open_hours(self.is_open, self.open_time, self.close_time)
        return self


class SpecialHoursUpdate(BaseModel):
    is_open: bool
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    reason: Optional[str] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def check_times(self):
        _check_open_hours(self.is_open, self.open_time, self.close_time)
        return self


class SpecialHoursOut(BaseModel):
    id: int
    date: date
    is_open: bool
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    reason: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AppointmentSettingsUpdate(BaseModel):
    default_duration: int = Field(ge=DURATION_MIN, le=DURATION_MAX)
    buffer_time: int = Field(ge=BUFFER_TIME_MIN, le=BUFFER_TIME_MAX)
    min_advance_booking_hours: int = Field(ge=MIN_ADVANCE_HOURS_MIN, le=MIN_ADVANCE_HOURS_MAX)
    max_advance_booking_days: int = Field(ge=MAX_ADVANCE_DAYS_MIN, le=MAX_ADVANCE_DAYS_MAX)
    allow_same_day_booking: bool


class AppointmentSettingsOut(BaseModel):
    id: int
    default_duration: int
    buffer_time: int
    min_advance_booking_hours: int
    max_advance_booking_days: int
    allow_same_day_booking: bool
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
