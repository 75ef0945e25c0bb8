"""Weekly hours, special-date overrides and booking settings per brand."""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Date, ForeignKey, Text, UniqueConstraint
from datetime import datetime
from agenda.core.database import Base
from agenda.core.appointment_constants import (
    DURATION_DEFAULT,
    BUFFER_TIME_DEFAULT,
    MIN_ADVANCE_HOURS_DEFAULT,
    MAX_ADVANCE_DAYS_DEFAULT,
    ALLOW_SAME_DAY_DEFAULT,
)


class BusinessHours(Base):
    __tablename__ = "business_hours"
    __table_args__ = (UniqueConstraint("brand_id", "day_of_week", name="uq_business_hours_brand_day"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    is_open = Column(Boolean, nullable=False, default=False)
    open_time = Column(String, nullable=True)  # "08:00"
    close_time = Column(String, nullable=True)  # "17:00"
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SpecialHours(Base):
    __tablename__ = "special_hours"
    __table_args__ = (UniqueConstraint("brand_id", "date", name="uq_special_hours_brand_date"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    is_open = Column(Boolean, nullable=False, default=False)
    open_time = Column(String, nullable=True)
    close_time = Column(String, nullable=True)
    reason = Column(String, nullable=True)  # "Holiday", "Inventory", ...
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class AppointmentSettings(Base):
    __tablename__ = "appointment_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, unique=True)
    default_duration = Column(Integer, nullable=False, default=DURATION_DEFAULT)
    buffer_time = Column(Integer, nullable=False, default=BUFFER_TIME_DEFAULT)
    min_advance_booking_hours = Column(Integer, nullable=False, default=MIN_ADVANCE_HOURS_DEFAULT)
    max_advance_booking_days = Column(Integer, nullable=False, default=MAX_ADVANCE_DAYS_DEFAULT)
    allow_same_day_booking = Column(Boolean, nullable=False, default=ALLOW_SAME_DAY_DEFAULT)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
