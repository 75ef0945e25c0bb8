"""Brand (tenant) model.

Each brand picks a business type, a plan and a set of features at
registration and owns its schedule, settings and appointments.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, ForeignKey
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from agenda.core.database import Base


class Brand(Base):
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    business_type_key = Column(String, nullable=True)
    plan_id = Column(Integer, ForeignKey("plans.id"), nullable=True)
    feature_keys = Column(JSON, nullable=True)  # ["appointments", "clients", ...]
    timezone = Column(String, nullable=True)  # "America/Costa_Rica"
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    users = relationship("User", back_populates="brand")
    plan = relationship("Plan")
