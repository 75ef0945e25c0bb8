"""Public onboarding catalog: business types, features and plans."""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, Float, func
from sqlalchemy.types import JSON

from agenda.core.database import Base


class BusinessType(Base):
    __tablename__ = "business_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String, unique=True, index=True, nullable=False)  # "salon", "clinic"
    title = Column(String, nullable=False)
    subtitle = Column(String, nullable=True)
    description = Column(Text, nullable=False)
    icon = Column(String, nullable=False)
    order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


class Feature(Base):
    __tablename__ = "features"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String, unique=True, index=True, nullable=False)
    title = Column(String, nullable=False)
    subtitle = Column(String, nullable=True)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False, default=0)
    category = Column(String, nullable=False)  # ESSENTIAL, BUSINESS, ADVANCED
    is_recommended = Column(Boolean, nullable=False, default=False)
    is_popular = Column(Boolean, nullable=False, default=False)
    order = Column(Integer, nullable=False, default=0)
    business_types = Column(JSON, nullable=True)  # ["salon", "clinic"]
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


class Plan(Base):
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String, unique=True, nullable=False)  # web, app, complete
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    base_price = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
