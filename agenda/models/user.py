"""User model for per-brand authentication."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
from agenda.core.database import Base


class UserRole(str, enum.Enum):
    ROOT = "ROOT"  # owns a brand
    ADMIN = "ADMIN"  # platform operator, cross-brand
    CLIENT = "CLIENT"  # books appointments


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("brand_id", "email", name="uq_users_brand_email"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=True, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    role = Column(String, nullable=False, default=UserRole.CLIENT.value)
    is_active = Column(Boolean, default=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    brand = relationship("Brand", back_populates="users")
