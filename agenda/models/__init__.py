from .catalog import BusinessType, Feature, Plan
from .brand import Brand
from .user import User, UserRole
from .schedule import BusinessHours, SpecialHours, AppointmentSettings
from .appointment import Appointment

__all__ = [
    "BusinessType",
    "Feature",
    "Plan",
    "Brand",
    "User",
    "UserRole",
    "BusinessHours",
    "SpecialHours",
    "AppointmentSettings",
    "Appointment",
]
