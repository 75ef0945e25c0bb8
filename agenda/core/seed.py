"""Seed the landing catalog and the platform admin account on app startup."""

import logging
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from agenda.core.config import settings
from agenda.core.database import async_session
from agenda.models.catalog import BusinessType, Feature, Plan
from agenda.models.user import User, UserRole
from agenda.services.auth import hash_password, get_user_by_email

logger = logging.getLogger(__name__)

BUSINESS_TYPES = [
    {"key": "photographer", "title": "Photographer", "subtitle": "Professional photography",
     "description": "Sessions, events and portraits", "icon": "Camera", "order": 1},
    {"key": "videographer", "title": "Videographer", "subtitle": "Professional video",
     "description": "Events, commercials and documentaries", "icon": "Video", "order": 2},
    {"key": "clinic", "title": "Doctor / Dentist", "subtitle": "Medical services",
     "description": "Medical and dental practices, appointments and treatments", "icon": "Stethoscope", "order": 3},
    {"key": "stylist", "title": "Stylist / Barber", "subtitle": "Beauty services",
     "description": "Beauty salons, hairdressers and barbershops", "icon": "Scissors", "order": 4},
    {"key": "consultant", "title": "Consultant", "subtitle": "Professional consulting",
     "description": "Advisory and consulting services", "icon": "Briefcase", "order": 5},
    {"key": "spa", "title": "Massage / Spa", "subtitle": "Wellness and relaxation",
     "description": "Massage, spa and wellness services", "icon": "Hand", "order": 6},
    {"key": "trainer", "title": "Personal Trainer", "subtitle": "Fitness and training",
     "description": "Personal training and sports coaching", "icon": "Dumbbell", "order": 7},
]

ALL_TYPES = [bt["key"] for bt in BUSINESS_TYPES]

FEATURES = [
    {"key": "appointments", "title": "Appointment System", "price": 15.0, "category": "ESSENTIAL",
     "description": "Online booking with schedules and reminders", "is_recommended": True, "is_popular": True,
     "order": 1, "business_types": ALL_TYPES},
    {"key": "payments", "title": "Online Payments", "price": 10.0, "category": "ESSENTIAL",
     "description": "Take deposits and payments online", "is_popular": True,
     "order": 2, "business_types": ALL_TYPES},
    {"key": "clients", "title": "Client Database", "price": 8.0, "category": "ESSENTIAL",
     "description": "Client profiles and visit history", "is_recommended": True,
     "order": 3, "business_types": ALL_TYPES},
    {"key": "home-services", "title": "Home Services", "price": 12.0, "category": "BUSINESS",
     "description": "Service areas and travel between appointments",
     "order": 4, "business_types": ["photographer", "videographer", "spa", "trainer"]},
    {"key": "files", "title": "File Management", "price": 7.0, "category": "BUSINESS",
     "description": "Share documents and deliverables with clients",
     "order": 5, "business_types": ["photographer", "videographer", "consultant", "clinic"]},
    {"key": "galleries", "title": "Work Galleries", "price": 9.0, "category": "BUSINESS",
     "description": "Showcase your portfolio", "order": 6,
     "business_types": ["photographer", "videographer", "stylist"]},
    {"key": "reminders", "title": "Email Reminders", "price": 6.0, "category": "BUSINESS",
     "description": "Automatic appointment reminders", "is_recommended": True,
     "order": 7, "business_types": ALL_TYPES},
    {"key": "reports", "title": "Advanced Reports", "price": 18.0, "category": "ADVANCED",
     "description": "Revenue and booking analytics", "order": 8, "business_types": ALL_TYPES},
    {"key": "progress", "title": "Progress Tracking", "price": 14.0, "category": "ADVANCED",
     "description": "Track client goals across sessions", "order": 9,
     "business_types": ["trainer", "clinic", "consultant"]},
]

PLANS = [
    {"type": "web", "name": "Web Only", "description": "Booking website", "base_price": 0.0},
    {"type": "app", "name": "Mobile App Only", "description": "Branded mobile app", "base_price": 59.0},
    {"type": "complete", "name": "Web + App", "description": "Website and branded mobile app", "base_price": 60.0},
]


async def seed_catalog(db: AsyncSession) -> bool:
    """Insert the catalog if the business_types table is empty. Returns True if seeded."""
    count = (await db.execute(select(func.count(BusinessType.id)))).scalar_one()
    if count:
        return False

    db.add_all(BusinessType(**data) for data in BUSINESS_TYPES)
    db.add_all(Feature(**data) for data in FEATURES)
    db.add_all(Plan(**data) for data in PLANS)
    await db.commit()
    return True


async def seed_admin_account(db: AsyncSession, email: str, password: str) -> bool:
    """Create the platform ADMIN if it doesn't exist. Returns True if created."""
    existing_user = await get_user_by_email(db, email, brand_id=None)
    if existing_user:
        return False

    user = User(
        email=email.lower(),
        hashed_password=hash_password(password),
        brand_id=None,
        role=UserRole.ADMIN.value,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return True


async def seed_on_startup():
    """Seed the catalog and the platform admin, logging instead of failing startup."""
    async with async_session() as db:
        try:
            if await seed_catalog(db):
                logger.info("✅ Landing catalog seeded: %d business types, %d features, %d plans",
                            len(BUSINESS_TYPES), len(FEATURES), len(PLANS))
            else:
                logger.info("✅ Landing catalog already present")

            if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
                if await seed_admin_account(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD):
                    logger.info("✅ Admin account created: %s", settings.ADMIN_EMAIL)
                else:
                    logger.info("✅ Admin account already exists: %s", settings.ADMIN_EMAIL)
        except Exception as e:
            logger.error("Failed to seed startup data: %s", e)
            await db.rollback()
