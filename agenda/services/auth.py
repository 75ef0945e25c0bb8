"""Authentication service.

Handles password hashing, JWT token generation/validation, and per-brand
user authentication.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.models.user import User, UserRole
from agenda.core.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__default_ident="2b")

# JWT settings
ALGORITHM = "HS256"


def _truncate_password(password: str) -> str:
    """Truncate password to 72 bytes (bcrypt limit)."""
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        return password_bytes[:72].decode('utf-8', errors='ignore')
    return password


def hash_password(password: str) -> str:
    """Hash a plain-text password.

    Note: Bcrypt has a 72-byte password limit. We truncate longer passwords.
    """
    return pwd_context.hash(_truncate_password(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(_truncate_password(plain_password), hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def create_user_token(user: User) -> str:
    """Token carrying the user id, brand and role claims."""
    return create_access_token(data={
        "sub": str(user.id),
        "brand_id": user.brand_id,
        "role": user.role,
    })


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT access token."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning("JWT decode error: %s", e)
        return None


async def get_user_by_email(db: AsyncSession, email: str, brand_id: Optional[int]) -> Optional[User]:
    """Fetch a user by email inside a brand (brand_id=None for platform admins)."""
    query = select(User).where(User.email == email.lower())
    if brand_id is None:
        query = query.where(User.brand_id.is_(None))
    else:
        query = query.where(User.brand_id == brand_id)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def authenticate_user(db: AsyncSession, email: str, password: str, brand_id: Optional[int]) -> Optional[User]:
    """Authenticate a user by email and password within a brand."""
    user = await get_user_by_email(db, email, brand_id)

    if not user:
        return None

    if not verify_password(password, user.hashed_password):
        return None

    return user


async def authenticate_admin(db: AsyncSession, email: str, password: str) -> Optional[User]:
    """Authenticate a platform ADMIN (not bound to a brand)."""
    user = await authenticate_user(db, email, password, brand_id=None)
    if user and user.role == UserRole.ADMIN.value:
        return user
    return None
