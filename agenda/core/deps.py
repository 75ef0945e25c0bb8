"""FastAPI dependencies for authentication and brand authorization."""

from datetime import datetime, timezone
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.database import get_db
from agenda.models.brand import Brand
from agenda.models.user import User
from agenda.services.access import check_brand_membership, check_brand_staff, check_root_only
from agenda.services.auth import decode_access_token

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract and validate the current user from JWT token.

    Raises 401 if no token or invalid token.
    """
    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id_str: Optional[str] = payload.get("sub")
    try:
        user_id = int(user_id_str)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


def require_role(*roles: str):
    """Dependency factory that checks if user has one of the required roles.

    Usage:
        require_admin = require_role("ADMIN")

        @router.get("/admin-only")
        async def admin_route(user: User = Depends(require_admin)):
            ...
    """
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join(roles)}"
            )
        return current_user

    return role_checker


async def get_brand(brand_id: int, db: AsyncSession = Depends(get_db)) -> Brand:
    """Resolve the {brand_id} path parameter to an active brand."""
    result = await db.execute(select(Brand).where(Brand.id == brand_id))
    brand = result.scalar_one_or_none()
    if not brand or not brand.is_active:
        raise HTTPException(status_code=404, detail="Brand not found")
    return brand


async def get_brand_member(
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_current_user),
) -> User:
    """Current user, checked to belong to the brand in the path."""
    decision = check_brand_membership(current_user.brand_id, brand.id, current_user.role)
    if not decision.allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.reason)
    return current_user


async def get_brand_staff(current_user: User = Depends(get_brand_member)) -> User:
    """Brand member with ROOT or ADMIN role."""
    decision = check_brand_staff(current_user.role)
    if not decision.allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.reason)
    return current_user


async def get_brand_root(current_user: User = Depends(get_brand_member)) -> User:
    """Brand member with the ROOT role."""
    decision = check_root_only(current_user.role)
    if not decision.allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.reason)
    return current_user


def get_request_time() -> datetime:
    """Current instant (aware UTC). Overridden in tests to pin the clock."""
    return datetime.now(timezone.utc)
