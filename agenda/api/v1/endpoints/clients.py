"""Client directory endpoints for brand staff."""

import logging
from datetime import datetime
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.appointment_constants import AppointmentStatus
from agenda.core.database import get_db
from agenda.core.deps import get_brand, get_brand_staff, get_request_time
from agenda.models.brand import Brand
from agenda.models.user import User
from agenda.schemas.appointment import AppointmentListOut, AppointmentOut
from agenda.schemas.client import (
    CheckEmailOut,
    CheckEmailRequest,
    ClientListOut,
    ClientOut,
    ClientsSummary,
    ClientUpdate,
)
from agenda.services import appointments as appointment_service
from agenda.services import clients as client_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=ClientListOut)
async def list_clients(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    active: Optional[bool] = Query(None),
    sort_by: Literal["created_at", "first_name", "email", "last_login_at"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    """List the brand's clients with search, active filter and sorting."""
    clients, total = await client_service.list_clients(
        db,
        brand.id,
        page=page,
        limit=limit,
        search=search,
        active=active,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ClientListOut(
        clients=clients,
        total=total,
        page=page,
        pages=appointment_service.page_count(total, limit),
    )


@router.post("/check-email", response_model=CheckEmailOut)
async def check_email(
    data: CheckEmailRequest,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    return await client_service.check_email(db, brand.id, data.email)


@router.get("/stats/summary", response_model=ClientsSummary)
async def clients_summary(
    period: Literal["7d", "30d", "90d", "1y", "all"] = Query("30d"),
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_request_time),
):
    return await client_service.clients_summary(db, brand, period, now)


@router.get("/{client_id}", response_model=ClientOut)
async def get_client(
    client_id: int,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    return await client_service.get_client_profile(db, brand.id, client_id)


@router.put("/{client_id}", response_model=ClientOut)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    return await client_service.update_client(db, brand.id, client_id, data)


@router.delete("/{client_id}", status_code=204)
async def deactivate_client(
    client_id: int,
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    await client_service.deactivate_client(db, brand.id, client_id)
    return Response(status_code=204)


@router.get("/{client_id}/appointments", response_model=AppointmentListOut)
async def client_appointments(
    client_id: int,
    status: Optional[AppointmentStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    brand: Brand = Depends(get_brand),
    current_user: User = Depends(get_brand_staff),
    db: AsyncSession = Depends(get_db),
):
    """A client's appointment history, newest first."""
    await client_service.get_client(db, brand.id, client_id)
    items, total = await appointment_service.list_appointments(
        db,
        brand,
        current_user,
        status_filter=status,
        client_id=client_id,
        page=page,
        limit=limit,
        newest_first=True,
    )
    return AppointmentListOut(
        appointments=[AppointmentOut.model_validate(a) for a in items],
        total=total,
        page=page,
        pages=appointment_service.page_count(total, limit),
    )
