# pharmabook/routers/portal_bookings.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pharmabook.db.sql import get_session
from pharmabook.dependencies import get_current_staff
from pharmabook.modules.bookings.schemas import (
    BookingListPage,
    BookingPublic,
    BookingStatusName,
    BookingStatusUpdate,
)
from pharmabook.modules.bookings.service import (
    get_booking_svc,
    list_bookings_svc,
    update_booking_status_svc,
)
from pharmabook.modules.pharmacies.models import Pharmacist

router = APIRouter(prefix="/portal/bookings", tags=["portal-bookings"])


@router.get(
    "",
    response_model=BookingListPage,
    summary="Bookings of the current pharmacy, newest first",
)
async def bookings_list(
    status: Optional[BookingStatusName] = Query(None),
    from_: Optional[datetime] = Query(
        None, alias="from", description="Only bookings starting at or after this local time"
    ),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
    staff: Pharmacist = Depends(get_current_staff),
):
    if from_ is not None and from_.tzinfo is not None:
        # booking times are stored as naive local wall-clock times
        raise HTTPException(status_code=422, detail="from_must_be_local_time")

    return await list_bookings_svc(
        session,
        pharmacy_id=staff.pharmacy_id,
        status=status.value if status else None,
        limit=limit,
        offset=offset,
        starts_from=from_,
    )


@router.get(
    "/{booking_id}",
    response_model=BookingPublic,
    summary="Booking detail",
)
async def bookings_detail(
    booking_id: UUID,
    session: AsyncSession = Depends(get_session),
    staff: Pharmacist = Depends(get_current_staff),
):
    return await get_booking_svc(session, pharmacy_id=staff.pharmacy_id, booking_id=booking_id)


@router.put(
    "/{booking_id}/status",
    response_model=BookingPublic,
    summary="Confirm, cancel or mark a booking as no-show",
)
async def bookings_set_status(
    booking_id: UUID,
    payload: BookingStatusUpdate,
    session: AsyncSession = Depends(get_session),
    staff: Pharmacist = Depends(get_current_staff),
):
    return await update_booking_status_svc(
        session,
        pharmacy_id=staff.pharmacy_id,
        booking_id=booking_id,
        status=payload.status.value,
    )
