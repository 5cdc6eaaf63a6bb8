# pharmabook/routers/booking.py
from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pharmabook.db.sql import get_session
from pharmabook.modules.availability.schemas import DaySlots, EligibleDates
from pharmabook.modules.availability.service import get_day_slots_svc, get_eligible_dates_svc
from pharmabook.modules.bookings.schemas import BookingConfirmation, BookingCreateRequest
from pharmabook.modules.bookings.service import commit_booking_svc
from pharmabook.modules.notifications.service import dispatch_booking_created

# Patient-facing, anonymous
router = APIRouter(prefix="/services", tags=["booking"])


@router.get(
    "/{service_id}/available-dates",
    response_model=EligibleDates,
    summary="Dates within the booking horizon that have availability",
)
async def available_dates(
    service_id: UUID,
    days: Optional[int] = Query(None, ge=1, le=366, description="Horizon override"),
    session: AsyncSession = Depends(get_session),
):
    return await get_eligible_dates_svc(session, service_id, horizon_days=days)


@router.get(
    "/{service_id}/slots",
    response_model=DaySlots,
    summary="Time slots of one date with their availability",
)
async def day_slots(
    service_id: UUID,
    day: date = Query(..., alias="date", description="YYYY-MM-DD"),
    session: AsyncSession = Depends(get_session),
):
    return await get_day_slots_svc(session, service_id, day)


@router.post(
    "/{service_id}/bookings",
    response_model=BookingConfirmation,
    status_code=status.HTTP_201_CREATED,
    summary="Book a slot (first commit wins)",
)
async def create_booking(
    service_id: UUID,
    payload: BookingCreateRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
):
    """
    Commits the booking, then schedules the confirmation emails. A failed
    email never affects the booking.
    """
    confirmation = await commit_booking_svc(session, service_id, payload)
    background_tasks.add_task(dispatch_booking_created, confirmation.id)
    return confirmation
