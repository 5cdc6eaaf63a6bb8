# pharmabook/routers/notifications.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pharmabook.db.sql import get_session
from pharmabook.modules.notifications.service import (
    NotificationRequest,
    NotificationResult,
    notify_booking_created,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post(
    "/booking-confirmation",
    response_model=NotificationResult,
    summary="Send confirmation emails for a just-created booking",
)
async def booking_confirmation(
    payload: NotificationRequest,
    session: AsyncSession = Depends(get_session),
):
    return await notify_booking_created(session, payload.booking_id)
