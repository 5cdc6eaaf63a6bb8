# pharmabook/modules/bookings/service.py
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Dict, FrozenSet, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pharmabook.core.config import settings
from pharmabook.core.errors import NotFoundError, SlotUnavailable, ValidationError
from pharmabook.modules.availability.service import resolve_slots
from pharmabook.modules.bookings import repository as bookings_repo
from pharmabook.modules.bookings.models import BOOKING_SOURCE_WEB, Booking, BookingStatus
from pharmabook.modules.bookings.schemas import (
    BookingConfirmation,
    BookingCreateRequest,
    BookingListItem,
    BookingListPage,
    BookingPublic,
)
from pharmabook.modules.services.repository import require_bookable_service

logger = logging.getLogger(__name__)

# Staff-driven status workflow; cancelled and no_show are terminal
ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    BookingStatus.PENDING.value: frozenset(
        {BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value, BookingStatus.NO_SHOW.value}
    ),
    BookingStatus.CONFIRMED.value: frozenset(
        {BookingStatus.CANCELLED.value, BookingStatus.NO_SHOW.value}
    ),
    BookingStatus.CANCELLED.value: frozenset(),
    BookingStatus.NO_SHOW.value: frozenset(),
}


def _to_public(booking: Booking) -> BookingPublic:
    return BookingPublic.model_validate(booking)


# COMMIT
async def commit_booking_svc(
    session: AsyncSession,
    service_id: UUID,
    payload: BookingCreateRequest,
    *,
    today: Optional[date] = None,
) -> BookingConfirmation:
    """
    Book a slot for a patient.

    Logic:
    - pharmacy_id comes from the service row (bookings are tenant-scoped).
    - The date must lie in the booking horizon the calendar offers:
      [today, today + BOOKING_HORIZON_DAYS).
    - The requested times must match a slot generated for that date.
    - A snapshot that already shows the slot taken fails fast; otherwise the
      INSERT decides: the partial unique index rejects the loser of a race
      with SlotUnavailable.
    - Committed here so the notification that follows can see the row.
    """
    service = await require_bookable_service(session, service_id)

    day = payload.booking_start.date()
    first_day = today or date.today()
    if not first_day <= day < first_day + timedelta(days=settings.BOOKING_HORIZON_DAYS):
        raise ValidationError("slot_not_offered")

    resolved = await resolve_slots(
        session,
        pharmacy_id=service.pharmacy_id,
        service_id=service.id,
        day=day,
    )
    matching = [
        (slot, available)
        for slot, available in resolved
        if slot.start == payload.booking_start and slot.end == payload.booking_end
    ]
    if not matching:
        raise ValidationError("slot_not_offered")

    free = [slot for slot, available in matching if available]
    if not free:
        raise SlotUnavailable("slot_unavailable")
    chosen = free[0]

    booking = Booking(
        pharmacy_id=service.pharmacy_id,
        pharmacy_service_id=service.id,
        pharmacist_id=chosen.pharmacist_id,
        booking_start=chosen.start,
        booking_end=chosen.end,
        patient_first_name=payload.patient_first_name,
        patient_last_name=payload.patient_last_name,
        patient_email=payload.patient_email,
        patient_phone=payload.patient_phone,
        notes=payload.notes,
        status=BookingStatus.PENDING.value,
        source=BOOKING_SOURCE_WEB,
    )

    try:
        booking = await bookings_repo.insert_booking(session, booking)
    except SlotUnavailable:
        logger.info("Slot %s of service %s claimed concurrently", payload.booking_start, service_id)
        raise

    await session.commit()
    logger.info("Booking %s created for service %s at %s", booking.id, service_id, booking.booking_start)
    return BookingConfirmation.model_validate(booking)


# PORTAL LIST
async def list_bookings_svc(
    session: AsyncSession,
    *,
    pharmacy_id: UUID,
    status: Optional[str],
    limit: int,
    offset: int,
    starts_from: Optional[datetime] = None,
) -> BookingListPage:
    rows, total = await bookings_repo.list_bookings_page(
        session,
        pharmacy_id=pharmacy_id,
        status=status,
        limit=limit,
        offset=offset,
        starts_from=starts_from,
    )
    items = [BookingListItem.model_validate(b) for b in rows]
    return BookingListPage(
        items=items,
        total=total,
        limit=limit,
        offset=offset,
        has_next=offset + limit < total,
    )


async def get_booking_svc(
    session: AsyncSession, *, pharmacy_id: UUID, booking_id: UUID
) -> BookingPublic:
    booking = await bookings_repo.get_booking(session, pharmacy_id=pharmacy_id, booking_id=booking_id)
    if not booking:
        raise NotFoundError("booking_not_found")
    return _to_public(booking)


# STATUS
async def update_booking_status_svc(
    session: AsyncSession,
    *,
    pharmacy_id: UUID,
    booking_id: UUID,
    status: str,
) -> BookingPublic:
    """
    Staff changes a booking's status.
    - Same status again is idempotent and returned immediately.
    - Terminal statuses (cancelled, no_show) cannot be left.
    """
    booking = await bookings_repo.get_booking(session, pharmacy_id=pharmacy_id, booking_id=booking_id)
    if not booking:
        raise NotFoundError("booking_not_found")

    if booking.status == status:
        return _to_public(booking)

    if status not in ALLOWED_TRANSITIONS.get(booking.status, frozenset()):
        raise ValidationError("invalid_status_transition")

    booking = await bookings_repo.update_booking_status(session, booking=booking, status=status)
    logger.info("Booking %s moved to %s", booking_id, status)
    return _to_public(booking)
