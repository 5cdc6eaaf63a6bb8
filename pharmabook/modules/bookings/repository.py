# pharmabook/modules/bookings/repository.py
from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pharmabook.core.errors import SlotUnavailable, ValidationError
from pharmabook.modules.bookings.models import UQ_ACTIVE_SLOT, Booking, BookingStatus


async def list_bookings(
    session: AsyncSession,
    *,
    pharmacy_id: UUID,
    service_id: UUID,
    range_start: datetime,
    range_end: datetime,
    exclude_status: Optional[str] = BookingStatus.CANCELLED.value,
) -> Sequence[Booking]:
    """
    Bookings of a service with booking_start in [range_start, range_end).
    """
    conditions = [
        Booking.pharmacy_id == pharmacy_id,
        Booking.pharmacy_service_id == service_id,
        Booking.booking_start >= range_start,
        Booking.booking_start < range_end,
    ]
    if exclude_status is not None:
        conditions.append(Booking.status != exclude_status)

    stmt = select(Booking).where(*conditions).order_by(Booking.booking_start)
    return (await session.execute(stmt)).scalars().all()


async def insert_booking(session: AsyncSession, booking: Booking) -> Booking:
    """
    Insert a booking. The partial unique index on (service, booking_start)
    among non-cancelled rows is what rejects a concurrent double booking.
    """
    session.add(booking)
    try:
        # Flush to force INSERT and surface constraint violations here
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        message = str(exc.orig).lower() if exc.orig else str(exc).lower()

        if UQ_ACTIVE_SLOT in message or "unique" in message:
            raise SlotUnavailable("slot_unavailable") from exc

        raise ValidationError("booking_rejected") from exc

    await session.refresh(booking)
    return booking


async def get_booking(
    session: AsyncSession, *, pharmacy_id: UUID, booking_id: UUID
) -> Optional[Booking]:
    stmt = select(Booking).where(
        Booking.id == booking_id,
        Booking.pharmacy_id == pharmacy_id,
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def get_booking_unscoped(session: AsyncSession, booking_id: UUID) -> Optional[Booking]:
    """
    Only for the notification dispatcher, which receives nothing but an id.
    """
    stmt = select(Booking).where(Booking.id == booking_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def update_booking_status(
    session: AsyncSession, *, booking: Booking, status: str
) -> Booking:
    booking.status = status
    await session.flush()
    await session.refresh(booking)
    return booking


async def list_bookings_page(
    session: AsyncSession,
    *,
    pharmacy_id: UUID,
    status: Optional[str],
    limit: int,
    offset: int,
    starts_from: Optional[datetime] = None,
) -> Tuple[Sequence[Booking], int]:
    conditions = [Booking.pharmacy_id == pharmacy_id]
    if status is not None:
        conditions.append(Booking.status == status)
    if starts_from is not None:
        conditions.append(Booking.booking_start >= starts_from)

    total_stmt = select(func.count()).select_from(Booking).where(*conditions)
    total = (await session.execute(total_stmt)).scalar_one()

    stmt = (
        select(Booking)
        .where(*conditions)
        .order_by(Booking.booking_start.desc(), Booking.id)
        .limit(limit)
        .offset(offset)
    )
    rows = (await session.execute(stmt)).scalars().all()
    return rows, total
