# pharmabook/modules/services/repository.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pharmabook.core.errors import NotFoundError
from pharmabook.modules.services.models import PharmacyService


async def get_service(
    session: AsyncSession, *, pharmacy_id: UUID, service_id: UUID
) -> Optional[PharmacyService]:
    """
    Returns the service if it belongs to the given pharmacy, else None.
    """
    stmt = select(PharmacyService).where(
        PharmacyService.id == service_id,
        PharmacyService.pharmacy_id == pharmacy_id,
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def get_bookable_service(
    session: AsyncSession, service_id: UUID
) -> Optional[PharmacyService]:
    """
    Public lookup: the service must be active and accept online bookings.
    The tenant is taken from the returned row.
    """
    service = await session.get(PharmacyService, service_id)
    if service is None or not service.is_bookable:
        return None
    return service


async def require_service(
    session: AsyncSession, *, pharmacy_id: UUID, service_id: UUID
) -> PharmacyService:
    service = await get_service(session, pharmacy_id=pharmacy_id, service_id=service_id)
    if service is None:
        raise NotFoundError("service_not_found")
    return service


async def require_bookable_service(
    session: AsyncSession, service_id: UUID
) -> PharmacyService:
    service = await get_bookable_service(session, service_id)
    if service is None:
        raise NotFoundError("service_not_found")
    return service
