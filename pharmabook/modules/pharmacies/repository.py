# pharmabook/modules/pharmacies/repository.py
from __future__ import annotations

from typing import Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pharmabook.modules.pharmacies.models import EmailSettings, Pharmacist


async def get_pharmacist(session: AsyncSession, pharmacist_id: UUID) -> Optional[Pharmacist]:
    """
    Returns a staff member by primary key or None if not found.
    """
    return await session.get(Pharmacist, pharmacist_id)


async def get_pharmacist_in_pharmacy(
    session: AsyncSession, *, pharmacy_id: UUID, pharmacist_id: UUID
) -> Optional[Pharmacist]:
    stmt = select(Pharmacist).where(
        Pharmacist.id == pharmacist_id,
        Pharmacist.pharmacy_id == pharmacy_id,
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def staff_names(
    session: AsyncSession, *, pharmacy_id: UUID, pharmacist_ids: Iterable[UUID]
) -> Dict[UUID, str]:
    """
    Map pharmacist id -> display name, restricted to the pharmacy.
    """
    ids = {i for i in pharmacist_ids if i is not None}
    if not ids:
        return {}
    stmt = select(Pharmacist).where(
        Pharmacist.pharmacy_id == pharmacy_id,
        Pharmacist.id.in_(ids),
    )
    rows = (await session.execute(stmt)).scalars().all()
    return {p.id: p.display_name for p in rows}


async def get_email_settings(
    session: AsyncSession, *, pharmacy_id: UUID
) -> Optional[EmailSettings]:
    stmt = select(EmailSettings).where(EmailSettings.pharmacy_id == pharmacy_id)
    return (await session.execute(stmt)).scalar_one_or_none()
