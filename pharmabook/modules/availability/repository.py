# pharmabook/modules/availability/repository.py
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pharmabook.modules.availability.models import AvailabilityRule
from pharmabook.modules.services.models import PharmacyService


def _scoped(pharmacy_id: UUID):
    """
    Rules carry no pharmacy_id of their own; tenancy goes through the service.
    """
    return (
        select(AvailabilityRule)
        .join(PharmacyService, PharmacyService.id == AvailabilityRule.pharmacy_service_id)
        .where(PharmacyService.pharmacy_id == pharmacy_id)
    )


async def list_active_rules(
    session: AsyncSession,
    *,
    pharmacy_id: UUID,
    service_id: UUID,
    day_of_week: Optional[int] = None,
    days: Optional[Iterable[int]] = None,
    pharmacist_id: Optional[UUID] = None,
) -> Sequence[AvailabilityRule]:
    """
    Active rules of a service, optionally narrowed to one day, a set of days
    or one pharmacist. Ordered by day then start time.
    """
    stmt = _scoped(pharmacy_id).where(
        AvailabilityRule.pharmacy_service_id == service_id,
        AvailabilityRule.is_active.is_(True),
    )
    if day_of_week is not None:
        stmt = stmt.where(AvailabilityRule.day_of_week == day_of_week)
    if days is not None:
        stmt = stmt.where(AvailabilityRule.day_of_week.in_(list(days)))
    if pharmacist_id is not None:
        stmt = stmt.where(AvailabilityRule.pharmacist_id == pharmacist_id)

    stmt = stmt.order_by(
        AvailabilityRule.day_of_week,
        AvailabilityRule.start_time,
        AvailabilityRule.created_at,
    )
    return (await session.execute(stmt)).scalars().all()


async def list_rules(
    session: AsyncSession, *, pharmacy_id: UUID, service_id: UUID
) -> Sequence[AvailabilityRule]:
    """All rules of a service (active and inactive), for the portal."""
    stmt = (
        _scoped(pharmacy_id)
        .where(AvailabilityRule.pharmacy_service_id == service_id)
        .order_by(AvailabilityRule.day_of_week, AvailabilityRule.start_time)
    )
    return (await session.execute(stmt)).scalars().all()


async def get_rule(
    session: AsyncSession, *, pharmacy_id: UUID, rule_id: UUID
) -> Optional[AvailabilityRule]:
    stmt = _scoped(pharmacy_id).where(AvailabilityRule.id == rule_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def insert_rules(
    session: AsyncSession, *, rules: List[AvailabilityRule]
) -> List[AvailabilityRule]:
    """
    Batch insert (one rule per selected day). All or nothing: the caller's
    transaction decides.
    """
    session.add_all(rules)
    await session.flush()
    return rules


async def set_rule_active(
    session: AsyncSession, *, rule: AvailabilityRule, is_active: bool
) -> AvailabilityRule:
    rule.is_active = is_active
    await session.flush()
    await session.refresh(rule)
    return rule


async def delete_rule(session: AsyncSession, *, rule: AvailabilityRule) -> int:
    res = await session.execute(delete(AvailabilityRule).where(AvailabilityRule.id == rule.id))
    return res.rowcount or 0  # type: ignore
