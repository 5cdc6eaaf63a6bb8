# pharmabook/modules/availability/service.py
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pharmabook.core.config import settings
from pharmabook.core.errors import NotFoundError, RuleOverlap, TransientFetchError
from pharmabook.modules.availability import repository as rules_repo
from pharmabook.modules.availability.calendar import eligible_dates
from pharmabook.modules.availability.models import AvailabilityRule
from pharmabook.modules.availability.overlap import find_conflicts
from pharmabook.modules.availability.schemas import (
    AvailabilityRuleDraft,
    AvailabilityRulePublic,
    DaySlots,
    EligibleDates,
    OverlapReport,
    RuleConflict,
    SlotPublic,
)
from pharmabook.modules.availability.slots import Slot, day_of_week, generate_slots
from pharmabook.modules.bookings import repository as bookings_repo
from pharmabook.modules.pharmacies import repository as staff_repo
from pharmabook.modules.services.repository import require_bookable_service, require_service

logger = logging.getLogger(__name__)


def _to_public(rule: AvailabilityRule) -> AvailabilityRulePublic:
    return AvailabilityRulePublic.model_validate(rule)


# CALENDAR
async def get_eligible_dates_svc(
    session: AsyncSession,
    service_id: UUID,
    *,
    today: Optional[date] = None,
    horizon_days: Optional[int] = None,
) -> EligibleDates:
    """
    Dates of the booking horizon (today inclusive) that have at least one
    active rule for their day of week.

    A failed rule fetch raises TransientFetchError instead of returning an
    empty list, so "try again" and "no availability" stay distinct.
    """
    service = await require_bookable_service(session, service_id)
    horizon = horizon_days or settings.BOOKING_HORIZON_DAYS

    try:
        rules = await rules_repo.list_active_rules(
            session, pharmacy_id=service.pharmacy_id, service_id=service.id
        )
    except SQLAlchemyError as exc:
        logger.warning("Availability fetch failed for service %s: %s", service_id, exc)
        raise TransientFetchError("availability_fetch_failed") from exc

    dates = eligible_dates(
        {r.day_of_week for r in rules}, today or date.today(), horizon
    )
    return EligibleDates(service_id=service.id, horizon_days=horizon, dates=dates)


# RESOLVER
async def resolve_slots(
    session: AsyncSession,
    *,
    pharmacy_id: UUID,
    service_id: UUID,
    day: date,
) -> List[Tuple[Slot, bool]]:
    """
    Generated slots of `day`, each paired with its availability.

    A slot is taken iff a non-cancelled booking of the service starts exactly
    at the slot start. Read-only snapshot: never a reservation.
    """
    try:
        rules = await rules_repo.list_active_rules(
            session,
            pharmacy_id=pharmacy_id,
            service_id=service_id,
            day_of_week=day_of_week(day),
        )
        slots = generate_slots(rules, day)
        if not slots:
            return []

        day_start = datetime.combine(day, time.min)
        bookings = await bookings_repo.list_bookings(
            session,
            pharmacy_id=pharmacy_id,
            service_id=service_id,
            range_start=day_start,
            range_end=day_start + timedelta(days=1),
        )
    except SQLAlchemyError as exc:
        logger.warning("Slot resolution failed for service %s on %s: %s", service_id, day, exc)
        raise TransientFetchError("slots_fetch_failed") from exc

    taken = {b.booking_start for b in bookings}
    return [(slot, slot.start not in taken) for slot in slots]


async def get_day_slots_svc(session: AsyncSession, service_id: UUID, day: date) -> DaySlots:
    """
    Public slot list of one date, with a state that separates "no rules for
    this date" from "all slots booked".
    """
    service = await require_bookable_service(session, service_id)
    resolved = await resolve_slots(
        session, pharmacy_id=service.pharmacy_id, service_id=service.id, day=day
    )

    if not resolved:
        state = "no_rules"
    elif any(available for _, available in resolved):
        state = "available"
    else:
        state = "fully_booked"

    return DaySlots(
        service_id=service.id,
        date=day,
        state=state,
        slots=[
            SlotPublic(
                start=slot.start,
                end=slot.end,
                available=available,
                pharmacist_id=slot.pharmacist_id,
            )
            for slot, available in resolved
        ],
    )


# OVERLAP
async def _conflicts_for(
    session: AsyncSession,
    *,
    pharmacy_id: UUID,
    service_id: UUID,
    draft: AvailabilityRuleDraft,
    ignore_rule_id: Optional[UUID] = None,
) -> List[RuleConflict]:
    existing: Sequence[AvailabilityRule] = await rules_repo.list_active_rules(
        session,
        pharmacy_id=pharmacy_id,
        service_id=service_id,
        days=draft.days,
        pharmacist_id=draft.pharmacist_id,
    )
    if ignore_rule_id is not None:
        existing = [r for r in existing if r.id != ignore_rule_id]

    names = await staff_repo.staff_names(
        session, pharmacy_id=pharmacy_id, pharmacist_ids=[r.pharmacist_id for r in existing]
    )
    return find_conflicts(draft, existing, names)


async def _check_pharmacist(
    session: AsyncSession, *, pharmacy_id: UUID, pharmacist_id: Optional[UUID]
) -> None:
    if pharmacist_id is None:
        return
    staff = await staff_repo.get_pharmacist_in_pharmacy(
        session, pharmacy_id=pharmacy_id, pharmacist_id=pharmacist_id
    )
    if staff is None:
        raise NotFoundError("pharmacist_not_found")


async def validate_rule_draft_svc(
    session: AsyncSession,
    *,
    pharmacy_id: UUID,
    service_id: UUID,
    draft: AvailabilityRuleDraft,
) -> OverlapReport:
    """
    Advisory check, run on every change of days/time/pharmacist in the form.
    """
    await require_service(session, pharmacy_id=pharmacy_id, service_id=service_id)
    await _check_pharmacist(session, pharmacy_id=pharmacy_id, pharmacist_id=draft.pharmacist_id)

    conflicts = await _conflicts_for(
        session, pharmacy_id=pharmacy_id, service_id=service_id, draft=draft
    )
    return OverlapReport(has_conflicts=bool(conflicts), conflicts=conflicts)


# CREATE
async def create_rules_svc(
    session: AsyncSession,
    *,
    pharmacy_id: UUID,
    service_id: UUID,
    draft: AvailabilityRuleDraft,
) -> List[AvailabilityRulePublic]:
    """
    Create one rule per selected day.

    The overlap check is re-run here against fresh data; a client-side
    result is never trusted.
    """
    await require_service(session, pharmacy_id=pharmacy_id, service_id=service_id)
    await _check_pharmacist(session, pharmacy_id=pharmacy_id, pharmacist_id=draft.pharmacist_id)

    conflicts = await _conflicts_for(
        session, pharmacy_id=pharmacy_id, service_id=service_id, draft=draft
    )
    if conflicts:
        logger.info(
            "Rejected availability for service %s: %d overlapping rule(s)",
            service_id,
            len(conflicts),
        )
        raise RuleOverlap(conflicts)

    rules = [
        AvailabilityRule(
            pharmacy_service_id=service_id,
            day_of_week=day,
            start_time=draft.start_time,
            end_time=draft.end_time,
            slot_length_minutes=draft.slot_length_minutes,
            max_bookings_per_slot=draft.max_bookings_per_slot,
            pharmacist_id=draft.pharmacist_id,
            is_active=True,
        )
        for day in draft.days
    ]
    created = await rules_repo.insert_rules(session, rules=rules)
    logger.info("Created %d availability rule(s) for service %s", len(created), service_id)
    return [_to_public(r) for r in created]


# LIST / TOGGLE / DELETE
async def list_rules_svc(
    session: AsyncSession, *, pharmacy_id: UUID, service_id: UUID
) -> List[AvailabilityRulePublic]:
    await require_service(session, pharmacy_id=pharmacy_id, service_id=service_id)
    rules = await rules_repo.list_rules(session, pharmacy_id=pharmacy_id, service_id=service_id)
    return [_to_public(r) for r in rules]


async def _require_rule(
    session: AsyncSession, *, pharmacy_id: UUID, rule_id: UUID
) -> AvailabilityRule:
    rule = await rules_repo.get_rule(session, pharmacy_id=pharmacy_id, rule_id=rule_id)
    if rule is None:
        raise NotFoundError("rule_not_found")
    return rule


async def set_rule_active_svc(
    session: AsyncSession, *, pharmacy_id: UUID, rule_id: UUID, is_active: bool
) -> AvailabilityRulePublic:
    """
    Toggle a rule. Re-activating goes through the overlap check again, since
    other rules may have been created while it was off.
    """
    rule = await _require_rule(session, pharmacy_id=pharmacy_id, rule_id=rule_id)
    if rule.is_active == is_active:
        return _to_public(rule)

    if is_active:
        draft = AvailabilityRuleDraft(
            days=[rule.day_of_week],
            start_time=rule.start_time,
            end_time=rule.end_time,
            slot_length_minutes=rule.slot_length_minutes,
            max_bookings_per_slot=rule.max_bookings_per_slot,
            pharmacist_id=rule.pharmacist_id,
        )
        conflicts = await _conflicts_for(
            session,
            pharmacy_id=pharmacy_id,
            service_id=rule.pharmacy_service_id,
            draft=draft,
            ignore_rule_id=rule.id,
        )
        if conflicts:
            raise RuleOverlap(conflicts)

    rule = await rules_repo.set_rule_active(session, rule=rule, is_active=is_active)
    return _to_public(rule)


async def delete_rule_svc(session: AsyncSession, *, pharmacy_id: UUID, rule_id: UUID) -> None:
    rule = await _require_rule(session, pharmacy_id=pharmacy_id, rule_id=rule_id)
    await rules_repo.delete_rule(session, rule=rule)
    logger.info("Deleted availability rule %s", rule_id)
