"""
Overlap detection for availability rule drafts.

A draft (days, window, optional pharmacist) conflicts with an existing active
rule of the same service when they share a day and their windows intersect
as half-open intervals. Touching windows (one ends when the other starts)
do not conflict.
"""
from __future__ import annotations

from datetime import time
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from pharmabook.modules.availability.models import AvailabilityRule
from pharmabook.modules.availability.schemas import AvailabilityRuleDraft, RuleConflict


def windows_overlap(s1: time, e1: time, s2: time, e2: time) -> bool:
    """[s1, e1) and [s2, e2) intersect."""
    return s1 < e2 and s2 < e1


def rule_in_scope(
    rule: AvailabilityRule, days: Iterable[int], pharmacist_id: Optional[UUID]
) -> bool:
    """
    A staff-specific draft only competes with that pharmacist's rules; an
    unassigned draft competes with every rule on its days.
    """
    if not rule.is_active or rule.day_of_week not in set(days):
        return False
    if pharmacist_id is not None and rule.pharmacist_id != pharmacist_id:
        return False
    return True


def find_conflicts(
    draft: AvailabilityRuleDraft,
    existing: Iterable[AvailabilityRule],
    staff_names: Optional[Dict[UUID, str]] = None,
) -> List[RuleConflict]:
    """
    Validate a draft against the service's existing rules.
    Pure function of its inputs; called on every draft change and once more
    before the rules are inserted.
    """
    staff_names = staff_names or {}
    conflicts: List[RuleConflict] = []

    for rule in existing:
        if not rule_in_scope(rule, draft.days, draft.pharmacist_id):
            continue
        if not windows_overlap(draft.start_time, draft.end_time, rule.start_time, rule.end_time):
            continue
        conflicts.append(
            RuleConflict(
                rule_id=rule.id,
                day_of_week=rule.day_of_week,
                day_name=rule.day_name,
                start_time=rule.start_time,
                end_time=rule.end_time,
                pharmacist_id=rule.pharmacist_id,
                pharmacist_name=staff_names.get(rule.pharmacist_id) if rule.pharmacist_id else None,
            )
        )

    return sorted(conflicts, key=lambda c: (c.day_of_week, c.start_time))
