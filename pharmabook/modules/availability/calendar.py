"""
Date eligibility for the booking date picker.

A date is eligible when at least one active rule exists for its day of
week. Capacity is not looked at here.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List

from pharmabook.modules.availability.slots import day_of_week

DEFAULT_HORIZON_DAYS = 60


def eligible_dates(
    active_days: Iterable[int], start: date, horizon_days: int = DEFAULT_HORIZON_DAYS
) -> List[date]:
    """
    The dates among [start, start + horizon_days) whose day of week has a rule.
    """
    days = set(active_days)
    if not days:
        return []
    candidates = (start + timedelta(days=i) for i in range(horizon_days))
    return [d for d in candidates if day_of_week(d) in days]
