"""
Slot generation.

Turns the active weekly rules of one service for one day of week into the
concrete, fixed-length slots of a calendar date. Pure: no I/O, no clock.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional
from uuid import UUID

from pharmabook.modules.availability.models import AvailabilityRule


def day_of_week(day: date) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return day.isoweekday() % 7


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime
    rule_id: Optional[UUID] = None
    pharmacist_id: Optional[UUID] = None
    max_bookings: int = 1


def slots_for_rule(rule: AvailabilityRule, day: date) -> List[Slot]:
    """
    Emit slots from day@start_time, advancing by slot_length_minutes, and stop
    at the first candidate that would end after day@end_time.
    """
    step = timedelta(minutes=rule.slot_length_minutes)
    window_end = datetime.combine(day, rule.end_time)
    cursor = datetime.combine(day, rule.start_time)

    slots: List[Slot] = []
    while cursor + step <= window_end:
        slots.append(
            Slot(
                start=cursor,
                end=cursor + step,
                rule_id=rule.id,
                pharmacist_id=rule.pharmacist_id,
                max_bookings=rule.max_bookings_per_slot or 1,
            )
        )
        cursor += step
    return slots


def generate_slots(rules: Iterable[AvailabilityRule], day: date) -> List[Slot]:
    """
    Slots of every rule for `day`, concatenated and ordered by start time.
    Overlapping rules yield overlapping slots; ties keep input rule order
    (sorted() is stable).

    Rules whose day_of_week differs from the date's are ignored.
    """
    dow = day_of_week(day)
    slots: List[Slot] = []
    for rule in rules:
        if rule.day_of_week != dow:
            continue
        slots.extend(slots_for_rule(rule, day))
    return sorted(slots, key=lambda s: s.start)
