"""Tests for availability overlap detection."""

from datetime import time
from uuid import uuid4

from pharmabook.modules.availability.models import AvailabilityRule
from pharmabook.modules.availability.overlap import find_conflicts, windows_overlap
from pharmabook.modules.availability.schemas import AvailabilityRuleDraft

TUESDAY = 2


def existing(day=TUESDAY, start=time(9, 0), end=time(17, 0), pharmacist_id=None, is_active=True):
    return AvailabilityRule(
        id=uuid4(),
        pharmacy_service_id=uuid4(),
        pharmacist_id=pharmacist_id,
        day_of_week=day,
        start_time=start,
        end_time=end,
        slot_length_minutes=30,
        max_bookings_per_slot=1,
        is_active=is_active,
    )


def draft(days=(TUESDAY,), start="12:00", end="13:00", pharmacist_id=None):
    return AvailabilityRuleDraft(
        days=list(days), start_time=start, end_time=end, pharmacist_id=pharmacist_id
    )


class TestWindowsOverlap:
    def test_touching_windows_do_not_overlap(self):
        assert not windows_overlap(time(9), time(12), time(12), time(15))
        assert not windows_overlap(time(12), time(15), time(9), time(12))

    def test_contained_window_overlaps(self):
        assert windows_overlap(time(9), time(17), time(12), time(13))

    def test_partial_overlap(self):
        assert windows_overlap(time(9), time(12), time(11, 59), time(15))


class TestFindConflicts:
    def test_unassigned_draft_inside_existing_window(self):
        """Tue 09:00-17:00 exists, draft Tue 12:00-13:00 -> one conflict."""
        rule = existing()
        conflicts = find_conflicts(draft(), [rule])
        assert len(conflicts) == 1
        assert conflicts[0].rule_id == rule.id
        assert conflicts[0].day_name == "Tuesday"

    def test_touching_boundary_same_pharmacist(self):
        """Tue 09:00-12:00 (A), draft Tue 12:00-15:00 (A) -> no conflict."""
        staff = uuid4()
        rule = existing(end=time(12, 0), pharmacist_id=staff)
        assert find_conflicts(draft(start="12:00", end="15:00", pharmacist_id=staff), [rule]) == []

    def test_other_pharmacist_is_out_of_scope(self):
        rule = existing(pharmacist_id=uuid4())
        assert find_conflicts(draft(pharmacist_id=uuid4()), [rule]) == []

    def test_unassigned_draft_checks_every_pharmacist(self):
        rule = existing(pharmacist_id=uuid4())
        assert len(find_conflicts(draft(), [rule])) == 1

    def test_inactive_rules_are_ignored(self):
        assert find_conflicts(draft(), [existing(is_active=False)]) == []

    def test_other_days_are_ignored(self):
        assert find_conflicts(draft(days=[3]), [existing()]) == []

    def test_pharmacist_name_is_resolved(self):
        staff = uuid4()
        rule = existing(pharmacist_id=staff)
        conflicts = find_conflicts(draft(pharmacist_id=staff), [rule], {staff: "Jane Doe"})
        assert conflicts[0].pharmacist_name == "Jane Doe"

    def test_conflicts_sorted_by_day_then_start(self):
        rules = [
            existing(day=4, start=time(8, 0), end=time(18, 0)),
            existing(day=TUESDAY, start=time(12, 30), end=time(14, 0)),
            existing(day=TUESDAY, start=time(8, 0), end=time(12, 30)),
        ]
        conflicts = find_conflicts(draft(days=[TUESDAY, 4]), rules)
        assert [(c.day_of_week, c.start_time) for c in conflicts] == [
            (TUESDAY, time(8, 0)),
            (TUESDAY, time(12, 30)),
            (4, time(8, 0)),
        ]
