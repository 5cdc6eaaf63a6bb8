# pharmabook/modules/availability/schemas.py
from __future__ import annotations

import datetime as dt
from datetime import date, datetime, time
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class AvailabilityRuleDraft(BaseModel):
    """
    Payload of the "add availability" form. One draft becomes one rule per
    selected day.
    """
    days: List[int] = Field(..., min_length=1, description="0 = Sunday .. 6 = Saturday")
    start_time: time
    end_time: time
    slot_length_minutes: int = Field(default=30, ge=5, le=240)
    max_bookings_per_slot: int = Field(default=1, ge=1, le=20)
    pharmacist_id: Optional[UUID] = Field(
        default=None, description="Leave empty to let any pharmacist take the bookings"
    )

    @field_validator("days")
    @classmethod
    def _valid_days(cls, v: List[int]) -> List[int]:
        if any(d < 0 or d > 6 for d in v):
            raise ValueError("days must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(v))

    @field_validator("start_time", "end_time")
    @classmethod
    def _minute_precision(cls, v: time) -> time:
        return v.replace(second=0, microsecond=0, tzinfo=None)

    @field_validator("pharmacist_id", mode="before")
    @classmethod
    def _blank_is_any(cls, v):
        return v or None

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AvailabilityRulePublic(BaseModel):
    id: UUID
    pharmacy_service_id: UUID
    pharmacist_id: Optional[UUID] = None
    day_of_week: int
    start_time: time
    end_time: time
    slot_length_minutes: int
    max_bookings_per_slot: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AvailabilityRuleUpdate(BaseModel):
    is_active: bool


class RuleConflict(BaseModel):
    """
    One existing rule that overlaps the draft.
    """
    rule_id: UUID
    day_of_week: int
    day_name: str
    start_time: time
    end_time: time
    pharmacist_id: Optional[UUID] = None
    pharmacist_name: Optional[str] = None


class OverlapReport(BaseModel):
    has_conflicts: bool
    conflicts: List[RuleConflict]


class EligibleDates(BaseModel):
    service_id: UUID
    horizon_days: int
    dates: List[date]


class SlotPublic(BaseModel):
    start: datetime
    end: datetime
    available: bool
    pharmacist_id: Optional[UUID] = None


SlotsState = Literal["available", "fully_booked", "no_rules"]


class DaySlots(BaseModel):
    """
    Slots of one date. `state` tells "nothing configured" apart from
    "everything taken".
    """
    service_id: UUID
    date: dt.date
    state: SlotsState
    slots: List[SlotPublic]
