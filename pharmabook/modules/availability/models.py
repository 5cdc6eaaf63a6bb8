# pharmabook/modules/availability/models.py
from __future__ import annotations

import uuid
from datetime import time
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column

from pharmabook.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin

DAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


class AvailabilityRule(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Recurring weekly availability window for a service.
    day_of_week: 0 = Sunday .. 6 = Saturday.
    """

    __tablename__ = "service_availability"

    pharmacy_service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pharmacy_services.id", ondelete="CASCADE"),
        nullable=False,
    )
    pharmacist_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("pharmacists.id", ondelete="SET NULL"),
        nullable=True,
    )

    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    slot_length_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    max_bookings_per_slot: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default="1"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_avail_time_order"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_avail_day_range"),
        CheckConstraint(
            "slot_length_minutes BETWEEN 5 AND 240", name="ck_avail_slot_length"
        ),
        CheckConstraint(
            "max_bookings_per_slot BETWEEN 1 AND 20", name="ck_avail_capacity"
        ),
        Index("ix_avail_service_day_active", "pharmacy_service_id", "day_of_week", "is_active"),
    )

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]
