# pharmabook/modules/bookings/models.py
from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pharmabook.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin
from pharmabook.modules.pharmacies.models import Pharmacist, Pharmacy
from pharmabook.modules.services.models import PharmacyService


class BookingStatus(PyEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


BOOKING_SOURCE_WEB = "web"

# Name of the partial unique index; repository maps its violation to SlotUnavailable
UQ_ACTIVE_SLOT = "uq_bookings_service_start_active"


class Booking(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    A patient's claim on one generated slot. Never hard-deleted.
    booking_start / booking_end are naive local wall-clock times.
    """

    __tablename__ = "bookings"

    pharmacy_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pharmacies.id", ondelete="RESTRICT"),
        nullable=False,
    )
    pharmacy_service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pharmacy_services.id", ondelete="RESTRICT"),
        nullable=False,
    )
    pharmacist_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("pharmacists.id", ondelete="SET NULL"),
        nullable=True,
    )

    booking_start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    booking_end: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    patient_first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    patient_last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    patient_email: Mapped[str] = mapped_column(String(320), nullable=False)
    patient_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.PENDING.value,
        server_default=BookingStatus.PENDING.value,
    )
    source: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    service: Mapped[PharmacyService] = relationship("PharmacyService", lazy="joined")
    pharmacy: Mapped[Pharmacy] = relationship("Pharmacy", lazy="joined")
    pharmacist: Mapped[Optional[Pharmacist]] = relationship("Pharmacist", lazy="joined")

    __table_args__ = (
        CheckConstraint("booking_start < booking_end", name="ck_booking_time_order"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'no_show')",
            name="ck_booking_status_valid",
        ),
        # Avoid double booking: one live booking per service and start time
        Index(
            UQ_ACTIVE_SLOT,
            "pharmacy_service_id",
            "booking_start",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        Index("ix_bookings_pharmacy_start", "pharmacy_id", "booking_start"),
        Index("ix_bookings_pharmacy_status", "pharmacy_id", "status"),
    )
