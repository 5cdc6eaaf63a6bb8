# pharmabook/modules/pharmacies/models.py
from __future__ import annotations

import uuid
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pharmabook.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class StaffRole(PyEnum):
    SUPER_ADMIN = "super_admin"
    PHARMACY_OWNER = "pharmacy_owner"
    PHARMACIST = "pharmacist"


class Pharmacy(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    A tenant. Every service, rule and booking is scoped to one pharmacy.
    """

    __tablename__ = "pharmacies"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), nullable=False)
    primary_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    address_line1: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    address_line2: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    postcode: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    email_settings: Mapped[Optional["EmailSettings"]] = relationship(
        back_populates="pharmacy",
        uselist=False,
        lazy="selectin",
    )

    __table_args__ = (UniqueConstraint("slug", name="uq_pharmacies_slug"),)


class Pharmacist(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Staff member of a pharmacy; the portal user.
    """

    __tablename__ = "pharmacists"

    pharmacy_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("pharmacies.id", ondelete="CASCADE"),
        nullable=True,
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=StaffRole.PHARMACIST.value
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('super_admin', 'pharmacy_owner', 'pharmacist')",
            name="ck_pharmacists_role_valid",
        ),
        Index("ix_pharmacists_pharmacy_active", "pharmacy_id", "is_active"),
    )

    @property
    def display_name(self) -> str:
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or "our pharmacist"


class EmailSettings(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Per-pharmacy switches and recipients for booking emails.
    """

    __tablename__ = "email_settings"

    pharmacy_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pharmacies.id", ondelete="CASCADE"),
        nullable=False,
    )
    booking_notification_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    cc_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    send_patient_confirmation: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )
    send_pharmacy_notification: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    pharmacy: Mapped[Pharmacy] = relationship(back_populates="email_settings")

    __table_args__ = (UniqueConstraint("pharmacy_id", name="uq_email_settings_pharmacy"),)
