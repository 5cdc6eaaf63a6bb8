# pharmabook/modules/services/models.py
from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pharmabook.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin
from pharmabook.modules.pharmacies.models import Pharmacy


class PharmacyService(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    A bookable service offered by one pharmacy (e.g. blood pressure check).
    """

    __tablename__ = "pharmacy_services"

    pharmacy_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pharmacies.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), nullable=False)
    short_summary: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    price_from: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )
    booking_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    pharmacy: Mapped[Pharmacy] = relationship("Pharmacy", lazy="joined")

    __table_args__ = (
        UniqueConstraint("pharmacy_id", "slug", name="uq_services_pharmacy_slug"),
        Index("ix_services_pharmacy_active", "pharmacy_id", "is_active"),
    )

    @property
    def is_bookable(self) -> bool:
        return self.is_active and self.booking_enabled
