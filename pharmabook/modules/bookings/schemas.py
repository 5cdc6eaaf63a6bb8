# pharmabook/modules/bookings/schemas.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    EmailStr,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)


class BookingStatusName(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    no_show = "no_show"


PatientNameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]


class PatientDetails(BaseModel):
    """
    Patient form. Names need at least 2 characters, email must be valid,
    phone and notes are optional free text (blank = not given).
    """
    patient_first_name: PatientNameStr
    patient_last_name: PatientNameStr
    patient_email: EmailStr
    patient_phone: Optional[str] = Field(default=None, max_length=32)
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("patient_email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("patient_phone", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class BookingCreateRequest(PatientDetails):
    """
    Payload to book a slot. Times are local wall-clock times without offset,
    exactly as returned by the slots endpoint.
    """
    booking_start: datetime
    booking_end: datetime

    @field_validator("booking_start", "booking_end")
    @classmethod
    def _naive_local(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            raise ValueError("booking times are local wall-clock times without UTC offset")
        return v

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.booking_end <= self.booking_start:
            raise ValueError("booking_end must be after booking_start")
        return self


class BookingPublic(BaseModel):
    """
    DTO returns a detailed booking.
    """
    id: UUID
    pharmacy_id: UUID
    pharmacy_service_id: UUID
    pharmacist_id: Optional[UUID] = None
    booking_start: datetime
    booking_end: datetime
    patient_first_name: str
    patient_last_name: str
    patient_email: str
    patient_phone: Optional[str] = None
    notes: Optional[str] = None
    status: BookingStatusName
    source: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BookingConfirmation(BaseModel):
    """
    What the patient sees after committing.
    """
    id: UUID
    pharmacy_service_id: UUID
    booking_start: datetime
    booking_end: datetime
    status: BookingStatusName

    class Config:
        from_attributes = True


class BookingListItem(BaseModel):
    id: UUID
    pharmacy_service_id: UUID
    pharmacist_id: Optional[UUID] = None
    booking_start: datetime
    booking_end: datetime
    patient_first_name: str
    patient_last_name: str
    patient_email: str
    status: BookingStatusName
    created_at: datetime

    class Config:
        from_attributes = True


class BookingListPage(BaseModel):
    items: List[BookingListItem]
    total: int
    limit: int
    offset: int
    has_next: bool


class BookingStatusUpdate(BaseModel):
    status: BookingStatusName
