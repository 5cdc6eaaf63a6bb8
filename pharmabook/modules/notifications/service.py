# pharmabook/modules/notifications/service.py
"""
Booking notification emails.

Receives a booking id only, re-fetches everything it needs, and sends the
patient confirmation and the pharmacy notification through Resend. A send
failure is logged and reported, never raised back into the booking flow.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

import resend
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from pharmabook.core.config import settings
from pharmabook.core.errors import NotFoundError, NotificationWindowExpired, ValidationError
from pharmabook.db.base import utcnow
from pharmabook.db.sql import AsyncSessionLocal
from pharmabook.modules.bookings.models import Booking
from pharmabook.modules.bookings.repository import get_booking_unscoped
from pharmabook.modules.notifications.templates import (
    BookingEmailContext,
    patient_confirmation_html,
    pharmacy_notification_html,
)
from pharmabook.modules.pharmacies.repository import get_email_settings

logger = logging.getLogger(__name__)


class EmailNotConfigured(Exception):
    """RESEND_API_KEY is missing."""


class NotificationRequest(BaseModel):
    booking_id: str


class NotificationResult(BaseModel):
    booking_id: uuid.UUID
    patient_email_sent: bool
    pharmacy_email_sent: bool


def parse_booking_id(raw: str) -> uuid.UUID:
    """
    Accept only a canonical UUID v4 string.
    """
    try:
        value = uuid.UUID(raw)
    except (TypeError, ValueError, AttributeError) as exc:
        raise ValidationError("invalid_booking_id") from exc
    if value.version != 4 or str(value) != raw.lower():
        raise ValidationError("invalid_booking_id")
    return value


async def send_email(
    *, to: List[str], subject: str, html: str, cc: Optional[List[str]] = None
) -> dict:
    if not settings.RESEND_API_KEY:
        logger.error("No email service configured - RESEND_API_KEY missing")
        raise EmailNotConfigured("email_not_configured")

    resend.api_key = settings.RESEND_API_KEY
    params = {
        "from": settings.EMAIL_FROM_ADDRESS,
        "to": to,
        "subject": subject,
        "html": html,
    }
    if cc:
        params["cc"] = cc

    logger.info("Sending email via Resend to: %s", to)
    response = await run_in_threadpool(resend.Emails.send, params)
    logger.info("Email sent via Resend: %s", response)
    return response


async def _try_send(**kwargs) -> bool:
    try:
        await send_email(**kwargs)
        return True
    except Exception as exc:
        logger.error("Email send error to %s: %s", kwargs.get("to"), exc)
        return False


def _context(booking: Booking) -> BookingEmailContext:
    pharmacy = booking.pharmacy
    return BookingEmailContext(
        booking_id=str(booking.id),
        service_name=booking.service.title,
        pharmacy_name=pharmacy.name,
        pharmacist_name=booking.pharmacist.display_name if booking.pharmacist else "our pharmacist",
        booking_start=booking.booking_start,
        patient_first_name=booking.patient_first_name,
        patient_last_name=booking.patient_last_name,
        patient_email=booking.patient_email,
        patient_phone=booking.patient_phone,
        notes=booking.notes,
        address_line1=pharmacy.address_line1,
        city=pharmacy.city,
        postcode=pharmacy.postcode,
        pharmacy_phone=pharmacy.phone,
    )


async def notify_booking_created(
    session: AsyncSession,
    booking_id: str,
    *,
    now: Optional[datetime] = None,
) -> NotificationResult:
    """
    1) Validate the id format.
    2) Fetch the booking; refuse bookings older than the recency window
       (stops the endpoint being used to replay emails).
    3) Send the patient confirmation and the pharmacy notification, each
       subject to the pharmacy's email settings.
    """
    parsed = parse_booking_id(booking_id)

    booking = await get_booking_unscoped(session, parsed)
    if booking is None:
        raise NotFoundError("booking_not_found")

    window = timedelta(minutes=settings.NOTIFY_RECENCY_MINUTES)
    if booking.created_at < (now or utcnow()) - window:
        logger.warning("Confirmation requested for old booking %s", booking_id)
        raise NotificationWindowExpired("confirmation_window_expired")

    email_settings = await get_email_settings(session, pharmacy_id=booking.pharmacy_id)
    ctx = _context(booking)

    patient_sent = False
    if email_settings is None or email_settings.send_patient_confirmation:
        patient_sent = await _try_send(
            to=[booking.patient_email],
            subject=f"Appointment Confirmed - {ctx.service_name}",
            html=patient_confirmation_html(ctx),
        )

    pharmacy_sent = False
    if email_settings is None or email_settings.send_pharmacy_notification:
        recipient = (
            email_settings.booking_notification_email if email_settings else None
        ) or booking.pharmacy.primary_email
        cc = [email_settings.cc_email] if email_settings and email_settings.cc_email else None
        if recipient:
            pharmacy_sent = await _try_send(
                to=[recipient],
                subject=f"New Booking: {ctx.service_name} - {ctx.patient_first_name} {ctx.patient_last_name}",
                html=pharmacy_notification_html(ctx),
                cc=cc,
            )
        else:
            logger.warning("No notification address for pharmacy %s", booking.pharmacy_id)

    return NotificationResult(
        booking_id=parsed,
        patient_email_sent=patient_sent,
        pharmacy_email_sent=pharmacy_sent,
    )


async def dispatch_booking_created(booking_id: uuid.UUID) -> None:
    """
    Fire-and-forget trigger run after a booking commit. Opens its own
    session; any failure is logged and dropped.
    """
    try:
        async with AsyncSessionLocal() as session:
            result = await notify_booking_created(session, str(booking_id))
        logger.info(
            "Booking %s notifications: patient=%s pharmacy=%s",
            booking_id,
            result.patient_email_sent,
            result.pharmacy_email_sent,
        )
    except Exception:
        logger.exception("Notification dispatch failed for booking %s", booking_id)
