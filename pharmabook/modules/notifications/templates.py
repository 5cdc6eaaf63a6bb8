# pharmabook/modules/notifications/templates.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Optional


@dataclass(frozen=True)
class BookingEmailContext:
    booking_id: str
    service_name: str
    pharmacy_name: str
    pharmacist_name: str
    booking_start: datetime
    patient_first_name: str
    patient_last_name: str
    patient_email: str
    patient_phone: Optional[str]
    notes: Optional[str]
    address_line1: Optional[str]
    city: Optional[str]
    postcode: Optional[str]
    pharmacy_phone: Optional[str]

    @property
    def date_label(self) -> str:
        # e.g. "Monday 10 June 2024"
        return f"{self.booking_start:%A} {self.booking_start.day} {self.booking_start:%B %Y}"

    @property
    def time_label(self) -> str:
        return f"{self.booking_start:%H:%M}"


def _layout(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html><html lang=\"en\"><head><meta charset=\"UTF-8\">"
        f"<title>{escape(title)}</title></head>"
        "<body style=\"font-family: Arial, sans-serif; background-color: #f8f7f4; padding: 24px;\">"
        f"<div style=\"max-width: 600px; margin: 0 auto; background: #ffffff; padding: 32px;\">{body}</div>"
        "</body></html>"
    )


def _row(label: str, value: str) -> str:
    return f"<p><strong>{escape(label)}:</strong> {escape(value)}</p>"


def patient_confirmation_html(ctx: BookingEmailContext) -> str:
    location = ", ".join(p for p in (ctx.address_line1, ctx.city, ctx.postcode) if p)
    body = [
        "<h1>Appointment Confirmed</h1>",
        f"<p>Hi <strong>{escape(ctx.patient_first_name)}</strong>,</p>",
        "<p>Your appointment has been booked. Here are your booking details:</p>",
        _row("Service", ctx.service_name),
        _row("Date", ctx.date_label),
        _row("Time", ctx.time_label),
        _row("With", ctx.pharmacist_name),
        _row("Location", f"{ctx.pharmacy_name}, {location}" if location else ctx.pharmacy_name),
    ]
    if ctx.pharmacy_phone:
        body.append(_row("Phone", ctx.pharmacy_phone))
    if ctx.notes:
        body.append(_row("Your notes", ctx.notes))
    body.append(
        "<p>Please arrive 5 minutes before your appointment time. If you need to "
        "reschedule or cancel, please contact us as soon as possible.</p>"
    )
    body.append("<p style=\"color: #888;\">This is an automated confirmation email. Please do not reply.</p>")
    return _layout("Appointment Confirmation", "".join(body))


def pharmacy_notification_html(ctx: BookingEmailContext) -> str:
    body = [
        "<h1>New Booking</h1>",
        "<p>A new appointment has been booked through your website.</p>",
        _row("Patient", f"{ctx.patient_first_name} {ctx.patient_last_name}"),
        _row("Email", ctx.patient_email),
    ]
    if ctx.patient_phone:
        body.append(_row("Phone", ctx.patient_phone))
    body += [
        _row("Service", ctx.service_name),
        _row("Date", ctx.date_label),
        _row("Time", ctx.time_label),
        _row("With", ctx.pharmacist_name),
    ]
    if ctx.notes:
        body.append(_row("Notes", ctx.notes))
    body.append(f"<p style=\"color: #888;\">Booking ID: {escape(ctx.booking_id)}</p>")
    return _layout("New Booking Notification", "".join(body))
