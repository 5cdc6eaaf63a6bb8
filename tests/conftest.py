"""Shared fixtures: temporary SQLite database, seeded tenants, API client."""

import asyncio
import os
import tempfile
from dataclasses import dataclass
from datetime import date, timedelta
from uuid import UUID

# Must be set before pharmabook.core.config is imported
_DB_DIR = tempfile.mkdtemp(prefix="pharmabook-tests-")
os.environ["SQL_DSN"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["RESEND_API_KEY"] = ""
os.environ["JWT_SECRET"] = "test-secret"

import pytest  # noqa: E402
import resend  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from pharmabook.core.security import create_access_token  # noqa: E402
from pharmabook.db.sql import AsyncSessionLocal, init_db  # noqa: E402
from pharmabook.modules.availability.slots import day_of_week  # noqa: E402
from pharmabook.modules.pharmacies.models import (  # noqa: E402
    EmailSettings,
    Pharmacist,
    Pharmacy,
)
from pharmabook.modules.services.models import PharmacyService  # noqa: E402


def run(coro):
    """Run a coroutine on a private loop (safe inside sync fixtures and tests)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@dataclass
class Seed:
    pharmacy_id: UUID
    service_id: UUID
    disabled_service_id: UUID
    owner_id: UUID
    pharmacist_id: UUID
    other_pharmacy_id: UUID
    other_service_id: UUID
    other_owner_id: UUID

    def token(self, staff_id: UUID, role: str, pharmacy_id: UUID) -> str:
        return create_access_token(
            subject=str(staff_id), pharmacy_id=str(pharmacy_id), role=role
        )

    @property
    def owner_headers(self) -> dict:
        tok = self.token(self.owner_id, "pharmacy_owner", self.pharmacy_id)
        return {"Authorization": f"Bearer {tok}"}

    @property
    def pharmacist_headers(self) -> dict:
        tok = self.token(self.pharmacist_id, "pharmacist", self.pharmacy_id)
        return {"Authorization": f"Bearer {tok}"}

    @property
    def other_owner_headers(self) -> dict:
        tok = self.token(self.other_owner_id, "pharmacy_owner", self.other_pharmacy_id)
        return {"Authorization": f"Bearer {tok}"}


async def _seed() -> Seed:
    async with AsyncSessionLocal() as session:
        pharmacy = Pharmacy(
            name="High Street Pharmacy",
            slug="high-street",
            primary_email="hello@highstreet.test",
            phone="020 7946 0000",
            address_line1="1 High Street",
            city="London",
            postcode="N1 1AA",
        )
        other = Pharmacy(name="Riverside Chemist", slug="riverside", primary_email="info@riverside.test")
        session.add_all([pharmacy, other])
        await session.flush()

        session.add(
            EmailSettings(
                pharmacy_id=pharmacy.id,
                booking_notification_email="bookings@highstreet.test",
                cc_email="manager@highstreet.test",
            )
        )

        owner = Pharmacist(
            pharmacy_id=pharmacy.id, first_name="Olivia", last_name="Owner", role="pharmacy_owner"
        )
        pharmacist = Pharmacist(
            pharmacy_id=pharmacy.id, first_name="Jane", last_name="Doe", role="pharmacist"
        )
        other_owner = Pharmacist(
            pharmacy_id=other.id, first_name="Rita", last_name="River", role="pharmacy_owner"
        )
        service = PharmacyService(
            pharmacy_id=pharmacy.id, title="Blood Pressure Check", slug="blood-pressure", duration_minutes=30
        )
        disabled = PharmacyService(
            pharmacy_id=pharmacy.id, title="Travel Vaccines", slug="travel", booking_enabled=False
        )
        other_service = PharmacyService(
            pharmacy_id=other.id, title="Flu Jab", slug="flu-jab", duration_minutes=15
        )
        session.add_all([owner, pharmacist, other_owner, service, disabled, other_service])
        await session.commit()

        return Seed(
            pharmacy_id=pharmacy.id,
            service_id=service.id,
            disabled_service_id=disabled.id,
            owner_id=owner.id,
            pharmacist_id=pharmacist.id,
            other_pharmacy_id=other.id,
            other_service_id=other_service.id,
            other_owner_id=other_owner.id,
        )


@pytest.fixture
def seed() -> Seed:
    """Fresh schema plus two pharmacies with staff and services."""
    run(init_db(drop=True))
    return run(_seed())


@pytest.fixture
def sent_emails(monkeypatch):
    """Records every Resend call instead of sending."""
    sent = []

    def _fake_send(params):
        sent.append(params)
        return {"id": f"email-{len(sent)}"}

    monkeypatch.setattr(resend.Emails, "send", _fake_send)
    return sent


@pytest.fixture
def client(seed, sent_emails):
    from pharmabook.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def booking_day() -> date:
    """A date one week ahead, always inside the booking horizon."""
    return date.today() + timedelta(days=7)


@pytest.fixture
def morning_rule(client, seed, booking_day):
    """09:00-12:00, 30 minute slots, on booking_day's weekday."""
    resp = client.post(
        f"/api/portal/services/{seed.service_id}/availability",
        json={
            "days": [day_of_week(booking_day)],
            "start_time": "09:00",
            "end_time": "12:00",
            "slot_length_minutes": 30,
        },
        headers=seed.owner_headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["items"][0]


@pytest.fixture
def patient():
    """Factory for a valid patient booking body."""

    def _make(**overrides) -> dict:
        body = {
            "patient_first_name": "Sam",
            "patient_last_name": "Patel",
            "patient_email": "Sam.Patel@Example.com",
            "patient_phone": "07700 900123",
            "notes": "",
        }
        body.update(overrides)
        return body

    return _make


@pytest.fixture
def db_run():
    """Run a coroutine against the test database from a sync test."""
    return run
