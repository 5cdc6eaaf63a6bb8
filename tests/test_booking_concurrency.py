"""Two patients racing for the same slot: exactly one booking survives."""

import asyncio
from datetime import datetime, time, timedelta

from sqlalchemy import select

from pharmabook.core.errors import SlotUnavailable
from pharmabook.db.sql import AsyncSessionLocal
from pharmabook.modules.availability.models import AvailabilityRule
from pharmabook.modules.availability.slots import day_of_week
from pharmabook.modules.bookings.models import Booking
from pharmabook.modules.bookings.schemas import BookingCreateRequest
from pharmabook.modules.bookings.service import commit_booking_svc


async def _add_rule(service_id, day):
    async with AsyncSessionLocal() as session:
        session.add(
            AvailabilityRule(
                pharmacy_service_id=service_id,
                day_of_week=day_of_week(day),
                start_time=time(9, 0),
                end_time=time(12, 0),
                slot_length_minutes=30,
                is_active=True,
            )
        )
        await session.commit()


async def _attempt(service_id, payload):
    async with AsyncSessionLocal() as session:
        try:
            return await commit_booking_svc(session, service_id, payload)
        except SlotUnavailable as exc:
            return exc


async def _race(service_id, day):
    start = datetime.combine(day, time(9, 0))
    payloads = [
        BookingCreateRequest(
            patient_first_name=name,
            patient_last_name="Racer",
            patient_email=f"{name.lower()}@example.com",
            booking_start=start,
            booking_end=start + timedelta(minutes=30),
        )
        for name in ("Ada", "Bo")
    ]
    results = await asyncio.gather(*(_attempt(service_id, p) for p in payloads))

    async with AsyncSessionLocal() as session:
        rows = (
            await session.execute(select(Booking).where(Booking.booking_start == start))
        ).scalars().all()
    return results, rows


class TestConcurrentCommit:
    def test_exactly_one_winner(self, seed, booking_day, db_run):
        db_run(_add_rule(seed.service_id, booking_day))
        results, rows = db_run(_race(seed.service_id, booking_day))

        losers = [r for r in results if isinstance(r, SlotUnavailable)]
        winners = [r for r in results if not isinstance(r, SlotUnavailable)]
        assert len(winners) == 1
        assert len(losers) == 1
        assert len(rows) == 1
        assert rows[0].id == winners[0].id
        assert rows[0].status == "pending"

    async def test_second_attempt_sees_slot_taken(self, seed, booking_day):
        await _add_rule(seed.service_id, booking_day)
        start = datetime.combine(booking_day, time(9, 30))
        payload = BookingCreateRequest(
            patient_first_name="Cy",
            patient_last_name="Later",
            patient_email="cy@example.com",
            booking_start=start,
            booking_end=start + timedelta(minutes=30),
        )
        first = await _attempt(seed.service_id, payload)
        second = await _attempt(seed.service_id, payload)
        assert not isinstance(first, SlotUnavailable)
        assert isinstance(second, SlotUnavailable)
