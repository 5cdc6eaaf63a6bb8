"""Tests for the public booking routes."""

from datetime import date, datetime, time, timedelta

from sqlalchemy.exc import SQLAlchemyError

from pharmabook.modules.availability import repository as rules_repo
from pharmabook.modules.bookings import repository as bookings_repo


def at(day: date, hh: int, mm: int = 0) -> str:
    return datetime.combine(day, time(hh, mm)).isoformat()


class TestAvailableDates:
    def test_weekly_rule_gives_weekly_dates(self, client, seed, morning_rule, booking_day):
        resp = client.get(f"/api/services/{seed.service_id}/available-dates")
        assert resp.status_code == 200
        body = resp.json()
        assert body["horizon_days"] == 60
        assert booking_day.isoformat() in body["dates"]
        days = [date.fromisoformat(d) for d in body["dates"]]
        assert all((b - a) == timedelta(days=7) for a, b in zip(days, days[1:]))

    def test_horizon_override(self, client, seed, morning_rule):
        resp = client.get(f"/api/services/{seed.service_id}/available-dates", params={"days": 7})
        assert resp.json()["horizon_days"] == 7
        assert len(resp.json()["dates"]) == 1

    def test_no_rules_is_empty_not_error(self, client, seed):
        resp = client.get(f"/api/services/{seed.service_id}/available-dates")
        assert resp.status_code == 200
        assert resp.json()["dates"] == []

    def test_fetch_failure_is_503(self, client, seed, monkeypatch):
        async def _boom(*args, **kwargs):
            raise SQLAlchemyError("connection reset")

        monkeypatch.setattr(rules_repo, "list_active_rules", _boom)
        resp = client.get(f"/api/services/{seed.service_id}/available-dates")
        assert resp.status_code == 503
        assert resp.json()["detail"] == "availability_fetch_failed"

    def test_disabled_service_is_not_found(self, client, seed):
        resp = client.get(f"/api/services/{seed.disabled_service_id}/available-dates")
        assert resp.status_code == 404


class TestDaySlots:
    def test_no_rules_state(self, client, seed, booking_day):
        resp = client.get(f"/api/services/{seed.service_id}/slots", params={"date": booking_day.isoformat()})
        assert resp.status_code == 200
        assert resp.json()["state"] == "no_rules"
        assert resp.json()["slots"] == []

    def test_all_slots_available(self, client, seed, morning_rule, booking_day):
        resp = client.get(f"/api/services/{seed.service_id}/slots", params={"date": booking_day.isoformat()})
        body = resp.json()
        assert body["state"] == "available"
        assert [s["start"] for s in body["slots"]] == [
            at(booking_day, 9), at(booking_day, 9, 30), at(booking_day, 10),
            at(booking_day, 10, 30), at(booking_day, 11), at(booking_day, 11, 30),
        ]
        assert all(s["available"] for s in body["slots"])

    def test_resolving_twice_is_identical(self, client, seed, morning_rule, booking_day, patient):
        client.post(
            f"/api/services/{seed.service_id}/bookings",
            json=patient(booking_start=at(booking_day, 10), booking_end=at(booking_day, 10, 30)),
        )
        url = f"/api/services/{seed.service_id}/slots"
        params = {"date": booking_day.isoformat()}
        assert client.get(url, params=params).json() == client.get(url, params=params).json()

    def test_fully_booked_state(self, client, seed, booking_day, patient):
        client.post(
            f"/api/portal/services/{seed.service_id}/availability",
            json={"days": [booking_day.isoweekday() % 7], "start_time": "09:00", "end_time": "10:00", "slot_length_minutes": 30},
            headers=seed.owner_headers,
        )
        for hh, mm in ((9, 0), (9, 30)):
            start = datetime.combine(booking_day, time(hh, mm))
            resp = client.post(
                f"/api/services/{seed.service_id}/bookings",
                json=patient(booking_start=start.isoformat(), booking_end=(start + timedelta(minutes=30)).isoformat()),
            )
            assert resp.status_code == 201

        resp = client.get(f"/api/services/{seed.service_id}/slots", params={"date": booking_day.isoformat()})
        assert resp.json()["state"] == "fully_booked"

    def test_bad_date_is_422(self, client, seed):
        resp = client.get(f"/api/services/{seed.service_id}/slots", params={"date": "next tuesday"})
        assert resp.status_code == 422

    def test_booking_fetch_failure_is_503(self, client, seed, morning_rule, booking_day, monkeypatch):
        """A failed read must not look like a day of free slots."""

        async def _boom(*args, **kwargs):
            raise SQLAlchemyError("connection reset")

        monkeypatch.setattr(bookings_repo, "list_bookings", _boom)
        resp = client.get(f"/api/services/{seed.service_id}/slots", params={"date": booking_day.isoformat()})
        assert resp.status_code == 503
        assert resp.json()["detail"] == "slots_fetch_failed"


class TestCommitBooking:
    def test_books_a_free_slot(self, client, seed, morning_rule, booking_day, patient):
        resp = client.post(
            f"/api/services/{seed.service_id}/bookings",
            json=patient(booking_start=at(booking_day, 9, 30), booking_end=at(booking_day, 10)),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "pending"
        assert body["booking_start"] == at(booking_day, 9, 30)

        slots = client.get(
            f"/api/services/{seed.service_id}/slots", params={"date": booking_day.isoformat()}
        ).json()["slots"]
        taken = {s["start"]: s["available"] for s in slots}
        assert taken[at(booking_day, 9, 30)] is False
        assert taken[at(booking_day, 9)] is True

    def test_second_commit_for_same_slot_conflicts(self, client, seed, morning_rule, booking_day, patient):
        url = f"/api/services/{seed.service_id}/bookings"
        body = patient(booking_start=at(booking_day, 9), booking_end=at(booking_day, 9, 30))
        first = client.post(url, json=body)
        assert first.status_code == 201

        second = client.post(url, json=patient(
            patient_first_name="Alex",
            booking_start=at(booking_day, 9),
            booking_end=at(booking_day, 9, 30),
        ))
        assert second.status_code == 409
        assert second.json()["detail"] == "slot_unavailable"

        listed = client.get("/api/portal/bookings", headers=seed.owner_headers).json()
        assert listed["total"] == 1
        assert listed["items"][0]["id"] == first.json()["id"]
        assert listed["items"][0]["status"] == "pending"

    def test_cancelled_slot_can_be_booked_again(self, client, seed, morning_rule, booking_day, patient):
        url = f"/api/services/{seed.service_id}/bookings"
        body = patient(booking_start=at(booking_day, 11), booking_end=at(booking_day, 11, 30))
        booking_id = client.post(url, json=body).json()["id"]

        client.put(f"/api/portal/bookings/{booking_id}/status", json={"status": "cancelled"}, headers=seed.owner_headers)

        slots = client.get(
            f"/api/services/{seed.service_id}/slots", params={"date": booking_day.isoformat()}
        ).json()["slots"]
        assert {s["start"]: s["available"] for s in slots}[at(booking_day, 11)] is True
        assert client.post(url, json=body).status_code == 201

    def test_times_not_on_the_grid_are_rejected(self, client, seed, morning_rule, booking_day, patient):
        resp = client.post(
            f"/api/services/{seed.service_id}/bookings",
            json=patient(booking_start=at(booking_day, 9, 10), booking_end=at(booking_day, 9, 40)),
        )
        assert resp.status_code == 422
        assert resp.json()["detail"] == "slot_not_offered"

    def test_offset_times_are_rejected(self, client, seed, morning_rule, booking_day, patient):
        resp = client.post(
            f"/api/services/{seed.service_id}/bookings",
            json=patient(
                booking_start=at(booking_day, 9) + "+01:00",
                booking_end=at(booking_day, 9, 30) + "+01:00",
            ),
        )
        assert resp.status_code == 422

    def test_staff_rule_assigns_pharmacist(self, client, seed, booking_day, patient):
        client.post(
            f"/api/portal/services/{seed.service_id}/availability",
            json={
                "days": [booking_day.isoweekday() % 7],
                "start_time": "14:00",
                "end_time": "15:00",
                "pharmacist_id": str(seed.pharmacist_id),
            },
            headers=seed.owner_headers,
        )
        booking_id = client.post(
            f"/api/services/{seed.service_id}/bookings",
            json=patient(booking_start=at(booking_day, 14), booking_end=at(booking_day, 14, 30)),
        ).json()["id"]

        detail = client.get(f"/api/portal/bookings/{booking_id}", headers=seed.owner_headers).json()
        assert detail["pharmacist_id"] == str(seed.pharmacist_id)
        assert detail["patient_email"] == "sam.patel@example.com"
        assert detail["notes"] is None
        assert detail["source"] == "web"

    def test_disabled_service_cannot_be_booked(self, client, seed, booking_day, patient):
        resp = client.post(
            f"/api/services/{seed.disabled_service_id}/bookings",
            json=patient(booking_start=at(booking_day, 9), booking_end=at(booking_day, 9, 30)),
        )
        assert resp.status_code == 404

    def test_past_date_is_not_offered(self, client, seed, morning_rule, booking_day, patient):
        """Same weekday as the rule, two weeks earlier (one week in the past)."""
        past = booking_day - timedelta(days=14)
        resp = client.post(
            f"/api/services/{seed.service_id}/bookings",
            json=patient(booking_start=at(past, 9), booking_end=at(past, 9, 30)),
        )
        assert resp.status_code == 422
        assert resp.json()["detail"] == "slot_not_offered"

    def test_date_beyond_horizon_is_not_offered(self, client, seed, morning_rule, booking_day, patient):
        far = booking_day + timedelta(weeks=9)  # today + 70 days, past the 60 day horizon
        resp = client.post(
            f"/api/services/{seed.service_id}/bookings",
            json=patient(booking_start=at(far, 9), booking_end=at(far, 9, 30)),
        )
        assert resp.status_code == 422
        assert resp.json()["detail"] == "slot_not_offered"

        listed = client.get("/api/portal/bookings", headers=seed.owner_headers).json()
        assert listed["total"] == 0

    def test_last_day_of_horizon_is_offered(self, client, seed, patient):
        last = date.today() + timedelta(days=59)
        client.post(
            f"/api/portal/services/{seed.service_id}/availability",
            json={"days": [last.isoweekday() % 7], "start_time": "09:00", "end_time": "10:00"},
            headers=seed.owner_headers,
        )
        resp = client.post(
            f"/api/services/{seed.service_id}/bookings",
            json=patient(booking_start=at(last, 9), booking_end=at(last, 9, 30)),
        )
        assert resp.status_code == 201
