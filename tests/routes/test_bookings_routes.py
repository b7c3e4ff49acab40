"""HTTP tests for /api/v1/bookings."""

from datetime import datetime, timedelta

import pytest

from rentals.auth import create_access_token
from rentals.core.ids import generate_id
from tests.helpers import aligned_future, iso

BOOKINGS_URL = "/api/v1/bookings"


@pytest.fixture
def other_headers(other_customer):
    return {"Authorization": f"Bearer {create_access_token({'sub': other_customer.id})}"}


def _body(unit, start, end):
    return {"unit_id": unit.id, "start_ts": iso(start), "end_ts": iso(end)}


@pytest.fixture
def window():
    start = aligned_future()
    return start, start + timedelta(hours=2)


@pytest.fixture
def created(client, unit, customer, fund, customer_headers, window):
    fund(customer, 100)
    response = client.post(BOOKINGS_URL, json=_body(unit, *window), headers=customer_headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateBooking:
    def test_created(self, created):
        assert created["credits_charged"] == 40
        assert created["balance_after"] == 60
        assert created["pricing_mode"] == "HOURLY"
        assert created["hourly_rate"] == 20
        assert created["day_price"] == 100
        assert created["duration_minutes"] == 120
        assert created["breakdown"] == "2 hours × 20 cr = 40 credits"

    def test_uppercase_unit_id(self, client, unit, customer, fund, customer_headers, window):
        fund(customer, 100)
        body = _body(unit, *window)
        body["unit_id"] = unit.id.upper()

        response = client.post(BOOKINGS_URL, json=body, headers=customer_headers)

        assert response.status_code == 201
        booking_id = response.json()["booking_id"]
        detail = client.get(f"{BOOKINGS_URL}/{booking_id}", headers=customer_headers).json()
        assert detail["car_unit_id"] == unit.id

    def test_requires_token(self, client, unit, window):
        response = client.post(BOOKINGS_URL, json=_body(unit, *window))

        assert response.status_code == 401
        assert response.headers["content-type"].startswith("application/problem+json")

    def test_rejects_garbage_token(self, client, unit, window):
        response = client.post(
            BOOKINGS_URL, json=_body(unit, *window), headers={"Authorization": "Bearer nope"}
        )

        assert response.status_code == 401

    def test_admin_cannot_book(self, client, unit, admin_headers, window):
        response = client.post(BOOKINGS_URL, json=_body(unit, *window), headers=admin_headers)

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    def test_naive_timestamp_rejected(self, client, unit, customer_headers, window):
        start, end = window
        body = {
            "unit_id": unit.id,
            "start_ts": start.replace(tzinfo=None).isoformat(),
            "end_ts": iso(end),
        }

        response = client.post(BOOKINGS_URL, json=body, headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REQUEST"

    def test_bad_unit_id_rejected(self, client, customer_headers, window):
        start, end = window
        body = {"unit_id": "car-1", "start_ts": iso(start), "end_ts": iso(end)}

        response = client.post(BOOKINGS_URL, json=body, headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REQUEST"

    def test_misaligned_window_rejected(self, client, unit, customer, fund, customer_headers):
        fund(customer, 100)
        start = aligned_future(minute=15)

        response = client.post(
            BOOKINGS_URL,
            json=_body(unit, start, start + timedelta(hours=2)),
            headers=customer_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REQUEST"

    def test_unknown_fields_rejected(self, client, unit, customer_headers, window):
        body = _body(unit, *window)
        body["credits"] = 0

        response = client.post(BOOKINGS_URL, json=body, headers=customer_headers)

        assert response.status_code == 400

    def test_overlap_is_conflict(
        self, client, created, unit, other_customer, fund, other_headers, window
    ):
        fund(other_customer, 100)
        start, _ = window

        response = client.post(
            BOOKINGS_URL,
            json=_body(unit, start + timedelta(hours=1), start + timedelta(hours=3)),
            headers=other_headers,
        )

        assert response.status_code == 409
        problem = response.json()
        assert problem["code"] == "SLOT_ALREADY_BOOKED"
        assert problem["status"] == 409

    def test_adjacent_window_allowed(self, client, created, unit, customer_headers, window):
        _, end = window

        response = client.post(
            BOOKINGS_URL, json=_body(unit, end, end + timedelta(hours=1)), headers=customer_headers
        )

        assert response.status_code == 201

    def test_insufficient_balance(self, client, unit, customer, fund, customer_headers, window):
        fund(customer, 10)

        response = client.post(BOOKINGS_URL, json=_body(unit, *window), headers=customer_headers)

        assert response.status_code == 422
        assert response.json()["code"] == "INSUFFICIENT_BALANCE"

    def test_inactive_unit(self, client, make_unit, customer, fund, customer_headers, window):
        fund(customer, 100)
        parked = make_unit(active=False)

        response = client.post(BOOKINGS_URL, json=_body(parked, *window), headers=customer_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "UNIT_UNAVAILABLE"


class TestReadBookings:
    def test_get_own_booking(self, client, created, unit, customer_headers):
        response = client.get(f"{BOOKINGS_URL}/{created['booking_id']}", headers=customer_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == created["booking_id"]
        assert body["car_unit_id"] == unit.id
        assert body["status"] == "CONFIRMED"
        assert body["credits_charged"] == 40
        start = datetime.fromisoformat(body["start_ts"].replace("Z", "+00:00"))
        assert start.utcoffset() == timedelta(0)

    def test_other_customer_forbidden(self, client, created, other_headers):
        response = client.get(f"{BOOKINGS_URL}/{created['booking_id']}", headers=other_headers)

        assert response.status_code == 403

    def test_admin_can_read(self, client, created, admin_headers):
        response = client.get(f"{BOOKINGS_URL}/{created['booking_id']}", headers=admin_headers)

        assert response.status_code == 200

    def test_unknown_booking(self, client, customer, customer_headers):
        response = client.get(f"{BOOKINGS_URL}/{generate_id()}", headers=customer_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_malformed_booking_id(self, client, customer_headers):
        response = client.get(f"{BOOKINGS_URL}/not-a-uuid", headers=customer_headers)

        assert response.status_code == 400

    def test_uppercase_booking_id(self, client, created, customer_headers):
        response = client.get(
            f"{BOOKINGS_URL}/{created['booking_id'].upper()}", headers=customer_headers
        )

        assert response.status_code == 200
        assert response.json()["id"] == created["booking_id"]

    def test_list(self, client, created, customer_headers, other_headers):
        mine = client.get(BOOKINGS_URL, headers=customer_headers).json()
        theirs = client.get(BOOKINGS_URL, headers=other_headers).json()

        assert mine["total"] == 1
        assert [item["id"] for item in mine["items"]] == [created["booking_id"]]
        assert theirs["total"] == 0

    def test_list_status_filter(self, client, created, customer_headers):
        response = client.get(BOOKINGS_URL, params={"status": "CANCELED"}, headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["items"] == []


class TestCancelBooking:
    def test_cancel_refunds_in_full(self, client, created, customer_headers):
        response = client.post(
            f"{BOOKINGS_URL}/{created['booking_id']}/cancel", headers=customer_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "CANCELED"
        assert body["refund_pct"] == 100
        assert body["refund_credits"] == 40

        balance = client.get("/api/v1/credits/balance", headers=customer_headers).json()
        assert balance["balance"] == 100

    def test_cancel_twice(self, client, created, customer_headers):
        url = f"{BOOKINGS_URL}/{created['booking_id']}/cancel"
        client.post(url, headers=customer_headers)

        response = client.post(url, headers=customer_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "CANCELED"
        assert body["refund_credits"] == 0
        assert body["message"] == "Booking was already canceled"

    def test_cancel_someone_elses(self, client, created, other_headers):
        response = client.post(
            f"{BOOKINGS_URL}/{created['booking_id']}/cancel", headers=other_headers
        )

        assert response.status_code == 403

    def test_cancel_with_uppercase_id(self, client, created, customer_headers):
        response = client.post(
            f"{BOOKINGS_URL}/{created['booking_id'].upper()}/cancel", headers=customer_headers
        )

        assert response.status_code == 200
        assert response.json()["booking_id"] == created["booking_id"]

    def test_cancel_frees_slot(self, client, created, unit, customer_headers, window):
        client.post(f"{BOOKINGS_URL}/{created['booking_id']}/cancel", headers=customer_headers)

        response = client.post(BOOKINGS_URL, json=_body(unit, *window), headers=customer_headers)

        assert response.status_code == 201
