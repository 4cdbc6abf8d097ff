"""The in-memory client backend must answer like the Flask app does."""
from __future__ import annotations

import pytest

from barbercraft.client import ApiBackend, ApiError, BarberCraftClient, MockBackend


class FlaskTestBackend(ApiBackend):
    """Drives the real routes through Flask's test client."""

    def __init__(self, test_client) -> None:
        self.test_client = test_client

    def request(self, method, path, *, json=None, params=None, token=None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        response = self.test_client.open(
            path, method=method, json=json, query_string=params, headers=headers
        )
        body = response.get_json(silent=True)
        if response.status_code >= 400:
            message = body.get("error") if isinstance(body, dict) else None
            raise ApiError(response.status_code, message or response.status)
        return body


@pytest.fixture(params=["server", "mock"])
def backend(request) -> ApiBackend:
    if request.param == "mock":
        return MockBackend()
    request.getfixturevalue("seeded")
    return FlaskTestBackend(request.getfixturevalue("client"))


@pytest.fixture
def demo(backend) -> BarberCraftClient:
    client = BarberCraftClient(backend)
    client.login("demo", "user123")
    return client


def _error(call, *args, **kwargs) -> tuple[int, str]:
    with pytest.raises(ApiError) as excinfo:
        call(*args, **kwargs)
    return excinfo.value.status, excinfo.value.message


REVIEW_KEYS = {
    "id", "user_id", "customer_name", "customer_avatar", "rating", "comment", "service_id",
    "staff_id", "created_at", "username", "user_name", "service_name", "staff_name",
}

APPOINTMENT_KEYS = {
    "id", "user_id", "service_id", "staff_id", "date", "time", "status", "notes", "total_price",
    "created_at", "service_name", "service_price", "service_duration", "staff_name", "username",
    "user_name",
}


def test_review_feed_shape_and_filters(backend) -> None:
    client = BarberCraftClient(backend)

    reviews = client.reviews()
    assert len(reviews) == 3
    assert all(set(review) == REVIEW_KEYS for review in reviews)
    john = next(r for r in reviews if r["customer_name"] == "John S.")
    assert (john["service_name"], john["staff_name"], john["username"]) == (
        "Signature Cut", "Marcus Johnson", "demo",
    )

    by_staff = backend.request("GET", "/reviews", params={"staff_id": 2})
    by_service = backend.request("GET", "/reviews", params={"service_id": 3})
    assert [r["customer_name"] for r in by_staff] == ["David W."]
    assert [r["customer_name"] for r in by_service] == ["Michael J."]


def test_review_validation(demo) -> None:
    assert _error(demo.add_review, 5, service_id=999) == (400, "Invalid service")
    assert _error(demo.add_review, 5, staff_id="barber_9") == (400, "Invalid staff member")
    assert _error(demo.add_review, "5") == (400, "Rating must be between 1 and 5")

    review = demo.add_review(4, "Clean lines", service_id=2, staff_id="barber_1")
    assert set(review) == REVIEW_KEYS
    assert (review["customer_name"], review["service_name"], review["staff_name"]) == (
        "Demo User", "Beard Trim & Shape", "Marcus Johnson",
    )


def test_booking_validation(demo) -> None:
    booked = demo.book("1", "2025-03-01", "10:00", staff_id=1)
    assert set(booked) == APPOINTMENT_KEYS
    assert (booked["service_id"], booked["total_price"]) == (1, 65.0)

    assert _error(demo.book, 999, "2025-03-01", "11:00") == (400, "Invalid service")
    assert _error(demo.book, 1, "2025-03-01", "11:00", staff_id=9) == (400, "Invalid staff member")
    assert _error(demo.book, 1, "03/01/2025", "11:00") == (
        400, "Date must be YYYY-MM-DD and time must be HH:MM",
    )
    assert _error(demo.book, 2, "2025-03-01", "10:00") == (400, "This time slot is already booked")


def test_update_rules(demo) -> None:
    first = demo.book(1, "2025-03-01", "10:00", staff_id=1)
    demo.cancel_appointment(first["id"])
    second = demo.book(1, "2025-03-01", "10:00", staff_id=1)

    assert demo.update_appointment(second["id"], notes="Keep it short")["notes"] == "Keep it short"
    assert demo.update_appointment(first["id"], notes="Never mind")["status"] == "cancelled"
    assert _error(demo.update_appointment, first["id"], status="confirmed") == (
        400, "This time slot is already booked",
    )
    assert _error(demo.update_appointment, second["id"], status="done")[0] == 400


def test_checkout_validation(demo) -> None:
    assert _error(demo.checkout, ["pomade"]) == (400, "Each item must be an object")
    assert _error(demo.checkout, [{"product_id": 1, "quantity": 0}]) == (
        400, "Quantity must be an integer between 1 and 999",
    )
    assert _error(demo.checkout, [{"product_id": 1, "quantity": 10**20}])[0] == 400
    assert _error(demo.checkout, [{"product_id": 99}]) == (400, "Invalid product: 99")
    assert _error(demo.checkout, []) == (400, "Items are required")

    order = demo.checkout([{"product_id": "1", "quantity": 2}, {"id": 4}])
    assert order["total_amount"] == 78.0
    assert order["items"][0] == {"product_id": 1, "quantity": 2, "price": 28.0, "price_cents": 2800}


def test_non_object_body(backend) -> None:
    with pytest.raises(ApiError) as excinfo:
        backend.request("POST", "/auth/login", json=["demo", "user123"])

    assert (excinfo.value.status, excinfo.value.message) == (400, "Invalid JSON body")


def test_availability_validation(backend) -> None:
    client = BarberCraftClient(backend)

    assert _error(client.availability, "2025-03-01", 999) == (400, "Invalid service")
    assert _error(client.availability, "2025-03-01", 1, barber_id="barber_x")[0] == 400
    assert len(client.availability("2025-03-01", "1")) == 20
