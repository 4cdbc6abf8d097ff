"""Walk a new customer through register, login, booking and availability."""
from __future__ import annotations


def test_new_customer_books_and_slot_is_taken(client, seeded) -> None:
    registered = client.post(
        "/auth/register",
        json={"username": "demo2", "password": "pass1234", "email": "demo2@example.com"},
    )
    assert registered.status_code == 201

    login = client.post("/auth/login", json={"username": "demo2", "password": "pass1234"})
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.get_json()['token']}"}

    booked = client.post(
        "/appointments",
        json={"service_id": 1, "date": "2025-03-01", "time": "10:00"},
        headers=headers,
    )
    assert booked.status_code == 201
    assert booked.get_json()["total_price"] == 65.0

    slots = client.get("/availability", query_string={"date": "2025-03-01", "serviceId": 1}).get_json()
    assert "10:00" not in slots
    assert "09:30" in slots

    mine = client.get("/appointments", headers=headers).get_json()
    assert [(a["date"], a["time"], a["status"]) for a in mine] == [("2025-03-01", "10:00", "confirmed")]

    order = client.post(
        "/orders/checkout", json={"items": [{"product_id": 4, "quantity": 1}]}, headers=headers
    )
    assert order.status_code == 201
    assert client.get("/orders", headers=headers).get_json()[0]["total_amount"] == 22.0
