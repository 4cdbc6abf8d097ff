"""Tests for the public catalog and its admin-only mutations."""
from __future__ import annotations

import pytest

from barbercraft.extensions import db
from barbercraft.models import Product, Service


def test_services_list_featured_first(client, seeded) -> None:
    response = client.get("/services")

    assert response.status_code == 200
    services = response.get_json()
    assert len(services) == 5
    featured = [service["featured"] for service in services]
    assert featured == sorted(featured, reverse=True)
    signature = next(s for s in services if s["name"] == "Signature Cut")
    assert signature["price"] == 65.0
    assert signature["duration"] == 45


def test_get_service_and_missing_service(client, seeded) -> None:
    assert client.get("/services/1").get_json()["name"] == "Signature Cut"

    response = client.get("/services/999")
    assert response.status_code == 404
    assert response.get_json() == {"error": "Service not found"}


def test_create_service_as_admin(app, client, admin_headers) -> None:
    response = client.post(
        "/services",
        json={"name": "Kids Cut", "price": 20, "duration": 25, "category": "Haircut"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    body = response.get_json()
    assert body["price"] == 20.0
    assert body["featured"] is False
    with app.app_context():
        assert db.session.get(Service, body["id"]).price_cents == 2000


def test_create_service_requires_admin(client, user_headers) -> None:
    response = client.post(
        "/services", json={"name": "Kids Cut", "price": 20, "duration": 25}, headers=user_headers
    )

    assert response.status_code == 403


def test_create_service_without_token(client, seeded) -> None:
    response = client.post("/services", json={"name": "Kids Cut", "price": 20, "duration": 25})

    assert response.status_code == 401


def test_create_service_missing_fields(client, admin_headers) -> None:
    response = client.post("/services", json={"name": "Kids Cut"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.get_json() == {"error": "Name, price, and duration are required"}


@pytest.mark.parametrize("field, value", [
    ("price", -5), ("price", "abc"), ("price", "1e30"), ("price", 10**20),
    ("duration", 0), ("duration", 1.5), ("duration", 10**20),
])
def test_create_service_rejects_bad_numbers(client, admin_headers, field, value) -> None:
    payload = {"name": "Kids Cut", "price": 20, "duration": 25, field: value}

    response = client.post("/services", json=payload, headers=admin_headers)

    assert response.status_code == 400


def test_update_service_keeps_unspecified_fields(client, admin_headers) -> None:
    response = client.put("/services/1", json={"price": 70}, headers=admin_headers)

    assert response.status_code == 200
    body = response.get_json()
    assert body["price"] == 70.0
    assert body["name"] == "Signature Cut"
    assert body["duration"] == 45


def test_update_missing_service(client, admin_headers) -> None:
    response = client.put("/services/999", json={"price": 70}, headers=admin_headers)

    assert response.status_code == 404


def test_delete_service(app, client, admin_headers) -> None:
    response = client.delete("/services/4", headers=admin_headers)

    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(Service, 4) is None


def test_staff_list_parses_json_columns(client, seeded) -> None:
    response = client.get("/staff")

    assert response.status_code == 200
    staff = {member["name"]: member for member in response.get_json()}
    marcus = staff["Marcus Johnson"]
    assert marcus["id"] == 1
    assert "Classic Cuts" in marcus["specialties"]
    assert marcus["working_hours"]["friday"] == {"start": "09:00", "end": "19:00"}
    assert marcus["working_hours"]["sunday"] is None


def test_barbers_use_frontend_shape(client, seeded) -> None:
    barbers = client.get("/barbers").get_json()

    ids = {barber["id"] for barber in barbers}
    assert ids == {"barber_1", "barber_2"}
    david = next(b for b in barbers if b["id"] == "barber_2")
    assert david["yearsExperience"] == 8
    assert david["workingHours"]["monday"] is None


def test_products_list_and_get(client, seeded) -> None:
    products = client.get("/products").get_json()

    assert len(products) == 4
    assert client.get("/products/1").get_json()["price"] == 28.0
    assert client.get("/products/999").status_code == 404


def test_create_product_defaults(client, admin_headers) -> None:
    response = client.post(
        "/products",
        json={"name": "Comb", "description": "Wide-tooth comb", "price": "7.50"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    body = response.get_json()
    assert body["price"] == 7.5
    assert body["category"] == "Tools"
    assert body["brand"] == "BarberCraft"
    assert body["in_stock"] is True
    assert body["stock_count"] == 10


def test_create_product_missing_description(client, admin_headers) -> None:
    response = client.post("/products", json={"name": "Comb", "price": 7}, headers=admin_headers)

    assert response.status_code == 400
    assert response.get_json() == {"error": "Name, description, and price are required"}


def test_update_product_rejects_negative_stock(client, admin_headers) -> None:
    response = client.put("/products/1", json={"stock_count": -1}, headers=admin_headers)

    assert response.status_code == 400


def test_update_and_delete_product(app, client, admin_headers) -> None:
    updated = client.put("/products/2", json={"in_stock": False}, headers=admin_headers)
    assert updated.status_code == 200
    assert updated.get_json()["in_stock"] is False

    deleted = client.delete("/products/2", headers=admin_headers)
    assert deleted.status_code == 200
    with app.app_context():
        assert db.session.get(Product, 2) is None


def test_product_mutations_require_admin(client, user_headers) -> None:
    assert client.put("/products/1", json={"price": 1}, headers=user_headers).status_code == 403
    assert client.delete("/products/1", headers=user_headers).status_code == 403


def test_customers_lists_only_users(client, admin_headers) -> None:
    client.post("/auth/register", json={"username": "walkin", "password": "secret1"})

    response = client.get("/customers", headers=admin_headers)

    assert response.status_code == 200
    usernames = [customer["username"] for customer in response.get_json()]
    assert "admin" not in usernames
    assert set(usernames) == {"demo", "walkin"}
    assert all("password_hash" not in customer for customer in response.get_json())


def test_search_is_case_insensitive_across_entities(client, seeded) -> None:
    response = client.get("/search", query_string={"q": "BEARD"})

    assert response.status_code == 200
    body = response.get_json()
    assert "Beard Trim & Shape" in [service["name"] for service in body["services"]]
    assert "Premium Beard Oil" in [product["name"] for product in body["products"]]
    assert body["barbers"] == []


def test_search_matches_descriptions(client, seeded) -> None:
    body = client.get("/search", query_string={"q": "fades"}).get_json()

    assert [barber["name"] for barber in body["barbers"]] == ["David Chen"]
    assert body["services"] == []


def test_search_requires_query(client, seeded) -> None:
    response = client.get("/search", query_string={"q": "  "})

    assert response.status_code == 400
    assert response.get_json() == {"error": "Search query required"}


@pytest.mark.parametrize("body", [["Kids Cut", 20, 25], "Kids Cut", 7])
def test_create_service_rejects_non_object_body(client, admin_headers, body) -> None:
    response = client.post("/services", json=body, headers=admin_headers)

    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid JSON body"}


def test_update_product_rejects_huge_price(client, admin_headers) -> None:
    response = client.put("/products/1", json={"price": "1e30"}, headers=admin_headers)

    assert response.status_code == 400
    assert client.get("/products/1").get_json()["price"] == 28.0


def test_delete_booked_service_is_refused(app, client, user_headers, admin_headers) -> None:
    client.post(
        "/appointments",
        json={"service_id": 4, "date": "2025-03-01", "time": "10:00"},
        headers=user_headers,
    )

    response = client.delete("/services/4", headers=admin_headers)

    assert response.status_code == 400
    assert response.get_json() == {"error": "Service is referenced by existing records"}
    with app.app_context():
        assert db.session.get(Service, 4) is not None


def test_delete_reviewed_service_is_refused(client, admin_headers) -> None:
    # Seeded reviews point at the Signature Cut.
    assert client.delete("/services/1", headers=admin_headers).status_code == 400


@pytest.mark.parametrize("term", ["%", "_", "\\"])
def test_search_wildcards_match_literally(client, seeded, term) -> None:
    body = client.get("/search", query_string={"q": term}).get_json()

    assert body == {"services": [], "barbers": [], "products": []}


def test_search_literal_percent_still_matches(client, admin_headers) -> None:
    client.post(
        "/products",
        json={"name": "100% Boar Brush", "description": "Natural bristles", "price": 18},
        headers=admin_headers,
    )

    body = client.get("/search", query_string={"q": "100%"}).get_json()

    assert [product["name"] for product in body["products"]] == ["100% Boar Brush"]
