"""Smoke tests for the health endpoints and app-level error handling."""
from __future__ import annotations

from datetime import datetime
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from barbercraft import create_app
from barbercraft.config import TestingConfig


def test_health_endpoint() -> None:
    app = create_app(TestingConfig)
    client = app.test_client()

    response = client.get("/health")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "ok"
    assert datetime.fromisoformat(body["timestamp"])


def test_db_health_ok(client) -> None:
    response = client.get("/db-health")

    assert response.status_code == 200
    assert response.get_json() == {"database": "ok"}


def test_db_health_unavailable(client) -> None:
    with patch("barbercraft.routes.db.session.execute", side_effect=OperationalError("SELECT 1", {}, Exception("down"))):
        response = client.get("/db-health")

    assert response.status_code == 500
    assert response.get_json() == {"database": "unavailable"}


def test_unknown_route_returns_json_404(client) -> None:
    response = client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.get_json() == {"error": "Endpoint not found"}


def test_wrong_method_returns_json_405(client) -> None:
    response = client.delete("/health")

    assert response.status_code == 405
    assert response.get_json() == {"error": "Method not allowed"}


def test_unhandled_exception_is_generic_500(app, client) -> None:
    with app.app_context(), patch("barbercraft.routes.Service.query") as query:
        query.order_by.side_effect = RuntimeError("boom")
        response = client.get("/services")

    assert response.status_code == 500
    assert response.get_json() == {"error": "Internal server error"}


def test_api_prefix_mounts_routes_under_prefix() -> None:
    class PrefixedConfig(TestingConfig):
        API_PREFIX = "/api"

    app = create_app(PrefixedConfig)
    client = app.test_client()

    assert client.get("/api/health").status_code == 200
    assert client.get("/health").status_code == 404
