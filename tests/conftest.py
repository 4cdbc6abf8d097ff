"""pytest configuration: app factory, seeded database and auth helpers."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure the project root is available on sys.path so tests can import the app package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from barbercraft import create_app  # noqa: E402
from barbercraft.config import TestingConfig  # noqa: E402
from barbercraft.extensions import db  # noqa: E402
from barbercraft.seed import seed_database  # noqa: E402


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seeded(app):
    """Demo data: admin(1)/demo(2), five services, two barbers, four products."""
    with app.app_context():
        seed_database()
    return app


@pytest.fixture
def login(client):
    """Return a function that logs in and yields an Authorization header."""

    def _login(username: str, password: str) -> dict[str, str]:
        response = client.post("/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.get_json()
        return {"Authorization": f"Bearer {response.get_json()['token']}"}

    return _login


@pytest.fixture
def user_headers(seeded, login):
    return login("demo", "user123")


@pytest.fixture
def admin_headers(seeded, login):
    return login("admin", "admin123")
