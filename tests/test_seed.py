"""Tests for the demo seed and the flask CLI commands that wrap it."""
from __future__ import annotations

from barbercraft.models import Product, Service, Staff, User
from barbercraft.seed import seed_database


def test_seed_only_runs_on_empty_database(app) -> None:
    with app.app_context():
        assert seed_database() is True
        assert seed_database() is False

        assert User.query.count() == 2
        assert Service.query.count() == 5
        assert Staff.query.count() == 2
        assert Product.query.count() == 4
        assert Service.query.filter_by(name="Signature Cut").one().price_cents == 6500


def test_seed_db_command(app) -> None:
    runner = app.test_cli_runner()

    first = runner.invoke(args=["seed-db"])
    second = runner.invoke(args=["seed-db"])

    assert "Database seeded" in first.output
    assert "nothing seeded" in second.output


def test_init_db_command(app) -> None:
    result = app.test_cli_runner().invoke(args=["init-db"])

    assert result.exit_code == 0
    assert "Database tables initialized" in result.output
