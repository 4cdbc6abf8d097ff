from __future__ import annotations

from collections.abc import Mapping

import click
from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db
from .payloads import InvalidPayload
from .routes import bp
from .routes_extended import bp_ext
from .seed import seed_database


def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)

    if isinstance(config_object, Mapping):
        app.config.from_mapping(config_object)
    elif config_object:
        app.config.from_object(config_object)
    else:
        app.config.from_envvar("APP_SETTINGS", silent=True)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    db.init_app(app)

    # Allow the React frontend to talk to the API with bearer tokens
    CORS(app,
         origins=[app.config["FRONTEND_URL"]],
         supports_credentials=True,
         allow_headers=["Content-Type", "Authorization"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )

    register_routes(app)
    register_error_handlers(app)
    register_commands(app)

    if app.config.get("SEED_ON_STARTUP"):
        with app.app_context():
            db.create_all()
            seed_database()

    return app


def register_routes(app: Flask) -> None:
    prefix = app.config.get("API_PREFIX") or None
    app.register_blueprint(bp, url_prefix=prefix)
    app.register_blueprint(bp_ext, url_prefix=prefix)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(InvalidPayload)
    def invalid_payload(exc: InvalidPayload):
        return jsonify({"error": exc.description}), 400

    @app.errorhandler(404)
    def not_found(_exc):
        return jsonify({"error": "Endpoint not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_exc):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException):
        return jsonify({"error": exc.name}), exc.code

    @app.errorhandler(Exception)
    def unhandled_error(exc: Exception):
        db.session.rollback()
        app.logger.exception("Unhandled error", exc_info=exc)
        return jsonify({"error": "Internal server error"}), 500


def register_commands(app: Flask) -> None:
    @app.cli.command("init-db")
    def init_db_command() -> None:
        """Create all database tables."""
        db.create_all()
        click.echo("Database tables initialized")

    @app.cli.command("seed-db")
    def seed_db_command() -> None:
        """Create tables and load the demo catalog and accounts."""
        db.create_all()
        if seed_database():
            click.echo("Database seeded. Admin: admin/admin123, User: demo/user123")
        else:
            click.echo("Database already contains users; nothing seeded")
