"""Configuration defaults for the BarberCraft backend."""
from __future__ import annotations

import os


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default) in {"1", "true", "True"}


class Config:
    """Base configuration, read from the environment at import time."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-in-production")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///barbercraft.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer tokens expire after 24 hours unless overridden.
    TOKEN_MAX_AGE = int(os.environ.get("TOKEN_MAX_AGE", 86400))

    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")
    API_PREFIX = os.environ.get("API_PREFIX", "")
    SEED_ON_STARTUP = _env_flag("SEED_ON_STARTUP")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SEED_ON_STARTUP = False
