"""Python client for the BarberCraft API.

``create_client`` chooses the backend from configuration:
``BARBERCRAFT_API_MODE`` is ``live`` (default) or ``mock``, and
``BARBERCRAFT_API_URL`` is the live base URL.
"""
from __future__ import annotations

import os
from collections.abc import Mapping

from .api import BarberCraftClient
from .backends import ApiBackend, ApiError, HttpBackend, MockBackend
from .session import AuthSession, FileTokenStore, MemoryTokenStore, TokenStore

DEFAULT_API_URL = "http://localhost:4000"

__all__ = [
    "ApiBackend",
    "ApiError",
    "AuthSession",
    "BarberCraftClient",
    "FileTokenStore",
    "HttpBackend",
    "MemoryTokenStore",
    "MockBackend",
    "TokenStore",
    "create_client",
]


def create_client(config: Mapping[str, str] | None = None, *,
                  token_store: TokenStore | None = None) -> BarberCraftClient:
    settings = os.environ if config is None else config
    mode = (settings.get("BARBERCRAFT_API_MODE") or "live").strip().lower()

    if mode == "mock":
        backend: ApiBackend = MockBackend()
    elif mode == "live":
        backend = HttpBackend(
            settings.get("BARBERCRAFT_API_URL") or DEFAULT_API_URL,
            timeout=float(settings.get("BARBERCRAFT_API_TIMEOUT") or 10),
        )
    else:
        raise ValueError(f"unknown BARBERCRAFT_API_MODE: {mode!r} (expected 'live' or 'mock')")

    return BarberCraftClient(backend, AuthSession(token_store))
