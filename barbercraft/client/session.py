"""Client-side auth state and the token storage it is persisted through."""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class TokenStore(ABC):
    """Where an ``AuthSession`` keeps its token and user between runs."""

    @abstractmethod
    def load(self) -> dict | None:
        """Return ``{"token": ..., "user": ...}`` or ``None``."""

    @abstractmethod
    def save(self, token: str, user: dict) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...


class MemoryTokenStore(TokenStore):
    def __init__(self) -> None:
        self._data: dict | None = None

    def load(self) -> dict | None:
        return dict(self._data) if self._data else None

    def save(self, token: str, user: dict) -> None:
        self._data = {"token": token, "user": dict(user)}

    def clear(self) -> None:
        self._data = None


class FileTokenStore(TokenStore):
    """Keeps the session in a small JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> dict | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable token file %s: %s", self.path, exc)
            return None
        if not isinstance(data, dict) or not data.get("token"):
            return None
        return data

    def save(self, token: str, user: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token, "user": user}), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class AuthSession:
    """Explicit auth state handed to the API layer."""

    def __init__(self, store: TokenStore | None = None) -> None:
        self.store = store or MemoryTokenStore()
        saved = self.store.load() or {}
        self.token: str | None = saved.get("token")
        self.user: dict | None = saved.get("user")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return bool(self.user) and self.user.get("role") == "ADMIN"

    def start(self, token: str, user: dict) -> None:
        self.token = token
        self.user = dict(user)
        self.store.save(token, self.user)

    def end(self) -> None:
        self.token = None
        self.user = None
        self.store.clear()
