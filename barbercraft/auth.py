"""Bearer-token issuance and the request gates built on it."""
from __future__ import annotations

from functools import wraps
from typing import Callable

from flask import current_app, g, jsonify, request
from itsdangerous import BadData, URLSafeTimedSerializer

from .models import User

TOKEN_SALT = "auth-token"
MIN_PASSWORD_LENGTH = 6


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(user: User) -> str:
    """Sign ``{id, username, role}`` for the given user."""
    payload = {"id": user.user_id, "username": user.username, "role": user.role}
    return _serializer().dumps(payload)


def decode_token(token: str) -> dict[str, object]:
    """Return the token payload or raise ``itsdangerous.BadData``.

    Expiry is bounded by the ``TOKEN_MAX_AGE`` config value.
    """
    payload = _serializer().loads(token, max_age=current_app.config["TOKEN_MAX_AGE"])
    if not isinstance(payload, dict) or not {"id", "username", "role"} <= payload.keys():
        raise BadData("malformed token payload")
    return payload


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def current_identity() -> dict[str, object] | None:
    """Identity of the authenticated caller, set by ``token_required``."""
    return g.get("identity")


def is_admin(identity: dict[str, object] | None = None) -> bool:
    identity = identity if identity is not None else current_identity()
    return bool(identity) and identity.get("role") == "ADMIN"


def token_required(view: Callable) -> Callable:
    """Reject the request with 401 unless a valid bearer token is presented."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return jsonify({"error": "Access token required"}), 401
        try:
            g.identity = decode_token(token)
        except BadData as exc:
            current_app.logger.warning("Rejected bearer token: %s", exc.__class__.__name__)
            return jsonify({"error": "Invalid or expired token"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view: Callable) -> Callable:
    """Like ``token_required`` but additionally demands the ADMIN role."""

    @wraps(view)
    def gate(*args, **kwargs):
        if not is_admin():
            return jsonify({"error": "Admin access required"}), 403
        return view(*args, **kwargs)

    return token_required(gate)
