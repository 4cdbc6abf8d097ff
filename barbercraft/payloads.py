"""Request-body helpers shared by the API routes and the in-memory client backend."""
from __future__ import annotations

from flask import request
from werkzeug.exceptions import BadRequest

# Largest value an INTEGER column holds on every supported database.
MAX_INT = 2**31 - 1


class InvalidPayload(BadRequest):
    description = "Invalid JSON body"


def json_object() -> dict:
    """Return the JSON body as a dict; a missing body counts as empty.

    Raises ``InvalidPayload`` (400) for arrays, scalars and other non-objects.
    """
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidPayload()
    return payload


def parse_id(value: object) -> int:
    """Parse a positive row id from an int or digit string."""
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"invalid id: {value!r}")
    number = int(value.strip()) if isinstance(value, str) else int(value)
    if not 0 < number <= MAX_INT:
        raise ValueError(f"id out of range: {value!r}")
    return number


def parse_bounded_int(value: object, *, minimum: int = 1, maximum: int = MAX_INT) -> int:
    if isinstance(value, bool) or isinstance(value, float) and not value.is_integer():
        raise ValueError("expected an integer")
    number = int(value)
    if not minimum <= number <= maximum:
        raise ValueError(f"expected an integer between {minimum} and {maximum}")
    return number


def parse_rating(value: object) -> int:
    """Ratings are JSON integers from 1 to 5; strings and floats are rejected."""
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise ValueError("Rating must be between 1 and 5")
    return value
