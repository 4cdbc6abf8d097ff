"""High-level client for the BarberCraft API."""
from __future__ import annotations

import logging

from .backends import ApiBackend
from .session import AuthSession

logger = logging.getLogger(__name__)


class BarberCraftClient:
    """Typed-ish wrapper around an ``ApiBackend``.

    Auth state lives on the ``session`` passed in, so several clients (or a
    test) can hold independent logins against the same backend.
    """

    def __init__(self, backend: ApiBackend, session: AuthSession | None = None) -> None:
        self.backend = backend
        self.session = session or AuthSession()

    def _call(self, method: str, path: str, *, json=None, params=None, auth: bool = False):
        token = self.session.token if auth else None
        return self.backend.request(method, path, json=json, params=params, token=token)

    # -- auth -------------------------------------------------------------

    def register(self, username: str, password: str, **profile) -> dict:
        result = self._call("POST", "/auth/register", json={"username": username, "password": password, **profile})
        self.session.start(result["token"], result["user"])
        return result["user"]

    def login(self, username: str, password: str) -> dict:
        result = self._call("POST", "/auth/login", json={"username": username, "password": password})
        self.session.start(result["token"], result["user"])
        logger.info("Logged in as %s", result["user"]["username"])
        return result["user"]

    def logout(self) -> None:
        self.session.end()

    def me(self) -> dict:
        return self._call("GET", "/auth/me", auth=True)

    # -- catalog ----------------------------------------------------------

    def services(self) -> list[dict]:
        return self._call("GET", "/services")

    def service(self, service_id: int) -> dict:
        return self._call("GET", f"/services/{service_id}")

    def barbers(self) -> list[dict]:
        return self._call("GET", "/barbers")

    def products(self) -> list[dict]:
        return self._call("GET", "/products")

    def search(self, query: str) -> dict:
        return self._call("GET", "/search", params={"q": query})

    # -- bookings ---------------------------------------------------------

    def availability(self, date: str, service_id: int, barber_id: int | str | None = None) -> list[str]:
        params = {"date": date, "serviceId": service_id}
        if barber_id is not None:
            params["barberId"] = barber_id
        return self._call("GET", "/availability", params=params)

    def appointments(self) -> list[dict]:
        return self._call("GET", "/appointments", auth=True)

    def book(self, service_id: int, date: str, time: str, *,
             staff_id: int | None = None, notes: str | None = None) -> dict:
        body = {"service_id": service_id, "date": date, "time": time}
        if staff_id is not None:
            body["staff_id"] = staff_id
        if notes:
            body["notes"] = notes
        return self._call("POST", "/appointments", json=body, auth=True)

    def update_appointment(self, appointment_id: int, **changes) -> dict:
        return self._call("PUT", f"/appointments/{appointment_id}", json=changes, auth=True)

    def cancel_appointment(self, appointment_id: int) -> dict:
        return self.update_appointment(appointment_id, status="cancelled")

    # -- shop -------------------------------------------------------------

    def checkout(self, items: list[dict], shipping_address: dict | None = None) -> dict:
        body: dict = {"items": items}
        if shipping_address:
            body["shipping_address"] = shipping_address
        return self._call("POST", "/orders/checkout", json=body, auth=True)["order"]

    def orders(self) -> list[dict]:
        return self._call("GET", "/orders", auth=True)

    # -- reviews ----------------------------------------------------------

    def reviews(self) -> list[dict]:
        return self._call("GET", "/reviews")

    def add_review(self, rating: int, comment: str | None = None, *,
                   service_id: int | None = None, staff_id: int | None = None) -> dict:
        body = {"rating": rating, "comment": comment, "service_id": service_id, "staff_id": staff_id}
        return self._call("POST", "/reviews", json=body, auth=True)

    def close(self) -> None:
        self.backend.close()
