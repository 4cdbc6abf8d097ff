"""Interchangeable transports behind ``BarberCraftClient``.

``HttpBackend`` talks to a running API over HTTP. ``MockBackend`` serves the
same routes from memory, applying the same booking and checkout rules, so the
client can be exercised without a server.
"""
from __future__ import annotations

import copy
import itertools
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone

import httpx
from werkzeug.security import check_password_hash, generate_password_hash

from ..booking import (SLOT_TIMES, needs_slot_check, normalize_date, normalize_time,
                       parse_staff_id, staff_overlaps)
from ..checkout import CheckoutError, check_total, line_item, parse_line
from ..models import APPOINTMENT_STATUSES, USER_ROLES
from ..payloads import parse_id, parse_rating
from ..seed import DEMO_USERS, PRODUCTS, REVIEWS, SERVICES, STAFF

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error response from the API, or a transport failure (status 0)."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


class ApiBackend(ABC):
    @abstractmethod
    def request(self, method: str, path: str, *, json: object = None,
                params: dict | None = None, token: str | None = None) -> object:
        """Perform ``method path`` and return the decoded JSON body.

        Raises ``ApiError`` for any non-2xx outcome.
        """

    def close(self) -> None:
        pass


class HttpBackend(ApiBackend):
    def __init__(self, base_url: str, *, timeout: float = 10.0, retries: int = 3,
                 transport: httpx.BaseTransport | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport or httpx.HTTPTransport(retries=retries),
        )

    def request(self, method, path, *, json=None, params=None, token=None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        logger.debug("%s %s%s", method, self.base_url, path)
        try:
            response = self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise ApiError(0, f"Network error: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = body.get("error") if isinstance(body, dict) else None
            raise ApiError(response.status_code, message or response.reason_phrase)
        return body

    def close(self) -> None:
        self._client.close()


def _dollars(cents: int) -> float:
    return cents / 100.0


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _text(value: object) -> str | None:
    return str(value or "").strip() or None


class MockBackend(ApiBackend):
    """In-memory stand-in for the API, preloaded with the demo catalog.

    Input parsing and the slot, checkout and rating rules come from the same
    helpers the Flask routes use.
    """

    _ROUTES = [
        ("GET", r"/health", "_health"),
        ("POST", r"/auth/register", "_register"),
        ("POST", r"/auth/login", "_login"),
        ("GET", r"/auth/me", "_me"),
        ("GET", r"/services", "_list_services"),
        ("GET", r"/services/(\d+)", "_get_service"),
        ("GET", r"/staff", "_list_staff"),
        ("GET", r"/barbers", "_list_barbers"),
        ("GET", r"/products", "_list_products"),
        ("GET", r"/products/(\d+)", "_get_product"),
        ("GET", r"/appointments", "_list_appointments"),
        ("GET", r"/bookings", "_list_appointments"),
        ("POST", r"/appointments", "_create_appointment"),
        ("GET", r"/appointments/(\d+)", "_get_appointment"),
        ("PUT", r"/appointments/(\d+)", "_update_appointment"),
        ("DELETE", r"/appointments/(\d+)", "_delete_appointment"),
        ("GET", r"/availability", "_availability"),
        ("GET", r"/orders", "_list_orders"),
        ("POST", r"/orders/checkout", "_checkout"),
        ("GET", r"/reviews", "_list_reviews"),
        ("POST", r"/reviews", "_create_review"),
        ("GET", r"/search", "_search"),
    ]

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._appointment_ids = itertools.count(1)
        self._order_ids = itertools.count(1)
        self._review_ids = itertools.count(1)
        self._tokens: dict[str, int] = {}
        self.users: dict[int, dict] = {}
        self.appointments: dict[int, dict] = {}
        self.orders: dict[int, dict] = {}
        self.reviews: dict[int, dict] = {}

        for entry in DEMO_USERS:
            self._add_user(entry["username"], entry["password"], entry["email"],
                           entry["name"], entry["role"])
        self.services = {
            index: {
                "id": index,
                "name": entry["name"],
                "description": entry["description"],
                "price_cents": entry["price_cents"],
                "duration": entry["duration_minutes"],
                "category": entry["category"],
                "image": entry["image"],
                "featured": entry["featured"],
            }
            for index, entry in enumerate(SERVICES, start=1)
        }
        self.staff = {
            index: dict(copy.deepcopy(entry), id=index)
            for index, entry in enumerate(STAFF, start=1)
        }
        self.products = {
            index: dict(copy.deepcopy(entry), id=index, in_stock=True)
            for index, entry in enumerate(PRODUCTS, start=1)
        }

        demo_user_id = 2
        for name, avatar, rating, comment, service_idx, staff_idx in REVIEWS:
            self._add_review(
                self.users[demo_user_id], rating, comment,
                service_id=service_idx + 1 if service_idx is not None else None,
                staff_id=staff_idx + 1 if staff_idx is not None else None,
                customer_name=name, customer_avatar=avatar,
            )

    # -- plumbing ---------------------------------------------------------

    def request(self, method, path, *, json=None, params=None, token=None):
        path = "/" + path.strip("/")
        for verb, pattern, handler in self._ROUTES:
            if verb != method.upper():
                continue
            match = re.fullmatch(pattern, path)
            if match:
                if json is not None and not isinstance(json, dict):
                    raise ApiError(400, "Invalid JSON body")
                args = [int(group) for group in match.groups()]
                try:
                    result = getattr(self, handler)(
                        *args, body=json or {}, params=params or {}, token=token,
                    )
                except CheckoutError as exc:
                    raise ApiError(400, exc.message) from None
                return copy.deepcopy(result)
        raise ApiError(404, "Endpoint not found")

    def _add_user(self, username, password, email=None, name=None, role="USER") -> dict:
        user_id = next(self._ids)
        user = {
            "id": user_id,
            "username": username,
            "email": email,
            "name": name,
            "role": role,
            "password_hash": generate_password_hash(password),
            "created_at": _now(),
        }
        self.users[user_id] = user
        return user

    def _add_review(self, user, rating, comment, *, service_id=None, staff_id=None,
                    customer_name=None, customer_avatar=None) -> dict:
        review_id = next(self._review_ids)
        self.reviews[review_id] = {
            "id": review_id,
            "user_id": user["id"],
            "customer_name": customer_name or user["name"] or user["username"],
            "customer_avatar": customer_avatar,
            "rating": rating,
            "comment": comment,
            "service_id": service_id,
            "staff_id": staff_id,
            "created_at": _now(),
        }
        return self.reviews[review_id]

    def _issue(self, user: dict) -> dict:
        token = f"mock-token-{user['id']}-{len(self._tokens) + 1}"
        self._tokens[token] = user["id"]
        return {"token": token, "user": {"id": user["id"], "username": user["username"], "role": user["role"]}}

    def _identity(self, token: str | None) -> dict:
        if not token:
            raise ApiError(401, "Access token required")
        user = self.users.get(self._tokens.get(token, -1))
        if user is None:
            raise ApiError(401, "Invalid or expired token")
        return user

    def _visible(self, rows: dict[int, dict], user: dict) -> list[dict]:
        if user["role"] == "ADMIN":
            return list(rows.values())
        return [row for row in rows.values() if row["user_id"] == user["id"]]

    @staticmethod
    def _service_out(service: dict) -> dict:
        return dict(service, price=_dollars(service["price_cents"]))

    @staticmethod
    def _product_out(product: dict) -> dict:
        return dict(product, price=_dollars(product["price_cents"]))

    @staticmethod
    def _barber_out(member: dict) -> dict:
        return {
            "id": f"barber_{member['id']}",
            "name": member["name"],
            "title": member["title"],
            "bio": member["bio"],
            "avatar": member["avatar"],
            "specialties": list(member["specialties"]),
            "rating": member["rating"],
            "yearsExperience": member["years_experience"],
            "featured": bool(member["featured"]),
            "workingHours": dict(member["working_hours"]),
        }

    def _related_names(self, row: dict) -> dict:
        service = self.services.get(row["service_id"])
        member = self.staff.get(row["staff_id"]) if row["staff_id"] else None
        user = self.users.get(row["user_id"])
        return {
            "service_name": service["name"] if service else None,
            "staff_name": member["name"] if member else None,
            "username": user["username"] if user else None,
            "user_name": user["name"] if user else None,
        }

    def _appointment_out(self, appt: dict) -> dict:
        service = self.services.get(appt["service_id"])
        stored = {key: value for key, value in appt.items() if key != "total_price_cents"}
        return dict(
            stored,
            total_price=_dollars(appt["total_price_cents"]),
            service_price=_dollars(service["price_cents"]) if service else None,
            service_duration=service["duration"] if service else None,
            **self._related_names(appt),
        )

    def _review_out(self, review: dict) -> dict:
        return dict(review, **self._related_names(review))

    def _conflict(self, date, time, staff_id, exclude_id=None) -> bool:
        return any(
            appt["id"] != exclude_id
            and appt["status"] != "cancelled"
            and (appt["date"], appt["time"]) == (date, time)
            and staff_overlaps(appt["staff_id"], staff_id)
            for appt in self.appointments.values()
        )

    def _check_staff(self, staff_id: int | None) -> None:
        if staff_id is not None and staff_id not in self.staff:
            raise ApiError(400, "Invalid staff member")

    # -- handlers ---------------------------------------------------------

    def _health(self, **_):
        return {"status": "ok", "timestamp": _now()}

    def _register(self, *, body, **_):
        username = str(body.get("username") or "").strip()
        password = body.get("password") or ""
        role = str(body.get("role") or "USER").strip().upper()
        if not username or not password:
            raise ApiError(400, "Username and password required")
        if not isinstance(password, str) or len(password) < 6:
            raise ApiError(400, "Password must be at least 6 characters")
        if role not in USER_ROLES:
            raise ApiError(400, "Role must be USER or ADMIN")
        if any(user["username"] == username for user in self.users.values()):
            raise ApiError(400, "Username already exists")
        user = self._add_user(username, password, body.get("email"), _text(body.get("name")), role)
        return self._issue(user)

    def _login(self, *, body, **_):
        username = str(body.get("username") or "").strip()
        password = body.get("password") or ""
        if not username or not password:
            raise ApiError(400, "Username and password required")
        user = next((u for u in self.users.values() if u["username"] == username), None)
        if user is None or not check_password_hash(user["password_hash"], str(password)):
            raise ApiError(401, "Invalid credentials")
        return self._issue(user)

    def _me(self, *, token, **_):
        user = self._identity(token)
        return {key: user[key] for key in ("id", "username", "email", "role", "name")}

    def _list_services(self, **_):
        ordered = sorted(self.services.values(), key=lambda s: (not s["featured"], s["name"]))
        return [self._service_out(service) for service in ordered]

    def _get_service(self, service_id, **_):
        if service_id not in self.services:
            raise ApiError(404, "Service not found")
        return self._service_out(self.services[service_id])

    def _ordered_staff(self) -> list[dict]:
        return sorted(self.staff.values(), key=lambda m: (not m["featured"], m["name"]))

    def _list_staff(self, **_):
        return self._ordered_staff()

    def _list_barbers(self, **_):
        return [self._barber_out(member) for member in self._ordered_staff()]

    def _list_products(self, **_):
        ordered = sorted(self.products.values(), key=lambda p: (not p["featured"], p["name"]))
        return [self._product_out(product) for product in ordered]

    def _get_product(self, product_id, **_):
        if product_id not in self.products:
            raise ApiError(404, "Product not found")
        return self._product_out(self.products[product_id])

    def _list_appointments(self, *, token, **_):
        rows = self._visible(self.appointments, self._identity(token))
        rows.sort(key=lambda a: (a["date"], a["time"]), reverse=True)
        return [self._appointment_out(appt) for appt in rows]

    def _owned_appointment(self, appointment_id, user) -> dict:
        appt = self.appointments.get(appointment_id)
        if appt is None or (user["role"] != "ADMIN" and appt["user_id"] != user["id"]):
            raise ApiError(404, "Appointment not found")
        return appt

    def _get_appointment(self, appointment_id, *, token, **_):
        user = self._identity(token)
        return self._appointment_out(self._owned_appointment(appointment_id, user))

    def _create_appointment(self, *, body, token, **_):
        user = self._identity(token)
        if not body.get("service_id") or not body.get("date") or not body.get("time"):
            raise ApiError(400, "Service, date, and time are required")
        try:
            service_id = parse_id(body["service_id"])
            staff_id = parse_staff_id(body.get("staff_id"))
        except (ValueError, TypeError):
            raise ApiError(400, "Invalid service or staff id") from None
        try:
            date = normalize_date(body["date"])
            time = normalize_time(body["time"])
        except ValueError:
            raise ApiError(400, "Date must be YYYY-MM-DD and time must be HH:MM") from None
        service = self.services.get(service_id)
        if service is None:
            raise ApiError(400, "Invalid service")
        self._check_staff(staff_id)
        if self._conflict(date, time, staff_id):
            raise ApiError(400, "This time slot is already booked")

        appt_id = next(self._appointment_ids)
        self.appointments[appt_id] = {
            "id": appt_id,
            "user_id": user["id"],
            "service_id": service_id,
            "staff_id": staff_id,
            "date": date,
            "time": time,
            "status": "confirmed",
            "notes": _text(body.get("notes")),
            "total_price_cents": service["price_cents"],
            "created_at": _now(),
        }
        return self._appointment_out(self.appointments[appt_id])

    def _apply_changes(self, updated: dict, body: dict) -> None:
        if "service_id" in body:
            try:
                service_id = parse_id(body["service_id"])
            except (ValueError, TypeError):
                service_id = None
            if service_id not in self.services:
                raise ApiError(400, "Invalid service")
            updated["service_id"] = service_id
        if "staff_id" in body:
            try:
                staff_id = parse_staff_id(body["staff_id"])
            except (ValueError, TypeError):
                raise ApiError(400, "Invalid staff member") from None
            self._check_staff(staff_id)
            updated["staff_id"] = staff_id
        if "date" in body:
            try:
                updated["date"] = normalize_date(body["date"])
            except ValueError:
                raise ApiError(400, "Date must be YYYY-MM-DD") from None
        if "time" in body:
            try:
                updated["time"] = normalize_time(body["time"])
            except ValueError:
                raise ApiError(400, "Time must be HH:MM") from None
        if "notes" in body:
            updated["notes"] = _text(body["notes"])
        if "status" in body:
            if body["status"] not in APPOINTMENT_STATUSES:
                raise ApiError(400, f"Status must be one of: {', '.join(APPOINTMENT_STATUSES)}")
            updated["status"] = body["status"]

    def _update_appointment(self, appointment_id, *, body, token, **_):
        user = self._identity(token)
        if not {"service_id", "staff_id", "date", "time", "notes", "status"} & body.keys():
            raise ApiError(400, "No fields to update")
        appt = self._owned_appointment(appointment_id, user)
        updated = dict(appt)
        self._apply_changes(updated, body)

        slot = ("date", "time", "staff_id", "status")
        previous = tuple(appt[key] for key in slot)
        current = tuple(updated[key] for key in slot)
        if needs_slot_check(previous, current) and self._conflict(
            updated["date"], updated["time"], updated["staff_id"], exclude_id=appointment_id
        ):
            raise ApiError(400, "This time slot is already booked")
        appt.update(updated)
        return self._appointment_out(appt)

    def _delete_appointment(self, appointment_id, *, token, **_):
        user = self._identity(token)
        self._owned_appointment(appointment_id, user)
        del self.appointments[appointment_id]
        return {"message": "Appointment deleted successfully"}

    def _availability(self, *, params, **_):
        if not params.get("date") or not params.get("serviceId"):
            raise ApiError(400, "Date and serviceId are required")
        try:
            date = normalize_date(str(params["date"]))
            service_id = parse_id(params["serviceId"])
            staff_id = parse_staff_id(params.get("barberId"))
        except (ValueError, TypeError):
            raise ApiError(400, "Invalid date, serviceId or barberId") from None
        if service_id not in self.services:
            raise ApiError(400, "Invalid service")
        taken = {
            appt["time"]
            for appt in self.appointments.values()
            if appt["date"] == date and appt["status"] != "cancelled"
            and (staff_id is None or staff_overlaps(appt["staff_id"], staff_id))
        }
        return [slot for slot in SLOT_TIMES if slot not in taken]

    def _list_orders(self, *, token, **_):
        rows = self._visible(self.orders, self._identity(token))
        rows.sort(key=lambda o: o["id"], reverse=True)
        return rows

    def _checkout(self, *, body, token, **_):
        user = self._identity(token)
        shipping_address = body.get("shipping_address")
        if shipping_address is not None and not isinstance(shipping_address, dict):
            raise ApiError(400, "Shipping address must be an object")
        items = body.get("items")
        if not isinstance(items, list) or not items:
            raise ApiError(400, "Items are required")

        line_items, total_cents = [], 0
        for item in items:
            product_id, raw_id, quantity = parse_line(item)
            product = self.products.get(product_id)
            if product is None:
                raise ApiError(400, f"Invalid product: {raw_id}")
            total_cents += product["price_cents"] * quantity
            line_items.append(line_item(product_id, quantity, product["price_cents"]))
        check_total(total_cents)

        order_id = next(self._order_ids)
        self.orders[order_id] = {
            "id": order_id,
            "user_id": user["id"],
            "items": line_items,
            "status": "pending_cash",
            "total_amount": _dollars(total_cents),
            "payment_method": "cash",
            "shipping_address": shipping_address or None,
            "created_at": _now(),
        }
        return {
            "order": self.orders[order_id],
            "message": "Order created successfully. Payment method: Cash on delivery.",
        }

    def _list_reviews(self, *, params, **_):
        rows = list(self.reviews.values())
        for key in ("service_id", "staff_id"):
            try:
                wanted = parse_id(params[key]) if params.get(key) is not None else None
            except (ValueError, TypeError):
                wanted = None
            if wanted is not None:
                rows = [row for row in rows if row[key] == wanted]
        rows.sort(key=lambda r: r["id"], reverse=True)
        return [self._review_out(review) for review in rows]

    def _create_review(self, *, body, token, **_):
        user = self._identity(token)
        try:
            rating = parse_rating(body.get("rating"))
        except ValueError as exc:
            raise ApiError(400, str(exc)) from None
        try:
            service_id = parse_id(body["service_id"]) if body.get("service_id") is not None else None
            staff_id = parse_staff_id(body.get("staff_id"))
        except (ValueError, TypeError):
            raise ApiError(400, "Invalid service or staff id") from None
        if service_id is not None and service_id not in self.services:
            raise ApiError(400, "Invalid service")
        self._check_staff(staff_id)

        review = self._add_review(user, rating, _text(body.get("comment")),
                                  service_id=service_id, staff_id=staff_id)
        return self._review_out(review)

    def _search(self, *, params, **_):
        term = str(params.get("q") or "").strip().lower()
        if not term:
            raise ApiError(400, "Search query required")

        def matches(*values):
            return any(term in (value or "").lower() for value in values)

        return {
            "services": [self._service_out(s) for s in sorted(self.services.values(), key=lambda s: s["name"])
                         if matches(s["name"], s["description"])],
            "barbers": [self._barber_out(m) for m in sorted(self.staff.values(), key=lambda m: m["name"])
                        if matches(m["name"], m["bio"])],
            "products": [self._product_out(p) for p in sorted(self.products.values(), key=lambda p: p["name"])
                         if matches(p["name"], p["description"])],
        }
