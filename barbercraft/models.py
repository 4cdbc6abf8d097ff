"""Database models for the BarberCraft backend."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .extensions import db

APPOINTMENT_STATUSES = ("confirmed", "pending", "completed", "cancelled")
ORDER_STATUSES = ("pending_cash", "confirmed_cash", "processing", "shipped", "delivered", "cancelled")
USER_ROLES = ("USER", "ADMIN")

# Upper bound for any single catalog price, in dollars.
MAX_AMOUNT = Decimal("100000")


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def dollars_to_cents(value: object) -> int:
    """Convert a dollar amount (number or numeric string) to integer cents.

    Raises ``ValueError`` for anything that is not a finite number or whose
    magnitude exceeds ``MAX_AMOUNT``.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"invalid amount: {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {value!r}") from exc
    if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
        raise ValueError(f"invalid amount: {value!r}")
    try:
        return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {value!r}") from exc


def cents_to_dollars(cents: int | None) -> float | None:
    return None if cents is None else cents / 100.0


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = "users"

    user_id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.Enum(
            *USER_ROLES,
            name="user_role",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default="USER",
    )
    name = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    appointments = db.relationship("Appointment", back_populates="user", lazy="dynamic")
    orders = db.relationship("Order", back_populates="user", lazy="dynamic")

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    def to_dict_basic(self) -> dict[str, object]:
        return {
            "id": self.user_id,
            "username": self.username,
            "role": self.role,
        }

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.user_id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "name": self.name,
        }

    def to_customer_dict(self) -> dict[str, object]:
        return {
            "id": self.user_id,
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "created_at": _iso(self.created_at),
        }


class Service(db.Model):
    """Services offered by the shop."""

    __tablename__ = "services"

    service_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    price_cents = db.Column(db.Integer, nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(100), nullable=False, default="Haircut")
    image = db.Column(db.String(500))
    featured = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    __table_args__ = (
        db.CheckConstraint("price_cents > 0", name="ck_services_price_positive"),
        db.CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.service_id,
            "name": self.name,
            "description": self.description,
            "price": cents_to_dollars(self.price_cents),
            "price_cents": self.price_cents,
            "duration": self.duration_minutes,
            "category": self.category,
            "image": self.image,
            "featured": bool(self.featured),
            "created_at": _iso(self.created_at),
        }


class Staff(db.Model):
    """Barbers working at the shop."""

    __tablename__ = "staff"

    staff_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    title = db.Column(db.String(100))
    bio = db.Column(db.Text)
    avatar = db.Column(db.String(500))
    specialties = db.Column(db.JSON, nullable=True, default=list)
    rating = db.Column(db.Float, nullable=False, default=4.5)
    years_experience = db.Column(db.Integer, nullable=False, default=0)
    featured = db.Column(db.Boolean, nullable=False, default=False)
    # day name -> {"start": "HH:MM", "end": "HH:MM"} or None when off
    working_hours = db.Column(db.JSON, nullable=True, default=dict)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    @property
    def barber_id(self) -> str:
        return f"barber_{self.staff_id}"

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.staff_id,
            "name": self.name,
            "title": self.title,
            "bio": self.bio,
            "avatar": self.avatar,
            "specialties": list(self.specialties or []),
            "rating": self.rating,
            "years_experience": self.years_experience,
            "featured": bool(self.featured),
            "working_hours": dict(self.working_hours or {}),
            "created_at": _iso(self.created_at),
        }

    def to_barber_dict(self) -> dict[str, object]:
        """Shape used by the frontend's barber cards."""
        return {
            "id": self.barber_id,
            "name": self.name,
            "title": self.title,
            "bio": self.bio,
            "avatar": self.avatar,
            "specialties": list(self.specialties or []),
            "rating": self.rating,
            "yearsExperience": self.years_experience,
            "featured": bool(self.featured),
            "workingHours": dict(self.working_hours or {}),
        }


class Product(db.Model):
    __tablename__ = "products"

    product_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    price_cents = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(100), nullable=False, default="Tools")
    brand = db.Column(db.String(100), nullable=False, default="BarberCraft")
    image = db.Column(db.String(500))
    in_stock = db.Column(db.Boolean, nullable=False, default=True)
    # Informational only; checkout neither validates nor decrements it.
    stock_count = db.Column(db.Integer, nullable=False, default=10)
    rating = db.Column(db.Float, nullable=False, default=4.5)
    review_count = db.Column(db.Integer, nullable=False, default=0)
    featured = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    __table_args__ = (
        db.CheckConstraint("price_cents > 0", name="ck_products_price_positive"),
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.product_id,
            "name": self.name,
            "description": self.description,
            "price": cents_to_dollars(self.price_cents),
            "price_cents": self.price_cents,
            "category": self.category,
            "brand": self.brand,
            "image": self.image,
            "in_stock": bool(self.in_stock),
            "stock_count": self.stock_count,
            "rating": self.rating,
            "review_count": self.review_count,
            "featured": bool(self.featured),
            "created_at": _iso(self.created_at),
        }


class Appointment(db.Model):
    """Client bookings. ``total_price_cents`` is a snapshot of the service price."""

    __tablename__ = "appointments"

    appointment_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    service_id = db.Column(db.Integer, db.ForeignKey("services.service_id"), nullable=False)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.staff_id"), nullable=True)
    date = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD
    time = db.Column(db.String(5), nullable=False)  # HH:MM
    status = db.Column(
        db.Enum(
            *APPOINTMENT_STATUSES,
            name="appointment_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default="confirmed",
    )
    notes = db.Column(db.Text)
    total_price_cents = db.Column(db.Integer)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    __table_args__ = (
        db.Index("ix_appointments_slot", "date", "time", "staff_id"),
    )

    user = db.relationship("User", back_populates="appointments")
    service = db.relationship("Service")
    staff = db.relationship("Staff")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.appointment_id,
            "user_id": self.user_id,
            "service_id": self.service_id,
            "staff_id": self.staff_id,
            "date": self.date,
            "time": self.time,
            "status": self.status,
            "notes": self.notes,
            "total_price": cents_to_dollars(self.total_price_cents),
            "created_at": _iso(self.created_at),
            "service_name": self.service.name if self.service else None,
            "service_price": cents_to_dollars(self.service.price_cents) if self.service else None,
            "service_duration": self.service.duration_minutes if self.service else None,
            "staff_name": self.staff.name if self.staff else None,
            "username": self.user.username if self.user else None,
            "user_name": self.user.name if self.user else None,
        }


class Order(db.Model):
    """Product orders. Line items carry the unit price captured at checkout."""

    __tablename__ = "orders"

    order_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    # [{"product_id": int, "quantity": int, "price": float, "price_cents": int}]
    items = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(
        db.Enum(
            *ORDER_STATUSES,
            name="order_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default="pending_cash",
    )
    total_amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(30), nullable=False, default="cash")
    shipping_address = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    user = db.relationship("User", back_populates="orders")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.order_id,
            "user_id": self.user_id,
            "items": list(self.items or []),
            "status": self.status,
            "total_amount": cents_to_dollars(self.total_amount_cents),
            "payment_method": self.payment_method,
            "shipping_address": self.shipping_address,
            "created_at": _iso(self.created_at),
        }


class Review(db.Model):
    """Customer reviews, optionally tied to a service and/or a barber."""

    __tablename__ = "reviews"

    review_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    customer_name = db.Column(db.String(100))
    customer_avatar = db.Column(db.String(500))
    rating = db.Column(db.Integer, nullable=False)  # 1-5 stars
    comment = db.Column(db.Text)
    service_id = db.Column(db.Integer, db.ForeignKey("services.service_id"), nullable=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.staff_id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    __table_args__ = (
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )

    user = db.relationship("User")
    service = db.relationship("Service")
    staff = db.relationship("Staff")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.review_id,
            "user_id": self.user_id,
            "customer_name": self.customer_name,
            "customer_avatar": self.customer_avatar,
            "rating": self.rating,
            "comment": self.comment,
            "service_id": self.service_id,
            "staff_id": self.staff_id,
            "created_at": _iso(self.created_at),
            "username": self.user.username if self.user else None,
            "user_name": self.user.name if self.user else None,
            "service_name": self.service.name if self.service else None,
            "staff_name": self.staff.name if self.staff else None,
        }
