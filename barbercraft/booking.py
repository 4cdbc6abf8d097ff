"""Appointment slot rules: conflict detection, price snapshot and the daily grid."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import or_

from .extensions import db
from .models import Appointment, Service, Staff
from .payloads import parse_id

OPENING_HOUR = 9
CLOSING_HOUR = 19
SLOT_MINUTES = 30


def _build_grid() -> tuple[str, ...]:
    return tuple(
        f"{hour:02d}:{minute:02d}"
        for hour in range(OPENING_HOUR, CLOSING_HOUR)
        for minute in range(0, 60, SLOT_MINUTES)
    )


# 09:00 through 18:30 inclusive.
SLOT_TIMES = _build_grid()


class BookingError(Exception):
    """A booking request that cannot be honoured; maps to HTTP 400."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SlotUnavailable(BookingError):
    def __init__(self) -> None:
        super().__init__("This time slot is already booked")


def normalize_date(value: object) -> str:
    """Return ``value`` as ``YYYY-MM-DD`` or raise ``ValueError``."""
    if not isinstance(value, str):
        raise ValueError("date must be a string in YYYY-MM-DD format")
    return datetime.strptime(value.strip(), "%Y-%m-%d").date().isoformat()


def normalize_time(value: object) -> str:
    """Return ``value`` as zero-padded ``HH:MM`` or raise ``ValueError``."""
    if not isinstance(value, str):
        raise ValueError("time must be a string in HH:MM format")
    return datetime.strptime(value.strip(), "%H:%M").strftime("%H:%M")


def parse_staff_id(value: object) -> int | None:
    """Accept a numeric staff id or the ``barber_<id>`` form; blank means none."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("barber_"):
            text = text[len("barber_"):]
        return parse_id(text)
    return parse_id(value)


def staff_overlaps(booked_staff_id: int | None, staff_id: int | None) -> bool:
    """Two bookings of the same slot clash unless both name different barbers."""
    return booked_staff_id is None or staff_id is None or booked_staff_id == staff_id


def needs_slot_check(previous: tuple, current: tuple) -> bool:
    """Whether an edit from ``previous`` to ``current`` must re-check the slot.

    Both are ``(date, time, staff_id, status)``. A live appointment is
    re-checked when its slot moves or when it is revived from cancelled.
    """
    if current[3] == "cancelled":
        return False
    return previous[:3] != current[:3] or previous[3] == "cancelled"


def find_conflict(date: str, time: str, staff_id: int | None,
                  exclude_id: int | None = None) -> Appointment | None:
    """Return a live appointment occupying the slot, if any.

    A slot is taken when a non-cancelled appointment shares ``(date, time)``
    and either has the same staff member or either side has no staff member.
    """
    query = Appointment.query.filter(
        Appointment.date == date,
        Appointment.time == time,
        Appointment.status != "cancelled",
    )
    if staff_id is not None:
        query = query.filter(
            or_(Appointment.staff_id == staff_id, Appointment.staff_id.is_(None))
        )
    if exclude_id is not None:
        query = query.filter(Appointment.appointment_id != exclude_id)
    return query.first()


def booked_times(date: str, staff_id: int | None = None) -> set[str]:
    query = db.session.query(Appointment.time).filter(
        Appointment.date == date,
        Appointment.status != "cancelled",
    )
    if staff_id is not None:
        query = query.filter(
            or_(Appointment.staff_id == staff_id, Appointment.staff_id.is_(None))
        )
    return {row.time for row in query.all()}


def available_slots(date: str, staff_id: int | None = None) -> list[str]:
    """Grid slots for ``date`` that no live appointment occupies."""
    taken = booked_times(date, staff_id)
    return [slot for slot in SLOT_TIMES if slot not in taken]


def book_appointment(*, user_id: int, service_id: int, date: str, time: str,
                     staff_id: int | None = None, notes: str | None = None) -> Appointment:
    """Create a confirmed appointment with the service price frozen on it.

    The conflict check is repeated after the insert is flushed so that a
    competing request that committed in between causes this one to roll back
    instead of double-booking. Database errors propagate to the caller.
    """
    service = db.session.get(Service, service_id)
    if service is None:
        raise BookingError("Invalid service")
    if staff_id is not None and db.session.get(Staff, staff_id) is None:
        raise BookingError("Invalid staff member")

    if find_conflict(date, time, staff_id) is not None:
        raise SlotUnavailable()

    appointment = Appointment(
        user_id=user_id,
        service_id=service.service_id,
        staff_id=staff_id,
        date=date,
        time=time,
        notes=notes,
        status="confirmed",
        total_price_cents=service.price_cents,
    )
    db.session.add(appointment)
    db.session.flush()

    if find_conflict(date, time, staff_id, exclude_id=appointment.appointment_id) is not None:
        db.session.rollback()
        raise SlotUnavailable()

    db.session.commit()
    return appointment
