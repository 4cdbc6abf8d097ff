"""Unit tests for the slot helpers in ``barbercraft.booking``."""
from __future__ import annotations

import pytest

from barbercraft.booking import (SLOT_TIMES, SlotUnavailable, available_slots, book_appointment,
                                 find_conflict, needs_slot_check, normalize_date, normalize_time,
                                 parse_staff_id, staff_overlaps)


def test_grid_is_half_hourly_from_nine_to_half_six() -> None:
    assert SLOT_TIMES[:3] == ("09:00", "09:30", "10:00")
    assert SLOT_TIMES[-1] == "18:30"
    assert len(SLOT_TIMES) == 20


@pytest.mark.parametrize("raw, expected", [
    ("2025-03-01", "2025-03-01"),
    (" 2025-3-1 ", "2025-03-01"),
])
def test_normalize_date(raw, expected) -> None:
    assert normalize_date(raw) == expected


@pytest.mark.parametrize("raw", ["2025-02-30", "01/03/2025", 20250301, None])
def test_normalize_date_rejects(raw) -> None:
    with pytest.raises(ValueError):
        normalize_date(raw)


def test_normalize_time_pads_hours() -> None:
    assert normalize_time("9:00") == "09:00"
    with pytest.raises(ValueError):
        normalize_time("25:00")


@pytest.mark.parametrize("raw, expected", [
    (None, None),
    ("", None),
    (3, 3),
    ("3", 3),
    ("barber_12", 12),
])
def test_parse_staff_id(raw, expected) -> None:
    assert parse_staff_id(raw) == expected


@pytest.mark.parametrize("raw", ["barber_", "marcus", True])
def test_parse_staff_id_rejects(raw) -> None:
    with pytest.raises(ValueError):
        parse_staff_id(raw)


def test_conflict_rules(seeded) -> None:
    with seeded.app_context():
        booked = book_appointment(user_id=2, service_id=1, date="2025-03-01", time="10:00", staff_id=1)

        assert find_conflict("2025-03-01", "10:00", 1) is not None
        assert find_conflict("2025-03-01", "10:00", None) is not None
        assert find_conflict("2025-03-01", "10:00", 2) is None
        assert find_conflict("2025-03-01", "10:30", 1) is None
        assert find_conflict("2025-03-01", "10:00", 1, exclude_id=booked.appointment_id) is None


def test_book_appointment_raises_on_taken_slot(seeded) -> None:
    with seeded.app_context():
        book_appointment(user_id=2, service_id=2, date="2025-03-01", time="12:00")

        with pytest.raises(SlotUnavailable) as excinfo:
            book_appointment(user_id=1, service_id=3, date="2025-03-01", time="12:00", staff_id=2)

        assert excinfo.value.message == "This time slot is already booked"
        assert "12:00" not in available_slots("2025-03-01", 2)
        assert len(available_slots("2025-03-01")) == 19


@pytest.mark.parametrize("booked, requested, clash", [
    (1, 1, True),
    (1, 2, False),
    (None, 2, True),
    (1, None, True),
    (None, None, True),
])
def test_staff_overlaps(booked, requested, clash) -> None:
    assert staff_overlaps(booked, requested) is clash


@pytest.mark.parametrize("previous, current, expected", [
    (("2025-03-01", "10:00", 1, "confirmed"), ("2025-03-01", "10:00", 1, "completed"), False),
    (("2025-03-01", "10:00", 1, "confirmed"), ("2025-03-01", "10:30", 1, "confirmed"), True),
    (("2025-03-01", "10:00", 1, "confirmed"), ("2025-03-01", "10:00", 2, "confirmed"), True),
    (("2025-03-01", "10:00", 1, "cancelled"), ("2025-03-01", "10:00", 1, "confirmed"), True),
    (("2025-03-01", "10:00", 1, "confirmed"), ("2025-03-02", "10:00", 1, "cancelled"), False),
])
def test_needs_slot_check(previous, current, expected) -> None:
    assert needs_slot_check(previous, current) is expected


def test_parse_staff_id_rejects_out_of_range() -> None:
    with pytest.raises(ValueError):
        parse_staff_id(2**31)
