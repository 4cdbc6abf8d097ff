"""Routes for bookings, availability, orders and reviews."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from .auth import current_identity, is_admin, token_required
from .booking import (BookingError, available_slots, book_appointment, find_conflict,
                      needs_slot_check, normalize_date, normalize_time, parse_staff_id)
from .checkout import CheckoutError, place_order
from .extensions import db
from .models import APPOINTMENT_STATUSES, Appointment, Order, Review, Service, Staff, User
from .payloads import json_object, parse_id, parse_rating

bp_ext = Blueprint("api_ext", __name__)

APPOINTMENT_FIELDS = ("service_id", "staff_id", "date", "time", "notes", "status")


def _owned(query, model):
    """Restrict ``query`` to the caller's rows unless the caller is an admin."""
    identity = current_identity()
    if is_admin(identity):
        return query
    return query.filter(model.user_id == identity["id"])


def _appointment_query():
    query = Appointment.query.options(
        joinedload(Appointment.service),
        joinedload(Appointment.staff),
        joinedload(Appointment.user),
    )
    return _owned(query, Appointment)


# --- Appointments ---

@bp_ext.get("/appointments")
@bp_ext.get("/bookings")
@token_required
def list_appointments():
    """List appointments: all of them for admins, the caller's own otherwise.
    ---
    tags:
      - Appointments
    responses:
      200:
        description: Appointments, newest slot first
      401:
        description: Missing or invalid token
      500:
        description: Server error
    """
    try:
        appointments = _appointment_query().order_by(
            Appointment.date.desc(), Appointment.time.desc()
        ).all()
        return jsonify([appt.to_dict() for appt in appointments]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch appointments", exc_info=exc)
        return jsonify({"error": "Failed to fetch appointments"}), 500


@bp_ext.get("/appointments/<int:appointment_id>")
@token_required
def get_appointment(appointment_id: int):
    """Get one appointment.

    Someone else's appointment is reported as missing rather than forbidden.
    ---
    tags:
      - Appointments
    responses:
      200:
        description: Success
      404:
        description: Not found
      500:
        description: Database error
    """
    try:
        appointment = _appointment_query().filter(
            Appointment.appointment_id == appointment_id
        ).first()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch appointment", exc_info=exc)
        return jsonify({"error": "Failed to fetch appointment"}), 500

    if appointment is None:
        return jsonify({"error": "Appointment not found"}), 404
    return jsonify(appointment.to_dict()), 200


@bp_ext.post("/appointments")
@token_required
def create_appointment():
    """Book a slot for the caller.
    ---
    tags:
      - Appointments
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            service_id:
              type: integer
            staff_id:
              type: integer
            date:
              type: string
              example: "2025-03-01"
            time:
              type: string
              example: "10:00"
            notes:
              type: string
          required:
            - service_id
            - date
            - time
    responses:
      201:
        description: Appointment created with the service price frozen as total_price
      400:
        description: Invalid payload, unknown service or slot already booked
      401:
        description: Missing or invalid token
      500:
        description: Server error
    """
    payload = json_object()

    if not payload.get("service_id") or not payload.get("date") or not payload.get("time"):
        return jsonify({"error": "Service, date, and time are required"}), 400

    try:
        service_id = parse_id(payload.get("service_id"))
        staff_id = parse_staff_id(payload.get("staff_id"))
    except (ValueError, TypeError):
        return jsonify({"error": "Invalid service or staff id"}), 400

    try:
        date = normalize_date(payload.get("date"))
        time = normalize_time(payload.get("time"))
    except ValueError:
        return jsonify({"error": "Date must be YYYY-MM-DD and time must be HH:MM"}), 400

    notes = str(payload.get("notes") or "").strip() or None

    try:
        appointment = book_appointment(
            user_id=current_identity()["id"],
            service_id=service_id,
            staff_id=staff_id,
            date=date,
            time=time,
            notes=notes,
        )
        return jsonify(appointment.to_dict()), 201
    except BookingError as exc:
        return jsonify({"error": exc.message}), 400
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create appointment", exc_info=exc)
        return jsonify({"error": "Failed to create appointment"}), 500


def _apply_appointment_changes(appointment: Appointment, payload: dict) -> str | None:
    """Apply present fields; returns an error message for invalid input."""
    if "service_id" in payload:
        try:
            service = db.session.get(Service, parse_id(payload.get("service_id")))
        except (ValueError, TypeError):
            service = None
        if service is None:
            return "Invalid service"
        # total_price keeps the amount frozen at booking time.
        appointment.service_id = service.service_id
    if "staff_id" in payload:
        try:
            staff_id = parse_staff_id(payload.get("staff_id"))
        except (ValueError, TypeError):
            return "Invalid staff member"
        if staff_id is not None and db.session.get(Staff, staff_id) is None:
            return "Invalid staff member"
        appointment.staff_id = staff_id
    if "date" in payload:
        try:
            appointment.date = normalize_date(payload.get("date"))
        except ValueError:
            return "Date must be YYYY-MM-DD"
    if "time" in payload:
        try:
            appointment.time = normalize_time(payload.get("time"))
        except ValueError:
            return "Time must be HH:MM"
    if "notes" in payload:
        appointment.notes = str(payload.get("notes") or "").strip() or None
    if "status" in payload:
        status = payload.get("status")
        if status not in APPOINTMENT_STATUSES:
            return f"Status must be one of: {', '.join(APPOINTMENT_STATUSES)}"
        appointment.status = status
    return None


@bp_ext.put("/appointments/<int:appointment_id>")
@token_required
def update_appointment(appointment_id: int):
    """Update an appointment owned by the caller (any appointment for admins).
        ---
        tags:
          - Appointments
        responses:
          200:
            description: Success
          400:
            description: Invalid input or slot already booked
          404:
            description: Not found
          500:
            description: Database error
        """
    payload = json_object()
    if not any(field in payload for field in APPOINTMENT_FIELDS):
        return jsonify({"error": "No fields to update"}), 400

    try:
        appointment = _appointment_query().filter(
            Appointment.appointment_id == appointment_id
        ).first()
        if appointment is None:
            return jsonify({"error": "Appointment not found"}), 404

        previous = (appointment.date, appointment.time, appointment.staff_id, appointment.status)

        with db.session.no_autoflush:
            error = _apply_appointment_changes(appointment, payload)
            if error:
                db.session.rollback()
                return jsonify({"error": error}), 400

            current = (appointment.date, appointment.time, appointment.staff_id, appointment.status)
            if needs_slot_check(previous, current):
                conflict = find_conflict(
                    appointment.date,
                    appointment.time,
                    appointment.staff_id,
                    exclude_id=appointment.appointment_id,
                )
                if conflict is not None:
                    db.session.rollback()
                    return jsonify({"error": "This time slot is already booked"}), 400

        db.session.commit()
        return jsonify(appointment.to_dict()), 200
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update appointment", exc_info=exc)
        return jsonify({"error": "Failed to update appointment"}), 500


@bp_ext.delete("/appointments/<int:appointment_id>")
@token_required
def delete_appointment(appointment_id: int):
    try:
        appointment = _owned(Appointment.query, Appointment).filter(
            Appointment.appointment_id == appointment_id
        ).first()
        if appointment is None:
            return jsonify({"error": "Appointment not found"}), 404

        db.session.delete(appointment)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete appointment", exc_info=exc)
        return jsonify({"error": "Failed to delete appointment"}), 500

    return jsonify({"message": "Appointment deleted successfully"}), 200


# --- Availability ---

@bp_ext.get("/availability")
def get_availability():
    """Free half-hour slots (09:00-18:30) for a date.
    ---
    tags:
      - Availability
    parameters:
      - name: date
        in: query
        type: string
        required: true
      - name: serviceId
        in: query
        type: integer
        required: true
      - name: barberId
        in: query
        type: string
        description: Staff id, either numeric or barber_<id>
    responses:
      200:
        description: Ascending list of HH:MM strings
      400:
        description: Missing or malformed parameters
      500:
        description: Database error
    """
    raw_date = request.args.get("date")
    raw_service = request.args.get("serviceId")
    if not raw_date or not raw_service:
        return jsonify({"error": "Date and serviceId are required"}), 400

    try:
        date = normalize_date(raw_date)
        service_id = parse_id(raw_service)
        staff_id = parse_staff_id(request.args.get("barberId"))
    except ValueError:
        return jsonify({"error": "Invalid date, serviceId or barberId"}), 400

    try:
        if db.session.get(Service, service_id) is None:
            return jsonify({"error": "Invalid service"}), 400
        return jsonify(available_slots(date, staff_id)), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to check availability", exc_info=exc)
        return jsonify({"error": "Failed to check availability"}), 500


# --- Orders ---

@bp_ext.get("/orders")
@token_required
def list_orders():
    """List orders: all for admins, the caller's own otherwise."""
    try:
        orders = _owned(Order.query, Order).order_by(
            Order.created_at.desc(), Order.order_id.desc()
        ).all()
        return jsonify([order.to_dict() for order in orders]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch orders", exc_info=exc)
        return jsonify({"error": "Failed to fetch orders"}), 500


@bp_ext.post("/orders/checkout")
@token_required
def checkout():
    """Place a cash-on-delivery order at current catalog prices.
    ---
    tags:
      - Orders
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            items:
              type: array
              items:
                type: object
                properties:
                  product_id:
                    type: integer
                  quantity:
                    type: integer
            shipping_address:
              type: object
    responses:
      201:
        description: Order created
      400:
        description: No items, bad quantity or unknown product
      401:
        description: Missing or invalid token
      500:
        description: Server error
    """
    payload = json_object()
    shipping_address = payload.get("shipping_address")
    if shipping_address is not None and not isinstance(shipping_address, dict):
        return jsonify({"error": "Shipping address must be an object"}), 400

    try:
        order = place_order(
            user_id=current_identity()["id"],
            items=payload.get("items"),
            shipping_address=shipping_address,
        )
    except CheckoutError as exc:
        return jsonify({"error": exc.message}), 400
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create order", exc_info=exc)
        return jsonify({"error": "Failed to create order"}), 500

    current_app.logger.info("Order %s placed for user %s", order.order_id, order.user_id)
    return jsonify({
        "order": order.to_dict(),
        "message": "Order created successfully. Payment method: Cash on delivery.",
    }), 201


# --- Reviews ---

@bp_ext.get("/reviews")
def list_reviews():
    """Public review feed, newest first, optionally filtered.
    ---
    tags:
      - Reviews
    parameters:
      - name: service_id
        in: query
        type: integer
      - name: staff_id
        in: query
        type: integer
    responses:
      200:
        description: List of reviews
      500:
        description: Database error
    """
    try:
        query = Review.query.options(
            joinedload(Review.user),
            joinedload(Review.service),
            joinedload(Review.staff),
        )
        service_id = request.args.get("service_id", type=parse_id)
        staff_id = request.args.get("staff_id", type=parse_id)
        if service_id is not None:
            query = query.filter(Review.service_id == service_id)
        if staff_id is not None:
            query = query.filter(Review.staff_id == staff_id)

        reviews = query.order_by(Review.created_at.desc(), Review.review_id.desc()).all()
        return jsonify([review.to_dict() for review in reviews]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch reviews", exc_info=exc)
        return jsonify({"error": "Failed to fetch reviews"}), 500


@bp_ext.post("/reviews")
@token_required
def create_review():
    """Post a review as the authenticated user.
    ---
    tags:
      - Reviews
    responses:
      201:
        description: Review created
      400:
        description: Rating outside 1-5 or unknown service/staff
      401:
        description: Missing or invalid token
    """
    payload = json_object()

    try:
        rating = parse_rating(payload.get("rating"))
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        service_id = parse_id(payload["service_id"]) if payload.get("service_id") is not None else None
        staff_id = parse_staff_id(payload.get("staff_id"))
    except (ValueError, TypeError):
        return jsonify({"error": "Invalid service or staff id"}), 400

    try:
        user = db.session.get(User, current_identity()["id"])
        if user is None:
            return jsonify({"error": "Invalid user"}), 400
        if service_id is not None and db.session.get(Service, service_id) is None:
            return jsonify({"error": "Invalid service"}), 400
        if staff_id is not None and db.session.get(Staff, staff_id) is None:
            return jsonify({"error": "Invalid staff member"}), 400

        review = Review(
            user_id=user.user_id,
            customer_name=user.name or user.username,
            rating=rating,
            comment=str(payload.get("comment") or "").strip() or None,
            service_id=service_id,
            staff_id=staff_id,
        )
        db.session.add(review)
        db.session.commit()
        return jsonify(review.to_dict()), 201
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create review", exc_info=exc)
        return jsonify({"error": "Failed to create review"}), 500
