"""HTTP routes for authentication, the catalog, search and health checks."""
from __future__ import annotations

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import or_, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from .auth import MIN_PASSWORD_LENGTH, admin_required, current_identity, issue_token, token_required
from .extensions import db
from .models import USER_ROLES, Appointment, Product, Review, Service, Staff, User, dollars_to_cents
from .payloads import json_object, parse_bounded_int

bp = Blueprint("api", __name__)

MAX_DURATION_MINUTES = 8 * 60


def _positive_cents(value: object) -> int:
    cents = dollars_to_cents(value)
    if cents <= 0:
        raise ValueError("amount must be greater than zero")
    return cents


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


@bp.get("/health")
def health_check() -> tuple[dict[str, str], int]:
    """
    Expose a simple uptime check endpoint.
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is healthy and running.
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            timestamp:
              type: string
              format: date-time
    """
    return jsonify({"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}), 200


@bp.get("/db-health")
def database_health() -> tuple[dict[str, str], int]:
    """Check connectivity to the configured database.
    ---
    tags:
      - Health
    responses:
      200:
        description: Database connection is ok.
      500:
        description: Database connection failed.
    """
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.exception("Database connectivity check failed", exc_info=exc)
        return jsonify({"database": "unavailable"}), 500

    return jsonify({"database": "ok"}), 200


# --- Authentication ---

@bp.post("/auth/register")
def register_user() -> tuple[dict[str, object], int]:
    """Register a new account and log it in.
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            username:
              type: string
            password:
              type: string
            email:
              type: string
            name:
              type: string
            role:
              type: string
              enum: [USER, ADMIN]
          required:
            - username
            - password
    responses:
      201:
        description: User registered, returns access token
      400:
        description: Invalid payload or username already exists
      500:
        description: Server error
    """
    payload = json_object()

    username = str(payload.get("username") or "").strip()
    password = payload.get("password") or ""
    email = str(payload.get("email") or "").strip().lower() or None
    name = _optional_text(payload.get("name"))
    role = str(payload.get("role") or "USER").strip().upper()

    if not username or not password:
        return jsonify({"error": "Username and password required"}), 400

    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({"error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400

    if role not in USER_ROLES:
        return jsonify({"error": "Role must be USER or ADMIN"}), 400

    new_user = User(
        username=username,
        email=email,
        name=name,
        role=role,
        password_hash=generate_password_hash(password),
    )

    try:
        db.session.add(new_user)
        db.session.commit()
    except IntegrityError:
        # Unique constraint on username (or email) rejected the insert.
        db.session.rollback()
        if User.query.filter_by(username=username).first() is not None:
            return jsonify({"error": "Username already exists"}), 400
        return jsonify({"error": "Email already exists"}), 400
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to register new user", exc_info=exc)
        return jsonify({"error": "Registration failed"}), 500

    token = issue_token(new_user)
    return jsonify({"token": token, "user": new_user.to_dict_basic()}), 201


@bp.post("/auth/login")
def login() -> tuple[dict[str, object], int]:
    """Authenticate by username/password and return an access token.
    ---
    tags:
      - Authentication
    responses:
      200:
        description: Login successful, returns access token
      400:
        description: Missing username or password
      401:
        description: Invalid credentials
      500:
        description: Server error
    """
    payload = json_object()

    username = str(payload.get("username") or "").strip()
    password = payload.get("password") or ""

    if not username or not password:
        return jsonify({"error": "Username and password required"}), 400

    try:
        user = User.query.filter_by(username=username).first()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to look up user for login", exc_info=exc)
        return jsonify({"error": "Login failed"}), 500

    # Same message for unknown users and bad passwords.
    if user is None or not check_password_hash(user.password_hash, str(password)):
        return jsonify({"error": "Invalid credentials"}), 401

    return jsonify({"token": issue_token(user), "user": user.to_dict_basic()}), 200


@bp.get("/auth/me")
@token_required
def get_current_user() -> tuple[dict[str, object], int]:
    """Return the profile behind the presented bearer token.
    ---
    tags:
      - Authentication
    responses:
      200:
        description: Current user
      401:
        description: Missing, invalid or expired token
      404:
        description: User no longer exists
    """
    try:
        user = db.session.get(User, current_identity()["id"])
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch current user", exc_info=exc)
        return jsonify({"error": "Failed to fetch user"}), 500

    if user is None:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user.to_dict()), 200


# --- Services ---

@bp.get("/services")
def list_services():
    """List all services, featured first.
    ---
    tags:
      - Services
    responses:
      200:
        description: List of services
      500:
        description: Database error
    """
    try:
        services = Service.query.order_by(Service.featured.desc(), Service.name.asc()).all()
        return jsonify([service.to_dict() for service in services]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch services", exc_info=exc)
        return jsonify({"error": "Failed to fetch services"}), 500


@bp.get("/services/<int:service_id>")
def get_service(service_id: int):
    try:
        service = db.session.get(Service, service_id)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch service", exc_info=exc)
        return jsonify({"error": "Failed to fetch service"}), 500

    if service is None:
        return jsonify({"error": "Service not found"}), 404
    return jsonify(service.to_dict()), 200


def _apply_service_fields(service: Service, payload: dict) -> str | None:
    """Copy present payload fields onto ``service``; return an error message on bad input."""
    if "name" in payload:
        name = str(payload.get("name") or "").strip()
        if not name:
            return "Name cannot be empty"
        service.name = name
    if "description" in payload:
        service.description = _optional_text(payload.get("description"))
    if "price" in payload:
        try:
            service.price_cents = _positive_cents(payload.get("price"))
        except ValueError:
            return "Price must be a positive number"
    if "duration" in payload:
        try:
            service.duration_minutes = parse_bounded_int(payload.get("duration"), maximum=MAX_DURATION_MINUTES)
        except (ValueError, TypeError):
            return "Duration must be a positive number of minutes"
    if "category" in payload:
        service.category = _optional_text(payload.get("category")) or "Haircut"
    if "image" in payload:
        service.image = _optional_text(payload.get("image"))
    if "featured" in payload:
        service.featured = bool(payload.get("featured"))
    return None


@bp.post("/services")
@admin_required
def create_service():
    """Create a service (admin only).
    ---
    tags:
      - Services
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            name:
              type: string
            description:
              type: string
            price:
              type: number
            duration:
              type: integer
            category:
              type: string
            featured:
              type: boolean
    responses:
      201:
        description: Service created
      400:
        description: Invalid input
      401:
        description: Missing or invalid token
      403:
        description: Admin access required
    """
    payload = json_object()

    if not payload.get("name") or payload.get("price") in (None, "") or payload.get("duration") in (None, ""):
        return jsonify({"error": "Name, price, and duration are required"}), 400

    service = Service(category="Haircut", featured=False)
    error = _apply_service_fields(service, payload)
    if error:
        return jsonify({"error": error}), 400

    try:
        db.session.add(service)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create service", exc_info=exc)
        return jsonify({"error": "Failed to create service"}), 500

    return jsonify(service.to_dict()), 201


@bp.put("/services/<int:service_id>")
@admin_required
def update_service(service_id: int):
    """Update the fields present in the body (admin only).
    ---
    tags:
      - Services
    responses:
      200:
        description: Service updated
      400:
        description: Invalid input
      404:
        description: Service not found
    """
    payload = json_object()

    try:
        service = db.session.get(Service, service_id)
        if service is None:
            return jsonify({"error": "Service not found"}), 404

        error = _apply_service_fields(service, payload)
        if error:
            db.session.rollback()
            return jsonify({"error": error}), 400

        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update service", exc_info=exc)
        return jsonify({"error": "Failed to update service"}), 500

    return jsonify(service.to_dict()), 200


@bp.delete("/services/<int:service_id>")
@admin_required
def delete_service(service_id: int):
    """Delete a service (admin only).
        ---
        tags:
          - Services
        responses:
          200:
            description: Success
          400:
            description: Service still referenced
          404:
            description: Not found
          500:
            description: Database error
        """
    try:
        service = db.session.get(Service, service_id)
        if service is None:
            return jsonify({"error": "Service not found"}), 404

        # SQLite leaves foreign keys unenforced, so look for references first.
        referenced = (
            Appointment.query.filter_by(service_id=service_id).first() is not None
            or Review.query.filter_by(service_id=service_id).first() is not None
        )
        if referenced:
            return jsonify({"error": "Service is referenced by existing records"}), 400

        db.session.delete(service)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Service is referenced by existing records"}), 400
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete service", exc_info=exc)
        return jsonify({"error": "Failed to delete service"}), 500

    return jsonify({"message": "Service deleted successfully"}), 200


# --- Staff ---

def _ordered_staff() -> list[Staff]:
    return Staff.query.order_by(Staff.featured.desc(), Staff.name.asc()).all()


@bp.get("/staff")
def list_staff():
    """List staff members with parsed specialties and working hours.
    ---
    tags:
      - Staff
    responses:
      200:
        description: List of staff members
      500:
        description: Database error
    """
    try:
        return jsonify([member.to_dict() for member in _ordered_staff()]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch staff", exc_info=exc)
        return jsonify({"error": "Failed to fetch staff"}), 500


@bp.get("/barbers")
def list_barbers():
    """Staff reshaped for the frontend: ``barber_<id>`` ids and camelCase fields."""
    try:
        return jsonify([member.to_barber_dict() for member in _ordered_staff()]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch barbers", exc_info=exc)
        return jsonify({"error": "Failed to fetch barbers"}), 500


# --- Products ---

@bp.get("/products")
def list_products():
    """List all products, featured first.
    ---
    tags:
      - Products
    responses:
      200:
        description: List of products
      500:
        description: Database error
    """
    try:
        products = Product.query.order_by(Product.featured.desc(), Product.name.asc()).all()
        return jsonify([product.to_dict() for product in products]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch products", exc_info=exc)
        return jsonify({"error": "Failed to fetch products"}), 500


@bp.get("/products/<int:product_id>")
def get_product(product_id: int):
    try:
        product = db.session.get(Product, product_id)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch product", exc_info=exc)
        return jsonify({"error": "Failed to fetch product"}), 500

    if product is None:
        return jsonify({"error": "Product not found"}), 404
    return jsonify(product.to_dict()), 200


def _apply_product_fields(product: Product, payload: dict) -> str | None:
    if "name" in payload:
        name = str(payload.get("name") or "").strip()
        if not name:
            return "Name cannot be empty"
        product.name = name
    if "description" in payload:
        product.description = _optional_text(payload.get("description"))
    if "price" in payload:
        try:
            product.price_cents = _positive_cents(payload.get("price"))
        except ValueError:
            return "Price must be a positive number"
    if "category" in payload:
        product.category = _optional_text(payload.get("category")) or "Tools"
    if "brand" in payload:
        product.brand = _optional_text(payload.get("brand")) or "BarberCraft"
    if "image" in payload:
        product.image = _optional_text(payload.get("image"))
    if "in_stock" in payload:
        product.in_stock = payload.get("in_stock") is not False
    if "stock_count" in payload:
        try:
            stock_count = parse_bounded_int(payload.get("stock_count"), minimum=0)
        except (ValueError, TypeError):
            return "Stock count must be a non-negative integer"
        product.stock_count = stock_count
    if "featured" in payload:
        product.featured = bool(payload.get("featured"))
    return None


@bp.post("/products")
@admin_required
def create_product():
    """Create a product (admin only).
    ---
    tags:
      - Products
    responses:
      201:
        description: Product created
      400:
        description: Invalid input
      403:
        description: Admin access required
    """
    payload = json_object()

    if not payload.get("name") or not payload.get("description") or payload.get("price") in (None, ""):
        return jsonify({"error": "Name, description, and price are required"}), 400

    product = Product(category="Tools", brand="BarberCraft", in_stock=True, stock_count=10, featured=False)
    error = _apply_product_fields(product, payload)
    if error:
        return jsonify({"error": error}), 400

    try:
        db.session.add(product)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create product", exc_info=exc)
        return jsonify({"error": "Failed to create product"}), 500

    return jsonify(product.to_dict()), 201


@bp.put("/products/<int:product_id>")
@admin_required
def update_product(product_id: int):
    payload = json_object()

    try:
        product = db.session.get(Product, product_id)
        if product is None:
            return jsonify({"error": "Product not found"}), 404

        error = _apply_product_fields(product, payload)
        if error:
            db.session.rollback()
            return jsonify({"error": error}), 400

        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update product", exc_info=exc)
        return jsonify({"error": "Failed to update product"}), 500

    return jsonify(product.to_dict()), 200


@bp.delete("/products/<int:product_id>")
@admin_required
def delete_product(product_id: int):
    try:
        product = db.session.get(Product, product_id)
        if product is None:
            return jsonify({"error": "Product not found"}), 404

        db.session.delete(product)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete product", exc_info=exc)
        return jsonify({"error": "Failed to delete product"}), 500

    # Past orders keep their frozen line items.
    return jsonify({"message": "Product deleted successfully"}), 200


# --- Customers & search ---

@bp.get("/customers")
@admin_required
def list_customers():
    """List customer accounts, newest first (admin only).
    ---
    tags:
      - Customers
    responses:
      200:
        description: List of customers
      401:
        description: Missing or invalid token
      403:
        description: Admin access required
    """
    try:
        customers = (
            User.query.filter(User.role == "USER")
            .order_by(User.created_at.desc(), User.user_id.desc())
            .all()
        )
        return jsonify([customer.to_customer_dict() for customer in customers]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch customers", exc_info=exc)
        return jsonify({"error": "Failed to fetch customers"}), 500


def _contains(column, term: str):
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


@bp.get("/search")
def search():
    """Case-insensitive substring search across services, barbers and products.
    ---
    tags:
      - Search
    parameters:
      - name: q
        in: query
        type: string
        required: true
    responses:
      200:
        description: Matches grouped by entity
      400:
        description: Missing query
      500:
        description: Database error
    """
    term = (request.args.get("q") or "").strip().lower()
    if not term:
        return jsonify({"error": "Search query required"}), 400

    try:
        services = Service.query.filter(
            or_(_contains(Service.name, term), _contains(Service.description, term))
        ).order_by(Service.name.asc()).all()
        barbers = Staff.query.filter(
            or_(_contains(Staff.name, term), _contains(Staff.bio, term))
        ).order_by(Staff.name.asc()).all()
        products = Product.query.filter(
            or_(_contains(Product.name, term), _contains(Product.description, term))
        ).order_by(Product.name.asc()).all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Search failed", exc_info=exc)
        return jsonify({"error": "Search failed"}), 500

    return jsonify({
        "services": [service.to_dict() for service in services],
        "barbers": [member.to_barber_dict() for member in barbers],
        "products": [product.to_dict() for product in products],
    }), 200
