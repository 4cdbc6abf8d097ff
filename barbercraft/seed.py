"""Demo data for local development and the end-to-end tests."""
from __future__ import annotations

from flask import current_app
from werkzeug.security import generate_password_hash

from .extensions import db
from .models import Product, Review, Service, Staff, User

DEMO_USERS = [
    {"username": "admin", "email": "admin@barbercraft.com", "password": "admin123",
     "role": "ADMIN", "name": "Admin User"},
    {"username": "demo", "email": "demo@barbercraft.com", "password": "user123",
     "role": "USER", "name": "Demo User"},
]

SERVICES = [
    {
        "name": "Signature Cut",
        "description": "Our flagship haircut service featuring consultation, precision cutting, "
                       "and styling with premium products.",
        "price_cents": 6500,  # $65.00
        "duration_minutes": 45,
        "category": "Haircut",
        "image": "https://images.pexels.com/photos/1813272/pexels-photo-1813272.jpeg",
        "featured": True,
    },
    {
        "name": "Beard Trim & Shape",
        "description": "Professional beard trimming and shaping to complement your facial structure.",
        "price_cents": 3500,
        "duration_minutes": 30,
        "category": "Beard",
        "image": "https://images.pexels.com/photos/1319460/pexels-photo-1319460.jpeg",
        "featured": True,
    },
    {
        "name": "Hot Towel Shave",
        "description": "Traditional hot towel shave with pre-shave oil, lather, and aftercare treatment.",
        "price_cents": 5500,
        "duration_minutes": 40,
        "category": "Shave",
        "image": "https://images.pexels.com/photos/3618162/pexels-photo-3618162.jpeg",
        "featured": True,
    },
    {
        "name": "Buzz Cut",
        "description": "Clean, precise buzz cut with your choice of guard length.",
        "price_cents": 2500,
        "duration_minutes": 20,
        "category": "Haircut",
        "image": "https://images.pexels.com/photos/1570807/pexels-photo-1570807.jpeg",
        "featured": False,
    },
    {
        "name": "Hair Wash & Style",
        "description": "Professional wash with premium products and styling.",
        "price_cents": 4500,
        "duration_minutes": 35,
        "category": "Styling",
        "image": "https://images.pexels.com/photos/1570810/pexels-photo-1570810.jpeg",
        "featured": False,
    },
]

_WEEKDAY_HOURS = {"start": "09:00", "end": "18:00"}

STAFF = [
    {
        "name": "Marcus Johnson",
        "title": "Master Barber & Owner",
        "bio": "With over 15 years of experience, Marcus specializes in classic cuts "
               "and modern styling techniques.",
        "avatar": "https://images.pexels.com/photos/1222271/pexels-photo-1222271.jpeg",
        "specialties": ["Classic Cuts", "Beard Styling", "Hot Towel Shaves"],
        "rating": 4.9,
        "years_experience": 15,
        "featured": True,
        "working_hours": {
            "monday": dict(_WEEKDAY_HOURS),
            "tuesday": dict(_WEEKDAY_HOURS),
            "wednesday": dict(_WEEKDAY_HOURS),
            "thursday": dict(_WEEKDAY_HOURS),
            "friday": {"start": "09:00", "end": "19:00"},
            "saturday": {"start": "08:00", "end": "17:00"},
            "sunday": None,
        },
    },
    {
        "name": "David Chen",
        "title": "Senior Barber",
        "bio": "David brings precision and artistry to every cut, specializing in modern "
               "fades and contemporary styles.",
        "avatar": "https://images.pexels.com/photos/1212984/pexels-photo-1212984.jpeg",
        "specialties": ["Modern Fades", "Precision Cuts", "Hair Styling"],
        "rating": 4.8,
        "years_experience": 8,
        "featured": True,
        "working_hours": {
            "monday": None,
            "tuesday": {"start": "10:00", "end": "19:00"},
            "wednesday": {"start": "10:00", "end": "19:00"},
            "thursday": {"start": "10:00", "end": "19:00"},
            "friday": {"start": "10:00", "end": "19:00"},
            "saturday": {"start": "09:00", "end": "18:00"},
            "sunday": {"start": "10:00", "end": "16:00"},
        },
    },
]

PRODUCTS = [
    {
        "name": "Premium Hold Pomade",
        "description": "Water-based pomade with strong hold and natural shine. "
                       "Perfect for classic and modern styles.",
        "price_cents": 2800,
        "category": "Pomade",
        "brand": "Gentleman's Choice",
        "image": "https://images.pexels.com/photos/3618110/pexels-photo-3618110.jpeg",
        "stock_count": 24,
        "rating": 4.8,
        "review_count": 156,
        "featured": True,
    },
    {
        "name": "Matte Clay Texture",
        "description": "Medium hold styling clay with matte finish. "
                       "Ideal for textured, natural-looking styles.",
        "price_cents": 3200,
        "category": "Clay",
        "brand": "Urban Barber",
        "image": "https://images.pexels.com/photos/3618164/pexels-photo-3618164.jpeg",
        "stock_count": 18,
        "rating": 4.6,
        "review_count": 89,
        "featured": True,
    },
    {
        "name": "Daily Strength Shampoo",
        "description": "Gentle daily shampoo that cleanses and strengthens hair "
                       "without stripping natural oils.",
        "price_cents": 2400,
        "category": "Shampoo",
        "brand": "Classic Care",
        "image": "https://images.pexels.com/photos/3618067/pexels-photo-3618067.jpeg",
        "stock_count": 32,
        "rating": 4.5,
        "review_count": 203,
        "featured": False,
    },
    {
        "name": "Premium Beard Oil",
        "description": "Nourishing blend of oils to soften, condition, and add shine to your beard.",
        "price_cents": 2200,
        "category": "Beard Care",
        "brand": "Beard Master",
        "image": "https://images.pexels.com/photos/3618162/pexels-photo-3618162.jpeg",
        "stock_count": 28,
        "rating": 4.9,
        "review_count": 124,
        "featured": True,
    },
]

# (customer_name, avatar, rating, comment, service index, staff index)
REVIEWS = [
    ("John S.", "https://images.pexels.com/photos/1222271/pexels-photo-1222271.jpeg", 5,
     "Marcus gave me the best haircut I've had in years. Attention to detail is incredible, "
     "and the atmosphere is perfect. Highly recommend!", 0, 0),
    ("Michael J.", None, 5,
     "The hot towel shave experience was amazing. Very relaxing and professional service. "
     "Will definitely be back.", 2, 0),
    ("David W.", None, 4,
     "Great fade by David! He really knows modern styles and gave me exactly what I was looking for.",
     None, 1),
]


def seed_database() -> bool:
    """Insert the demo catalog and accounts into an empty database.

    Returns ``False`` without touching anything when users already exist.
    Must run inside an application context.
    """
    if User.query.count() > 0:
        current_app.logger.info("Database already has users; skipping seed")
        return False

    users = [
        User(
            username=entry["username"],
            email=entry["email"],
            role=entry["role"],
            name=entry["name"],
            password_hash=generate_password_hash(entry["password"]),
        )
        for entry in DEMO_USERS
    ]
    services = [Service(**entry) for entry in SERVICES]
    staff = [Staff(**entry) for entry in STAFF]
    products = [Product(in_stock=True, **entry) for entry in PRODUCTS]

    db.session.add_all(users + services + staff + products)
    db.session.flush()

    demo_user = users[1]
    for name, avatar, rating, comment, service_idx, staff_idx in REVIEWS:
        db.session.add(Review(
            user_id=demo_user.user_id,
            customer_name=name,
            customer_avatar=avatar,
            rating=rating,
            comment=comment,
            service_id=services[service_idx].service_id if service_idx is not None else None,
            staff_id=staff[staff_idx].staff_id if staff_idx is not None else None,
        ))

    db.session.commit()
    current_app.logger.info(
        "Seeded %d users, %d services, %d staff, %d products, %d reviews",
        len(users), len(services), len(staff), len(products), len(REVIEWS),
    )
    return True
