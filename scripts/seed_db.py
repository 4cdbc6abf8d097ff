#!/usr/bin/env python3
"""Seed the database with the demo catalog, barbers, reviews and accounts."""
import sys
from pathlib import Path

# Add the parent directory to the path so we can import the app
sys.path.insert(0, str(Path(__file__).parent.parent))

from barbercraft import create_app
from barbercraft.extensions import db
from barbercraft.models import Product, Service, Staff, User
from barbercraft.seed import seed_database


def seed():
    app = create_app()

    with app.app_context():
        db.create_all()

        if not seed_database():
            print(f"⏭️  Database already has {User.query.count()} users. Skipping...")
            return

        print("✅ Database seeded successfully!")
        print(f"📊 {Service.query.count()} services, {Staff.query.count()} barbers, "
              f"{Product.query.count()} products")
        print("📝 Demo credentials:")
        print("   Admin: username=admin, password=admin123")
        print("   User:  username=demo, password=user123")

if __name__ == "__main__":
    seed()
