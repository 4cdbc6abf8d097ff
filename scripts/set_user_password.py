"""Utility to seed or update user account passwords for local development."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure the project root is on sys.path so ``barbercraft`` can be imported when the script is executed directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from barbercraft import create_app
from barbercraft.auth import MIN_PASSWORD_LENGTH
from barbercraft.extensions import db
from barbercraft.models import USER_ROLES, User


def set_password(username: str, password: str, role: str = "USER") -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"Error: password must be at least {MIN_PASSWORD_LENGTH} characters")
        return

    app = create_app()

    with app.app_context():
        db.create_all()
        user = User.query.filter_by(username=username).first()
        if user is None:
            user = User(username=username, name=username.title(), role=role, password_hash="")
            db.session.add(user)
            print(f"Created new {role} user: {username}")
        elif user.role != role:
            print(f"Updating user role from '{user.role}' to '{role}'")
            user.role = role

        user.password_hash = generate_password_hash(password)
        db.session.commit()

        print(f"Password for {role} user '{username}' has been set successfully.")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Set a user password for local testing.")
    parser.add_argument("username", help="Account username")
    parser.add_argument("password", help="Plain-text password to hash and store")
    parser.add_argument(
        "--role",
        choices=USER_ROLES,
        default="USER",
        help="User role (default: USER)"
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    set_password(args.username, args.password, args.role)


if __name__ == "__main__":
    main()
