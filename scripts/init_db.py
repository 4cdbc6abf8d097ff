#!/usr/bin/env python3
"""Create the BarberCraft tables, optionally dropping the existing ones first."""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from barbercraft import create_app
from barbercraft.extensions import db


def init_database(drop: bool = False) -> None:
    app = create_app()
    with app.app_context():
        if drop:
            db.drop_all()
            print("🗑️  Dropped existing tables")
        db.create_all()
        tables = ", ".join(sorted(db.metadata.tables))
        print(f"✅ Tables ready on {app.config['SQLALCHEMY_DATABASE_URI']}: {tables}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--drop", action="store_true", help="drop all tables before creating them")
    init_database(drop=parser.parse_args().drop)
