"""Create an admin account, or promote an existing user to admin.

Usage: python scripts/create_admin.py [username] [password] [name]
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session
from predictor.config import DATABASE_URL
from predictor.database import build_engine, create_db_and_tables
from predictor.logging import setup_logging
from predictor.services.auth import ensure_admin


def main():
    parser = argparse.ArgumentParser(description="Create or promote an admin user")
    parser.add_argument("username", nargs="?", default="admin")
    parser.add_argument("password", nargs="?", default="admin123")
    parser.add_argument("name", nargs="?", default="Admin User")
    args = parser.parse_args()

    setup_logging()
    engine = build_engine(DATABASE_URL)
    create_db_and_tables(engine)

    with Session(engine) as db:
        user = ensure_admin(db, args.username, args.password, name=args.name)

    print(f"Admin ready: {user.username} (id={user.id})")


if __name__ == "__main__":
    main()
