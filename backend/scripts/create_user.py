#!/usr/bin/env python3
"""
Create a user (or reuse one by email) and print a bearer token for it.
Accounts and login live in the auth service; this is for local runs against the API.

Run: cd backend && python scripts/create_user.py "Alice" alice@example.com
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from foodshare.core.security import create_access_token
from foodshare.db.session import SessionLocal
from foodshare.models.user import User


def main():
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("name")
    parser.add_argument("email")
    parser.add_argument("--location", default=None)
    args = parser.parse_args()

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == args.email).first()
        if user is None:
            user = User(name=args.name, email=args.email, location=args.location)
            db.add(user)
            db.commit()
            print(f"Created user {user.id} ({user.email})")
        else:
            print(f"User {user.id} ({user.email}) already exists")
        print(f"Authorization: Bearer {create_access_token(user.id)}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
