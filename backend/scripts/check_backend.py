#!/usr/bin/env python3
"""
Quick checks so the API can start. Run from backend/:
  python scripts/check_backend.py
"""
import os
import socket
import sys
from pathlib import Path

# Run from backend/
backend_dir = Path(__file__).resolve().parent.parent
os.chdir(backend_dir)
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

START_CMD = "uvicorn foodshare.main:app --reload --host 0.0.0.0 --port 8000"


def main():
    errors = []

    env_file = backend_dir / ".env"
    if not env_file.exists():
        errors.append("backend/.env missing. Copy backend/.env.example and set DATABASE_URL, JWT_SECRET.")
    else:
        print("OK  .env exists")

    from sqlalchemy import inspect, text

    from foodshare.config import settings
    from foodshare.db.session import engine
    from foodshare.db.tables import ALL_TABLE_NAMES

    if settings.jwt_secret == "change-me":
        errors.append("JWT_SECRET is the default; set the secret shared with the auth service.")
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("OK  Database connection (DATABASE_URL)")
        missing = set(ALL_TABLE_NAMES) - set(inspect(engine).get_table_names())
        if missing:
            errors.append(f"Tables missing: {', '.join(sorted(missing))}. Run: alembic upgrade head")
        else:
            print("OK  Tables present")
    except Exception as e:
        errors.append(f"Database: {e}")
        print("FAIL Database:", e)

    try:
        from foodshare.main import app  # noqa: F401
        print("OK  App import (foodshare.main)")
    except Exception as e:
        errors.append(f"App import: {e}")
        print("FAIL App import:", e)

    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 8000))
        print("OK  Port 8000 is free")
    except OSError:
        errors.append("Port 8000 is in use. Stop the other process or use another port (e.g. --port 8001).")
        print("FAIL Port 8000 is in use")

    if errors:
        print("\n---")
        for e in errors:
            print("•", e)
        print(f"\nThen start the API: {START_CMD}")
        return 1

    print(f"\nAll checks passed. Start with: {START_CMD}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
