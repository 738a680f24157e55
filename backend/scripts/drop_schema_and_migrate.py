#!/usr/bin/env python3
"""
Reset a local FoodShare database: every user, post, timeline entry, rating and notification
is deleted, then `alembic upgrade head` rebuilds the tables. Pair with scripts/create_user.py
to get a token for the fresh database. Refuses to run unless DATABASE_URL is PostgreSQL.

Run from backend dir:
  python scripts/drop_schema_and_migrate.py
"""
import subprocess
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from sqlalchemy import text

from foodshare.db.session import engine


def main():
    if engine.dialect.name != "postgresql":
        print(f"Refusing to drop schema on {engine.dialect.name}; point DATABASE_URL at PostgreSQL.")
        sys.exit(1)
    print("Dropping public schema (users, posts, ratings, notifications)...")
    with engine.connect() as conn:
        conn.execute(text("DROP SCHEMA IF EXISTS public CASCADE"))
        conn.execute(text("CREATE SCHEMA public"))
        conn.execute(text("GRANT ALL ON SCHEMA public TO public"))
        conn.commit()
    print("Schema recreated. Running migrations...")
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        cwd=backend_dir,
    )
    if result.returncode != 0:
        sys.exit(result.returncode)
    print("Done. All tables created.")


if __name__ == "__main__":
    main()
