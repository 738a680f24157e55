"""
Single source of truth for database tables that exist after migrations.

alembic/env.py asserts the registered models match this list.
"""
ALL_TABLE_NAMES = (
    "users",
    "posts",
    "post_status_events",
    "ratings",
    "notifications",
)
