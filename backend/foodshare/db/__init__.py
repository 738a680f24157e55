from foodshare.db.base import Base
from foodshare.db.session import get_db, engine, SessionLocal
from foodshare.db.tables import ALL_TABLE_NAMES

__all__ = ["get_db", "engine", "SessionLocal", "Base", "ALL_TABLE_NAMES"]
