"""
Hourly (and once at startup): expire overdue posts, then create expiring-soon notifications.

Runs in its own DB session; talks to request handlers only through the database.
A failed run is logged and rolled back; the next scheduled run starts fresh.
"""
import logging

from foodshare.core.timeutil import utcnow
from foodshare.db.session import SessionLocal
from foodshare.services.sweep_service import run_sweep

logger = logging.getLogger(__name__)


def run_post_sweep_job() -> dict[str, int] | None:
    db = SessionLocal()
    try:
        return run_sweep(db, utcnow())
    except Exception as e:
        logger.exception("Post sweep failed: %s", e)
        db.rollback()
        return None
    finally:
        db.close()
