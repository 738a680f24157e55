"""
FastAPI app entrypoint.

Posts, ratings, users and notifications under /api; the post sweep runs hourly in the background.
"""
import logging
import threading
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from foodshare.api.routes import notifications, posts, ratings, users
from foodshare.config import settings
from foodshare.core.constants import POST_SWEEP_INTERVAL_MINUTES, POST_SWEEP_JOB_ID
from foodshare.core.errors import register_error_handlers
from foodshare.scheduler.post_sweep_job import run_post_sweep_job

logger = logging.getLogger(__name__)

# Scheduler: expire overdue posts and send expiring-soon notices every hour
_scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.scheduler_enabled:
        _scheduler.add_job(
            run_post_sweep_job,
            "interval",
            minutes=POST_SWEEP_INTERVAL_MINUTES,
            id=POST_SWEEP_JOB_ID,
            replace_existing=True,
        )
        _scheduler.start()
        app.state.scheduler = _scheduler

        def startup_sweep():
            # One pass on startup so posts that expired while the server was down are caught now.
            result = run_post_sweep_job()
            logger.info("Post sweep on startup: %s; next run in %s min", result, POST_SWEEP_INTERVAL_MINUTES)

        threading.Thread(target=startup_sweep, daemon=True).start()
    else:
        logger.info("Scheduler disabled (SCHEDULER_ENABLED=false); post sweep will not run")
    logger.info("FoodShare API ready")
    yield
    if _scheduler.running:
        _scheduler.shutdown(wait=False)


app = FastAPI(title="FoodShare API", version="0.1.0", lifespan=lifespan)

# CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for the production frontend
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_cors_extra = settings.cors_origins
if _cors_extra:
    _cors_origins.extend(o.strip() for o in _cors_extra.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(posts.router, prefix="/api/posts", tags=["posts"])
app.include_router(ratings.router, prefix="/api/ratings", tags=["ratings"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "FoodShare API is running", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
