"""
Centralized constants for the scheduler, queries and field bounds.

Change job IDs, limits or text bounds here instead of scattering literals across routes and services.
"""
from foodshare.config import settings

# Scheduler job IDs (must match ids used in main.py add_job)
POST_SWEEP_JOB_ID = "post_sweep"
POST_SWEEP_INTERVAL_MINUTES = settings.sweep_interval_minutes

# Posts expiring within this many hours count as "expiring soon" (list filter + sweep notices)
EXPIRING_SOON_HOURS = settings.expiring_soon_hours

# Geospatial: radius (km) is converted to radians with this Earth radius
EARTH_RADIUS_KM = 6378.1
DEFAULT_RADIUS_KM = 10

# Pagination
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100
# Map view is unpaginated; hard cap so response size stays bounded
MAP_POSTS_LIMIT = 500
# Stats: how many recent posts / claims to return
RECENT_ACTIVITY_LIMIT = 5

# Text bounds
TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
QUANTITY_MAX_LENGTH = 100
ADDRESS_MAX_LENGTH = 300
COMMENT_MAX_LENGTH = 200
MAX_IMAGES_PER_POST = 10

MIN_RATING_SCORE = 1
MAX_RATING_SCORE = 5
