"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_METERS = 6_371_000.0

DEFAULT_REQUIRED_HOURS = 600
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_SESSION_DAYS = 7

MIN_RADIUS_METERS = 50
MAX_RADIUS_METERS = 5000

DEFAULT_RETENTION_DAYS = 7
MIN_RETENTION_DAYS = 1
MAX_RETENTION_DAYS = 365

DEFAULT_TIMEZONE = "Asia/Manila"
DEFAULT_COLUMN_COLOR = "#6366f1"

SIGNED_URL_TTL_SECONDS = 60 * 60
MAX_UPLOAD_BYTES = 50 * 1024 * 1024
