import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "ojt_tracker_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

STORAGE_BACKEND = "local"
STORAGE_LOCAL_ROOT = os.getenv("STORAGE_LOCAL_ROOT", "/tmp/ojt-tracker-test-uploads")
S3_BUCKET = ""
S3_PREFIX = ""
SIGNED_URL_TTL_SECONDS = 3600
MAX_UPLOAD_BYTES = 50 * 1024 * 1024

ARCHIVE_PURGE_ON_READ = False

DEFAULT_TIMEZONE = "Asia/Manila"
