import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "ojt_tracker"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed the default site, columns and demo accounts on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Attachments: "local" keeps files under STORAGE_LOCAL_ROOT, "s3" uses S3_BUCKET
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")
STORAGE_LOCAL_ROOT = os.getenv("STORAGE_LOCAL_ROOT", "uploads")
S3_BUCKET = os.getenv("S3_BUCKET", "")
S3_PREFIX = os.getenv("S3_PREFIX", "task-attachments/")
SIGNED_URL_TTL_SECONDS = int(os.getenv("SIGNED_URL_TTL_SECONDS", "3600"))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))

# Purge expired archived tasks whenever the archive is listed
ARCHIVE_PURGE_ON_READ = bool(int(os.getenv("ARCHIVE_PURGE_ON_READ", "0")))

DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "Asia/Manila")
