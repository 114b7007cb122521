"""Delete archived tasks past the retention window; safe to run from cron."""
from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.ojt_tracker.ojt_tracker.container import build_container, build_storage


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    storage = build_storage(
        backend=getattr(settings, "STORAGE_BACKEND", "local"),
        secret_key=settings.SECRET_KEY,
        local_root=getattr(settings, "STORAGE_LOCAL_ROOT", "uploads"),
        bucket=getattr(settings, "S3_BUCKET", ""),
        prefix=getattr(settings, "S3_PREFIX", ""),
    )
    container = build_container(db_config=dict(settings.DB_CONFIG), storage=storage)
    purged = container.archive_service.purge_expired()
    print(f"OK: purged {purged} archived task(s) (retention={container.archive_service.retention_days()} days)")


if __name__ == "__main__":
    main()
