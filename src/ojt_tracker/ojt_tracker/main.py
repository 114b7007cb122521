from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from flask import Flask, jsonify, redirect, request

from config import get_settings_module

from .attachments.controller import register as register_attachments
from .attendance.controller import register as register_attendance
from .common.access import check_access
from .common.web import current_role, register_error_handlers
from .container import Container, build_container, build_storage
from .core.constants import DEFAULT_SESSION_DAYS, DEFAULT_TIMEZONE, MAX_UPLOAD_BYTES, SIGNED_URL_TTL_SECONDS
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .kanban.controller import register as register_kanban
from .reports.controller import register as register_reports
from .settings.controller import register as register_settings
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]


def _install_access_gate(app: Flask) -> None:
    @app.before_request
    def access_gate():
        decision = check_access(request.path, current_role())
        if decision.allowed:
            return None
        if decision.redirect_to:
            return redirect(decision.redirect_to)
        message = "Please sign in to continue." if decision.status == 401 else "You do not have access to this page."
        return jsonify({"success": False, "message": message}), decision.status


def _register_cli(app: Flask, container: Container) -> None:
    @app.cli.command("purge-archive")
    def purge_archive_command():
        """Permanently delete archived tasks past the retention window."""
        purged = container.archive_service.purge_expired()
        click.echo(f"Purged {purged} archived task(s).")


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(days=DEFAULT_SESSION_DAYS)

    max_upload_bytes = int(getattr(settings, "MAX_UPLOAD_BYTES", MAX_UPLOAD_BYTES))
    # Leave room for the multipart envelope around the file itself.
    app.config["MAX_CONTENT_LENGTH"] = max_upload_bytes + 1024 * 1024

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=PROJECT_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=PROJECT_ROOT / "database" / "seed.sql")
            ensure_demo_users(db_config)
            logger.info("demo seed ready")

        storage = build_storage(
            backend=getattr(settings, "STORAGE_BACKEND", "local"),
            secret_key=app.secret_key,
            local_root=getattr(settings, "STORAGE_LOCAL_ROOT", "uploads"),
            bucket=getattr(settings, "S3_BUCKET", ""),
            prefix=getattr(settings, "S3_PREFIX", ""),
        )
        container = build_container(
            db_config=db_config,
            storage=storage,
            purge_on_read=bool(getattr(settings, "ARCHIVE_PURGE_ON_READ", False)),
            max_upload_bytes=max_upload_bytes,
            signed_url_ttl=int(getattr(settings, "SIGNED_URL_TTL_SECONDS", SIGNED_URL_TTL_SECONDS)),
            default_timezone=getattr(settings, "DEFAULT_TIMEZONE", DEFAULT_TIMEZONE),
        )

    app.extensions["container"] = container

    _install_access_gate(app)
    register_error_handlers(app)

    register_users(app, container)
    register_settings(app, container)
    register_attendance(app, container)
    register_kanban(app, container)
    register_attachments(app, container)
    register_reports(app, container)

    _register_cli(app, container)

    return app
