from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .attachments.mysql_attachment_repository import MySQLAttachmentRepository
from .attachments.repository import AttachmentRepository
from .attachments.service import AttachmentService
from .attachments.storage import LocalObjectStorage, ObjectStorage, S3ObjectStorage
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_TIMEZONE, MAX_UPLOAD_BYTES, SIGNED_URL_TTL_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .kanban.archive import ArchiveService
from .kanban.assignments import AssignmentService
from .kanban.mysql_kanban_repository import MySQLAssigneeRepository, MySQLKanbanRepository
from .kanban.repository import AssigneeRepository, KanbanRepository
from .kanban.service import BoardService
from .reports.service import ReportService
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    settings_repo: SettingsRepository
    attendance_repo: AttendanceRepository
    kanban_repo: KanbanRepository
    assignees_repo: AssigneeRepository
    attachments_repo: AttachmentRepository
    storage: ObjectStorage

    auth_service: AuthService
    user_service: UserService
    settings_service: SettingsService
    attendance_service: AttendanceService
    board_service: BoardService
    assignment_service: AssignmentService
    archive_service: ArchiveService
    attachment_service: AttachmentService
    report_service: ReportService

    conn: Optional[DatabaseConnection] = None


def build_storage(
    *,
    backend: str,
    secret_key: str,
    local_root: str | Path = "uploads",
    bucket: str = "",
    prefix: str = "",
) -> ObjectStorage:
    if (backend or "local").lower() == "s3":
        return S3ObjectStorage(bucket, prefix=prefix)
    return LocalObjectStorage(local_root, secret_key=secret_key)


def wire_container(
    *,
    users_repo: UserRepository,
    settings_repo: SettingsRepository,
    attendance_repo: AttendanceRepository,
    kanban_repo: KanbanRepository,
    assignees_repo: AssigneeRepository,
    attachments_repo: AttachmentRepository,
    storage: ObjectStorage,
    conn: Optional[DatabaseConnection] = None,
    purge_on_read: bool = False,
    max_upload_bytes: int = MAX_UPLOAD_BYTES,
    signed_url_ttl: int = SIGNED_URL_TTL_SECONDS,
    default_timezone: str = DEFAULT_TIMEZONE,
) -> Container:
    """Build every service on top of the given repositories."""

    assignment_service = AssignmentService(kanban_repo, assignees_repo, users_repo)

    return Container(
        users_repo=users_repo,
        settings_repo=settings_repo,
        attendance_repo=attendance_repo,
        kanban_repo=kanban_repo,
        assignees_repo=assignees_repo,
        attachments_repo=attachments_repo,
        storage=storage,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        settings_service=SettingsService(settings_repo),
        attendance_service=AttendanceService(
            attendance_repo, users_repo, settings_repo, default_timezone=default_timezone
        ),
        board_service=BoardService(kanban_repo, assignment_service),
        assignment_service=assignment_service,
        archive_service=ArchiveService(kanban_repo, settings_repo, storage, purge_on_read=purge_on_read),
        attachment_service=AttachmentService(
            attachments_repo,
            kanban_repo,
            storage,
            max_upload_bytes=max_upload_bytes,
            signed_url_ttl=signed_url_ttl,
        ),
        report_service=ReportService(users_repo, attendance_repo),
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    storage: ObjectStorage,
    purge_on_read: bool = False,
    max_upload_bytes: int = MAX_UPLOAD_BYTES,
    signed_url_ttl: int = SIGNED_URL_TTL_SECONDS,
    default_timezone: str = DEFAULT_TIMEZONE,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return wire_container(
        users_repo=MySQLUserRepository(conn),
        settings_repo=MySQLSettingsRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        kanban_repo=MySQLKanbanRepository(conn),
        assignees_repo=MySQLAssigneeRepository(conn),
        attachments_repo=MySQLAttachmentRepository(conn),
        storage=storage,
        conn=conn,
        purge_on_read=purge_on_read,
        max_upload_bytes=max_upload_bytes,
        signed_url_ttl=signed_url_ttl,
        default_timezone=default_timezone,
    )
