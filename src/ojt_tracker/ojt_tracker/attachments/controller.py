from __future__ import annotations

from flask import Flask, redirect, request, send_file

from ..common.web import current_user, json_body, ok
from ..container import Container
from ..core.exceptions import NotFoundError, ValidationError
from .storage import LocalObjectStorage


def register(app: Flask, container: Container) -> None:
    attachments = container.attachment_service

    @app.route("/api/kanban/tasks/<int:task_id>/attachments", methods=["GET"], endpoint="attachments_list")
    def attachments_list(task_id: int):
        current_user()
        return ok(attachments=[a.to_dict() for a in attachments.list_for_task(task_id)])

    @app.route("/api/kanban/tasks/<int:task_id>/attachments", methods=["POST"], endpoint="attachments_upload")
    def attachments_upload(task_id: int):
        me = current_user()
        upload = request.files.get("file")
        if upload is None:
            raise ValidationError("No file was uploaded.")

        attachment = attachments.upload(
            current_user_id=me.user_id,
            current_role=me.role,
            task_id=task_id,
            file_name=upload.filename or "",
            content_type=upload.mimetype or "",
            data=upload.read(),
        )
        return ok("File uploaded.", status=201, attachment=attachment.to_dict())

    @app.route(
        "/api/kanban/tasks/<int:task_id>/attachments/discard",
        methods=["POST"],
        endpoint="attachments_discard",
    )
    def attachments_discard(task_id: int):
        """Cancelled task form: drop the files uploaded while it was open."""
        me = current_user()
        paths = json_body().get("paths") or []
        if isinstance(paths, str):
            paths = [paths]
        discarded = attachments.discard_uploads(
            current_user_id=me.user_id, current_role=me.role, task_id=task_id, storage_paths=paths
        )
        return ok(discarded=discarded)

    @app.route("/api/kanban/attachments/<int:attachment_id>", methods=["DELETE"], endpoint="attachments_delete")
    def attachments_delete(attachment_id: int):
        me = current_user()
        attachments.delete(current_user_id=me.user_id, current_role=me.role, attachment_id=attachment_id)
        return ok("Attachment deleted.")

    @app.route("/api/kanban/attachments/<int:attachment_id>/url", methods=["GET"], endpoint="attachments_url")
    def attachments_url(attachment_id: int):
        current_user()
        attachment = attachments.get(attachment_id)
        url = attachments.signed_url(attachment.storage_path)
        if request.args.get("redirect") in {"1", "true"}:
            return redirect(url)
        return ok(url=url, file_name=attachment.file_name)

    @app.route("/files/<path:token>", methods=["GET"], endpoint="attachments_file")
    def attachments_file(token: str):
        storage = container.storage
        if not isinstance(storage, LocalObjectStorage):
            raise NotFoundError("File not found.")
        return send_file(storage.resolve_token(token))
