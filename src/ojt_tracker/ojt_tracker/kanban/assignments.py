from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import AssigneeStatus, Role
from ..core.exceptions import AuthorizationError, DuplicateRecordError, NotFoundError, StateConflictError, ValidationError
from ..users.repository import UserRepository
from .model import BoardTask
from .repository import AssigneeRepository, KanbanRepository

logger = logging.getLogger(__name__)


def can_edit_task(task: BoardTask, *, user_id: int, role: Role) -> bool:
    """Creator, supervisors, admins and accepted assignees may edit a task."""
    if role.can_manage:
        return True
    return int(user_id) in task.assigned_user_ids


class AssignmentService:
    """Invitations on tasks.

    A manager's explicit assignment creates a Pending row; the invitee
    accepts or rejects it (both terminal). A trainee who is not yet on the
    task may volunteer, which inserts an Accepted row directly.
    """

    def __init__(self, tasks: KanbanRepository, assignees: AssigneeRepository, users: UserRepository):
        self._tasks = tasks
        self._assignees = assignees
        self._users = users

    def _get_task(self, task_id: int) -> BoardTask:
        task = self._tasks.get_task(int(task_id))
        if not task:
            raise NotFoundError("Task not found.")
        return task

    def _require_active_user(self, user_id: int) -> None:
        user = self._users.get_by_id(int(user_id))
        if not user or not user.is_active:
            raise ValidationError("Assignee must be an active user.")

    def invite(
        self,
        *,
        current_role: Role,
        task_id: int,
        user_id: int,
        now: Optional[datetime] = None,
    ) -> None:
        if not current_role.can_manage:
            raise AuthorizationError("Only supervisors and admins can assign tasks.")

        task = self._get_task(task_id)
        if task.is_archived:
            raise StateConflictError("Archived tasks cannot be assigned.")
        if task.creator_id == int(user_id):
            raise StateConflictError("The task creator is already assigned.")
        if task.status_of(int(user_id)) is not None:
            raise StateConflictError("This user has already been invited to the task.")
        self._require_active_user(user_id)

        try:
            self._assignees.add(
                task_id=task.task_id,
                user_id=int(user_id),
                status=AssigneeStatus.PENDING,
                assigned_at=now or datetime.now(),
            )
        except DuplicateRecordError:
            raise StateConflictError("This user has already been invited to the task.")
        logger.info("user %s invited to task %s", user_id, task.task_id)

    def respond(self, *, current_user_id: int, task_id: int, accept: bool) -> AssigneeStatus:
        task = self._get_task(task_id)
        status = task.status_of(int(current_user_id))
        if status is None:
            raise AuthorizationError("You have no invitation for this task.")
        if status != AssigneeStatus.PENDING:
            raise StateConflictError(f"This invitation was already {status.value}.")

        new_status = AssigneeStatus.ACCEPTED if accept else AssigneeStatus.REJECTED
        changed = self._assignees.set_status(
            task_id=task.task_id,
            user_id=int(current_user_id),
            status=new_status,
            expected=AssigneeStatus.PENDING,
        )
        if not changed:
            raise StateConflictError("This invitation was already answered.")

        logger.info("user %s %s task %s", current_user_id, new_status.value, task.task_id)
        return new_status

    def volunteer(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        task_id: int,
        now: Optional[datetime] = None,
    ) -> None:
        if current_role != Role.OJT:
            raise AuthorizationError("Only trainees can volunteer for tasks.")

        task = self._get_task(task_id)
        if task.is_archived:
            raise StateConflictError("Archived tasks cannot be joined.")
        if task.creator_id == int(current_user_id) or task.status_of(int(current_user_id)) is not None:
            raise StateConflictError("You are already part of this task.")

        try:
            self._assignees.add(
                task_id=task.task_id,
                user_id=int(current_user_id),
                status=AssigneeStatus.ACCEPTED,
                assigned_at=now or datetime.now(),
            )
        except DuplicateRecordError:
            raise StateConflictError("You are already part of this task.")
        logger.info("user %s volunteered for task %s", current_user_id, task.task_id)

    def pending_invitations(self, user_id: int) -> Sequence[BoardTask]:
        rows = self._assignees.list_for_user(int(user_id), status=AssigneeStatus.PENDING)
        tasks = []
        for row in rows:
            task = self._tasks.get_task(row.task_id)
            if task and not task.is_archived:
                tasks.append(task)
        return tasks

    def sync(
        self,
        task: BoardTask,
        desired_user_ids: Iterable[int],
        *,
        now: Optional[datetime] = None,
    ) -> None:
        """Reconcile a task's assignee rows with the edited list.

        Existing rows keep their status. New users get a Pending invitation.
        Pending and accepted rows for users no longer listed are removed.
        Rejected rows are kept as a record and are never re-invited.
        """
        desired = {int(u) for u in desired_user_ids if task.creator_id is None or int(u) != task.creator_id}
        current = {a.user_id: a.status for a in task.assignees}

        removed = [
            uid for uid, status in current.items()
            if uid not in desired and status != AssigneeStatus.REJECTED
        ]
        added = sorted(desired - set(current))

        for uid in added:
            self._require_active_user(uid)

        if removed:
            self._assignees.remove(task_id=task.task_id, user_ids=removed)
        stamp = now or datetime.now()
        for uid in added:
            self._assignees.add(task_id=task.task_id, user_id=uid, status=AssigneeStatus.PENDING, assigned_at=stamp)

        if added or removed:
            logger.info("task %s assignees: invited=%s removed=%s", task.task_id, added, removed)
