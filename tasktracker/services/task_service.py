"""Task service: CRUD with change notifications."""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from tasktracker.domain.errors import (
    AccountNotFoundError,
    PermissionDeniedError,
    TaskNotFoundError,
)
from tasktracker.domain.models import ChangeEvent, Task, TaskId, TaskSnapshot, TaskStatus
from tasktracker.domain.protocols import AccountRepository, ChangePublisher, TaskRepository
from tasktracker.services.change_detector import ChangeDetector
from tasktracker.services.recipient_resolver import RecipientResolver

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"title", "description", "status", "due_date", "assignees", "owner"}
)


class TaskService:
    """Task service orchestrating repositories and notifications.

    Events are published only after the repository call has returned, and
    nothing that happens on the notification side can fail a mutation.
    """

    def __init__(
        self,
        task_repository: TaskRepository,
        account_repository: AccountRepository,
        resolver: RecipientResolver,
        publisher: Optional[ChangePublisher] = None,
        detector: Optional[ChangeDetector] = None,
    ) -> None:
        self._tasks = task_repository
        self._accounts = account_repository
        self._resolver = resolver
        self._publisher = publisher
        self._detector = detector or ChangeDetector()

    async def _require_account(self, username: str) -> None:
        if await self._accounts.get(username) is None:
            raise AccountNotFoundError(f"Account {username} not found")

    async def _existing_usernames(self, usernames: Iterable[str]) -> set[str]:
        accounts = await self._accounts.get_many(list(usernames))
        return {a.username for a in accounts}

    async def get_task(self, task_id: TaskId) -> Task:
        task = await self._tasks.get_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    async def list_tasks_for(self, username: str) -> Sequence[Task]:
        """Tasks the user owns or is assigned to."""
        await self._require_account(username)
        return await self._tasks.list_for_user(username)

    async def create_task(
        self,
        username: str,
        title: str,
        *,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
        status: TaskStatus = TaskStatus.TODO,
        assignees: Iterable[str] = (),
    ) -> Task:
        """Create a task owned by ``username``. Unknown assignees are dropped."""
        await self._require_account(username)
        now = datetime.now(timezone.utc)
        task = Task(
            id=TaskId(0),
            title=title,
            status=status,
            owner=username,
            description=description,
            due_date=due_date,
            assignees=await self._existing_usernames(assignees),
            created_at=now,
            updated_at=now,
        )
        created = await self._tasks.create(task)

        new = await self._snapshot(created)
        self._notify(ChangeEvent.created(new))
        return created

    async def update_task(self, username: str, task_id: TaskId, **changes: Any) -> Task:
        """Apply ``changes`` to a task the user owns or is assigned to.

        Only the owner may hand the task over to another owner.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")

        task = await self.get_task(task_id)
        if not task.is_participant(username):
            raise PermissionDeniedError(f"{username} may not update task {task_id}")

        if "owner" in changes and changes["owner"] != task.owner:
            if username != task.owner:
                raise PermissionDeniedError("Only the owner may transfer a task")
            await self._require_account(changes["owner"])
        if "assignees" in changes:
            changes["assignees"] = await self._existing_usernames(changes["assignees"] or ())
        if changes.get("status") is None:
            changes.pop("status", None)
        if changes.get("title") is None:
            changes.pop("title", None)

        old = await self._snapshot(task)
        updated = await self._tasks.update(
            replace(task, updated_at=datetime.now(timezone.utc), **changes)
        )

        new = await self._snapshot(updated)
        self._notify(ChangeEvent.updated(old, new))
        return updated

    async def delete_task(self, username: str, task_id: TaskId) -> None:
        """Delete a task. Only its owner may do so."""
        task = await self.get_task(task_id)
        if task.owner != username:
            raise PermissionDeniedError(f"{username} may not delete task {task_id}")

        old = await self._snapshot(task)
        if not await self._tasks.delete(task_id):
            raise TaskNotFoundError(f"Task {task_id} not found")

        self._notify(ChangeEvent.deleted(old))

    async def _snapshot(self, task: Task) -> TaskSnapshot:
        """Freeze a task together with its participants' chat addresses.

        A failing binding lookup yields a snapshot without addresses rather
        than failing the mutation.
        """
        try:
            addresses = await self._resolver.addresses_for(task.owner, task.assignees)
        except Exception:
            logger.exception(f"Could not resolve chat addresses for task {task.id}")
            addresses = frozenset()
        return TaskSnapshot.from_task(task, addresses)

    def _notify(self, event: ChangeEvent) -> None:
        if self._publisher is None:
            return

        classification = self._detector.classify(event)
        if not classification.important:
            logger.debug(f"Not publishing: {classification.summary}")
            return

        try:
            self._publisher.publish(event)
        except Exception:
            logger.exception(f"Could not publish change of task {event.task_id}")
