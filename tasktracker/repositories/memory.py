"""In-memory implementations of repositories."""

import itertools
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Sequence

from tasktracker.domain.models import Account, Binding, Task, TaskId


class InMemoryTaskRepository:
    """In-memory implementation of TaskRepository."""

    def __init__(self) -> None:
        self._tasks: dict[int, Task] = {}
        self._ids = itertools.count(1)

    async def get_by_id(self, task_id: TaskId) -> Optional[Task]:
        """Retrieve a single task by ID.

        Returns a copy, so callers mutating it do not touch stored state.
        """
        task = self._tasks.get(task_id.value)
        return _copy(task) if task else None

    async def list_for_user(self, username: str) -> Sequence[Task]:
        """List tasks owned by or assigned to a user."""
        return [
            _copy(t)
            for t in sorted(self._tasks.values(), key=lambda t: t.id.value)
            if t.is_participant(username)
        ]

    async def create(self, task: Task) -> Task:
        """Store a new task under a freshly allocated ID."""
        created = replace(task, id=TaskId(next(self._ids)), assignees=set(task.assignees))
        self._tasks[created.id.value] = created
        return _copy(created)

    async def update(self, task: Task) -> Task:
        """Update an existing task."""
        if task.id.value not in self._tasks:
            raise ValueError(f"Task {task.id.value} not found")
        self._tasks[task.id.value] = _copy(task)
        return _copy(task)

    async def delete(self, task_id: TaskId) -> bool:
        """Delete a task."""
        return self._tasks.pop(task_id.value, None) is not None


class InMemoryAccountRepository:
    """In-memory account registry."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}

    async def get(self, username: str) -> Optional[Account]:
        return self._accounts.get(username)

    async def get_many(self, usernames: Sequence[str]) -> Sequence[Account]:
        return [self._accounts[u] for u in dict.fromkeys(usernames) if u in self._accounts]

    async def list_all(self) -> Sequence[Account]:
        return [self._accounts[u] for u in sorted(self._accounts)]

    async def create(self, account: Account) -> Account:
        if account.username in self._accounts:
            raise ValueError(f"Account {account.username} already exists")
        self._accounts[account.username] = account
        return account


class InMemoryBindingStore:
    """Binding store kept in a lock-guarded dict.

    Bindings are lost on restart; users then repeat the handshake.
    """

    def __init__(self) -> None:
        self._bindings: dict[str, Binding] = {}
        self._lock = threading.Lock()

    async def get(self, username: str) -> Optional[Binding]:
        with self._lock:
            return self._bindings.get(username)

    async def bind(self, username: str, chat_id: str) -> Binding:
        binding = Binding(
            username=username,
            chat_id=chat_id,
            bound_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._bindings[username] = binding
        return binding

    async def list_bindings(self) -> Sequence[Binding]:
        with self._lock:
            return sorted(self._bindings.values(), key=lambda b: b.username)


def _copy(task: Task) -> Task:
    return replace(task, assignees=set(task.assignees))
