"""Domain models for the task tracker and its notification pipeline."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class TaskStatus(Enum):
    """Task status values."""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class ChangeType(Enum):
    """Kind of mutation a ChangeEvent describes."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class TaskId:
    """Value object for task identification."""

    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class Account:
    """A user of the tracker."""

    username: str
    created_at: datetime
    display_name: Optional[str] = None


@dataclass
class Task:
    """Core task entity."""

    id: TaskId
    title: str
    status: TaskStatus
    owner: str
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    assignees: set[str] = field(default_factory=set)

    @property
    def participants(self) -> set[str]:
        """Owner plus assignees."""
        return {self.owner, *self.assignees}

    def is_participant(self, username: str) -> bool:
        return username == self.owner or username in self.assignees

    def days_until_due(self, now: Optional[datetime] = None) -> Optional[int]:
        """Whole days left until the due date, None without one."""
        if not self.due_date:
            return None
        due = _as_utc(self.due_date)
        now = _as_utc(now) if now else datetime.now(timezone.utc)
        return (due - now).days


@dataclass(frozen=True)
class TaskSnapshot:
    """Immutable view of a task's externally visible state at one instant.

    ``addresses`` holds the chat addresses bound to the owner and assignees
    when the snapshot was taken. Unbound identities appear as ``None``.
    """

    task_id: TaskId
    title: str
    status: TaskStatus
    owner: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    assignees: frozenset[str] = frozenset()
    addresses: frozenset[Optional[str]] = frozenset()

    @classmethod
    def from_task(
        cls, task: Task, addresses: Iterable[Optional[str]] = ()
    ) -> "TaskSnapshot":
        """Freeze the current state of a task."""
        return cls(
            task_id=task.id,
            title=task.title,
            status=task.status,
            owner=task.owner,
            description=task.description,
            due_date=task.due_date,
            assignees=frozenset(task.assignees),
            addresses=frozenset(addresses),
        )


@dataclass(frozen=True)
class ChangeEvent:
    """A single task mutation travelling through the notification bus.

    Use the ``created``/``updated``/``deleted`` constructors; the shape of
    ``old``/``new`` is validated against ``type``.
    """

    type: ChangeType
    old: Optional[TaskSnapshot] = None
    new: Optional[TaskSnapshot] = None

    def __post_init__(self) -> None:
        if self.type is ChangeType.CREATED:
            if self.new is None or self.old is not None:
                raise ValueError("Created event carries only the new snapshot")
        elif self.type is ChangeType.DELETED:
            if self.old is None or self.new is not None:
                raise ValueError("Deleted event carries only the old snapshot")
        else:
            if self.old is None or self.new is None:
                raise ValueError("Updated event needs both snapshots")
            if self.old.task_id != self.new.task_id:
                raise ValueError(
                    f"Updated event mixes tasks {self.old.task_id} and {self.new.task_id}"
                )

    @classmethod
    def created(cls, new: TaskSnapshot) -> "ChangeEvent":
        return cls(ChangeType.CREATED, new=new)

    @classmethod
    def updated(cls, old: TaskSnapshot, new: TaskSnapshot) -> "ChangeEvent":
        return cls(ChangeType.UPDATED, old=old, new=new)

    @classmethod
    def deleted(cls, old: TaskSnapshot) -> "ChangeEvent":
        return cls(ChangeType.DELETED, old=old)

    @property
    def task_id(self) -> TaskId:
        # __post_init__ guarantees at least one snapshot.
        snapshot = self.new if self.new is not None else self.old
        return snapshot.task_id

    @property
    def snapshots(self) -> tuple[TaskSnapshot, ...]:
        """All snapshots carried by the event, oldest first."""
        return tuple(s for s in (self.old, self.new) if s is not None)


@dataclass(frozen=True)
class Classification:
    """Verdict of the change detector for one event."""

    summary: str
    important: bool
    changed_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class Binding:
    """Association between a username and a Telegram chat id."""

    username: str
    chat_id: str
    bound_at: datetime


class UpdateCursor:
    """Monotonic pointer into the bot's update stream.

    Starts at -1, meaning "from the beginning". It only moves forward.
    """

    START = -1

    def __init__(self, value: int = START) -> None:
        self._value = value

    @property
    def value(self) -> int:
        return self._value

    @property
    def next_offset(self) -> int:
        """Offset to request so already seen updates are skipped."""
        return self._value + 1

    def advance(self, update_id: int) -> int:
        """Move to ``update_id`` if it is ahead; return the current value."""
        if update_id > self._value:
            self._value = update_id
        return self._value

    def __repr__(self) -> str:
        return f"UpdateCursor({self._value})"
