"""Protocol definitions for dependency injection."""

from typing import Protocol, runtime_checkable, Optional, Sequence

from .models import Account, Binding, ChangeEvent, Task, TaskId


@runtime_checkable
class TaskRepository(Protocol):
    """Protocol for task persistence operations."""

    async def get_by_id(self, task_id: TaskId) -> Optional[Task]:
        """Retrieve a single task by ID."""
        ...

    async def list_for_user(self, username: str) -> Sequence[Task]:
        """List tasks owned by or assigned to a user."""
        ...

    async def create(self, task: Task) -> Task:
        """Persist a new task, allocating its ID."""
        ...

    async def update(self, task: Task) -> Task:
        """Update an existing task, return the updated task."""
        ...

    async def delete(self, task_id: TaskId) -> bool:
        """Delete a task, return True if successful."""
        ...


@runtime_checkable
class AccountRepository(Protocol):
    """Protocol for account persistence."""

    async def get(self, username: str) -> Optional[Account]:
        ...

    async def get_many(self, usernames: Sequence[str]) -> Sequence[Account]:
        """Return the accounts that exist among ``usernames``."""
        ...

    async def list_all(self) -> Sequence[Account]:
        """Return every account, ordered by username."""
        ...

    async def create(self, account: Account) -> Account:
        ...


@runtime_checkable
class BindingStore(Protocol):
    """Protocol for the username -> chat id mapping."""

    async def get(self, username: str) -> Optional[Binding]:
        """Return the active binding of a user, if any."""
        ...

    async def bind(self, username: str, chat_id: str) -> Binding:
        """Create or overwrite the binding of a user."""
        ...

    async def list_bindings(self) -> Sequence[Binding]:
        """All active bindings."""
        ...


@runtime_checkable
class CursorStore(Protocol):
    """Optional persistence for the update cursor."""

    async def load_cursor(self) -> Optional[int]:
        ...

    async def store_cursor(self, value: int) -> None:
        ...


@runtime_checkable
class NotificationSender(Protocol):
    """Protocol for sending a text message to one chat address."""

    async def send(self, address: str, text: str) -> bool:
        """Send a message, return True if successful."""
        ...


@runtime_checkable
class TokenVerifier(Protocol):
    """Protocol for checking handshake tokens."""

    def verify(self, token: str) -> Optional[str]:
        """Return the username encoded in the token, None if invalid."""
        ...


@runtime_checkable
class ChangePublisher(Protocol):
    """Receives change events after a mutation commits."""

    def publish(self, event: ChangeEvent) -> bool:
        """Hand an event over for asynchronous delivery."""
        ...
