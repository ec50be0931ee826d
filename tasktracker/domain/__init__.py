"""Domain models and protocols."""

from .models import (
    Account,
    Binding,
    ChangeEvent,
    ChangeType,
    Classification,
    Task,
    TaskId,
    TaskSnapshot,
    TaskStatus,
    UpdateCursor,
)
from .protocols import (
    AccountRepository,
    BindingStore,
    ChangePublisher,
    CursorStore,
    NotificationSender,
    TaskRepository,
    TokenVerifier,
)
from .errors import (
    AccountNotFoundError,
    DeliveryError,
    EnqueueError,
    NotificationError,
    PermissionDeniedError,
    PollError,
    TaskNotFoundError,
    TaskTrackerError,
)

__all__ = [
    "Account",
    "Binding",
    "ChangeEvent",
    "ChangeType",
    "Classification",
    "Task",
    "TaskId",
    "TaskSnapshot",
    "TaskStatus",
    "UpdateCursor",
    "AccountRepository",
    "BindingStore",
    "ChangePublisher",
    "CursorStore",
    "NotificationSender",
    "TaskRepository",
    "TokenVerifier",
    "AccountNotFoundError",
    "DeliveryError",
    "EnqueueError",
    "NotificationError",
    "PermissionDeniedError",
    "PollError",
    "TaskNotFoundError",
    "TaskTrackerError",
]
