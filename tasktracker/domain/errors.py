"""Exception types raised across the task tracker."""

from typing import Optional


class TaskTrackerError(Exception):
    """Base class for all task tracker errors."""


class TaskNotFoundError(TaskTrackerError):
    """Task does not exist."""


class AccountNotFoundError(TaskTrackerError):
    """Account does not exist."""


class PermissionDeniedError(TaskTrackerError):
    """User may not perform the requested mutation."""


class NotificationError(TaskTrackerError):
    """Base class for failures inside the notification pipeline."""


class EnqueueError(NotificationError):
    """An event could not be placed on the notification bus."""


class DeliveryError(NotificationError):
    """An outbound message could not be delivered to one address."""

    def __init__(self, message: str, address: Optional[str] = None) -> None:
        super().__init__(message)
        self.address = address


class PollError(NotificationError):
    """Fetching updates from the bot API failed at the transport level."""
