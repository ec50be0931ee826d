"""Service layer implementations."""

from .account_service import AccountService
from .change_detector import ChangeDetector
from .notification_bus import NotificationBus
from .recipient_resolver import RecipientResolver
from .summary_service import BoardSummaryService
from .task_service import TaskService
from .token_service import HandshakeTokenService

__all__ = [
    "AccountService",
    "BoardSummaryService",
    "ChangeDetector",
    "HandshakeTokenService",
    "NotificationBus",
    "RecipientResolver",
    "TaskService",
]
