"""API route modules."""

from .accounts import router as accounts_router
from .tasks import router as tasks_router
from .telegram import router as telegram_router

__all__ = ["accounts_router", "tasks_router", "telegram_router"]
