"""Repository implementations."""

from .memory import InMemoryAccountRepository, InMemoryBindingStore, InMemoryTaskRepository
from .sqlite import SqliteBindingStore

__all__ = [
    "InMemoryAccountRepository",
    "InMemoryBindingStore",
    "InMemoryTaskRepository",
    "SqliteBindingStore",
]
