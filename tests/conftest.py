"""Shared pytest fixtures."""

import pytest
from datetime import datetime, timezone

from tasktracker.domain.models import Task, TaskId, TaskSnapshot, TaskStatus


class RecordingSender:
    """NotificationSender double that remembers every message."""

    def __init__(self, fail_for: tuple[str, ...] = ()) -> None:
        self.sent: list[tuple[str, str]] = []
        self._fail_for = set(fail_for)

    async def send(self, address: str, text: str) -> bool:
        if address in self._fail_for:
            return False
        self.sent.append((address, text))
        return True

    @property
    def addresses(self) -> list[str]:
        return [address for address, _ in self.sent]


class StaticTokenVerifier:
    """TokenVerifier double backed by a dict."""

    def __init__(self, tokens: dict[str, str]) -> None:
        self._tokens = tokens

    def verify(self, token: str):
        return self._tokens.get(token)


@pytest.fixture
def recording_sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def sample_task() -> Task:
    """Create a sample task for testing."""
    now = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)
    return Task(
        id=TaskId(1),
        title="Write report",
        status=TaskStatus.TODO,
        owner="alice",
        description="Quarterly numbers",
        due_date=datetime(2024, 1, 15, 17, 0, tzinfo=timezone.utc),
        assignees={"bob"},
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def sample_snapshot(sample_task) -> TaskSnapshot:
    """Snapshot of sample_task with alice bound to 111 and bob unbound."""
    return TaskSnapshot.from_task(sample_task, {"111", None})


@pytest.fixture
def sender_factory():
    """Build RecordingSender instances with custom failures."""
    return RecordingSender


@pytest.fixture
def verifier_factory():
    """Build StaticTokenVerifier instances."""
    return StaticTokenVerifier
