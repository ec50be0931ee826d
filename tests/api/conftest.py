"""Fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from tasktracker.api.app import create_app
from tasktracker.container import get_container, reset_container
from tasktracker.repositories.memory import (
    InMemoryAccountRepository,
    InMemoryBindingStore,
    InMemoryTaskRepository,
)
from tasktracker.services.token_service import HandshakeTokenService

TEST_SECRET = "api-test-secret-with-at-least-32-bytes"


@pytest.fixture
def binding_store() -> InMemoryBindingStore:
    return InMemoryBindingStore()


@pytest.fixture(autouse=True)
def setup_container(binding_store, recording_sender):
    """Set up container with in-memory repositories for testing."""
    reset_container()
    container = get_container()
    container.configure_task_repository(InMemoryTaskRepository)
    container.configure_account_repository(InMemoryAccountRepository)
    container.configure_binding_store(lambda: binding_store)
    container.configure_sender(lambda: recording_sender)
    container.configure_token_service(lambda: HandshakeTokenService(TEST_SECRET))
    yield container
    reset_container()


@pytest.fixture
def client():
    """Create test client."""
    app = create_app()
    return TestClient(app)


@pytest.fixture
def register(client):
    """Register accounts through the API."""

    def _register(*usernames: str) -> None:
        for username in usernames:
            response = client.post("/accounts", json={"username": username})
            assert response.status_code == 201

    return _register


def as_user(username: str) -> dict[str, str]:
    return {"X-Username": username}


@pytest.fixture
def headers():
    """Build request headers for an acting user."""
    return as_user
