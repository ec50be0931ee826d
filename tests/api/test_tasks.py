"""Tests for task endpoints."""

import asyncio

import pytest

from tasktracker.container import get_container


@pytest.fixture(autouse=True)
def accounts(register):
    register("alice", "bob", "carol")


def create_task(client, headers, owner="alice", **body):
    body.setdefault("title", "Write report")
    response = client.post("/tasks", json=body, headers=headers(owner))
    assert response.status_code == 201
    return response.json()


class TestAuthentication:
    """Tests for resolving the acting user."""

    def test_missing_header(self, client):
        response = client.get("/tasks")

        assert response.status_code == 401

    def test_unknown_user(self, client, headers):
        response = client.get("/tasks", headers=headers("mallory"))

        assert response.status_code == 401
        assert "mallory" in response.json()["detail"]


class TestListTasks:
    """Tests for list tasks endpoint."""

    def test_list_empty(self, client, headers):
        """Should return empty list when no tasks."""
        response = client.get("/tasks", headers=headers("alice"))

        assert response.status_code == 200
        assert response.json() == {"tasks": [], "total": 0}

    def test_lists_owned_and_assigned(self, client, headers):
        create_task(client, headers, title="Mine")
        create_task(client, headers, owner="carol", title="Shared", assignees=["alice"])
        create_task(client, headers, owner="carol", title="Private")

        data = client.get("/tasks", headers=headers("alice")).json()

        assert data["total"] == 2
        assert [t["title"] for t in data["tasks"]] == ["Mine", "Shared"]


class TestCreateTask:
    """Tests for create task endpoint."""

    def test_create_task(self, client, headers):
        task = create_task(
            client,
            headers,
            title="New Task",
            description="Description",
            due_date="2024-01-15T17:00:00Z",
            assignees=["carol", "bob", "ghost"],
        )

        assert task["id"] == 1
        assert task["title"] == "New Task"
        assert task["owner"] == "alice"
        assert task["status"] == "todo"
        assert task["assignees"] == ["bob", "carol"]
        assert task["due_date"].startswith("2024-01-15T17:00:00")

    def test_create_task_empty_title(self, client, headers):
        response = client.post("/tasks", json={"title": ""}, headers=headers("alice"))

        assert response.status_code == 422

    def test_create_queues_notification(self, client, headers):
        """Creating a task should hand a change event to the bus."""
        create_task(client, headers)

        assert get_container().notification_bus.pending == 1


class TestGetTask:
    """Tests for get task endpoint."""

    def test_get_task(self, client, headers):
        created = create_task(client, headers, assignees=["bob"])

        response = client.get(f"/tasks/{created['id']}", headers=headers("bob"))

        assert response.status_code == 200
        assert response.json()["title"] == "Write report"

    def test_get_task_not_found(self, client, headers):
        response = client.get("/tasks/999", headers=headers("alice"))

        assert response.status_code == 404

    def test_hidden_from_non_participants(self, client, headers):
        created = create_task(client, headers)

        response = client.get(f"/tasks/{created['id']}", headers=headers("carol"))

        assert response.status_code == 404


class TestUpdateTask:
    """Tests for update task endpoint."""

    def test_update_task(self, client, headers):
        created = create_task(client, headers, assignees=["bob"], description="v1")

        response = client.patch(
            f"/tasks/{created['id']}",
            json={"status": "in_progress"},
            headers=headers("bob"),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "in_progress"
        assert data["description"] == "v1"

    def test_explicit_null_clears_description(self, client, headers):
        created = create_task(client, headers, description="v1")

        response = client.patch(
            f"/tasks/{created['id']}",
            json={"description": None},
            headers=headers("alice"),
        )

        assert response.json()["description"] is None

    def test_update_task_not_found(self, client, headers):
        response = client.patch("/tasks/999", json={"title": "x"}, headers=headers("alice"))

        assert response.status_code == 404

    def test_non_participant_forbidden(self, client, headers):
        created = create_task(client, headers)

        response = client.patch(
            f"/tasks/{created['id']}", json={"title": "x"}, headers=headers("carol")
        )

        assert response.status_code == 403

    def test_transfer_to_unknown_owner(self, client, headers):
        created = create_task(client, headers)

        response = client.patch(
            f"/tasks/{created['id']}", json={"owner": "ghost"}, headers=headers("alice")
        )

        assert response.status_code == 400

    def test_transfer_owner(self, client, headers):
        created = create_task(client, headers)

        response = client.patch(
            f"/tasks/{created['id']}", json={"owner": "carol"}, headers=headers("alice")
        )

        assert response.status_code == 200
        assert response.json()["owner"] == "carol"


class TestDeleteTask:
    """Tests for delete task endpoint."""

    def test_delete_task(self, client, headers):
        created = create_task(client, headers)

        response = client.delete(f"/tasks/{created['id']}", headers=headers("alice"))

        assert response.status_code == 204
        assert client.get(f"/tasks/{created['id']}", headers=headers("alice")).status_code == 404

    def test_assignee_cannot_delete(self, client, headers):
        created = create_task(client, headers, assignees=["bob"])

        response = client.delete(f"/tasks/{created['id']}", headers=headers("bob"))

        assert response.status_code == 403

    def test_delete_task_not_found(self, client, headers):
        response = client.delete("/tasks/999", headers=headers("alice"))

        assert response.status_code == 404


def test_running_app_delivers_notifications(client, headers, binding_store, recording_sender):
    """The bus started by the app should deliver before shutdown completes."""
    asyncio.run(binding_store.bind("alice", "111"))

    with client:
        create_task(client, headers, title="Plan sprint")

    assert recording_sender.sent == [("111", "New task created: Plan sprint")]
