"""Tests for NotificationBus and the end-to-end mutation flow."""

import pytest
from dataclasses import replace
from unittest.mock import AsyncMock

from tasktracker.domain.models import ChangeEvent, TaskId, TaskStatus
from tasktracker.repositories.memory import (
    InMemoryAccountRepository,
    InMemoryBindingStore,
    InMemoryTaskRepository,
)
from tasktracker.services.account_service import AccountService
from tasktracker.services.change_detector import ChangeDetector
from tasktracker.services.notification_bus import NotificationBus
from tasktracker.services.recipient_resolver import RecipientResolver
from tasktracker.services.task_service import TaskService


@pytest.fixture
def binding_store() -> InMemoryBindingStore:
    return InMemoryBindingStore()


@pytest.fixture
def make_bus(binding_store, recording_sender):
    """Build a bus around the recording sender."""

    def factory(sender=None, **kwargs) -> NotificationBus:
        return NotificationBus(
            ChangeDetector(),
            RecipientResolver(binding_store),
            sender or recording_sender,
            **kwargs,
        )

    return factory


class TestPublish:
    """Tests for the producer side."""

    def test_publish_queues_event(self, make_bus, sample_snapshot):
        bus = make_bus()

        assert bus.publish(ChangeEvent.created(sample_snapshot)) is True
        assert bus.pending == 1

    def test_full_queue_is_swallowed(self, make_bus, sample_snapshot):
        """A full queue should be reported as False, not raised."""
        bus = make_bus(maxsize=1)
        event = ChangeEvent.created(sample_snapshot)

        assert bus.publish(event) is True
        assert bus.publish(event) is False
        assert bus.pending == 1

    @pytest.mark.asyncio
    async def test_closed_bus_refuses_events(self, make_bus, sample_snapshot):
        bus = make_bus()
        bus.start()
        await bus.stop()

        assert bus.is_accepting is False
        assert bus.publish(ChangeEvent.created(sample_snapshot)) is False

    def test_requires_a_worker(self, make_bus):
        with pytest.raises(ValueError):
            make_bus(workers=0)


class TestProcess:
    """Tests for handling a single event."""

    @pytest.mark.asyncio
    async def test_created_sends_summary(self, make_bus, recording_sender, sample_snapshot):
        delivered = await make_bus().process(ChangeEvent.created(sample_snapshot))

        assert delivered == 1
        assert recording_sender.sent == [("111", "New task created: Write report")]

    @pytest.mark.asyncio
    async def test_unimportant_update_is_dropped(self, make_bus, recording_sender, sample_snapshot):
        event = ChangeEvent.updated(sample_snapshot, replace(sample_snapshot, owner="carol"))

        assert await make_bus().process(event) == 0
        assert recording_sender.sent == []

    @pytest.mark.asyncio
    async def test_no_recipients_is_noop(self, make_bus, recording_sender, sample_snapshot):
        snapshot = replace(sample_snapshot, addresses=frozenset({None}))

        assert await make_bus().process(ChangeEvent.deleted(snapshot)) == 0
        assert recording_sender.sent == []

    @pytest.mark.asyncio
    async def test_failed_address_does_not_block_others(
        self, make_bus, sender_factory, sample_snapshot
    ):
        sender = sender_factory(fail_for=("111",))
        snapshot = replace(sample_snapshot, addresses=frozenset({"111", "222"}))

        delivered = await make_bus(sender=sender).process(ChangeEvent.created(snapshot))

        assert delivered == 1
        assert sender.addresses == ["222"]


class TestConsumer:
    """Tests for the background workers."""

    @pytest.mark.asyncio
    async def test_events_published_before_start_are_delivered(
        self, make_bus, recording_sender, sample_snapshot
    ):
        bus = make_bus()
        bus.publish(ChangeEvent.created(sample_snapshot))
        bus.publish(ChangeEvent.deleted(sample_snapshot))

        bus.start()
        await bus.stop()

        assert [text for _, text in recording_sender.sent] == [
            "New task created: Write report",
            "Task deleted: Write report",
        ]

    @pytest.mark.asyncio
    async def test_same_task_updates_keep_order(self, make_bus, recording_sender, sample_snapshot):
        """Updates of one task should be delivered in submission order."""
        bus = make_bus(workers=4)
        titles = [f"Step {i}" for i in range(10)]
        previous = sample_snapshot
        for title in titles:
            current = replace(previous, title=title)
            bus.publish(ChangeEvent.updated(previous, current))
            previous = current

        bus.start()
        await bus.join()
        await bus.stop()

        delivered = [text for _, text in recording_sender.sent]
        assert delivered == [f"Task '{t}' updated: title changed" for t in titles]

    @pytest.mark.asyncio
    async def test_failed_handling_is_redelivered(self, make_bus, sample_snapshot):
        """An event whose handling raised should be processed again."""
        sender = AsyncMock()
        sender.send = AsyncMock(side_effect=[RuntimeError("boom"), True])
        bus = make_bus(sender=sender, max_redeliveries=2)

        bus.start()
        bus.publish(ChangeEvent.created(sample_snapshot))
        await bus.join()
        await bus.stop()

        assert sender.send.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_redeliveries(self, make_bus, sample_snapshot):
        sender = AsyncMock()
        sender.send = AsyncMock(side_effect=RuntimeError("down"))
        bus = make_bus(sender=sender, max_redeliveries=1)

        bus.start()
        bus.publish(ChangeEvent.created(sample_snapshot))
        await bus.join()
        await bus.stop()

        assert sender.send.await_count == 2
        assert bus.is_running is False


class TestEndToEnd:
    """Task mutations flowing through the bus to the sender."""

    @pytest.fixture
    def accounts(self) -> InMemoryAccountRepository:
        return InMemoryAccountRepository()

    @pytest.fixture
    def bus(self, make_bus) -> NotificationBus:
        return make_bus()

    @pytest.fixture
    def service(self, accounts, binding_store, bus) -> TaskService:
        return TaskService(
            task_repository=InMemoryTaskRepository(),
            account_repository=accounts,
            resolver=RecipientResolver(binding_store),
            publisher=bus,
        )

    async def _register(self, accounts, binding_store, *usernames, bound=()):
        registry = AccountService(accounts, binding_store)
        for username in usernames:
            await registry.register(username)
        for username, chat_id in bound:
            await binding_store.bind(username, chat_id)

    @pytest.mark.asyncio
    async def test_created_task_notifies_owner(
        self, accounts, binding_store, bus, service, recording_sender
    ):
        """Owner bound to 111 should get exactly one message naming the task."""
        await self._register(accounts, binding_store, "alice", bound=[("alice", "111")])
        bus.start()

        await service.create_task("alice", "Plan sprint")
        await bus.stop()

        assert len(recording_sender.sent) == 1
        address, text = recording_sender.sent[0]
        assert address == "111"
        assert "Plan sprint" in text

    @pytest.mark.asyncio
    async def test_description_update_reaches_old_and_new_assignees(
        self, accounts, binding_store, bus, service, recording_sender
    ):
        await self._register(
            accounts,
            binding_store,
            "alice",
            "bob",
            "carol",
            bound=[("alice", "111"), ("bob", "222"), ("carol", "333")],
        )
        task = await service.create_task("alice", "Plan sprint", assignees=["bob"])

        bus.start()
        await service.update_task(
            "alice", task.id, description="Agenda attached", assignees=["carol"]
        )
        await bus.stop()

        update_messages = [
            (address, text) for address, text in recording_sender.sent if "updated" in text
        ]
        assert sorted(a for a, _ in update_messages) == ["111", "222", "333"]
        assert all("description" in text for _, text in update_messages)

    @pytest.mark.asyncio
    async def test_description_only_update(
        self, accounts, binding_store, bus, service, recording_sender
    ):
        await self._register(accounts, binding_store, "alice", bound=[("alice", "111")])
        task = await service.create_task("alice", "Plan sprint", description="v1")
        bus.start()
        await bus.join()
        recording_sender.sent.clear()

        await service.update_task("alice", task.id, description="v2")
        await bus.stop()

        assert recording_sender.sent == [
            ("111", "Task 'Plan sprint' updated: description changed")
        ]

    @pytest.mark.asyncio
    async def test_no_change_update_sends_nothing(
        self, accounts, binding_store, bus, service, recording_sender
    ):
        await self._register(accounts, binding_store, "alice", bound=[("alice", "111")])
        task = await service.create_task("alice", "Plan sprint")
        bus.start()
        await bus.join()
        recording_sender.sent.clear()

        await service.update_task("alice", task.id, title="Plan sprint")
        await bus.stop()

        assert recording_sender.sent == []

    @pytest.mark.asyncio
    async def test_publish_failure_does_not_fail_mutation(
        self, accounts, binding_store, service, bus
    ):
        """A closed bus should not stop tasks from being created."""
        await self._register(accounts, binding_store, "alice", bound=[("alice", "111")])
        bus.start()
        await bus.stop()

        task = await service.create_task("alice", "Still saved")

        assert task.id == TaskId(1)
        assert task.status == TaskStatus.TODO
