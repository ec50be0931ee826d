"""Asynchronous channel between task mutations and chat notifications."""

import asyncio
import logging
from typing import Optional

from ..domain.errors import EnqueueError
from ..domain.models import ChangeEvent, ChangeType
from ..domain.protocols import NotificationSender
from .change_detector import ChangeDetector
from .recipient_resolver import RecipientResolver

logger = logging.getLogger(__name__)

_STOP = object()


class NotificationBus:
    """Queue of change events with a background consumer.

    Producers call ``publish`` from the request path; it never blocks and
    never raises. Consumption happens on worker tasks started with
    ``start``. Events are sharded across workers by task id, so updates to
    the same task are handled in the order they were published.

    Delivery is at-least-once: when handling an event raises, it is retried
    up to ``max_redeliveries`` more times before being dropped.
    """

    def __init__(
        self,
        detector: ChangeDetector,
        resolver: RecipientResolver,
        sender: NotificationSender,
        *,
        maxsize: int = 0,
        workers: int = 1,
        max_redeliveries: int = 3,
    ) -> None:
        """Initialize the bus.

        Args:
            detector: Produces the summary text and importance verdict
            resolver: Produces recipient addresses for an event
            sender: Delivers one message to one address
            maxsize: Capacity of each worker queue, 0 for unbounded
            workers: Number of consumer tasks
            max_redeliveries: Extra attempts for an event whose handling failed
        """
        if workers < 1:
            raise ValueError("NotificationBus needs at least one worker")

        self._detector = detector
        self._resolver = resolver
        self._sender = sender
        self._max_redeliveries = max_redeliveries
        self._queues: list[asyncio.Queue] = [
            asyncio.Queue(maxsize=maxsize) for _ in range(workers)
        ]
        self._workers: list[asyncio.Task] = []
        self._accepting = True

    @property
    def is_running(self) -> bool:
        return any(not w.done() for w in self._workers)

    @property
    def is_accepting(self) -> bool:
        return self._accepting

    @property
    def pending(self) -> int:
        """Number of events waiting in the queues."""
        return sum(q.qsize() for q in self._queues)

    def publish(self, event: ChangeEvent) -> bool:
        """Enqueue an event for delivery.

        Returns:
            True if queued, False if the bus refused it
        """
        try:
            self._enqueue(event)
        except EnqueueError as e:
            logger.warning(f"Dropping notification for task {event.task_id}: {e}")
            return False
        return True

    def _enqueue(self, event: ChangeEvent) -> None:
        if not self._accepting:
            raise EnqueueError("bus is closed")
        queue = self._queues[event.task_id.value % len(self._queues)]
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            raise EnqueueError("queue is full") from None

    async def process(self, event: ChangeEvent) -> int:
        """Deliver one event to its recipients.

        Returns:
            Number of addresses the message was delivered to
        """
        classification = self._detector.classify(event)
        if event.type is ChangeType.UPDATED and not classification.important:
            logger.debug(f"Skipping unimportant update of task {event.task_id}")
            return 0

        addresses = self._resolver.resolve(event)
        if not addresses:
            logger.debug(f"No bound recipients for task {event.task_id}")
            return 0

        delivered = 0
        for address in sorted(addresses):
            if await self._sender.send(address, classification.summary):
                delivered += 1

        logger.info(
            f"Task {event.task_id} {event.type.value}: "
            f"notified {delivered}/{len(addresses)} recipient(s)"
        )
        return delivered

    async def _handle(self, event: ChangeEvent) -> None:
        for attempt in range(self._max_redeliveries + 1):
            try:
                await self.process(event)
                return
            except Exception:
                logger.exception(
                    f"Handling event for task {event.task_id} failed "
                    f"(attempt {attempt + 1}/{self._max_redeliveries + 1})"
                )
        logger.error(f"Giving up on notification for task {event.task_id}")

    async def _consume(self, queue: asyncio.Queue) -> None:
        while True:
            item = await queue.get()
            try:
                if item is _STOP:
                    return
                await self._handle(item)
            finally:
                queue.task_done()

    def start(self) -> None:
        """Start the consumer tasks on the running event loop."""
        if self.is_running:
            logger.warning("Notification bus already running")
            return

        self._accepting = True
        self._workers = [
            asyncio.create_task(self._consume(q), name=f"notification-bus-{i}")
            for i, q in enumerate(self._queues)
        ]
        logger.info(f"Notification bus started with {len(self._workers)} worker(s)")

    async def join(self) -> None:
        """Wait until every queued event has been handled."""
        for queue in self._queues:
            await queue.join()

    async def stop(self, timeout: Optional[float] = None) -> None:
        """Stop accepting events, drain the queues and stop the workers."""
        self._accepting = False
        if not self._workers:
            return

        for queue in self._queues:
            await queue.put(_STOP)

        _, pending = await asyncio.wait(self._workers, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning(f"Cancelled {len(pending)} notification worker(s) on shutdown")
        self._workers = []
        logger.info("Notification bus stopped")
