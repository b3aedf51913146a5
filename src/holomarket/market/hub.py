"""Broadcast hub: fans update batches out to live subscribers."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from holomarket.exceptions import SubscriberSendError
from holomarket.market.models import UpdateBatch

logger = logging.getLogger(__name__)

DEFAULT_MAX_PENDING = 100


class Subscriber(ABC):
    """Open bidirectional channel able to receive serialized batches."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while the channel can accept messages."""
        pass

    @abstractmethod
    async def send(self, text: str) -> bool | None:
        """Deliver one message. Raising or returning False means failure."""
        pass

    @abstractmethod
    def on_close(self, callback: Callable[[], None]) -> None:
        """Register a callback the transport invokes when the channel closes."""
        pass


@dataclass
class _Outbox:
    queue: asyncio.Queue[str]
    task: asyncio.Task[None] | None = None


class BroadcastHub:
    """
    Delivers each batch to every live subscriber, best-effort.

    Every subscriber gets its own FIFO outbox drained by its own task, so
    batches arrive in broadcast order per subscriber while a slow or hung
    subscriber never holds up the others. A failed send removes only the
    failing subscriber. Nothing is replayed to late joiners.
    """

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING):
        self.max_pending = max_pending
        self._outboxes: dict[Subscriber, _Outbox] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._outboxes)

    def is_registered(self, subscriber: Subscriber) -> bool:
        return subscriber in self._outboxes

    def register(self, subscriber: Subscriber) -> bool:
        """Add a subscriber to the live set. Returns False if already present."""
        if subscriber in self._outboxes:
            return False

        box = _Outbox(queue=asyncio.Queue(maxsize=self.max_pending))
        self._outboxes[subscriber] = box
        box.task = asyncio.get_running_loop().create_task(self._pump(subscriber, box))
        subscriber.on_close(lambda: self.unregister(subscriber))
        logger.info(f"Subscriber registered ({self.subscriber_count} live)")
        return True

    def unregister(self, subscriber: Subscriber) -> bool:
        """Remove a subscriber. Safe to call repeatedly or from its own send."""
        box = self._outboxes.pop(subscriber, None)
        if box is None:
            return False

        _discard_pending(box.queue)
        if box.task is not None and box.task is not asyncio.current_task():
            box.task.cancel()
        logger.info(f"Subscriber removed ({self.subscriber_count} live)")
        return True

    def broadcast(self, batch: UpdateBatch) -> int:
        """
        Queue a batch for every open subscriber.

        The batch is serialized once. Returns the number of subscribers it was
        queued for; delivery itself happens in each subscriber's outbox task.
        """
        text = batch.to_json()
        queued = 0

        for subscriber, box in list(self._outboxes.items()):
            if not subscriber.is_open:
                logger.debug("Skipping closed subscriber")
                self.unregister(subscriber)
                continue
            try:
                box.queue.put_nowait(text)
            except asyncio.QueueFull:
                logger.warning(
                    f"Subscriber has {self.max_pending} undelivered batches, dropping it"
                )
                self.unregister(subscriber)
                continue
            queued += 1

        logger.debug(f"Broadcast {len(batch)} updates to {queued} subscribers")
        return queued

    async def join(self) -> None:
        """Wait until every batch queued so far has been delivered or dropped."""
        await asyncio.gather(*(box.queue.join() for box in list(self._outboxes.values())))

    async def close(self) -> None:
        """Drop all subscribers and stop their outbox tasks."""
        tasks = [box.task for box in self._outboxes.values() if box.task is not None]
        for subscriber in list(self._outboxes):
            self.unregister(subscriber)
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _pump(self, subscriber: Subscriber, box: _Outbox) -> None:
        while self._outboxes.get(subscriber) is box:
            text = await box.queue.get()
            try:
                if subscriber.is_open:
                    result = await subscriber.send(text)
                    if result is False:
                        raise SubscriberSendError("transport rejected message")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Error sending market update: {e}")
                self.unregister(subscriber)
            finally:
                box.queue.task_done()


def _discard_pending(queue: asyncio.Queue[str]) -> None:
    while True:
        try:
            queue.get_nowait()
        except asyncio.QueueEmpty:
            return
        queue.task_done()
