"""Realtime channel subscriptions.

``SubscriptionRegistry`` is an explicit object owned by whoever hosts the
subscriptions (one streaming connection, typically) and torn down with it.
There is no module-level subscription map.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from typing import Protocol

from schemas.notifications import NotificationEvent


logger = logging.getLogger(__name__)

# Bounded so one stalled subscriber cannot grow memory without limit.
DEFAULT_QUEUE_SIZE = 100


def notifications_channel(user_id: str) -> str:
    return f"notifications:{user_id}"


def project_channel(project_id: str) -> str:
    return f"project:{project_id}"


class EventBroker(Protocol):
    """Source of channel events."""

    def open(self, channel: str) -> asyncio.Queue[NotificationEvent | None]: ...

    def close(
        self, channel: str, queue: asyncio.Queue[NotificationEvent | None]
    ) -> None: ...


class InMemoryEventBroker:
    """Process-local fan-out broker.

    ``publish`` never blocks: when a subscriber's queue is full the event is
    dropped for that subscriber and a warning is logged.
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._queues: dict[str, set[asyncio.Queue[NotificationEvent | None]]] = (
            defaultdict(set)
        )

    def open(self, channel: str) -> asyncio.Queue[NotificationEvent | None]:
        queue: asyncio.Queue[NotificationEvent | None] = asyncio.Queue(
            maxsize=self._queue_size
        )
        self._queues[channel].add(queue)
        return queue

    def close(
        self, channel: str, queue: asyncio.Queue[NotificationEvent | None]
    ) -> None:
        queues = self._queues.get(channel)
        if not queues:
            return
        queues.discard(queue)
        if not queues:
            del self._queues[channel]

    def publish(self, channel: str, event: NotificationEvent) -> int:
        """Deliver ``event`` to every open queue on ``channel``; return the count."""
        delivered = 0
        for queue in list(self._queues.get(channel, ())):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("Dropping event for slow subscriber on %s", channel)
        return delivered

    def subscriber_count(self, channel: str) -> int:
        return len(self._queues.get(channel, ()))


class Subscription:
    """Lazy, unbounded stream of events on one channel.

    Iterate with ``async for``; ``close()`` unsubscribes and ends iteration.
    """

    def __init__(self, broker: EventBroker, channel: str) -> None:
        self.channel = channel
        self._broker = broker
        self._queue = broker.open(channel)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._broker.close(self.channel, self._queue)
        # Wake a pending reader so its iteration ends.
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            pass

    def __aiter__(self) -> AsyncIterator[NotificationEvent]:
        return self

    async def __anext__(self) -> NotificationEvent:
        if self._closed:
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is None or self._closed:
            raise StopAsyncIteration
        return event


class SubscriptionRegistry:
    """At most one live subscription per channel key.

    Subscribing to a channel that is already open closes the previous
    subscription first. ``unsubscribe_all`` is the shutdown hook; using the
    registry as an async context manager calls it on exit.
    """

    def __init__(self, broker: EventBroker) -> None:
        self._broker = broker
        self._subscriptions: dict[str, Subscription] = {}

    def subscribe(self, channel: str) -> Subscription:
        if not channel:
            raise ValueError("channel must be a non-empty string")
        self.unsubscribe(channel)
        subscription = Subscription(self._broker, channel)
        self._subscriptions[channel] = subscription
        logger.debug("Subscribed to %s", channel)
        return subscription

    def unsubscribe(self, channel: str) -> bool:
        subscription = self._subscriptions.pop(channel, None)
        if subscription is None:
            return False
        subscription.close()
        logger.debug("Unsubscribed from %s", channel)
        return True

    def unsubscribe_all(self) -> None:
        for channel in list(self._subscriptions):
            self.unsubscribe(channel)

    def active_channels(self) -> list[str]:
        return list(self._subscriptions)

    def __len__(self) -> int:
        return len(self._subscriptions)

    async def __aenter__(self) -> SubscriptionRegistry:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.unsubscribe_all()
