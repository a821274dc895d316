"""In-process publish/subscribe hub for WebSocket clients."""

import asyncio
import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256


@dataclass
class _Subscription:
    queue: "asyncio.Queue[dict[str, object]]"
    topics: frozenset[str] | None
    loop: asyncio.AbstractEventLoop


@dataclass
class BroadcastHub:
    """Fan published payloads out to subscriber queues.

    Publishing never blocks: a subscriber whose queue is full loses the
    message and is logged, the rest still receive it. Messages published from
    another thread or event loop are handed over with ``call_soon_threadsafe``.
    """

    queue_size: int = DEFAULT_QUEUE_SIZE
    _subscriptions: list[_Subscription] = field(default_factory=list)

    def publish(self, topic: str, payload: object) -> None:
        """Deliver a payload to every subscriber of ``topic``."""
        message = {"topic": topic, "payload": payload}
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None
        for subscription in list(self._subscriptions):
            if subscription.topics is not None and topic not in subscription.topics:
                continue
            if subscription.loop is current_loop:
                _offer(subscription.queue, message)
                continue
            try:
                subscription.loop.call_soon_threadsafe(
                    _offer, subscription.queue, message
                )
            except RuntimeError:
                logger.warning("Dropping subscriber with a closed event loop")
                self.unsubscribe(subscription.queue)

    def subscribe(
        self, topics: set[str] | None = None
    ) -> "asyncio.Queue[dict[str, object]]":
        """Register a subscriber on the running loop and return its queue."""
        queue: asyncio.Queue[dict[str, object]] = asyncio.Queue(maxsize=self.queue_size)
        self._subscriptions.append(
            _Subscription(
                queue=queue,
                topics=frozenset(topics) if topics is not None else None,
                loop=asyncio.get_running_loop(),
            )
        )
        return queue

    def unsubscribe(self, queue: "asyncio.Queue[dict[str, object]]") -> None:
        """Remove a subscriber."""
        self._subscriptions = [
            subscription
            for subscription in self._subscriptions
            if subscription.queue is not queue
        ]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)


def _offer(
    queue: "asyncio.Queue[dict[str, object]]", message: dict[str, object]
) -> None:
    try:
        queue.put_nowait(message)
    except asyncio.QueueFull:
        logger.warning(
            "Dropping message for slow subscriber", extra={"topic": message["topic"]}
        )
