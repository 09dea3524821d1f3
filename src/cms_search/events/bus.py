"""In-memory event bus with topic-based pub/sub."""
import asyncio
import uuid
from collections.abc import AsyncIterator

import structlog

from cms_search.events.types import DomainEvent

logger = structlog.get_logger()

WILDCARD = "*"


class EventBus:
    """Async event bus fanning content events out to subscriber queues.

    Each subscriber owns a bounded queue. When a queue is full the new event
    is dropped for that subscriber and counted; a later full build brings
    the index back in line.

    Attributes:
        queue_size: Maximum size of each subscriber queue.
        max_subscribers: Maximum number of concurrent subscribers.
    """

    def __init__(self, queue_size: int = 100, max_subscribers: int = 10) -> None:
        """Initialize event bus.

        Args:
            queue_size: Maximum items per subscriber queue.
            max_subscribers: Maximum concurrent subscribers allowed.
        """
        self._subscribers: dict[str, dict[str, asyncio.Queue[DomainEvent]]] = {
            "content": {},
            "system": {},
            WILDCARD: {},
        }
        self.queue_size = queue_size
        self.max_subscribers = max_subscribers
        self._dropped_count = 0
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        """Total number of active subscribers across all topics."""
        return sum(len(subs) for subs in self._subscribers.values())

    @property
    def dropped_events(self) -> int:
        """Total number of events dropped due to full queues."""
        return self._dropped_count

    async def publish(self, event: DomainEvent) -> int:
        """Deliver an event to subscribers of its topic and of the wildcard.

        Args:
            event: Domain event to publish.

        Returns:
            Number of subscribers that received the event.
        """
        delivered = 0
        for topic in (event.topic, WILDCARD):
            for subscriber_id, queue in list(self._subscribers.get(topic, {}).items()):
                try:
                    queue.put_nowait(event)
                    delivered += 1
                except asyncio.QueueFull:
                    self._dropped_count += 1
                    logger.warning(
                        "event_dropped",
                        subscriber_id=subscriber_id,
                        event_type=event.type.value,
                        entity_id=event.entity_id,
                    )
        return delivered

    async def subscribe(self, topic: str = WILDCARD) -> tuple[str, AsyncIterator[DomainEvent]]:
        """Register a subscriber queue for a topic.

        Unknown topics fall back to the wildcard.

        Args:
            topic: Topic to subscribe to.

        Returns:
            Tuple of (subscriber_id, event_iterator). The iterator removes
            the subscriber when it is closed or cancelled.

        Raises:
            ValueError: If maximum subscribers reached.
        """
        async with self._lock:
            if self.subscriber_count >= self.max_subscribers:
                raise ValueError("Maximum subscribers reached")

            if topic not in self._subscribers:
                topic = WILDCARD
            subscriber_id = str(uuid.uuid4())
            queue: asyncio.Queue[DomainEvent] = asyncio.Queue(maxsize=self.queue_size)
            self._subscribers[topic][subscriber_id] = queue

        async def event_iterator() -> AsyncIterator[DomainEvent]:
            try:
                while True:
                    yield await queue.get()
            finally:
                await self.unsubscribe(topic, subscriber_id)

        return subscriber_id, event_iterator()

    async def unsubscribe(self, topic: str, subscriber_id: str) -> None:
        async with self._lock:
            if self._subscribers.get(topic, {}).pop(subscriber_id, None) is not None:
                logger.debug("subscriber_removed", subscriber_id=subscriber_id, topic=topic)
