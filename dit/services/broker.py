# dit/services/broker.py
# In-process pub/sub feeding the live post and comment streams

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Set

logger = logging.getLogger(__name__)

POSTS_TOPIC = "posts"


def comments_topic(post_id: str) -> str:
    return f"comments:{post_id}"


class FeedBroker:
    """
    Fan out inserts to every live subscriber of a topic.

    Each subscriber owns a bounded queue; a subscriber that falls behind
    loses the oldest events rather than blocking publishers. Clients recover
    through their poll snapshot.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {}

    def publish(self, topic: str, item: Any) -> int:
        delivered = 0
        for queue in list(self._subscribers.get(topic, ())):
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(item)
            delivered += 1
        return delivered

    @contextmanager
    def subscribe(self, topic: str) -> Iterator[asyncio.Queue]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.setdefault(topic, set()).add(queue)
        try:
            yield queue
        finally:
            subs = self._subscribers.get(topic)
            if subs is not None:
                subs.discard(queue)
                if not subs:
                    del self._subscribers[topic]

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))
