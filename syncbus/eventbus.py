"""A small publish/subscribe bus with one buffered delivery thread per subscriber."""

from __future__ import annotations

import logging
import threading
from collections import deque
from enum import Enum
from typing import Any, Callable, Hashable

log = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Topic(str, Enum):
    """Names of the topics the synchronizer components talk over."""

    WATCHER_EVENT = "WatcherEvent"
    INDEXER_EVENT = "IndexerEvent"
    DIFFERENTIATOR_EVENT = "DifferentiatorEvent"
    SYNCER_EVENT = "SyncerEvent"
    PROGRESS_TRACKER_EVENT = "ProgressTrackerEvent"
    TASK_ERROR_EVENT = "TaskErrorEvent"

    def __str__(self) -> str:
        return self.value


class _Subscription:
    """A bounded queue of events drained by its own thread into a handler."""

    def __init__(self, topic: Hashable, handler: Handler, capacity: int) -> None:
        self._topic = topic
        self._handler = handler
        self._capacity = capacity
        self._items: deque[Any] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._thread = threading.Thread(
            target=self._run, name=f"eventbus-{topic}", daemon=True
        )
        self._thread.start()

    def offer(self, data: Any) -> bool:
        """Queue data without blocking; False if the buffer is full or closed."""
        with self._cond:
            if self._closed or len(self._items) >= self._capacity:
                return False
            self._items.append(data)
            self._cond.notify()
            return True

    def close(self) -> None:
        """Stop accepting events; queued ones are still delivered."""
        with self._cond:
            self._closed = True
            self._cond.notify()

    def _run(self) -> None:
        while True:
            with self._cond:
                while not self._items and not self._closed:
                    self._cond.wait()
                if not self._items:
                    return
                data = self._items.popleft()
            try:
                self._handler(data)
            except Exception:
                log.exception("EventBus: handler for topic %s failed", self._topic)


class EventBus:
    """Delivers published events to every subscriber of a topic.

    Each subscription has a buffer of ``buffer_size`` events; when it is
    full, further events for that subscriber are dropped.
    """

    buffer_size = 100

    def __init__(self) -> None:
        self._subscribers: dict[Hashable, list[_Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topic: Hashable, handler: Handler) -> None:
        """Call ``handler`` with every event later published on ``topic``."""
        with self._lock:
            subscription = _Subscription(topic, handler, self.buffer_size)
            self._subscribers.setdefault(topic, []).append(subscription)
        log.info("EventBus: New subscription to topic: %s", topic)

    def publish(self, topic: Hashable, data: Any) -> int:
        """Send ``data`` to all subscribers of ``topic``.

        Returns the number of subscribers the event was queued for.
        """
        delivered = 0
        with self._lock:
            for subscription in self._subscribers.get(topic, ()):
                if subscription.offer(data):
                    delivered += 1
                else:
                    log.warning(
                        "EventBus: Subscriber channel for topic %s is full. "
                        "Dropping event.",
                        topic,
                    )
        return delivered

    def close(self) -> None:
        """Close every subscription and forget all subscribers."""
        with self._lock:
            for subscriptions in self._subscribers.values():
                for subscription in subscriptions:
                    subscription.close()
            self._subscribers = {}
        log.info("EventBus: All subscriber channels closed.")