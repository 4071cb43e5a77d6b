"""Bounded single-producer / multi-consumer broadcast used for snapshots and events."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAXSIZE = 64


class Subscription(Generic[T]):
    """One consumer's bounded view of a Broadcast."""

    def __init__(self, channel: Broadcast[T], maxsize: int) -> None:
        self._channel = channel
        self._queue: queue.Queue[T] = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def _offer(self, item: T) -> None:
        # Never block the producer: drop the oldest item when full
        while True:
            try:
                self._queue.put_nowait(item)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                    self.dropped += 1
                    logger.debug("Subscriber queue full; dropped oldest item")
                except queue.Empty:
                    pass

    def get(self, timeout: float | None = None) -> T:
        """Block until the next item arrives. Raises queue.Empty on timeout."""
        return self._queue.get(timeout=timeout)

    def drain(self) -> list[T]:
        """Return every queued item without blocking."""
        items: list[T] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items

    def close(self) -> None:
        self._channel._unsubscribe(self)


class Broadcast(Generic[T]):
    """
    Fan-out channel: every subscriber receives every published item.

    Also keeps the most recent item as ``latest`` so late readers can take
    the current value without waiting for the next publication.
    """

    def __init__(self, maxsize: int = DEFAULT_MAXSIZE) -> None:
        self._maxsize = maxsize
        self._lock = threading.Lock()
        self._subscribers: list[Subscription[T]] = []
        self._latest: T | None = None

    @property
    def latest(self) -> T | None:
        return self._latest

    def publish(self, item: T) -> None:
        with self._lock:
            self._latest = item
            subscribers = list(self._subscribers)
        for sub in subscribers:
            sub._offer(item)

    def subscribe(self, maxsize: int | None = None) -> Subscription[T]:
        """Register a consumer. ``maxsize=0`` gives an unbounded queue that never drops."""
        sub: Subscription[T] = Subscription(self, self._maxsize if maxsize is None else maxsize)
        with self._lock:
            self._subscribers.append(sub)
        return sub

    def _unsubscribe(self, sub: Subscription[T]) -> None:
        with self._lock:
            if sub in self._subscribers:
                self._subscribers.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
