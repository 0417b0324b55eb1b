"""Change notifications for the domain cache.

This module provides:
- UpdateChannel: Small bounded channel of "cache changed" signals
- ChangeNotifier: Hands out one channel at a time and signals it
- ChannelClosedError: Raised when reading a closed, drained channel

Notifications carry no payload. A consumer that wakes up should read the
cache again instead of trying to track what changed. Sends never block:
when the channel is full the signal is dropped, since a pending signal
already tells the consumer to look at the cache.

Usage:
    channel = cache.subscribe()
    for _ in channel:
        write_cache_into(cache, fp)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_CAPACITY = 2


class ChannelClosedError(RuntimeError):
    """The channel was closed and has no pending notifications."""


class UpdateChannel:
    """Thread-safe bounded channel of payload-less notifications.

    Attributes:
        capacity: Maximum number of pending notifications.
    """

    def __init__(self, capacity: int = DEFAULT_CHANNEL_CAPACITY) -> None:
        """Initialize the channel.

        Args:
            capacity: Maximum number of pending notifications (at least 1).
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._pending = 0
        self._closed = False

    def offer(self) -> bool:
        """Add a notification without blocking.

        Returns:
            True if queued, False if the channel was full or closed.
        """
        with self._lock:
            if self._closed or self._pending >= self.capacity:
                return False
            self._pending += 1
            self._not_empty.notify()
            return True

    def get(self, timeout: float | None = None) -> bool:
        """Wait for a notification and consume it.

        Pending notifications are still delivered after close().

        Args:
            timeout: Maximum seconds to wait (None = wait forever)

        Returns:
            True if a notification was consumed, False if timeout expired

        Raises:
            ChannelClosedError: If the channel is closed and drained
        """
        with self._not_empty:
            deadline = None if timeout is None else time.monotonic() + timeout

            while not self._pending and not self._closed:
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return False
                    self._not_empty.wait(timeout=remaining)
                else:
                    self._not_empty.wait()

            if not self._pending:
                raise ChannelClosedError("Channel is closed")

            self._pending -= 1
            return True

    def close(self) -> None:
        """Close the channel and wake up waiting readers."""
        with self._lock:
            self._closed = True
            self._not_empty.notify_all()

    @property
    def closed(self) -> bool:
        """Check if the channel is closed."""
        return self._closed

    def __len__(self) -> int:
        """Get number of pending notifications."""
        with self._lock:
            return self._pending

    def __iter__(self) -> Iterator[None]:
        """Yield once per notification until the channel is closed."""
        while True:
            try:
                self.get()
            except ChannelClosedError:
                return
            yield None


class ChangeNotifier:
    """Single-subscriber notification fan-out.

    Subscribing closes the previous channel, so at most one consumer is
    active. Not thread-safe by itself: DomainCache calls it while holding
    its lock.
    """

    def __init__(self, capacity: int = DEFAULT_CHANNEL_CAPACITY) -> None:
        self._capacity = capacity
        self._channel: UpdateChannel | None = None

    @property
    def channel(self) -> UpdateChannel | None:
        """Get the current channel, if any."""
        return self._channel

    def subscribe(self) -> UpdateChannel:
        """Replace the current channel with a new one.

        Returns:
            The new channel. The previous one is closed.
        """
        if self._channel is not None:
            self._channel.close()
            logger.debug("Closed previous update channel")
        self._channel = UpdateChannel(self._capacity)
        return self._channel

    def notify(self) -> bool:
        """Signal the current channel without blocking.

        Returns:
            True if delivered, False if there is no channel or it is full.
        """
        if self._channel is None:
            return False
        sent = self._channel.offer()
        if not sent:
            logger.debug("Update channel full, dropping notification")
        return sent

    def close(self) -> None:
        """Close the current channel and forget it."""
        if self._channel is not None:
            self._channel.close()
            self._channel = None
