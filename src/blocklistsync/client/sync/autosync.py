"""Automatic synchronization loop for a domain cache.

This module provides:
- AutoSync: Runs periodic full syncs, incremental updates and an optional
  live feed against one DomainCache
- auto_sync: Convenience wrapper around AutoSync.run()

Architecture:
    LiveFeed thread ─► records (maxsize 8) ─┐
    recent timer ───────────────────────────┼─► run() loop ─► DomainCache
    full sync timer ────────────────────────┘

The loop does not retry anything. The first error from a sync or from the
live feed stops the loop and is raised to the caller, who decides on
backoff. Setting the cancel event stops the loop without error.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from blocklistsync.client.sync.feed import FEED_BUFFER_SIZE

if TYPE_CHECKING:
    from collections.abc import Callable

    from blocklistsync.client.cache import DomainCache
    from blocklistsync.core.types import DomainUpdate

logger = logging.getLogger(__name__)

WAIT_POLL_INTERVAL = 0.25  # seconds


@dataclass
class AutoSyncStats:
    """Counters for one AutoSync run.

    Attributes:
        full_syncs: Completed full syncs, including the initial one.
        updates: Completed incremental updates.
        live_updates: Live feed updates applied.
    """

    full_syncs: int = 0
    updates: int = 0
    live_updates: int = 0


class AutoSync:
    """Keeps a DomainCache current until cancelled.

    A full sync is recommended alongside the live feed, since a feed
    reconnect can miss updates.

    Usage:
        cancel = threading.Event()
        AutoSync(cache, realtime=True, recent_interval=300).run(cancel)
    """

    def __init__(
        self,
        cache: DomainCache,
        realtime: bool = False,
        recent_interval: float = 0,
        full_sync_interval: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the loop.

        Args:
            cache: Cache to keep in sync.
            realtime: Whether to run a live feed session.
            recent_interval: Seconds between incremental updates (0 = never).
            full_sync_interval: Seconds between full syncs (0 = never).
            clock: Monotonic clock in seconds.
        """
        self._cache = cache
        self._realtime = realtime
        self._recent_interval = recent_interval
        self._full_sync_interval = full_sync_interval
        self._clock = clock
        self.stats = AutoSyncStats()

        self._records: queue.Queue[DomainUpdate] = queue.Queue(maxsize=FEED_BUFFER_SIZE)
        self._feed_cancel = threading.Event()
        self._feed_done = threading.Event()
        self._feed_error: BaseException | None = None
        self._feed_thread: threading.Thread | None = None

    def run(self, cancel: threading.Event) -> None:
        """Run the loop until cancelled or an error occurs.

        Args:
            cancel: Event that stops the loop cleanly when set.

        Raises:
            APIError: If a sync or the live feed fails.
            AlreadyListeningError: If realtime is requested while the
                cache already has a live feed session.
            StreamTerminatedError: If the server ends the live feed.
        """
        if self._realtime:
            self._start_feed()

        try:
            self._cache.full_sync()
            self.stats.full_syncs += 1
            self._loop(cancel)
        finally:
            self._stop_feed()
            logger.info(
                "AutoSync stopped: %d full syncs, %d updates, %d live updates",
                self.stats.full_syncs,
                self.stats.updates,
                self.stats.live_updates,
            )

    def _loop(self, cancel: threading.Event) -> None:
        now = self._clock()
        next_recent = now + self._recent_interval if self._recent_interval > 0 else None
        next_full = now + self._full_sync_interval if self._full_sync_interval > 0 else None

        while not cancel.is_set():
            if self._feed_done.is_set() and self._records.empty():
                if self._feed_error is not None:
                    raise self._feed_error
                self._feed_done.clear()

            now = self._clock()
            if next_recent is not None and now >= next_recent:
                self._cache.update()
                self.stats.updates += 1
                next_recent = now + self._recent_interval
                continue
            if next_full is not None and now >= next_full:
                self._cache.full_sync()
                self.stats.full_syncs += 1
                next_full = now + self._full_sync_interval
                continue

            timeout = WAIT_POLL_INTERVAL
            for deadline in (next_recent, next_full):
                if deadline is not None:
                    timeout = min(timeout, max(0.0, deadline - now))
            try:
                update = self._records.get(timeout=timeout)
            except queue.Empty:
                continue
            self._cache.apply_live_update(update)
            self.stats.live_updates += 1

        logger.info("AutoSync cancelled")

    def _start_feed(self) -> None:
        self._feed_thread = threading.Thread(
            target=self._run_feed,
            name="AutoSyncFeed",
            daemon=True,
        )
        self._feed_thread.start()

    def _run_feed(self) -> None:
        try:
            self._cache.relay_updates(self._feed_cancel, self._records)
        except Exception as e:
            logger.warning("Live feed stopped: %s", e)
            self._feed_error = e
        finally:
            self._feed_done.set()

    def _stop_feed(self) -> None:
        self._feed_cancel.set()
        if self._feed_thread is not None:
            self._feed_thread.join()
            self._feed_thread = None


def auto_sync(
    cache: DomainCache,
    cancel: threading.Event,
    realtime: bool = False,
    recent_interval: float = 0,
    full_sync_interval: float = 0,
) -> None:
    """Keep a cache in sync until cancelled or an error occurs.

    See AutoSync for details.
    """
    AutoSync(
        cache,
        realtime=realtime,
        recent_interval=recent_interval,
        full_sync_interval=full_sync_interval,
    ).run(cancel)
