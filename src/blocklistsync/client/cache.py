"""Local cache of a remote domain blocklist.

This module provides:
- DomainCache: Thread-safe local copy of the blocklist, kept current by
  full syncs, incremental updates and the live feed

Architecture:
    Transport ─► full_sync / update / live feed ─► _apply_update ─► domains
                                                              │
                                                     ChangeNotifier ─► subscriber

One lock protects the domain set, the last update time, the streaming
flag with its cancel event, and the notifier. Network calls always run
outside the lock, so reads are never blocked by a slow server.
"""

from __future__ import annotations

import logging
import math
import queue
import threading
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from blocklistsync.client.notifications import ChangeNotifier
from blocklistsync.client.sync.feed import FEED_BUFFER_SIZE, LiveFeed
from blocklistsync.client.sync.types import AlreadyListeningError
from blocklistsync.core.domains import generate_variants
from blocklistsync.core.types import DomainUpdate, Snapshot, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable

    from blocklistsync.client.notifications import UpdateChannel
    from blocklistsync.core.transport import Transport

logger = logging.getLogger(__name__)

# Overlap added to incremental windows. The server counts in whole seconds
# and clocks drift; re-applying a few updates is harmless.
UPDATE_OVERLAP = timedelta(minutes=1)

EPOCH = datetime.fromtimestamp(0, UTC)

DRAIN_POLL_INTERVAL = 0.1  # seconds


class DomainCache:
    """Local, always-consistent copy of a remote domain blocklist.

    Usage:
        cache = DomainCache(HTTPClient(config))
        cache.full_sync()

        if cache.fuzzy_check("login.bad.example.com"):
            ...

        cancel = threading.Event()
        cache.listen_for_updates(cancel)  # blocks until cancel.set()
    """

    def __init__(
        self,
        transport: Transport,
        update_overlap: timedelta = UPDATE_OVERLAP,
        feed_buffer_size: int = FEED_BUFFER_SIZE,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize an empty cache.

        Args:
            transport: Transport used to reach the server.
            update_overlap: Extra look-back added to incremental updates.
            feed_buffer_size: Capacity of the live feed buffer.
            clock: Returns the current time (aware UTC datetime).
        """
        self._transport = transport
        self._update_overlap = update_overlap
        self._feed_buffer_size = feed_buffer_size
        self._clock = clock

        self._lock = threading.Lock()
        self._domains: set[str] = set()
        self._last_updated: datetime | None = None
        self._streaming = False
        self._cancel: threading.Event | None = None
        self._notifier = ChangeNotifier()

    @property
    def transport(self) -> Transport:
        """Get the underlying transport for direct server calls."""
        return self._transport

    @property
    def last_updated(self) -> datetime | None:
        """Get the time of the last successful sync, None if never synced."""
        with self._lock:
            return self._last_updated

    @property
    def streaming(self) -> bool:
        """Check if a live feed session is active."""
        with self._lock:
            return self._streaming

    # === Queries ===

    def check(self, domain: str) -> bool:
        """Check if a domain is listed.

        Parent domains are not checked, use fuzzy_check() for that.
        """
        with self._lock:
            return domain in self._domains

    def fuzzy_check(self, domain: str) -> bool:
        """Check if a domain or one of its parent domains is listed.

        "foo.bar.bad.com" checks itself, "bar.bad.com" and "bad.com".
        """
        return any(self.check(variant) for variant in generate_variants(domain))

    def domains(self) -> list[str]:
        """Get a copy of all listed domains, in no particular order."""
        with self._lock:
            return list(self._domains)

    def size(self) -> int:
        """Get the number of listed domains."""
        with self._lock:
            return len(self._domains)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, domain: object) -> bool:
        return isinstance(domain, str) and self.check(domain)

    # === Notifications ===

    def subscribe(self) -> UpdateChannel:
        """Get a channel signalled whenever the domains change.

        Subscribing again closes the previous channel. Signals are dropped
        when the channel is full, so consumers should re-read the cache.
        """
        with self._lock:
            return self._notifier.subscribe()

    # === Synchronization ===

    def full_sync(self) -> int:
        """Replace the cache with every domain the server knows.

        Returns:
            Number of domains after the sync.
        """
        domains = self._transport.list_all()

        with self._lock:
            self._domains = set(domains)
            self._touch()
            self._notifier.notify()
            count = len(self._domains)

        logger.info("Full sync complete: %d domains", count)
        return count

    def update(self) -> int:
        """Apply the changes made since the last sync.

        The window reaches back to the last sync plus UPDATE_OVERLAP, in
        whole seconds rounded up. Before the first sync the window starts
        at the Unix epoch.

        Returns:
            Number of updates applied.
        """
        with self._lock:
            since = self._last_updated or EPOCH

        window = self._clock() - since + self._update_overlap
        seconds = max(0, math.ceil(window.total_seconds()))
        updates = self._transport.list_recent(seconds)

        with self._lock:
            self._touch()
            for update in updates:
                self._apply_update(update)
            if updates:
                self._notifier.notify()

        logger.info("Incremental update: %d updates over %ds", len(updates), seconds)
        return len(updates)

    def apply_live_update(self, update: DomainUpdate) -> None:
        """Apply one update received from the live feed."""
        with self._lock:
            self._touch()
            self._apply_update(update)
            self._notifier.notify()

    # === Live feed ===

    def listen_for_updates(self, cancel: threading.Event | None = None) -> None:
        """Listen to the live feed and apply updates as they arrive.

        Blocks until the session ends. A relay (this thread) reads the
        stream into a bounded buffer and a drain thread applies buffered
        updates one at a time, in arrival order.

        Args:
            cancel: Event that ends the session when set. A new one is
                created when omitted; stop_listening() sets it.

        Raises:
            AlreadyListeningError: If a session is already active.
            StreamTerminatedError: If the server ended the stream.
            APIError: On transport failures.
        """
        buffer: queue.Queue[DomainUpdate] = queue.Queue(maxsize=self._feed_buffer_size)
        relay_done = threading.Event()
        session_cancel = self._begin_session(cancel)

        drain = threading.Thread(
            target=self._drain,
            args=(buffer, session_cancel, relay_done),
            name="LiveFeedDrain",
            daemon=True,
        )
        drain.start()
        try:
            self._relay(session_cancel, buffer)
        finally:
            relay_done.set()
            drain.join()
            self._end_session()

    def relay_updates(
        self,
        cancel: threading.Event,
        sink: queue.Queue[DomainUpdate],
    ) -> None:
        """Run a live feed session that forwards updates into ``sink``.

        Nothing is applied to the cache; the owner of ``sink`` is expected
        to call apply_live_update(). The single-session rule still holds.

        Raises:
            AlreadyListeningError: If a session is already active.
            StreamTerminatedError: If the server ended the stream.
            APIError: On transport failures.
        """
        session_cancel = self._begin_session(cancel)
        try:
            self._relay(session_cancel, sink)
        finally:
            self._end_session()

    def stop_listening(self) -> None:
        """Cancel the active live feed session, if any."""
        with self._lock:
            if self._cancel is not None:
                self._cancel.set()

    def _begin_session(self, cancel: threading.Event | None) -> threading.Event:
        """Claim the single live feed slot.

        Raises:
            AlreadyListeningError: If a session is already active.
        """
        with self._lock:
            if self._streaming:
                raise AlreadyListeningError()
            self._streaming = True
            self._cancel = cancel if cancel is not None else threading.Event()
            logger.info("Live feed session started")
            return self._cancel

    def _end_session(self) -> None:
        """Release the live feed slot."""
        with self._lock:
            self._streaming = False
            self._cancel = None
        logger.info("Live feed session ended")

    def _relay(self, cancel: threading.Event, sink: queue.Queue[DomainUpdate]) -> None:
        LiveFeed(self._transport, sink).run(cancel)

    def _drain(
        self,
        buffer: queue.Queue[DomainUpdate],
        cancel: threading.Event,
        relay_done: threading.Event,
    ) -> None:
        """Apply buffered live updates until cancelled or the relay is done."""
        while not cancel.is_set():
            try:
                update = buffer.get(timeout=DRAIN_POLL_INTERVAL)
            except queue.Empty:
                if relay_done.is_set():
                    return
                continue
            self.apply_live_update(update)

    # === Persistence support ===

    def snapshot(self) -> Snapshot:
        """Get a copy of the cache state for persistence."""
        with self._lock:
            return Snapshot(last_updated=self._last_updated, domains=list(self._domains))

    def restore(self, snapshot: Snapshot) -> None:
        """Replace the cache state with a saved snapshot.

        This reinitialises the cache, so it is the one operation that may
        move last_updated backwards (or back to None): the timestamp is
        taken from the snapshot as is. Subscribers are not notified, the
        content came from storage.
        """
        with self._lock:
            self._domains = set(snapshot.domains)
            self._last_updated = snapshot.last_updated
        logger.info("Restored %d domains from snapshot", len(snapshot.domains))

    def close(self) -> None:
        """Stop the live feed, empty the cache and close the update channel."""
        with self._lock:
            if self._cancel is not None:
                self._cancel.set()
            self._domains = set()
            self._notifier.close()

    # === Internals (lock held) ===

    def _touch(self) -> None:
        """Record a successful sync. Time never moves backwards."""
        now = self._clock()
        if self._last_updated is None or now > self._last_updated:
            self._last_updated = now

    def _apply_update(self, update: DomainUpdate) -> None:
        """Add or remove the domains of one update."""
        if update.add:
            self._domains.update(update.domains)
        else:
            self._domains.difference_update(update.domains)
