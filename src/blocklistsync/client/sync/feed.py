"""Live feed relay.

This module provides:
- LiveFeed: Reads a Transport stream and forwards updates into a bounded queue

Architecture:
    Server ─ws─► Transport.open_stream ─► LiveFeed ─► queue ─► consumer
                                                     (maxsize 8)

The relay blocks while the queue is full, so a slow consumer slows the
reading of the socket instead of growing memory. Blocking puts wake up
periodically to notice cancellation.
"""

from __future__ import annotations

import logging
import queue
from typing import TYPE_CHECKING

from blocklistsync.client.api import TransportError
from blocklistsync.client.sync.types import StreamTerminatedError

if TYPE_CHECKING:
    import threading

    from blocklistsync.core.transport import Transport
    from blocklistsync.core.types import DomainUpdate

logger = logging.getLogger(__name__)

FEED_BUFFER_SIZE = 8
PUT_POLL_INTERVAL = 0.1  # seconds


class LiveFeed:
    """Relays live updates from a Transport into a queue.

    Usage:
        buffer: queue.Queue[DomainUpdate] = queue.Queue(maxsize=FEED_BUFFER_SIZE)
        LiveFeed(transport, buffer).run(cancel)  # blocks
    """

    def __init__(
        self,
        transport: Transport,
        sink: queue.Queue[DomainUpdate],
        put_interval: float = PUT_POLL_INTERVAL,
    ) -> None:
        """Initialize the relay.

        Args:
            transport: Transport providing the stream.
            sink: Queue receiving updates in arrival order.
            put_interval: How often a blocked put checks for cancellation.
        """
        self._transport = transport
        self._sink = sink
        self._put_interval = put_interval
        self.forwarded = 0

    def run(self, cancel: threading.Event) -> None:
        """Relay updates until the stream stops.

        Args:
            cancel: Event that ends the session when set.

        Raises:
            StreamTerminatedError: If the server ended the stream while
                nobody had cancelled it.
            APIError: Any transport failure, unless cancellation caused it.
            InvalidUpdateError: If the stream sent an invalid update.
        """
        stream = self._transport.open_stream(cancel)
        try:
            for update in stream:
                if not self._forward(update, cancel):
                    break
        except TransportError as e:
            if not cancel.is_set():
                raise
            logger.debug("Live feed error after cancellation: %s", e)
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()

        if cancel.is_set():
            logger.info("Live feed cancelled after %d updates", self.forwarded)
            return
        raise StreamTerminatedError("live feed closed by server")

    def _forward(self, update: DomainUpdate, cancel: threading.Event) -> bool:
        """Put an update into the sink, waiting while it is full.

        Returns:
            True if forwarded, False if cancelled while waiting.
        """
        while not cancel.is_set():
            try:
                self._sink.put(update, timeout=self._put_interval)
            except queue.Full:
                continue
            self.forwarded += 1
            return True
        return False
