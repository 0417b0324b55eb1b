"""Transport abstraction used by the domain cache.

This module provides:
- Transport: Abstract base class for the remote blocklist API

The cache never talks to the network directly. Everything goes through a
Transport so that the HTTP client can be swapped for a fake in tests or
another backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterator

    from blocklistsync.core.types import DomainUpdate


class Transport(ABC):
    """Abstract interface to a remote blocklist.

    Implementations must be safe for concurrent use: the cache calls
    list_recent() from a polling loop while open_stream() runs on
    another thread.
    """

    @abstractmethod
    def list_all(self) -> list[str]:
        """Get every listed domain.

        Returns:
            All domains known to the server.
        """

    @abstractmethod
    def list_recent(self, seconds: int) -> list[DomainUpdate]:
        """Get the updates made in the last ``seconds`` seconds.

        Args:
            seconds: Size of the look-back window.

        Returns:
            Updates in the order the server applied them.
        """

    @abstractmethod
    def check(self, domain: str) -> bool:
        """Ask the server whether a domain is listed (no parent lookup)."""

    @abstractmethod
    def size(self) -> int:
        """Get the number of domains the server holds."""

    @abstractmethod
    def open_stream(self, cancel: threading.Event) -> Iterator[DomainUpdate]:
        """Stream live updates.

        The iterator ends without error once ``cancel`` is set or the
        server closes the stream normally, and raises on any failure.

        Args:
            cancel: Event that stops the stream when set.

        Returns:
            Iterator over updates as they arrive.
        """
