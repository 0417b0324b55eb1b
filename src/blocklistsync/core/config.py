"""Shared configuration classes for blocklistsync.

This module defines the connection settings used by the HTTP client and
the live feed WebSocket connection.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field

DEFAULT_USER_AGENT = "blocklistsync/0.1 (https://github.com/blocklistsync/blocklistsync)"
IDENTITY_HEADER = "X-Identity"


@dataclass
class ServerConfig:
    """Configuration for connecting to a blocklist server.

    Used by both the HTTP calls and the WebSocket feed of HTTPClient
    so that both share the same headers and TLS settings.

    Attributes:
        server_url: Root URL of the API without version suffix
            (e.g., "https://phish.example.com").
        identity: Identifies the application and a contact, sent as
            X-Identity (e.g., "Foo Bot (foo@example.com)").
        timeout: HTTP request timeout in seconds.
        feed_timeout: Timeout for dialing the live feed in seconds.
        poll_interval: How often a blocked feed read checks for cancellation.
        verify_ssl: Whether to verify SSL certificates (default True).
        headers: Extra headers sent with every request. X-Identity is
            always overwritten by ``identity``.
    """

    server_url: str
    identity: str
    timeout: float = 30.0
    feed_timeout: float = 5.0
    poll_interval: float = 1.0
    verify_ssl: bool = True
    headers: dict[str, str] = field(
        default_factory=lambda: {"User-Agent": DEFAULT_USER_AGENT}
    )

    def __post_init__(self) -> None:
        """Normalize server URL and pin the identity header."""
        self.server_url = self.server_url.rstrip("/")
        self.headers = fix_headers(self.headers, self.identity)

    @property
    def feed_url(self) -> str:
        """Get WebSocket URL for the live update feed.

        Returns:
            WebSocket URL of the /feed endpoint.
        """
        url = self.server_url
        if url.startswith("https://"):
            url = "wss://" + url[8:]
        elif url.startswith("http://"):
            url = "ws://" + url[7:]
        return f"{url}/feed"

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS/WSS.

        Returns:
            True if server uses HTTPS.
        """
        return self.server_url.startswith("https://")

    def with_header(self, key: str, value: str) -> ServerConfig:
        """Return a copy with one header set.

        Setting X-Identity this way has no effect; use ``identity``.
        """
        headers = dict(self.headers)
        headers[key] = value
        return dataclasses.replace(self, headers=headers)

    def without_header(self, key: str) -> ServerConfig:
        """Return a copy with one header removed (case-insensitive)."""
        headers = {k: v for k, v in self.headers.items() if k.lower() != key.lower()}
        return dataclasses.replace(self, headers=headers)


def fix_headers(headers: dict[str, str] | None, identity: str) -> dict[str, str]:
    """Copy headers and force X-Identity to the given identity.

    Args:
        headers: Headers to copy (None means no extra headers).
        identity: Value for the X-Identity header.

    Returns:
        New header dict with exactly one X-Identity entry.
    """
    fixed = {
        k: v
        for k, v in (headers or {}).items()
        if k.lower() != IDENTITY_HEADER.lower()
    }
    fixed[IDENTITY_HEADER] = identity
    return fixed
