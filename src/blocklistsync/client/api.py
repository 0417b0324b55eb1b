"""HTTP client for the blocklist server API.

This module provides:
- HTTPClient: Transport implementation over HTTP and WebSocket
- APIError and its subclasses for transport failures

The client does not cache anything; every call goes to the server.
Use DomainCache for a local, synchronized copy of the list.
"""

from __future__ import annotations

import json
import logging
import math
import ssl
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK, WebSocketException
from websockets.frames import CloseCode
from websockets.sync.client import connect

from blocklistsync.core.transport import Transport
from blocklistsync.core.types import DomainUpdate, utcnow

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterator

    from blocklistsync.core.config import ServerConfig

logger = logging.getLogger(__name__)

ENDPOINT_CHECK = "/v2/check/"
ENDPOINT_ALL = "/v2/all/"
ENDPOINT_RECENT = "/v2/recent/"
ENDPOINT_SIZE = "/v2/dbsize/"


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportError(APIError):
    """Network or connection failure talking to the server."""


class UnexpectedStatusError(APIError):
    """The server answered with a non-success status code."""

    def __init__(self, endpoint: str, status_code: int, detail: str | None = None) -> None:
        message = f'unexpected status code: received "{status_code}" on "{endpoint}"'
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, status_code)
        self.endpoint = endpoint
        self.detail = detail


class DecodeError(APIError):
    """The server sent a body that could not be decoded."""


def format_validation_detail(data: Any) -> str | None:
    """Format a 422 validation body into a readable message.

    The server reports validation problems as
    ``{"detail": [{"loc": [...], "msg": "...", "type": "..."}]}``.

    Returns:
        Formatted message, or None if the body has no such details.
    """
    if not isinstance(data, dict) or not isinstance(data.get("detail"), list):
        return None

    parts = []
    for item in data["detail"]:
        if not isinstance(item, dict):
            continue
        locations = ",".join(f' "{loc}"' for loc in item.get("loc", []))
        parts.append(
            f'Type "{item.get("type", "")}" Message "{item.get("msg", "")}" '
            f"Locations:{locations}"
        )
    if not parts:
        return "validation error"
    return "validation error: " + ", ".join(parts)


class HTTPClient(Transport):
    """HTTP client for the blocklist server API."""

    def __init__(self, config: ServerConfig) -> None:
        """Initialize the client.

        Args:
            config: Server configuration with URL, identity and headers.
        """
        self._config = config
        self._client = httpx.Client(
            base_url=config.server_url,
            timeout=config.timeout,
            headers=config.headers,
            verify=config.verify_ssl,
        )

    @property
    def config(self) -> ServerConfig:
        """Get the server configuration."""
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _get(self, endpoint: str, path: str = "") -> httpx.Response:
        """Send a GET request and check the status.

        Args:
            endpoint: API endpoint, used in error messages.
            path: Suffix appended to the endpoint (domain, seconds).

        Raises:
            TransportError: On connection failures.
            UnexpectedStatusError: On any status other than 200.
        """
        try:
            response = self._client.get(endpoint + path)
        except httpx.RequestError as e:
            raise TransportError(f"request to {self._config.server_url}{endpoint} failed: {e}") from e

        if response.status_code != 200:
            detail = None
            if response.status_code == 422:
                try:
                    detail = format_validation_detail(response.json())
                except ValueError:
                    detail = None
            raise UnexpectedStatusError(
                self._config.server_url + endpoint, response.status_code, detail
            )
        return response

    def _json(self, response: httpx.Response, endpoint: str) -> Any:
        """Decode a JSON body.

        Raises:
            DecodeError: If the body is not valid JSON.
        """
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"invalid JSON from {self._config.server_url}{endpoint}: {e}") from e

    # === Queries ===

    def check(self, domain: str) -> bool:
        """Check if a domain is listed on the server.

        Parent domains are not considered.

        Args:
            domain: Domain to check.

        Returns:
            True if the server flags the domain.
        """
        response = self._get(ENDPOINT_CHECK, quote(domain, safe=""))
        return response.text.strip() == "true"

    def size(self) -> int:
        """Get the total number of listed domains."""
        response = self._get(ENDPOINT_SIZE)
        try:
            return int(response.text.strip())
        except ValueError as e:
            raise DecodeError(
                f"invalid size from {self._config.server_url}{ENDPOINT_SIZE}: {response.text[:100]!r}"
            ) from e

    # === Synchronization ===

    def list_all(self) -> list[str]:
        """Get every listed domain.

        Returns:
            List of domains.
        """
        data = self._json(self._get(ENDPOINT_ALL), ENDPOINT_ALL)
        if not isinstance(data, list) or not all(isinstance(d, str) for d in data):
            raise DecodeError(f"expecting a list of domains from {self._config.server_url}{ENDPOINT_ALL}")
        return data

    def list_recent(self, seconds: int) -> list[DomainUpdate]:
        """Get the updates made in the last ``seconds`` seconds.

        Args:
            seconds: Look-back window in seconds.

        Returns:
            Updates in server order.

        Raises:
            InvalidUpdateError: If an entry has an unknown type.
        """
        data = self._json(self._get(ENDPOINT_RECENT, str(seconds)), ENDPOINT_RECENT)
        if not isinstance(data, list):
            raise DecodeError(f"expecting a list of updates from {self._config.server_url}{ENDPOINT_RECENT}")
        return [DomainUpdate.from_dict(entry) for entry in data]

    def list_after(self, after: datetime) -> list[DomainUpdate]:
        """Get the updates made after a point in time.

        The API works in whole seconds, so the window is rounded up.
        Naive datetimes are taken as UTC.

        Args:
            after: Start of the window.

        Returns:
            Updates in server order.
        """
        if after.tzinfo is None:
            after = after.replace(tzinfo=UTC)
        seconds = max(0, math.ceil((utcnow() - after).total_seconds()))
        return self.list_recent(seconds)

    # === Live feed ===

    def _ssl_context(self) -> ssl.SSLContext | None:
        """Build the SSL context for wss:// feeds."""
        if not self._config.feed_url.startswith("wss://"):
            return None
        ssl_context = ssl.create_default_context()
        if not self._config.verify_ssl:
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
        return ssl_context

    def open_stream(self, cancel: threading.Event) -> Iterator[DomainUpdate]:
        """Connect to the live feed and yield updates as they arrive.

        The iterator ends cleanly when ``cancel`` is set or the server
        closes the connection normally.

        Args:
            cancel: Event that stops the stream when set.

        Raises:
            TransportError: If the connection fails or drops abnormally.
            DecodeError: If a frame is not valid JSON.
            InvalidUpdateError: If a frame has an unknown update type.
        """
        url = self._config.feed_url
        headers = {k: v for k, v in self._config.headers.items() if k.lower() != "user-agent"}
        user_agent = next(
            (v for k, v in self._config.headers.items() if k.lower() == "user-agent"), None
        )

        try:
            ws = connect(
                url,
                ssl=self._ssl_context(),
                additional_headers=headers,
                user_agent_header=user_agent,
                open_timeout=self._config.feed_timeout,
            )
        except (WebSocketException, OSError) as e:
            raise TransportError(f"failed to connect to {url}: {e}") from e

        logger.info("Connected to live feed %s", url)
        close_code = CloseCode.NORMAL_CLOSURE
        close_reason = ""
        try:
            while not cancel.is_set():
                try:
                    message = ws.recv(timeout=self._config.poll_interval)
                except TimeoutError:
                    continue
                except ConnectionClosedOK:
                    logger.info("Live feed closed by server")
                    return
                except (ConnectionClosedError, OSError) as e:
                    raise TransportError(f"live feed connection lost: {e}") from e

                try:
                    if isinstance(message, bytes):
                        message = message.decode("utf-8")
                    data = json.loads(message)
                except (json.JSONDecodeError, UnicodeDecodeError) as e:
                    close_code, close_reason = CloseCode.INTERNAL_ERROR, "invalid json error"
                    raise DecodeError(f"invalid live feed message: {message[:100]!r}") from e
                try:
                    update = DomainUpdate.from_dict(data)
                except ValueError:
                    close_code, close_reason = CloseCode.INTERNAL_ERROR, "internal error"
                    raise

                logger.debug(
                    "Received live update: %s %d domains",
                    "add" if update.add else "delete",
                    len(update.domains),
                )
                yield update
        finally:
            try:
                ws.close(code=close_code, reason=close_reason)
            except WebSocketException as e:
                logger.debug("Error closing live feed: %s", e)
            logger.info("Disconnected from live feed")
