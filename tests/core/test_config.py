"""Tests for core configuration classes."""

from __future__ import annotations

from blocklistsync.core.config import DEFAULT_USER_AGENT, ServerConfig, fix_headers


class TestServerConfig:
    """Tests for ServerConfig class."""

    def test_init_basic(self) -> None:
        """Should initialize with required fields and defaults."""
        config = ServerConfig(server_url="https://example.com", identity="Bot (bot@example.com)")
        assert config.server_url == "https://example.com"
        assert config.identity == "Bot (bot@example.com)"
        assert config.timeout == 30.0
        assert config.feed_timeout == 5.0
        assert config.verify_ssl is True

    def test_default_headers(self) -> None:
        """Should send a User-Agent and the identity by default."""
        config = ServerConfig(server_url="https://example.com", identity="bot")
        assert config.headers == {"User-Agent": DEFAULT_USER_AGENT, "X-Identity": "bot"}

    def test_url_trailing_slash_removed(self) -> None:
        """Should strip trailing slash from server URL."""
        config = ServerConfig(server_url="https://example.com/", identity="bot")
        assert config.server_url == "https://example.com"

    def test_feed_url_https(self) -> None:
        """Should convert HTTPS to WSS for the feed URL."""
        config = ServerConfig(server_url="https://example.com", identity="bot")
        assert config.feed_url == "wss://example.com/feed"

    def test_feed_url_http(self) -> None:
        """Should convert HTTP to WS for the feed URL."""
        config = ServerConfig(server_url="http://localhost:8000", identity="bot")
        assert config.feed_url == "ws://localhost:8000/feed"

    def test_is_secure(self) -> None:
        """Should report HTTPS URLs as secure."""
        assert ServerConfig(server_url="https://example.com", identity="bot").is_secure
        assert not ServerConfig(server_url="http://example.com", identity="bot").is_secure

    def test_custom_headers_keep_identity(self) -> None:
        """A custom X-Identity header should be overwritten by the identity."""
        config = ServerConfig(
            server_url="https://example.com",
            identity="bot",
            headers={"x-identity": "impostor", "Accept": "application/json"},
        )
        assert config.headers == {"Accept": "application/json", "X-Identity": "bot"}

    def test_with_header(self) -> None:
        """with_header should return a copy with the header set."""
        config = ServerConfig(server_url="https://example.com", identity="bot")
        changed = config.with_header("X-Trace", "1")
        assert changed.headers["X-Trace"] == "1"
        assert "X-Trace" not in config.headers

    def test_with_header_cannot_override_identity(self) -> None:
        """Setting X-Identity through with_header should have no effect."""
        config = ServerConfig(server_url="https://example.com", identity="bot")
        assert config.with_header("X-Identity", "other").headers["X-Identity"] == "bot"

    def test_without_header(self) -> None:
        """without_header should drop the header, case-insensitively."""
        config = ServerConfig(server_url="https://example.com", identity="bot")
        changed = config.without_header("user-agent")
        assert "User-Agent" not in changed.headers
        assert changed.headers["X-Identity"] == "bot"

    def test_without_identity_header_is_restored(self) -> None:
        """The identity header cannot be removed."""
        config = ServerConfig(server_url="https://example.com", identity="bot")
        assert config.without_header("X-Identity").headers["X-Identity"] == "bot"


class TestFixHeaders:
    """Tests for fix_headers()."""

    def test_none_headers(self) -> None:
        """None should produce only the identity header."""
        assert fix_headers(None, "bot") == {"X-Identity": "bot"}

    def test_does_not_mutate_input(self) -> None:
        """The input dict should be left untouched."""
        headers = {"X-Identity": "old"}
        fix_headers(headers, "bot")
        assert headers == {"X-Identity": "old"}
