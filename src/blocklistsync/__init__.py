"""blocklistsync - Local, synchronized mirror of a remote domain blocklist.

Usage:
    from blocklistsync import DomainCache, HTTPClient, ServerConfig

    config = ServerConfig(server_url="https://phish.example.com", identity="Foo Bot (foo@example.com)")
    cache = DomainCache(HTTPClient(config))
    cache.full_sync()
    cache.fuzzy_check("login.bad.example.com")
"""

from blocklistsync.client.api import (
    APIError,
    DecodeError,
    HTTPClient,
    TransportError,
    UnexpectedStatusError,
)
from blocklistsync.client.cache import DomainCache
from blocklistsync.client.notifications import ChannelClosedError, UpdateChannel
from blocklistsync.client.persistence import (
    dump_cache,
    load_cache,
    read_cache_from,
    save_on_change,
    write_cache_into,
)
from blocklistsync.client.sync import (
    AlreadyListeningError,
    AutoSync,
    StreamTerminatedError,
    SyncError,
    auto_sync,
)
from blocklistsync.core import (
    DomainUpdate,
    InvalidUpdateError,
    ServerConfig,
    Snapshot,
    generate_variants,
)
from blocklistsync.core.transport import Transport

__version__ = "0.1.0"

__all__ = [
    # Cache
    "DomainCache",
    "UpdateChannel",
    "ChannelClosedError",
    # Transport
    "HTTPClient",
    "ServerConfig",
    "Transport",
    # Sync
    "AutoSync",
    "auto_sync",
    # Persistence
    "dump_cache",
    "load_cache",
    "read_cache_from",
    "save_on_change",
    "write_cache_into",
    # Types
    "DomainUpdate",
    "Snapshot",
    "generate_variants",
    # Errors
    "APIError",
    "AlreadyListeningError",
    "DecodeError",
    "InvalidUpdateError",
    "StreamTerminatedError",
    "SyncError",
    "TransportError",
    "UnexpectedStatusError",
]
