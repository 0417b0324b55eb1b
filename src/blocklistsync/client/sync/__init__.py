"""Synchronization machinery for the domain cache.

Architecture:
    Transport ─► LiveFeed ─► queue ─► DomainCache
                  AutoSync ──────────┘

Components:
- **LiveFeed**: Relays a Transport stream into a bounded queue
- **AutoSync**: Periodic full/incremental syncs plus an optional live feed
- **SyncError**: Base of AlreadyListeningError and StreamTerminatedError
"""

from blocklistsync.client.sync.autosync import AutoSync, AutoSyncStats, auto_sync
from blocklistsync.client.sync.feed import FEED_BUFFER_SIZE, LiveFeed
from blocklistsync.client.sync.types import (
    AlreadyListeningError,
    StreamTerminatedError,
    SyncError,
)

__all__ = [
    # Orchestration
    "AutoSync",
    "AutoSyncStats",
    "auto_sync",
    # Live feed
    "FEED_BUFFER_SIZE",
    "LiveFeed",
    # Errors
    "AlreadyListeningError",
    "StreamTerminatedError",
    "SyncError",
]
