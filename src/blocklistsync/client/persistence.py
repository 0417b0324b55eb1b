"""Saving and loading the domain cache.

This module provides:
- dump_cache / load_cache: Snapshot <-> JSON bytes
- write_cache_into / read_cache_from: Snapshot <-> file objects
- save_on_change: Rewrite a file every time the cache changes

File format:
    {"last_updated": "2024-05-01T12:00:00+00:00", "domains": ["a.com", ...]}

Domain order is not significant. Timestamps are RFC 3339.
"""

from __future__ import annotations

import json
import logging
from typing import IO, TYPE_CHECKING

from blocklistsync.client.api import DecodeError
from blocklistsync.client.notifications import ChannelClosedError
from blocklistsync.core.types import Snapshot

if TYPE_CHECKING:
    import threading

    from blocklistsync.client.cache import DomainCache

logger = logging.getLogger(__name__)

WAIT_POLL_INTERVAL = 0.5  # seconds


def dump_cache(cache: DomainCache) -> bytes:
    """Serialize the cache state.

    Args:
        cache: Cache to serialize.

    Returns:
        UTF-8 encoded JSON snapshot.
    """
    return json.dumps(cache.snapshot().to_dict()).encode("utf-8")


def load_cache(data: bytes | str) -> Snapshot:
    """Deserialize a cache snapshot.

    Args:
        data: JSON snapshot as produced by dump_cache().

    Returns:
        The decoded snapshot.

    Raises:
        DecodeError: If the data is not a valid snapshot.
    """
    try:
        raw = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"invalid cache snapshot: {e}") from e
    if not isinstance(raw, dict):
        raise DecodeError("invalid cache snapshot: expecting an object")
    try:
        return Snapshot.from_dict(raw)
    except ValueError as e:
        raise DecodeError(f"invalid cache snapshot: {e}") from e


def write_cache_into(cache: DomainCache, fp: IO[bytes]) -> None:
    """Save the cache into a binary file object.

    Seekable files are rewritten from the start and truncated, so the
    same handle can be reused for every save.
    """
    data = dump_cache(cache)
    seekable = fp.seekable()
    if seekable:
        fp.seek(0)
    fp.write(data)
    if seekable:
        fp.truncate()
    fp.flush()


def read_cache_from(cache: DomainCache, fp: IO[bytes]) -> Snapshot:
    """Load a saved snapshot from a binary file object into the cache.

    Returns:
        The snapshot that was restored.
    """
    snapshot = load_cache(fp.read())
    cache.restore(snapshot)
    return snapshot


def save_on_change(
    cache: DomainCache,
    fp: IO[bytes],
    cancel: threading.Event,
) -> None:
    """Save the cache every time it changes.

    Subscribes to the cache, which replaces any previous subscriber.
    Blocks until ``cancel`` is set or the channel is closed (by another
    subscriber or cache.close()). Write errors are raised.
    """
    channel = cache.subscribe()
    saves = 0
    while not cancel.is_set():
        try:
            if not channel.get(timeout=WAIT_POLL_INTERVAL):
                continue
        except ChannelClosedError:
            logger.debug("Update channel closed, stopping saves")
            break
        write_cache_into(cache, fp)
        saves += 1
        logger.debug("Saved cache (%d saves)", saves)
