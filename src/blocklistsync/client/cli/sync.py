"""Sync commands for blocklistsync CLI.

Commands:
- sync: Bring the cache file up to date once
- watch: Keep the cache file up to date until interrupted
"""

from __future__ import annotations

import logging
import sys
import threading

import click

from blocklistsync.client.api import APIError, HTTPClient
from blocklistsync.client.cache import DomainCache
from blocklistsync.client.cli.config import get_cache_file, require_server_config
from blocklistsync.client.persistence import read_cache_from, save_on_change, write_cache_into
from blocklistsync.client.sync import SyncError, auto_sync
from blocklistsync.core.types import InvalidUpdateError

logger = logging.getLogger(__name__)

SYNC_EXCEPTIONS: tuple[type[Exception], ...] = (APIError, SyncError, InvalidUpdateError, OSError)


@click.command()
@click.option("--full", is_flag=True, help="Download the whole list instead of recent changes.")
def sync(full: bool) -> None:
    """Synchronize the local cache with the server.

    Fetches recent changes when a cache exists, the whole list otherwise.
    """
    server_config = require_server_config()
    cache_file = get_cache_file()

    with HTTPClient(server_config) as client:
        cache = DomainCache(client)
        try:
            if cache_file.exists() and not full:
                with cache_file.open("rb") as fp:
                    read_cache_from(cache, fp)
                applied = cache.update()
                click.echo(f"Applied {applied} updates")
            else:
                cache.full_sync()

            cache_file.parent.mkdir(parents=True, exist_ok=True)
            with cache_file.open("wb") as fp:
                write_cache_into(cache, fp)
        except SYNC_EXCEPTIONS as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    click.echo(f"Cache has {cache.size()} domains ({cache_file})")


@click.command()
@click.option(
    "--realtime/--no-realtime",
    default=True,
    help="Listen to the live feed (default: on).",
)
@click.option(
    "--recent-interval",
    type=click.FloatRange(min=0),
    default=300.0,
    show_default=True,
    help="Seconds between incremental updates (0 disables).",
)
@click.option(
    "--full-interval",
    type=click.FloatRange(min=0),
    default=86400.0,
    show_default=True,
    help="Seconds between full syncs (0 disables).",
)
def watch(realtime: bool, recent_interval: float, full_interval: float) -> None:
    """Keep the local cache in sync until interrupted.

    The cache file is rewritten after every change.
    """
    server_config = require_server_config()
    cache_file = get_cache_file()
    cache_file.parent.mkdir(parents=True, exist_ok=True)

    cancel = threading.Event()
    mode = "r+b" if cache_file.exists() else "w+b"

    with HTTPClient(server_config) as client, cache_file.open(mode) as fp:
        cache = DomainCache(client)
        if mode == "r+b":
            try:
                read_cache_from(cache, fp)
            except APIError as e:
                logger.warning("Ignoring unreadable cache file %s: %s", cache_file, e)

        saver = threading.Thread(
            target=save_on_change,
            args=(cache, fp, cancel),
            name="CacheSaver",
            daemon=True,
        )
        saver.start()

        click.echo(f"Watching {server_config.server_url} (Ctrl+C to stop)")
        failed = False
        try:
            auto_sync(
                cache,
                cancel,
                realtime=realtime,
                recent_interval=recent_interval,
                full_sync_interval=full_interval,
            )
        except KeyboardInterrupt:
            click.echo("\nStopping...")
        except SYNC_EXCEPTIONS as e:
            click.echo(f"Error: {e}", err=True)
            failed = True
        finally:
            cancel.set()
            saver.join()
            write_cache_into(cache, fp)

    click.echo(f"Cache has {cache.size()} domains ({cache_file})")
    if failed:
        sys.exit(1)
