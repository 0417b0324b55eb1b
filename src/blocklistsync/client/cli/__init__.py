"""Command-line interface for blocklistsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- configure: Store server URL, identity and cache location
- sync: Synchronize the local cache once
- watch: Keep the local cache synchronized until interrupted
- check: Check whether a domain is listed
- size: Show the number of listed domains
"""

from __future__ import annotations

import logging

import click

from blocklistsync.client.cli.check import check, size
from blocklistsync.client.cli.config import (
    get_cache_file,
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
)
from blocklistsync.client.cli.configure import configure
from blocklistsync.client.cli.sync import sync, watch


def configure_logging(verbose: bool) -> None:
    """Send blocklistsync logs to stderr.

    Args:
        verbose: Log DEBUG and up instead of WARNING and up.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    package_logger = logging.getLogger("blocklistsync")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False


@click.group()
@click.version_option(package_name="blocklistsync")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs.")
def cli(verbose: bool) -> None:
    """blocklistsync - Local mirror of a remote domain blocklist."""
    configure_logging(verbose)


cli.add_command(configure)

# Sync commands
cli.add_command(sync)
cli.add_command(watch)

# Query commands
cli.add_command(check)
cli.add_command(size)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "configure_logging",
    "get_cache_file",
    "get_config_dir",
    "get_config_file",
    "load_config",
    "main",
    "save_config",
]
