"""Configure command for blocklistsync CLI.

Commands:
- configure: Store the server URL, identity and cache location
"""

from __future__ import annotations

from pathlib import Path

import click

from blocklistsync.client.cli.config import get_config_file, load_config, save_config


@click.command()
@click.option("--server-url", required=True, help="Root URL of the blocklist API.")
@click.option(
    "--identity",
    required=True,
    help='Application name and contact, e.g. "Foo Bot (foo@example.com)".',
)
@click.option(
    "--cache-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to store the cache (default: ~/.blocklistsync/cache.json).",
)
def configure(server_url: str, identity: str, cache_file: Path | None) -> None:
    """Store connection settings."""
    config = load_config()
    config["server_url"] = server_url.rstrip("/")
    config["identity"] = identity
    if cache_file is not None:
        config["cache_file"] = str(cache_file.expanduser().resolve())
    save_config(config)
    click.echo(f"Configuration saved to {get_config_file()}")
