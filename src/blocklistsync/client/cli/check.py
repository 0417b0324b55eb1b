"""Query commands for blocklistsync CLI.

Commands:
- check: Check whether a domain is listed
- size: Show how many domains are listed
"""

from __future__ import annotations

import sys

import click

from blocklistsync.client.api import APIError, HTTPClient
from blocklistsync.client.cache import DomainCache
from blocklistsync.client.cli.config import get_cache_file, require_server_config
from blocklistsync.client.persistence import read_cache_from
from blocklistsync.core.domains import generate_variants


def load_local_cache(client: HTTPClient) -> DomainCache:
    """Load the cache file or exit if there is none."""
    cache_file = get_cache_file()
    if not cache_file.exists():
        click.echo("Error: No local cache. Run 'blocklistsync sync' first.", err=True)
        sys.exit(1)

    cache = DomainCache(client)
    try:
        with cache_file.open("rb") as fp:
            read_cache_from(cache, fp)
    except APIError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    return cache


@click.command()
@click.argument("domain")
@click.option("--fuzzy", is_flag=True, help="Also check parent domains.")
@click.option("--remote", is_flag=True, help="Ask the server instead of the local cache.")
def check(domain: str, fuzzy: bool, remote: bool) -> None:
    """Check whether DOMAIN is listed.

    Exits with status 1 when the domain is listed.
    """
    with HTTPClient(require_server_config()) as client:
        if remote:
            candidates = generate_variants(domain) if fuzzy else [domain]
            try:
                listed = any(client.check(candidate) for candidate in candidates)
            except APIError as e:
                click.echo(f"Error: {e}", err=True)
                sys.exit(2)
        else:
            cache = load_local_cache(client)
            listed = cache.fuzzy_check(domain) if fuzzy else cache.check(domain)

    if listed:
        click.echo(f"{domain}: listed")
        sys.exit(1)
    click.echo(f"{domain}: not listed")


@click.command()
@click.option("--remote", is_flag=True, help="Ask the server instead of the local cache.")
def size(remote: bool) -> None:
    """Show the number of listed domains."""
    with HTTPClient(require_server_config()) as client:
        if remote:
            try:
                count = client.size()
            except APIError as e:
                click.echo(f"Error: {e}", err=True)
                sys.exit(1)
        else:
            count = load_local_cache(client).size()

    click.echo(str(count))
