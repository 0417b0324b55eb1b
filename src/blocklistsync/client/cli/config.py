"""Configuration utilities for the blocklistsync CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from blocklistsync.core.config import ServerConfig


def get_config_dir() -> Path:
    """Get the configuration directory for blocklistsync.

    Returns:
        Path to ~/.blocklistsync or equivalent.
    """
    return Path.home() / ".blocklistsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def get_cache_file() -> Path:
    """Get the cache snapshot path.

    Returns:
        Path to the cache file (configured or default ~/.blocklistsync/cache.json).
    """
    config = load_config()
    if config.get("cache_file"):
        return Path(config["cache_file"]).expanduser().resolve()
    return get_config_dir() / "cache.json"


def require_server_config() -> ServerConfig:
    """Build the ServerConfig from the config file or exit.

    Returns:
        Server configuration.
    """
    config = load_config()
    if not config.get("server_url") or not config.get("identity"):
        click.echo("Error: Not configured. Run 'blocklistsync configure' first.", err=True)
        sys.exit(1)
    return ServerConfig(server_url=config["server_url"], identity=config["identity"])
