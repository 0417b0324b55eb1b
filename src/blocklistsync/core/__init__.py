"""Core module - Shared configuration, types, and domain helpers."""

from blocklistsync.core.config import ServerConfig
from blocklistsync.core.domains import generate_variants
from blocklistsync.core.types import (
    DomainUpdate,
    InvalidUpdateError,
    Snapshot,
    format_timestamp,
    parse_timestamp,
    utcnow,
)

__all__ = [
    # Config
    "ServerConfig",
    # Domains
    "generate_variants",
    # Types
    "DomainUpdate",
    "InvalidUpdateError",
    "Snapshot",
    "format_timestamp",
    "parse_timestamp",
    "utcnow",
]
