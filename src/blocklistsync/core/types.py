"""Shared types for blocklistsync.

This module provides:
- DomainUpdate: One batch of domain additions or deletions
- Snapshot: The persisted form of a domain cache
- InvalidUpdateError: Raised for update entries with an unknown type
- Timestamp helpers for the snapshot format
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

UPDATE_ADD = "add"
UPDATE_DELETE = "delete"

# Fractional seconds beyond microseconds (e.g. RFC 3339 nanoseconds)
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


class InvalidUpdateError(ValueError):
    """An update entry is not a valid add/delete record."""


@dataclass(frozen=True)
class DomainUpdate:
    """An update to the domain list.

    Depending on ``add`` the domains are added to or removed from the
    cache. A single update never mixes additions and deletions.

    Attributes:
        add: True for additions, False for deletions.
        domains: Domains affected, in server order.
    """

    add: bool
    domains: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> DomainUpdate:
        """Create from an API update entry.

        The entry looks like ``{"type": "add", "domains": ["a.com"]}``.

        Raises:
            InvalidUpdateError: If the entry is malformed or its type
                is neither "add" nor "delete".
        """
        if not isinstance(data, dict):
            raise InvalidUpdateError(f"expecting an update object, received {data!r}")

        update_type = data.get("type")
        if update_type == UPDATE_ADD:
            add = True
        elif update_type == UPDATE_DELETE:
            add = False
        else:
            raise InvalidUpdateError(
                f'expecting "add" or "delete" in update type, received "{update_type}"'
            )

        domains = data.get("domains") or []
        if not isinstance(domains, list) or not all(isinstance(d, str) for d in domains):
            raise InvalidUpdateError(f"expecting a list of domains, received {domains!r}")
        return cls(add=add, domains=tuple(domains))

    def to_dict(self) -> dict[str, Any]:
        """Convert to the API update entry format."""
        return {
            "type": UPDATE_ADD if self.add else UPDATE_DELETE,
            "domains": list(self.domains),
        }


@dataclass
class Snapshot:
    """Point-in-time copy of a domain cache, as stored on disk.

    Attributes:
        last_updated: Time of the last successful sync, None if never synced.
        domains: Cached domains, in no particular order.
    """

    last_updated: datetime | None = None
    domains: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snapshot:
        """Create from the decoded snapshot object."""
        raw_time = data.get("last_updated")
        domains = data.get("domains") or []
        if not isinstance(domains, list) or not all(isinstance(d, str) for d in domains):
            raise ValueError("snapshot domains must be a list of strings")
        return cls(
            last_updated=parse_timestamp(raw_time) if raw_time else None,
            domains=list(domains),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the snapshot object."""
        return {
            "last_updated": format_timestamp(self.last_updated),
            "domains": list(self.domains),
        }


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def format_timestamp(value: datetime | None) -> str:
    """Format a timestamp as RFC 3339.

    None is written as the Unix epoch, meaning "never synced".
    """
    if value is None:
        value = datetime.fromtimestamp(0, UTC)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp.

    Accepts a ``Z`` suffix and fractional seconds finer than microseconds,
    which are truncated. Naive values are taken as UTC.

    Raises:
        ValueError: If the value is not a valid timestamp.
    """
    if not isinstance(value, str):
        raise ValueError(f"expecting a timestamp string, received {value!r}")
    parsed = datetime.fromisoformat(_EXTRA_FRACTION.sub(r"\1", value.strip()))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
