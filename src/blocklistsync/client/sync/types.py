"""Exceptions for sync operations.

This module provides:
- SyncError: Base exception for cache synchronization errors
- AlreadyListeningError: A live feed session is already active
- StreamTerminatedError: The live feed ended without being cancelled
"""

from __future__ import annotations


class SyncError(Exception):
    """Base exception for sync errors."""


class AlreadyListeningError(SyncError):
    """A second live feed session was requested while one is active."""

    def __init__(self) -> None:
        super().__init__("already listening for updates")


class StreamTerminatedError(SyncError):
    """The live feed stopped although nobody cancelled it."""
