"""Shared fixtures: an in-memory Transport and a controllable clock."""

from __future__ import annotations

import queue
import threading
import time
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta

import pytest

from blocklistsync.core.transport import Transport
from blocklistsync.core.types import DomainUpdate

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)

_END = object()


class FakeTransport(Transport):
    """Transport backed by in-memory lists and a scriptable stream.

    Push DomainUpdate objects, exceptions or end() into the stream; each
    open_stream() call consumes from the same queue.
    """

    def __init__(self) -> None:
        self.all_domains: list[str] = []
        self.recent: list[DomainUpdate] = []
        self.recent_calls: list[int] = []
        self.list_all_calls = 0
        self.error: Exception | None = None
        self.stream_opened = threading.Event()
        self._stream: queue.Queue[object] = queue.Queue()

    def list_all(self) -> list[str]:
        self.list_all_calls += 1
        if self.error is not None:
            raise self.error
        return list(self.all_domains)

    def list_recent(self, seconds: int) -> list[DomainUpdate]:
        self.recent_calls.append(seconds)
        if self.error is not None:
            raise self.error
        return list(self.recent)

    def check(self, domain: str) -> bool:
        return domain in self.all_domains

    def size(self) -> int:
        return len(self.all_domains)

    def open_stream(self, cancel: threading.Event) -> Iterator[DomainUpdate]:
        self.stream_opened.set()
        while not cancel.is_set():
            try:
                item = self._stream.get(timeout=0.01)
            except queue.Empty:
                continue
            if item is _END:
                return
            if isinstance(item, Exception):
                raise item
            assert isinstance(item, DomainUpdate)
            yield item

    def push(self, *updates: DomainUpdate) -> None:
        for update in updates:
            self._stream.put(update)

    def end(self) -> None:
        self._stream.put(_END)

    def fail(self, error: Exception) -> None:
        self._stream.put(error)


class FakeClock:
    """Callable clock returning a settable aware datetime."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def add(*domains: str) -> DomainUpdate:
    """Build an add update."""
    return DomainUpdate(add=True, domains=domains)


def delete(*domains: str) -> DomainUpdate:
    """Build a delete update."""
    return DomainUpdate(add=False, domains=domains)


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll a zero-argument predicate until it is true or timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return bool(predicate())


@pytest.fixture
def transport() -> FakeTransport:
    """Create a fake transport."""
    return FakeTransport()


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock set to T0."""
    return FakeClock()
