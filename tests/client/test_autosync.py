"""Tests for the AutoSync loop."""

from __future__ import annotations

import threading

import pytest

from blocklistsync.client.api import TransportError, UnexpectedStatusError
from blocklistsync.client.cache import DomainCache
from blocklistsync.client.sync import AlreadyListeningError, AutoSync, StreamTerminatedError, auto_sync
from tests.conftest import FakeClock, FakeTransport, add, wait_until


class Runner:
    """Runs an AutoSync in a background thread and captures its outcome."""

    def __init__(self, sync: AutoSync) -> None:
        self.sync = sync
        self.cancel = threading.Event()
        self.error: BaseException | None = None
        self.thread = threading.Thread(target=self._run, daemon=True)

    def _run(self) -> None:
        try:
            self.sync.run(self.cancel)
        except Exception as e:
            self.error = e

    def start(self) -> Runner:
        self.thread.start()
        return self

    def stop(self) -> None:
        self.cancel.set()
        self.join()

    def join(self) -> None:
        self.thread.join(timeout=5.0)
        assert not self.thread.is_alive()


@pytest.fixture
def cache(transport: FakeTransport, clock: FakeClock) -> DomainCache:
    """Create a cache over the fake transport."""
    return DomainCache(transport, clock=clock)


class TestAutoSync:
    """Tests for AutoSync.run()."""

    def test_initial_full_sync(self, cache: DomainCache, transport: FakeTransport) -> None:
        """The loop should start with a full sync and stop cleanly on cancel."""
        transport.all_domains = ["a.com"]
        runner = Runner(AutoSync(cache)).start()

        assert wait_until(lambda: cache.check("a.com"))
        runner.stop()

        assert runner.error is None
        assert runner.sync.stats.full_syncs == 1
        assert transport.recent_calls == []

    def test_initial_full_sync_failure(self, cache: DomainCache, transport: FakeTransport) -> None:
        """A failing first sync should end the loop with that error."""
        transport.error = UnexpectedStatusError("http://test/v2/all/", 500)

        with pytest.raises(UnexpectedStatusError):
            AutoSync(cache).run(threading.Event())

    def test_periodic_updates(self, cache: DomainCache, transport: FakeTransport) -> None:
        """Incremental updates should run on their interval."""
        transport.recent = [add("r.com")]
        runner = Runner(AutoSync(cache, recent_interval=0.05)).start()

        assert wait_until(lambda: len(transport.recent_calls) >= 2)
        runner.stop()

        assert runner.error is None
        assert cache.check("r.com")
        assert runner.sync.stats.updates >= 2

    def test_periodic_full_syncs(self, cache: DomainCache, transport: FakeTransport) -> None:
        """Full syncs should repeat on their interval."""
        runner = Runner(AutoSync(cache, full_sync_interval=0.05)).start()

        assert wait_until(lambda: transport.list_all_calls >= 3)
        runner.stop()

        assert runner.error is None

    def test_update_failure_stops_loop(self, cache: DomainCache, transport: FakeTransport) -> None:
        """The first failing update should be raised without retrying."""
        runner = Runner(AutoSync(cache, recent_interval=0.2)).start()
        assert wait_until(lambda: transport.list_all_calls == 1)
        transport.error = TransportError("connection refused")

        runner.join()

        assert isinstance(runner.error, TransportError)
        assert runner.sync.stats.updates == len(transport.recent_calls) - 1

    def test_realtime_applies_live_updates(
        self, cache: DomainCache, transport: FakeTransport
    ) -> None:
        """Live updates should be applied by the loop."""
        runner = Runner(AutoSync(cache, realtime=True)).start()
        assert transport.stream_opened.wait(timeout=5.0)

        transport.push(add("live.com"))
        assert wait_until(lambda: cache.check("live.com"))
        assert cache.streaming
        runner.stop()

        assert runner.error is None
        assert runner.sync.stats.live_updates == 1
        assert not cache.streaming

    def test_realtime_stream_error(self, cache: DomainCache, transport: FakeTransport) -> None:
        """A failing live feed should end the loop with its error."""
        runner = Runner(AutoSync(cache, realtime=True)).start()
        assert transport.stream_opened.wait(timeout=5.0)

        transport.fail(TransportError("connection reset"))
        runner.join()

        assert isinstance(runner.error, TransportError)
        assert not cache.streaming

    def test_realtime_server_close(self, cache: DomainCache, transport: FakeTransport) -> None:
        """A live feed closed by the server should end the loop."""
        transport.push(add("live.com"))
        transport.end()

        with pytest.raises(StreamTerminatedError):
            AutoSync(cache, realtime=True).run(threading.Event())

        assert cache.check("live.com")

    def test_realtime_while_listening(self, cache: DomainCache, transport: FakeTransport) -> None:
        """Realtime mode should fail if the cache already has a session."""
        listen_cancel = threading.Event()
        listener = threading.Thread(target=cache.listen_for_updates, args=(listen_cancel,))
        listener.start()
        try:
            assert wait_until(lambda: cache.streaming)
            with pytest.raises(AlreadyListeningError):
                AutoSync(cache, realtime=True).run(threading.Event())
            assert cache.streaming
        finally:
            listen_cancel.set()
            listener.join(timeout=5.0)

    def test_auto_sync_wrapper(self, cache: DomainCache, transport: FakeTransport) -> None:
        """auto_sync() should run the loop with the given settings."""
        transport.all_domains = ["a.com"]
        cancel = threading.Event()
        thread = threading.Thread(target=auto_sync, args=(cache, cancel), daemon=True)
        thread.start()

        assert wait_until(lambda: cache.check("a.com"))
        cancel.set()
        thread.join(timeout=5.0)
        assert not thread.is_alive()
