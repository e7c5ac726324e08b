"""Tests for the status poller."""

import asyncio

from harvest.services.poller import StatusPoller


class CountingFetcher:
    def __init__(self, fail_first: bool = False, delay: float = 0.0):
        self.calls = 0
        self.finished = 0
        self.fail_first = fail_first
        self.delay = delay

    async def update_all(self) -> None:
        self.calls += 1
        if self.fail_first and self.calls == 1:
            raise RuntimeError("boom")
        await asyncio.sleep(self.delay)
        self.finished += 1


class TestStatusPoller:
    """Fixed-interval polling."""

    async def test_polls_repeatedly(self) -> None:
        """Test that update_all is called on every interval."""
        fetcher = CountingFetcher()
        poller = StatusPoller(fetcher, interval=0.01)

        poller.start()
        await asyncio.sleep(0.1)
        await poller.stop()

        assert fetcher.calls >= 3
        assert poller.running is False

    async def test_failed_tick_does_not_stop_loop(self) -> None:
        """Test that an exception in one tick is logged and polling continues."""
        fetcher = CountingFetcher(fail_first=True)
        poller = StatusPoller(fetcher, interval=0.01)

        poller.start()
        await asyncio.sleep(0.1)
        await poller.stop()

        assert fetcher.calls >= 2
        assert fetcher.finished >= 1

    async def test_stop_waits_for_in_flight_update(self) -> None:
        """Test that stopping lets a running update finish."""
        fetcher = CountingFetcher(delay=0.05)
        poller = StatusPoller(fetcher, interval=10)

        poller.start()
        await asyncio.sleep(0.01)
        await poller.stop()

        assert fetcher.calls == 1
        assert fetcher.finished == 1

    async def test_start_twice_runs_one_loop(self) -> None:
        """Test that starting a running poller is a no-op."""
        fetcher = CountingFetcher()
        poller = StatusPoller(fetcher, interval=10)

        poller.start()
        poller.start()
        await asyncio.sleep(0.01)
        await poller.stop()

        assert fetcher.calls == 1

    async def test_stop_before_start(self) -> None:
        """Test that stopping a poller that never started is harmless."""
        await StatusPoller(CountingFetcher()).stop()
