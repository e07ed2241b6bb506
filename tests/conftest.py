"""Shared pytest fixtures."""

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from swrcache import AsyncMemoryAdapter, Engine, FetchCoordinator, LocalEventBus


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class ScriptedFetcher:
    """Async fetcher that returns (or raises) the scripted results in order.

    The last result repeats once the script runs out.
    """

    def __init__(self, *results: Any, delay: float = 0.0) -> None:
        self.calls = 0
        self._results = list(results) or [None]
        self._delay = delay

    async def __call__(self) -> Any:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        result = self._results[min(self.calls, len(self._results)) - 1]
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock for each test."""
    return FakeClock()


@pytest.fixture
def adapter() -> AsyncMemoryAdapter:
    """Create a fresh AsyncMemoryAdapter for each test."""
    return AsyncMemoryAdapter()


@pytest.fixture
def bus() -> LocalEventBus:
    """Create a fresh LocalEventBus for each test."""
    return LocalEventBus()


@pytest.fixture
def coordinator(adapter: AsyncMemoryAdapter, clock: FakeClock) -> FetchCoordinator:
    """Create a FetchCoordinator driven by the fake clock."""
    return FetchCoordinator(adapter, clock=clock)


@pytest.fixture
def engine(
    adapter: AsyncMemoryAdapter, bus: LocalEventBus, clock: FakeClock
) -> Engine:
    """Create an Engine driven by the fake clock."""
    return Engine(adapter, event_bus=bus, clock=clock)


@pytest.fixture
def make_fetcher() -> Callable[..., ScriptedFetcher]:
    """Factory for scripted fetchers."""
    return ScriptedFetcher
