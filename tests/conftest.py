"""Shared test fixtures for SkyAtlas tests."""

from __future__ import annotations

import random

import pytest

from skyatlas.cache import TTLCache
from skyatlas.services import EnrichmentClient, LiveFeedClient


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTimer:
    """Stand-in for ``threading.Timer`` driven by a ManualScheduler."""

    def __init__(self, scheduler: ManualScheduler, interval: float, function):
        self.scheduler = scheduler
        self.interval = interval
        self.function = function
        self.due: float | None = None
        self.cancelled = False

    def start(self) -> None:
        self.due = self.scheduler.now + self.interval
        self.scheduler.pending.append(self)

    def cancel(self) -> None:
        self.cancelled = True
        if self in self.scheduler.pending:
            self.scheduler.pending.remove(self)


class ManualScheduler:
    """Timer factory with simulated time. ``advance`` fires due timers in order."""

    def __init__(self):
        self.now = 0.0
        self.pending: list[ManualTimer] = []

    def __call__(self, interval: float, function) -> ManualTimer:
        return ManualTimer(self, interval, function)

    @property
    def live_timers(self) -> list[ManualTimer]:
        return [t for t in self.pending if not t.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.pending if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.pending.remove(timer)
            self.now = timer.due
            timer.function()
        self.now = target


class FakeProvider:
    """
    Scripted generative provider.

    ``responses`` are consumed in order; an Exception instance is raised
    instead of returned. The last entry repeats once the script runs out.
    """

    def __init__(self, *responses, available: bool = True):
        self.responses = list(responses) or ['{}']
        self.available = available
        self.prompts: list[str] = []

    @property
    def is_available(self) -> bool:
        return self.available

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        index = min(len(self.prompts) - 1, len(self.responses) - 1)
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def sleeps() -> list[float]:
    """Records the back-off delays requested by EnrichmentClient."""
    return []


@pytest.fixture()
def make_enrichment(clock, sleeps):
    """Build an EnrichmentClient around a provider with a fake clock and no real sleeping."""

    def _make(provider, ttl: float = 3600, max_retries: int = 2) -> EnrichmentClient:
        return EnrichmentClient(
            provider=provider,
            cache=TTLCache(ttl, clock=clock),
            max_retries=max_retries,
            retry_delay=1.0,
            sleep=sleeps.append,
        )

    return _make


@pytest.fixture()
def make_live_feed(clock, scheduler):
    """Build a LiveFeedClient with a fake clock, seeded RNG and manual timers."""

    def _make(feed=None, ttl: float = 30) -> LiveFeedClient:
        return LiveFeedClient(
            feed=feed,
            cache=TTLCache(ttl, clock=clock),
            rng=random.Random(42),
            timer_factory=scheduler,
            default_interval=5.0,
        )

    return _make
