"""
Live feed service - current flight positions for the map.

Combines:
- A short-TTL cache (30s by default) in front of the AviationStack feed
- Synthetic fallback flights whenever the feed cannot be used
- A single polling subscription that pushes snapshots to a callback

Snapshots never fail: without a feed, or when the feed errors, the mock
generator fills in. Single-flight lookups are different. A fabricated
detail for a flight the user clicked would be misleading, so they return
None instead.
"""

import logging
import random
import threading
from typing import List, Optional

from skyatlas.cache import TTLCache
from skyatlas.config import config
from skyatlas.errors import FeedUnavailable
from skyatlas.ingestion.aviationstack_client import AviationStackClient
from skyatlas.ingestion.geo import calculate_heading
from skyatlas.ingestion.poller import (
    PollingSubscription,
    SnapshotCallback,
    TimerFactory,
    daemon_timer,
)
from skyatlas.ingestion.synthetic import generate_mock_flights
from skyatlas.models import Coordinate, LiveFlight

logger = logging.getLogger(__name__)

SNAPSHOT_CACHE_KEY = 'live_flights_all'


class LiveFeedClient:
    """
    Service for live flight snapshots and polling.

    Holds at most one polling subscription at a time; starting a new one
    stops the previous one first.
    """

    def __init__(
        self,
        feed: Optional[AviationStackClient] = None,
        cache: Optional[TTLCache] = None,
        rng: Optional[random.Random] = None,
        timer_factory: TimerFactory = daemon_timer,
        default_interval: float = 5.0,
    ):
        self.feed = feed
        self.default_interval = default_interval
        self._cache = cache if cache is not None else TTLCache(config.live_feed.cache_ttl_seconds)
        self._rng = rng or random.Random()
        self._timer_factory = timer_factory

        self._lock = threading.RLock()
        self._subscription: Optional[PollingSubscription] = None

        # Statistics
        self._feed_fetches = 0
        self._synthetic_fetches = 0

        if self.feed is None:
            logger.info('Live feed running in synthetic mode')

    @classmethod
    def from_config(cls) -> 'LiveFeedClient':
        """Create client from application configuration."""
        return cls(
            feed=AviationStackClient.from_config(),
            cache=TTLCache(config.live_feed.cache_ttl_seconds),
            default_interval=config.live_feed.poll_interval,
        )

    @property
    def is_feed_configured(self) -> bool:
        return self.feed is not None

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def fetch_snapshot(self) -> List[LiveFlight]:
        """
        Get the current set of flights.

        Order of preference: fresh cached snapshot, live feed (cached on
        success), synthetic flights. Synthetic snapshots are not cached, so
        mock flights move on every call.
        """
        cached = self._cache.get(SNAPSHOT_CACHE_KEY)
        if cached is not None:
            logger.debug('Using cached flight data')
            return cached

        try:
            flights = self._fetch_from_feed()
        except FeedUnavailable as e:
            logger.warning(f'Live feed unavailable, using mock data: {e}')
            self._synthetic_fetches += 1
            return generate_mock_flights(self._rng)

        self._cache.set(SNAPSHOT_CACHE_KEY, flights)
        self._feed_fetches += 1
        logger.info(f'Loaded {len(flights)} live flights')
        return flights

    def _fetch_from_feed(self) -> List[LiveFlight]:
        if self.feed is None:
            raise FeedUnavailable('No live feed configured')
        return self.feed.get_active_flights()

    def fetch_entity_detail(self, flight_number: str) -> Optional[LiveFlight]:
        """
        Get one flight by flight number from the live feed.

        Returns None when the feed is not configured, fails, or has no
        live record for the flight. Never synthesizes data.
        """
        flight_number = (flight_number or '').strip().upper()
        if not flight_number or self.feed is None:
            return None

        cache_key = f'flight:{flight_number}'
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            flight = self.feed.get_flight(flight_number)
        except FeedUnavailable as e:
            logger.warning(f'Flight details unavailable for {flight_number}: {e}')
            return None

        if flight is not None:
            self._cache.set(cache_key, flight)
        return flight

    # -------------------------------------------------------------------------
    # Polling
    # -------------------------------------------------------------------------

    def start_polling(self, callback: SnapshotCallback, interval: Optional[float] = None) -> PollingSubscription:
        """
        Push a snapshot to ``callback`` now and every ``interval`` seconds.

        Any active subscription is stopped first. The callback must not
        raise; errors it raises are logged and polling carries on.
        """
        subscription = PollingSubscription(
            fetch=self.fetch_snapshot,
            callback=callback,
            interval=interval if interval is not None else self.default_interval,
            timer_factory=self._timer_factory,
        )

        with self._lock:
            self.stop_polling()
            # Registered before the first delivery so the callback can stop it
            self._subscription = subscription

        subscription.start()
        return subscription

    def stop_polling(self) -> None:
        """Stop the active subscription, if any. Idempotent."""
        with self._lock:
            subscription, self._subscription = self._subscription, None

        if subscription is not None:
            subscription.stop()

    @property
    def is_polling(self) -> bool:
        with self._lock:
            return self._subscription is not None and self._subscription.active

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_heading(start: Coordinate, end: Coordinate) -> float:
        """Initial great-circle bearing in degrees, [0, 360)."""
        return calculate_heading(start, end)

    def clear_cache(self) -> None:
        self._cache.clear()

    @property
    def stats(self) -> dict:
        """Get service statistics."""
        return {
            'feed_configured': self.is_feed_configured,
            'feed_fetches': self._feed_fetches,
            'synthetic_fetches': self._synthetic_fetches,
            'polling': self.is_polling,
            'cache': self._cache.stats,
        }
