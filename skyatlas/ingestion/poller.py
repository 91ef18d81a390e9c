"""
Polling subscription - periodic snapshot delivery to a consumer callback.

Each tick fetches a snapshot, hands it to the callback, and only then arms
the timer for the next tick, so deliveries from one subscription never
overlap or arrive out of order.

Timers come from a factory with the ``threading.Timer`` call shape
(``factory(interval, function)`` returning an object with ``start()`` and
``cancel()``). Tests substitute a manual scheduler to drive simulated time.
"""

import logging
import threading
from typing import Callable, List, Optional, Protocol

from skyatlas.models import LiveFlight

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[List[LiveFlight]], None]


class TimerHandle(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def daemon_timer(interval: float, function: Callable[[], None]) -> threading.Timer:
    """Default timer factory: a daemon ``threading.Timer`` so polling never blocks exit."""
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


class PollingSubscription:
    """
    One active periodic refresh: a cancellable timer plus its consumer.

    Lifecycle: ``start()`` delivers the first snapshot synchronously and
    arms the timer; every tick re-arms it; ``stop()`` cancels it. Once
    stopped a subscription cannot be restarted.

    The callback must not raise. If it does, the error is logged and
    polling continues. A fetch that raises skips delivery for that tick
    only; the next tick is still scheduled.
    """

    def __init__(
        self,
        fetch: Callable[[], List[LiveFlight]],
        callback: SnapshotCallback,
        interval: float,
        timer_factory: TimerFactory = daemon_timer,
    ):
        if interval <= 0:
            raise ValueError(f'interval must be positive, got {interval}')

        self.fetch = fetch
        self.callback = callback
        self.interval = interval
        self._timer_factory = timer_factory

        self._lock = threading.RLock()
        self._timer: Optional[TimerHandle] = None
        self._stopped = False
        self._started = False
        self._tick_count = 0

    @property
    def active(self) -> bool:
        with self._lock:
            return self._started and not self._stopped

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def start(self) -> None:
        """Deliver one snapshot immediately, then schedule the periodic ticks."""
        with self._lock:
            if self._started:
                raise RuntimeError('Subscription already started')
            self._started = True

        logger.info(f'Polling started (interval={self.interval}s)')
        self._tick()

    def stop(self) -> None:
        """
        Cancel the pending tick. Idempotent.

        Takes effect before the next tick even when called from inside
        the callback. A fetch already in flight completes, but its
        snapshot is not delivered.
        """
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()
        logger.info(f'Polling stopped after {self._tick_count} ticks')

    def _tick(self) -> None:
        with self._lock:
            if self._stopped:
                return

        try:
            snapshot = self.fetch()
        except Exception:
            logger.exception('Snapshot fetch raised, skipping this tick')
            snapshot = None

        with self._lock:
            if self._stopped:
                logger.debug('Discarding snapshot fetched after stop')
                return
            if snapshot is not None:
                self._tick_count += 1

        if snapshot is not None:
            try:
                self.callback(snapshot)
            except Exception:
                logger.exception('Snapshot callback raised')

        with self._lock:
            if self._stopped:
                return
            self._timer = self._timer_factory(self.interval, self._tick)
            self._timer.start()
