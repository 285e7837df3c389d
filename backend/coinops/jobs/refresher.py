from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from coinops.cache import PriceCache
from coinops.jobs.jitter import poisson_delay_ms

log = logging.getLogger(__name__)


class PriceRefresher:
    """Keeps a PriceCache warm from a daemon thread.

    Each cycle reads through the cache, which refetches only once the TTL has
    lapsed, then sleeps a jittered delay around ``mean_interval_ms``.
    """

    def __init__(
        self,
        cache: PriceCache,
        mean_interval_ms: float,
        delay: Callable[[float], int] = poisson_delay_ms,
    ) -> None:
        self._cache = cache
        self._mean_interval_ms = mean_interval_ms
        self._delay = delay
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop.is_set()
        )

    def run_once(self) -> int:
        """Refresh once and return the delay before the next cycle in ms."""
        coins = self._cache.get_prices()
        delay_ms = self._delay(self._mean_interval_ms)
        log.debug("Refreshed %d prices, next cycle in %dms", len(coins), delay_ms)
        return delay_ms

    def _run(self, stop: threading.Event) -> None:
        log.info("Price refresher started (mean interval %sms)", self._mean_interval_ms)
        while not stop.is_set():
            try:
                delay_ms = self.run_once()
            except Exception:
                log.exception("Price refresh cycle failed (continuing)")
                delay_ms = self._delay(self._mean_interval_ms)
            stop.wait(delay_ms / 1000)
        log.info("Price refresher stopped")

    def start(self) -> None:
        if self.running:
            log.warning("Price refresher already running, ignoring duplicate start")
            return
        # Each run owns its event; a thread still finishing a cycle after a
        # timed-out stop() keeps seeing its own event set and exits.
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop,), name="price-refresher", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is None:
            return
        self._thread.join(timeout)
        if self._thread.is_alive():
            log.warning("Price refresher did not stop within %ss, it exits after the current cycle", timeout)
            return
        self._thread = None
