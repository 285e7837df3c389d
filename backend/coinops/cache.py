"""
In-memory price cache in front of the upstream price provider.

  * The snapshot is an immutable value swapped wholesale under a short lock,
    so readers never see a partially written snapshot.
  * The upstream call runs outside the snapshot lock.
  * One refresh is in flight per cache. Callers that hit an expired snapshot
    while a refresh is running get the previous snapshot instead of waiting;
    callers on a cold cache wait for that refresh and share its outcome.
  * Upstream failures never reach callers; the fallback tiers answer instead.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Optional

from coinops.providers import coingecko
from coinops.providers.coingecko import UpstreamError
from coinops.providers.reference import reference_prices
from coinops.schemas.coin import Coin, Quote, TrackedCoin

log = logging.getLogger(__name__)

Fetcher = Callable[[Sequence[str]], Mapping[str, Quote]]


class CoinNotFoundError(LookupError):
    def __init__(self, coin_id: str) -> None:
        super().__init__(f"coin not found: {coin_id}")
        self.coin_id = coin_id


@dataclass(frozen=True)
class CacheSnapshot:
    coins: tuple[Coin, ...]
    fetched_at: float


# ── Fallback tiers ────────────────────────────────────────────────────────────
# Evaluated in order; the first tier that returns a list answers the call.

def stale_snapshot(cache: PriceCache) -> Optional[list[Coin]]:
    """Last successful snapshot, however old."""
    snapshot = cache.snapshot()
    if snapshot is None or not snapshot.coins:
        return None
    return list(snapshot.coins)


def reference_table(cache: PriceCache) -> Optional[list[Coin]]:
    """Built-in reference values for the tracked coins. Never cached."""
    return reference_prices(cache.tracked)


FallbackTier = Callable[["PriceCache"], Optional[list[Coin]]]

FALLBACK_TIERS: tuple[tuple[str, FallbackTier], ...] = (
    ("stale_snapshot", stale_snapshot),
    ("reference_table", reference_table),
)


class PriceCache:
    def __init__(
        self,
        coins: Iterable[TrackedCoin],
        ttl: float = 30.0,
        fetcher: Fetcher | None = None,
        clock: Callable[[], float] = time.monotonic,
        fallback_tiers: Sequence[tuple[str, FallbackTier]] = FALLBACK_TIERS,
    ) -> None:
        self.tracked: tuple[TrackedCoin, ...] = tuple(coins)
        self.ttl = ttl
        self._fetch = fetcher or coingecko.fetch_quotes
        self._clock = clock
        self._fallback_tiers = tuple(fallback_tiers)
        self._snapshot: CacheSnapshot | None = None
        self._snapshot_lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._attempts = 0
        self._last_refresh_ok = False

    def snapshot(self) -> CacheSnapshot | None:
        with self._snapshot_lock:
            return self._snapshot

    def snapshot_age(self) -> float | None:
        """Seconds since the last successful fetch, or None."""
        snapshot = self.snapshot()
        if snapshot is None:
            return None
        return round(self._clock() - snapshot.fetched_at, 1)

    def _is_fresh(self, snapshot: CacheSnapshot | None) -> bool:
        return (
            snapshot is not None
            and bool(snapshot.coins)
            and self._clock() - snapshot.fetched_at < self.ttl
        )

    def get_prices(self) -> list[Coin]:
        # Read the attempt counter before the snapshot: a refresh publishes its
        # snapshot first and bumps the counter last.
        attempts = self._attempts
        snapshot = self.snapshot()
        if self._is_fresh(snapshot):
            return list(snapshot.coins)

        if not self._refresh_lock.acquire(blocking=False):
            if snapshot is not None and snapshot.coins:
                log.debug("Refresh already in flight, serving previous snapshot")
                return list(snapshot.coins)
            self._refresh_lock.acquire()
        try:
            if self._attempts != attempts:
                # A refresh finished while this caller waited; reuse its outcome,
                # including an empty result from a successful fetch.
                if self._last_refresh_ok:
                    return list(self.snapshot().coins)
                return self._fallback()
            return self._refresh()
        finally:
            self._refresh_lock.release()

    def get_coin(self, coin_id: str) -> Coin:
        for coin in self.get_prices():
            if coin.id == coin_id:
                return coin
        raise CoinNotFoundError(coin_id)

    def search_coins(self, query: str) -> list[Coin]:
        coins = self.get_prices()
        if not query:
            return coins
        needle = query.casefold()
        return [
            coin
            for coin in coins
            if needle in coin.id.casefold() or needle in coin.display_name.casefold()
        ]

    def _refresh(self) -> list[Coin]:
        self._last_refresh_ok = False
        try:
            coins = self._fetch_and_store()
        except UpstreamError as exc:
            log.warning("Price refresh failed: %s", exc)
            return self._fallback()
        else:
            self._last_refresh_ok = True
            return coins
        finally:
            self._attempts += 1

    def _fetch_and_store(self) -> list[Coin]:
        quotes = self._fetch([coin.id for coin in self.tracked])

        coins: list[Coin] = []
        for tracked in self.tracked:
            quote = quotes.get(tracked.id)
            if quote is None:
                continue
            coins.append(
                Coin(
                    id=tracked.id,
                    display_name=tracked.display_name,
                    price=quote.usd,
                    change_24h=quote.usd_24h_change,
                )
            )

        snapshot = CacheSnapshot(coins=tuple(coins), fetched_at=self._clock())
        with self._snapshot_lock:
            self._snapshot = snapshot
        log.info("Cached prices for %d of %d tracked coins", len(coins), len(self.tracked))
        return coins

    def _fallback(self) -> list[Coin]:
        for name, tier in self._fallback_tiers:
            coins = tier(self)
            if coins is not None:
                log.warning("Serving %d prices from fallback tier %s", len(coins), name)
                return coins
        return []
