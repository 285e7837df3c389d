from __future__ import annotations

from collections.abc import Sequence

from coinops.schemas.coin import Coin, Quote, TrackedCoin

# Plausible values served on a cold start while the upstream is unreachable.
REFERENCE_QUOTES: dict[str, Quote] = {
    "bitcoin": Quote(usd=43250.00, usd_24h_change=2.35),
    "ethereum": Quote(usd=2280.50, usd_24h_change=1.87),
    "dogecoin": Quote(usd=0.0825, usd_24h_change=-0.42),
    "solana": Quote(usd=98.75, usd_24h_change=5.12),
    "cardano": Quote(usd=0.52, usd_24h_change=-1.23),
}


def reference_prices(tracked: Sequence[TrackedCoin]) -> list[Coin]:
    """Reference-table records for the tracked coins, in table order."""
    names = {coin.id: coin.display_name for coin in tracked}
    return [
        Coin(
            id=coin_id,
            display_name=names[coin_id],
            price=quote.usd,
            change_24h=quote.usd_24h_change,
        )
        for coin_id, quote in REFERENCE_QUOTES.items()
        if coin_id in names
    ]
