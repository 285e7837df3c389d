"""
FastAPI entry point.

Builds the price cache, notification store and background refresher once per
application and hands them to the routes through ``app.state``.

Run locally:
    coinops serve --port 3000
    uvicorn --factory coinops.main:create_app --port 3000
"""

from __future__ import annotations

import logging
import platform
from contextlib import asynccontextmanager
from functools import partial

import uvicorn
from fastapi import FastAPI

from coinops.api.routes import router
from coinops.cache import PriceCache
from coinops.config.settings import Settings, settings as default_settings
from coinops.jobs.refresher import PriceRefresher
from coinops.logging_config import setup_logging
from coinops.notifications.store import NotificationStore
from coinops.providers import coingecko
from coinops.schemas.coin import TrackedCoin

log = logging.getLogger(__name__)


def build_price_cache(settings: Settings) -> PriceCache:
    cache_settings = settings.price_cache
    return PriceCache(
        coins=[TrackedCoin(id=coin.id, display_name=coin.display_name) for coin in settings.coins],
        ttl=cache_settings.ttl_seconds,
        fetcher=partial(
            coingecko.fetch_quotes,
            base_url=cache_settings.coingecko_base_url,
            timeout=cache_settings.upstream_timeout_seconds,
        ),
    )


def log_startup_diagnostics(settings: Settings) -> None:
    log.info(
        "startup python=%s platform=%s config_file=%s",
        platform.python_version(),
        platform.platform(),
        settings.model_config.get("yaml_file"),
    )
    log.info(
        "startup server=%s:%d logging=%s/%s",
        settings.server.host,
        settings.server.port,
        settings.logging.level,
        settings.logging.format,
    )
    log.info(
        "startup coins=%s ttl_s=%s upstream_timeout_s=%s upstream=%s",
        ",".join(coin.id for coin in settings.coins),
        settings.price_cache.ttl_seconds,
        settings.price_cache.upstream_timeout_seconds,
        settings.price_cache.coingecko_base_url,
    )
    log.info(
        "startup avg_refresh_interval_ms=%d background_refresh=%s",
        settings.features.avg_refresh_interval_ms,
        settings.features.background_refresh,
    )


def create_app(
    settings: Settings | None = None,
    price_cache: PriceCache | None = None,
    configure_logging: bool = True,
) -> FastAPI:
    settings = settings or default_settings
    if configure_logging:
        setup_logging(settings.logging.level, settings.logging.format)
    price_cache = price_cache or build_price_cache(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        refresher = None
        if settings.features.background_refresh:
            refresher = PriceRefresher(
                price_cache, settings.features.avg_refresh_interval_ms
            )
            refresher.start()
        log.info("CoinOps tracking %d coins", len(price_cache.tracked))
        yield
        if refresher is not None:
            refresher.stop()
        log.info("CoinOps shut down")

    app = FastAPI(title="CoinOps Dashboard API", lifespan=lifespan)
    app.state.settings = settings
    app.state.price_cache = price_cache
    app.state.notifications = NotificationStore()
    app.include_router(router)
    return app


def serve(settings: Settings) -> None:
    app = create_app(settings)
    log_startup_diagnostics(settings)
    log.info(
        "server_starting address=%s:%d url=http://localhost:%d",
        settings.server.host,
        settings.server.port,
        settings.server.port,
    )
    uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_config=None)
