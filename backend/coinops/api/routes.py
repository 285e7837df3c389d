from fastapi import APIRouter, Depends, HTTPException, Request, status

from coinops.cache import CoinNotFoundError, PriceCache
from coinops.config.settings import Settings
from coinops.jobs.jitter import poisson_delay_ms
from coinops.notifications.store import NotificationStore
from coinops.schemas.coin import Coin, HealthStatus, RefreshConfig
from coinops.schemas.notification import (
    Notification,
    NotificationList,
    NotificationRequest,
)

router = APIRouter()


def get_price_cache(request: Request) -> PriceCache:
    return request.app.state.price_cache


def get_notification_store(request: Request) -> NotificationStore:
    return request.app.state.notifications


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/api/prices", response_model=list[Coin])
def list_prices(cache: PriceCache = Depends(get_price_cache)) -> list[Coin]:
    return cache.get_prices()


@router.get("/api/coins/{coin_id}", response_model=Coin)
def get_coin(coin_id: str, cache: PriceCache = Depends(get_price_cache)) -> Coin:
    try:
        return cache.get_coin(coin_id)
    except CoinNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": f"Coin '{coin_id}' not found."},
        )


@router.get("/api/search", response_model=list[Coin])
def search_coins(q: str = "", cache: PriceCache = Depends(get_price_cache)) -> list[Coin]:
    return cache.search_coins(q)


@router.get("/api/config", response_model=RefreshConfig)
def refresh_config(settings: Settings = Depends(get_settings)) -> RefreshConfig:
    mean_ms = settings.features.avg_refresh_interval_ms
    return RefreshConfig(
        avg_refresh_interval_ms=mean_ms,
        next_refresh_ms=poisson_delay_ms(mean_ms),
    )


@router.get("/api/notifications", response_model=NotificationList)
def list_notifications(
    store: NotificationStore = Depends(get_notification_store),
) -> NotificationList:
    notifications = store.get_all()
    return NotificationList(count=len(notifications), notifications=notifications)


@router.post(
    "/api/notifications",
    response_model=Notification,
    status_code=status.HTTP_201_CREATED,
)
def add_notification(
    payload: NotificationRequest,
    store: NotificationStore = Depends(get_notification_store),
) -> Notification:
    return store.add(payload.title.strip(), payload.message)


@router.delete("/api/notifications", status_code=status.HTTP_204_NO_CONTENT)
def clear_notifications(store: NotificationStore = Depends(get_notification_store)) -> None:
    store.clear()


@router.get("/health", response_model=HealthStatus)
def health(cache: PriceCache = Depends(get_price_cache)) -> HealthStatus:
    age = cache.snapshot_age()
    return HealthStatus(
        status="healthy" if age is not None else "warming_up",
        tracked_coins=len(cache.tracked),
        snapshot_age_s=age,
    )
