from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TrackedCoin(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str


class Coin(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    price: float
    change_24h: float


class Quote(BaseModel):
    """One entry of the upstream ``simple/price`` response."""

    usd: float = Field(default=0.0, strict=True)
    usd_24h_change: float = Field(default=0.0, strict=True)

    @field_validator("usd", "usd_24h_change", mode="before")
    @classmethod
    def _null_as_zero(cls, value):
        return 0.0 if value is None else value


class RefreshConfig(BaseModel):
    avg_refresh_interval_ms: int
    next_refresh_ms: int


class HealthStatus(BaseModel):
    status: str
    tracked_coins: int
    snapshot_age_s: float | None = None
