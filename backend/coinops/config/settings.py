from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000


class LoggingSettings(BaseModel):
    level: str = "info"
    format: Literal["json", "text"] = "json"


class CoinSettings(BaseModel):
    id: str
    display_name: str


class FeatureSettings(BaseModel):
    avg_refresh_interval_ms: int = Field(default=5000, gt=0)
    background_refresh: bool = True


class PriceCacheSettings(BaseModel):
    ttl_seconds: float = Field(default=30.0, gt=0)
    upstream_timeout_seconds: float = Field(default=10.0, gt=0)
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="COINOPS_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        yaml_file="config.yaml",
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    coins: List[CoinSettings] = Field(
        default_factory=lambda: [
            CoinSettings(id="bitcoin", display_name="Bitcoin"),
            CoinSettings(id="ethereum", display_name="Ethereum"),
            CoinSettings(id="dogecoin", display_name="Doge"),
            CoinSettings(id="solana", display_name="Solana"),
            CoinSettings(id="cardano", display_name="Cardano"),
        ]
    )
    features: FeatureSettings = Field(default_factory=FeatureSettings)
    price_cache: PriceCacheSettings = Field(default_factory=PriceCacheSettings)

    @field_validator("coins")
    @classmethod
    def _unique_coin_ids(cls, coins: List[CoinSettings]) -> List[CoinSettings]:
        seen: set[str] = set()
        for coin in coins:
            if coin.id in seen:
                raise ValueError(f"duplicate coin id: {coin.id}")
            seen.add(coin.id)
        return coins

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Keyword overrides beat the environment, which beats the config file.
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def load_settings(config_file: str | None = None, **overrides) -> Settings:
    """Settings read from ``config_file`` instead of ./config.yaml."""
    if config_file is None:
        return Settings(**overrides)

    class FileSettings(Settings):
        model_config = SettingsConfigDict(yaml_file=config_file)

    return FileSettings(**overrides)


settings = Settings()
