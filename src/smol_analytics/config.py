from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from smol_analytics._version import __version__
from smol_analytics.keys import DAY_SECONDS, HOUR_SECONDS, VISIT_KEY_PREFIX


class Settings(BaseSettings):
    """Service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SMOL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Plain REDIS_URL / DISCORD_WEBHOOK are accepted for existing deployments.
    redis_url: str = Field(
        default="redis://localhost:6379/",
        validation_alias=AliasChoices("SMOL_REDIS_URL", "REDIS_URL"),
    )
    webhook_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SMOL_WEBHOOK_URL", "DISCORD_WEBHOOK"),
    )

    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    log_format: Literal["text", "json"] = "text"

    # Counter keys. TTL of 0 keeps keys forever.
    key_prefix: str = VISIT_KEY_PREFIX
    hourly_bucket_ttl_seconds: int = 3 * HOUR_SECONDS
    daily_bucket_ttl_seconds: int = 3 * DAY_SECONDS

    # Timeouts for external dependencies.
    store_timeout_seconds: float = 5.0
    webhook_timeout_seconds: float = 5.0

    # Report scheduling.
    hourly_report_interval_seconds: float = float(HOUR_SECONDS)
    daily_report_hour: int = 1
    daily_report_timezone: Literal["utc", "local"] = "utc"

    # Shutdown budget.
    shutdown_notify_timeout_seconds: float = 3.0
    shutdown_drain_timeout_seconds: float = 2.0

    version: str = __version__

    @field_validator("webhook_url", mode="before")
    @classmethod
    def _empty_webhook_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("daily_report_hour")
    @classmethod
    def _validate_daily_report_hour(cls, value: int) -> int:
        if not 0 <= value <= 23:
            raise ValueError("daily_report_hour must be between 0 and 23")
        return value

    @property
    def daily_report_uses_utc(self) -> bool:
        return self.daily_report_timezone == "utc"


@lru_cache
def get_settings() -> Settings:
    return Settings()
