from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    telegram_token: SecretStr = Field(SecretStr("TEST_TOKEN"), alias="TELEGRAM_TOKEN")
    timezone: str = Field("Europe/Moscow", alias="TIMEZONE")
    database_url: str = Field("sqlite+aiosqlite:///./storage/yaosleep.db", alias="DATABASE_URL")
    screen_tick_seconds: int = Field(1, ge=1, alias="SCREEN_TICK_SECONDS")
    screen_ttl_minutes: int = Field(30, ge=1, alias="SCREEN_TTL_MINUTES")
    default_wake_up_hour: int = Field(7, ge=0, le=23, alias="DEFAULT_WAKE_UP_HOUR")
    default_wake_up_minute: int = Field(0, ge=0, le=59, alias="DEFAULT_WAKE_UP_MINUTE")
    sleep_cycle_minutes: int = Field(90, ge=1, alias="SLEEP_CYCLE_MINUTES")
    fall_asleep_minutes: int = Field(15, ge=0, alias="FALL_ASLEEP_MINUTES")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
