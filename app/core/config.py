from __future__ import annotations

from typing import Literal

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        case_sensitive=False,
    )

    env: str = Field(default="development")
    debug: bool = Field(default=False)
    docs_enabled: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    cors_origins: list[str] = Field(default_factory=list)
    trusted_hosts: list[str] = Field(default_factory=lambda: ["localhost", "127.0.0.1"])

    redis_url: str = Field(default="redis://localhost:6379/0", min_length=8)
    redis_connect_timeout_seconds: float = Field(default=5.0, ge=0.1, le=60.0)
    redis_ping_on_startup: bool = Field(default=True)

    weather_api_key: str = Field(min_length=1)
    weather_base_url: AnyHttpUrl = Field(default=OPENWEATHER_BASE_URL)
    weather_units: Literal["metric", "imperial", "standard"] = Field(default="metric")
    weather_timeout_seconds: float = Field(default=10.0, ge=1.0, le=30.0)
    weather_cache_ttl_seconds: int = Field(default=600, ge=1, le=60 * 60 * 24)
    weather_reference_timezone: str = Field(default="Asia/Kolkata", min_length=1)
    weather_forecast_policy: Literal["calendar", "stride"] = Field(default="calendar")

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"


def load_settings() -> Settings:
    settings = Settings()
    if not settings.cors_origins:
        settings.cors_origins = ["http://localhost:3000", "http://localhost:8080"]
    return settings
