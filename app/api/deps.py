from __future__ import annotations

from typing import Annotated, Any
from zoneinfo import ZoneInfo

from fastapi import Depends, Request

from app.clients.openweather import OpenWeatherClient
from app.core.config import Settings
from app.services.cache import WeatherResultCache
from app.services.weather import Clock, WeatherProvider, WeatherService, utc_now


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_redis(request: Request) -> Any:
    return getattr(request.app.state, "redis", None)


def get_weather_client(request: Request) -> WeatherProvider:
    client = getattr(request.app.state, "weather_client", None)
    if not isinstance(client, OpenWeatherClient):
        raise RuntimeError("Weather client not initialized")
    return client


def get_clock() -> Clock:
    return utc_now


def get_weather_cache(
    redis: Annotated[Any, Depends(get_redis)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> WeatherResultCache:
    return WeatherResultCache(redis, ttl_seconds=settings.weather_cache_ttl_seconds)


def get_weather_service(
    provider: Annotated[WeatherProvider, Depends(get_weather_client)],
    cache: Annotated[WeatherResultCache, Depends(get_weather_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> WeatherService:
    return WeatherService(
        provider=provider,
        cache=cache,
        reference_tz=ZoneInfo(settings.weather_reference_timezone),
        forecast_policy=settings.weather_forecast_policy,
        clock=clock,
    )
