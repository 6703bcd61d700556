from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Protocol

from app.core.errors import InputError
from app.schemas.weather import WeatherResult
from app.services.cache import WeatherResultCache
from app.services.normalize import ForecastPolicy, normalize_weather

logger = logging.getLogger(__name__)

CITY_REQUIRED = "City is required"

Clock = Callable[[], datetime]


class WeatherProvider(Protocol):
    async def fetch_current(self, city: str) -> dict[str, Any]: ...

    async def fetch_forecast(self, city: str) -> dict[str, Any]: ...


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class WeatherLookup:
    result: WeatherResult
    cache_hit: bool


class WeatherService:
    """Cache-through lookup: serve from cache, else fetch both endpoints, normalize, store.

    Concurrent misses for the same city each fetch upstream; there is no
    in-flight coalescing and the last cache write wins.
    """

    def __init__(
        self,
        *,
        provider: WeatherProvider,
        cache: WeatherResultCache,
        reference_tz: tzinfo,
        forecast_policy: ForecastPolicy = "calendar",
        clock: Clock = utc_now,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._tz = reference_tz
        self._policy = forecast_policy
        self._clock = clock

    async def get_weather(self, city: str | None) -> WeatherLookup:
        query = (city or "").strip()
        if not query:
            raise InputError(CITY_REQUIRED)

        lookup = await self._cache.get(query)
        if lookup.hit and lookup.value is not None:
            logger.info("Cache HIT for %s", lookup.key)
            return WeatherLookup(result=lookup.value, cache_hit=True)
        if lookup.status == "unavailable":
            logger.warning("Cache unavailable for %s, fetching upstream: %s", lookup.key, lookup.error)
        else:
            logger.info("Cache MISS for %s, fetching upstream", lookup.key)

        current, forecast = await self._fetch_both(query)
        result = normalize_weather(
            current, forecast, now=self._clock(), tz=self._tz, policy=self._policy
        )

        write = await self._cache.set(query, result)
        if write.ok:
            logger.info("Stored %s for %ds", write.key, write.ttl_seconds)
        else:
            logger.warning("Serving uncached result for %s: %s", write.key, write.error)
        return WeatherLookup(result=result, cache_hit=False)

    async def _fetch_both(self, query: str) -> tuple[dict[str, Any], dict[str, Any]]:
        tasks = [
            asyncio.ensure_future(self._provider.fetch_current(query)),
            asyncio.ensure_future(self._provider.fetch_forecast(query)),
        ]
        try:
            current, forecast = await asyncio.gather(*tasks)
        except BaseException:
            # gather leaves the sibling running when one call fails.
            for task in tasks:
                task.cancel()
            raise
        return current, forecast
