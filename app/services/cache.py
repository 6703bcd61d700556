"""Redis-backed store for normalized weather results.

Key format: ``weather:{lower(trim(city))}``. Values are the JSON form of a
``WeatherResult`` written with ``SET ... EX ttl``; entries are never updated in
place, only overwritten.

Store failures never escape this module: reads report ``unavailable`` and
writes report ``ok=False`` so the caller can carry on with fresh data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from pydantic import ValidationError

from app.core.errors import CacheUnavailableError
from app.schemas.weather import WeatherResult

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "weather:"
DEFAULT_TTL_SECONDS = 600

CacheStatus = Literal["hit", "miss", "unavailable"]


class CacheStore(Protocol):
    async def get(self, name: str) -> Any: ...

    async def set(self, name: str, value: str, ex: int | None = None) -> Any: ...

    async def ping(self) -> Any: ...


def weather_cache_key(city: str) -> str:
    return f"{CACHE_KEY_PREFIX}{city.strip().lower()}"


@dataclass(frozen=True)
class CacheLookup:
    status: CacheStatus
    key: str
    value: WeatherResult | None = None
    error: CacheUnavailableError | None = None

    @property
    def hit(self) -> bool:
        return self.status == "hit"


@dataclass(frozen=True)
class CacheWrite:
    ok: bool
    key: str
    ttl_seconds: int
    error: CacheUnavailableError | None = None


class WeatherResultCache:
    def __init__(self, store: CacheStore | None, *, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self._store = store
        self._ttl_seconds = int(ttl_seconds)

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    async def get(self, city: str) -> CacheLookup:
        key = weather_cache_key(city)
        if self._store is None:
            return CacheLookup(
                status="unavailable",
                key=key,
                error=CacheUnavailableError("Cache store not configured"),
            )

        try:
            raw = await self._store.get(key)
        except Exception as e:  # noqa: BLE001 - any store failure counts as a miss
            logger.warning("Weather cache GET failed for key=%s", key, exc_info=True)
            return CacheLookup(
                status="unavailable",
                key=key,
                error=CacheUnavailableError(f"Cache read failed: {e}"),
            )

        if raw is None:
            logger.debug("Weather cache miss: %s", key)
            return CacheLookup(status="miss", key=key)

        try:
            value = WeatherResult.from_cache_value(raw)
        except ValidationError:
            logger.warning("Weather cache entry for key=%s could not be decoded", key)
            return CacheLookup(
                status="unavailable",
                key=key,
                error=CacheUnavailableError("Cached entry could not be decoded"),
            )

        logger.debug("Weather cache hit: %s", key)
        return CacheLookup(status="hit", key=key, value=value)

    async def set(self, city: str, result: WeatherResult) -> CacheWrite:
        key = weather_cache_key(city)
        if self._store is None:
            return CacheWrite(
                ok=False,
                key=key,
                ttl_seconds=self._ttl_seconds,
                error=CacheUnavailableError("Cache store not configured"),
            )

        try:
            await self._store.set(key, result.to_cache_value(), ex=self._ttl_seconds)
        except Exception as e:  # noqa: BLE001 - caching is best effort
            logger.warning("Weather cache SET failed for key=%s", key, exc_info=True)
            return CacheWrite(
                ok=False,
                key=key,
                ttl_seconds=self._ttl_seconds,
                error=CacheUnavailableError(f"Cache write failed: {e}"),
            )

        logger.debug("Weather cached: key=%s ttl=%ds", key, self._ttl_seconds)
        return CacheWrite(ok=True, key=key, ttl_seconds=self._ttl_seconds)

    async def ping(self) -> bool:
        if self._store is None:
            return False
        try:
            await self._store.ping()
        except Exception:  # noqa: BLE001
            logger.warning("Weather cache ping failed", exc_info=True)
            return False
        return True
