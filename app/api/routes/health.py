from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import get_weather_cache
from app.schemas.weather import HealthResponse
from app.services.cache import WeatherResultCache

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    cache: Annotated[WeatherResultCache, Depends(get_weather_cache)],
) -> HealthResponse:
    reachable = await cache.ping()
    return HealthResponse(cache="ok" if reachable else "unavailable")
