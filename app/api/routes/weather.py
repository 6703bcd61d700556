from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse

from app.api.deps import get_weather_service
from app.core.errors import WeatherError
from app.schemas.weather import ErrorResponse, WeatherResult
from app.services.weather import WeatherService

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get(
    "/weather",
    response_model=WeatherResult,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def get_weather(
    response: Response,
    service: Annotated[WeatherService, Depends(get_weather_service)],
    city: Annotated[str | None, Query()] = None,
):
    try:
        lookup = await service.get_weather(city)
    except WeatherError as e:
        if e.status_code >= 500:
            logger.error("Weather request for city=%r failed: %s", city, e.message)
        return _error(e.status_code, e.message)
    except Exception:  # noqa: BLE001 - never leak internals to the client
        logger.exception("Unexpected error serving weather for city=%r", city)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    response.headers["X-Cache"] = "HIT" if lookup.cache_hit else "MISS"
    return lookup.result
