from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.config import OPENWEATHER_BASE_URL
from app.core.errors import (
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamProtocolError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

CURRENT_PATH = "/weather"
FORECAST_PATH = "/forecast"


class OpenWeatherClient:
    """Thin async client for the OpenWeatherMap current and 5 day / 3 hour endpoints.

    Returns the decoded JSON payloads untouched; shaping them is the
    normalizer's job. Every failure is mapped to an ``UpstreamError`` subclass.
    """

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: float,
        units: str = "metric",
        base_url: str = OPENWEATHER_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._units = units
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_current(self, city: str) -> dict[str, Any]:
        return await self._get(CURRENT_PATH, city)

    async def fetch_forecast(self, city: str) -> dict[str, Any]:
        return await self._get(FORECAST_PATH, city)

    async def _get(self, path: str, city: str) -> dict[str, Any]:
        params = {"q": city, "units": self._units, "appid": self._api_key}
        try:
            resp = await self._client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.warning("OpenWeather %s timed out for city=%r", path, city)
            raise UpstreamUnavailableError("Weather provider timed out") from e
        except httpx.HTTPError as e:
            logger.warning("OpenWeather %s request failed for city=%r: %s", path, city, e)
            raise UpstreamUnavailableError("Weather provider unavailable") from e

        try:
            payload = resp.json()
        except ValueError as e:
            logger.error(
                "OpenWeather %s returned non-JSON body (status=%d)", path, resp.status_code
            )
            raise UpstreamProtocolError("Unexpected weather provider response") from e
        if not isinstance(payload, dict):
            raise UpstreamProtocolError("Unexpected weather provider response")

        _check_status(payload, path=path, http_status=resp.status_code)
        return payload


def _check_status(payload: dict[str, Any], *, path: str, http_status: int) -> None:
    # /weather reports cod as an int, /forecast as a string.
    cod = str(payload.get("cod", http_status))
    if cod == "200":
        return
    message = _str_or_default(payload.get("message"), f"Weather provider error ({cod})")
    logger.info("OpenWeather %s answered cod=%s message=%r", path, cod, message)
    if cod == "404":
        raise UpstreamNotFoundError(message)
    raise UpstreamError(message)


def _str_or_default(v: Any, default: str) -> str:
    if isinstance(v, str) and v:
        return v
    return default
