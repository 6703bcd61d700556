from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from zoneinfo import ZoneInfo

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from app.api.router import api_router
from app.clients.openweather import OpenWeatherClient
from app.core.config import Settings, load_settings
from app.core.logging import configure_logging
from app.db.redis import create_redis_client

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    # Fail at startup rather than on the first request.
    ZoneInfo(settings.weather_reference_timezone)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.redis = create_redis_client(settings)
        app.state.weather_client = OpenWeatherClient(
            api_key=settings.weather_api_key,
            timeout_seconds=settings.weather_timeout_seconds,
            units=settings.weather_units,
            base_url=str(settings.weather_base_url),
        )
        if settings.redis_ping_on_startup:
            try:
                await app.state.redis.ping()
                logger.info("Connected to Redis")
            except Exception:  # noqa: BLE001 - serve uncached until Redis is back
                logger.warning("Redis unreachable at startup; responses will not be cached")

        yield
        await app.state.weather_client.aclose()
        await app.state.redis.aclose()
        logger.info("Closed Redis and weather provider clients")

    docs_enabled = settings.docs_enabled and not settings.is_production
    app = FastAPI(
        title="Weather Cache Proxy",
        version="0.1.0",
        debug=settings.debug,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
        expose_headers=["X-Cache"],
    )
    if settings.trusted_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

    @app.middleware("http")
    async def security_headers(request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cross-Origin-Resource-Policy", "same-site")
        if settings.is_production:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        return response

    @app.get("/", tags=["meta"])
    def root():
        return {"name": "weather-cache-proxy", "status": "ok"}

    app.include_router(api_router)
    return app
