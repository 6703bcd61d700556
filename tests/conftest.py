from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from app.api import deps
from app.core.config import Settings
from app.factory import create_app
from tests.fakes import FIXED_NOW, FakeRedis, FakeWeatherProvider


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        env="test",
        debug=True,
        docs_enabled=False,
        log_level="DEBUG",
        cors_origins=["http://localhost"],
        trusted_hosts=["testserver", "localhost"],
        redis_url="redis://localhost:6379/15",
        redis_ping_on_startup=False,
        weather_api_key="test-api-key",
        weather_timeout_seconds=1.0,
        weather_cache_ttl_seconds=600,
        weather_reference_timezone="Asia/Kolkata",
        weather_forecast_policy="calendar",
    )


@pytest.fixture()
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def provider() -> FakeWeatherProvider:
    fake = FakeWeatherProvider()
    fake.add_city("London")
    return fake


@pytest.fixture()
def client(settings: Settings, fake_redis: FakeRedis, provider: FakeWeatherProvider) -> TestClient:
    app = create_app(settings)
    app.dependency_overrides[deps.get_redis] = lambda: fake_redis
    app.dependency_overrides[deps.get_weather_client] = lambda: provider
    app.dependency_overrides[deps.get_clock] = lambda: (lambda: FIXED_NOW)
    with TestClient(app) as client:
        yield client
