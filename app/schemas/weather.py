from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DayForecast(BaseModel):
    date: str = Field(min_length=1)
    temp: int
    condition: str
    icon: str


class HourSlot(BaseModel):
    time: str = Field(min_length=1)
    temp: int
    condition: str
    icon: str


class WeatherResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    city: str
    country: str
    temperature: int
    condition: str
    description: str
    icon: str
    humidity: int = Field(ge=0, le=100)
    wind_speed: float = Field(alias="windSpeed", ge=0)
    pressure: int
    forecast: list[DayForecast] = Field(max_length=5)
    hourly: list[HourSlot] = Field(min_length=24, max_length=24)

    def to_cache_value(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_cache_value(cls, raw: str | bytes) -> WeatherResult:
        return cls.model_validate_json(raw)


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str = "ok"
    cache: str
