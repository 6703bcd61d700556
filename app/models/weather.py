from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class CurrentConditions:
    city: str
    country: str
    temperature: float
    condition: str
    description: str
    icon: str
    humidity: int
    wind_speed: float
    pressure: int


@dataclass(frozen=True)
class ForecastSample:
    timestamp: datetime
    temperature: float
    condition: str
    icon: str
