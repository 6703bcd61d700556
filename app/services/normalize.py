"""Reshape OpenWeatherMap payloads into the ``WeatherResult`` wire schema.

Everything here is pure: the caller supplies ``now`` and the reference
timezone, so the day bucketing and hourly synthesis are deterministic.
"""

from __future__ import annotations

import math
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Any, Literal

from app.core.errors import UpstreamProtocolError
from app.models.weather import CurrentConditions, ForecastSample
from app.schemas.weather import DayForecast, HourSlot, WeatherResult

ForecastPolicy = Literal["calendar", "stride"]

FORECAST_DAYS = 5
FORECAST_WINDOW = timedelta(days=FORECAST_DAYS)
# The forecast endpoint steps by 3 hours, so 8 samples span one day.
SAMPLES_PER_DAY = 8
HOURS_PER_DAY = 24

PLACEHOLDER_TEMP = 0
PLACEHOLDER_CONDITION = "Unknown"
PLACEHOLDER_ICON = "01d"

HOUR_LABEL_FORMAT = "%I:%M %p"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_current(payload: dict[str, Any]) -> CurrentConditions:
    try:
        main = payload["main"]
        weather = _primary_weather(payload)
        return CurrentConditions(
            city=str(payload["name"]),
            country=str(payload.get("sys", {}).get("country", "")),
            temperature=float(main["temp"]),
            condition=str(weather["main"]),
            description=str(weather.get("description", "")),
            icon=str(weather["icon"]),
            humidity=int(main["humidity"]),
            wind_speed=float(payload.get("wind", {}).get("speed", 0.0)),
            pressure=int(main["pressure"]),
        )
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
        raise UpstreamProtocolError("Unexpected current weather response shape") from e


def parse_forecast(payload: dict[str, Any]) -> list[ForecastSample]:
    try:
        entries = payload["list"]
    except (KeyError, TypeError) as e:
        raise UpstreamProtocolError("Unexpected forecast response shape") from e
    if not isinstance(entries, list):
        raise UpstreamProtocolError("Forecast response list is not an array")

    samples: list[ForecastSample] = []
    for entry in entries:
        try:
            weather = _primary_weather(entry)
            samples.append(
                ForecastSample(
                    timestamp=datetime.fromtimestamp(int(entry["dt"]), tz=timezone.utc),
                    temperature=float(entry["main"]["temp"]),
                    condition=str(weather["main"]),
                    icon=str(weather["icon"]),
                )
            )
        except (KeyError, IndexError, TypeError, ValueError, OverflowError, OSError) as e:
            raise UpstreamProtocolError("Unexpected forecast entry shape") from e
    return samples


def _primary_weather(entry: dict[str, Any]) -> dict[str, Any]:
    weather = entry["weather"][0]
    if not isinstance(weather, dict):
        raise TypeError("weather entry is not an object")
    return weather


def aggregate_daily(
    samples: list[ForecastSample],
    *,
    now: datetime,
    tz: tzinfo,
    policy: ForecastPolicy = "calendar",
) -> list[DayForecast]:
    """One representative sample per calendar date, at most five, oldest first.

    ``calendar`` keeps the first sample of each date inside [now, now + 5 days].
    ``stride`` takes every 8th sample starting from the first one at or after now.
    """
    ordered = sorted(samples, key=lambda s: s.timestamp)
    if policy == "stride":
        candidates = [s for s in ordered if s.timestamp >= now][::SAMPLES_PER_DAY]
    elif policy == "calendar":
        stop = now + FORECAST_WINDOW
        candidates = [s for s in ordered if now <= s.timestamp <= stop]
    else:
        raise ValueError(f"Unknown forecast policy: {policy!r}")

    days: list[DayForecast] = []
    seen: set[str] = set()
    for sample in candidates:
        label = sample.timestamp.astimezone(tz).date().isoformat()
        if label in seen:
            continue
        seen.add(label)
        days.append(
            DayForecast(
                date=label,
                temp=round_half_up(sample.temperature),
                condition=sample.condition,
                icon=sample.icon,
            )
        )
        if len(days) == FORECAST_DAYS:
            break
    return days


def local_day_hours(now: datetime, tz: tzinfo) -> list[datetime]:
    """24 instants one hour apart, starting at local midnight of the day containing ``now``.

    Steps are taken in UTC so DST transitions still give 24 distinct instants.
    """
    day = now.astimezone(tz).date()
    midnight = datetime.combine(day, time(0), tzinfo=tz).astimezone(timezone.utc)
    return [(midnight + timedelta(hours=h)).astimezone(tz) for h in range(HOURS_PER_DAY)]


def synthesize_hourly(
    samples: list[ForecastSample], *, now: datetime, tz: tzinfo
) -> list[HourSlot]:
    slots: list[HourSlot] = []
    for target in local_day_hours(now, tz):
        nearest = _nearest_sample(samples, target.timestamp())
        label = target.strftime(HOUR_LABEL_FORMAT)
        if nearest is None:
            slots.append(
                HourSlot(
                    time=label,
                    temp=PLACEHOLDER_TEMP,
                    condition=PLACEHOLDER_CONDITION,
                    icon=PLACEHOLDER_ICON,
                )
            )
            continue
        slots.append(
            HourSlot(
                time=label,
                temp=round_half_up(nearest.temperature),
                condition=nearest.condition,
                icon=nearest.icon,
            )
        )
    return slots


def _nearest_sample(samples: list[ForecastSample], target_ts: float) -> ForecastSample | None:
    best: ForecastSample | None = None
    best_distance = math.inf
    for sample in samples:
        distance = abs(sample.timestamp.timestamp() - target_ts)
        # Strict comparison keeps the first sample on ties.
        if distance < best_distance:
            best = sample
            best_distance = distance
    return best


def normalize_weather(
    current_payload: dict[str, Any],
    forecast_payload: dict[str, Any],
    *,
    now: datetime,
    tz: tzinfo,
    policy: ForecastPolicy = "calendar",
) -> WeatherResult:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    current = parse_current(current_payload)
    samples = parse_forecast(forecast_payload)
    forecast = aggregate_daily(samples, now=now, tz=tz, policy=policy)
    hourly = synthesize_hourly(samples, now=now, tz=tz)

    try:
        return WeatherResult(
            city=current.city,
            country=current.country,
            temperature=round_half_up(current.temperature),
            condition=current.condition,
            description=current.description,
            icon=current.icon,
            humidity=current.humidity,
            wind_speed=current.wind_speed,
            pressure=current.pressure,
            forecast=forecast,
            hourly=hourly,
        )
    except ValueError as e:
        # pydantic.ValidationError is a ValueError
        raise UpstreamProtocolError("Weather provider returned out-of-range values") from e
