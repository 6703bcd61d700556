from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from app.core.errors import UpstreamProtocolError
from app.services.normalize import (
    aggregate_daily,
    local_day_hours,
    normalize_weather,
    parse_forecast,
    round_half_up,
    synthesize_hourly,
)
from tests.fakes import (
    FIXED_NOW,
    FORECAST_START,
    make_current_payload,
    make_forecast_entry,
    make_forecast_payload,
)

IST = ZoneInfo("Asia/Kolkata")


def test_round_half_up() -> None:
    assert round_half_up(10.5) == 11
    assert round_half_up(11.5) == 12
    assert round_half_up(-0.5) == 0
    assert round_half_up(-1.6) == -2
    assert round_half_up(3.49) == 3


def test_calendar_policy_one_sample_per_date_within_window() -> None:
    samples = parse_forecast(make_forecast_payload())
    days = aggregate_daily(samples, now=FIXED_NOW, tz=IST, policy="calendar")

    assert [d.date for d in days] == [
        "2025-11-06",
        "2025-11-07",
        "2025-11-08",
        "2025-11-09",
        "2025-11-10",
    ]
    # 00:00Z, 03:00Z and 06:00Z are before "now"; 09:00Z is the first eligible sample.
    assert days[0].temp == round_half_up(10.5 + 3)
    # 2025-11-07 IST begins at 18:30Z on the 6th; the next sample is 21:00Z (index 7).
    assert days[1].temp == round_half_up(10.5 + 7)


def test_calendar_policy_ignores_samples_outside_window() -> None:
    past = make_forecast_entry(FIXED_NOW - timedelta(hours=3), 1.0)
    late = make_forecast_entry(FIXED_NOW + timedelta(days=6), 2.0)
    samples = parse_forecast({"cod": "200", "list": [past, late]})
    assert aggregate_daily(samples, now=FIXED_NOW, tz=IST) == []


def test_calendar_policy_sorts_out_of_order_samples() -> None:
    payload = make_forecast_payload()
    payload["list"].reverse()
    days = aggregate_daily(parse_forecast(payload), now=FIXED_NOW, tz=IST)
    dates = [d.date for d in days]
    assert dates == sorted(set(dates))
    assert days[0].temp == round_half_up(10.5 + 3)


def test_stride_policy_takes_every_eighth_sample_from_now() -> None:
    samples = parse_forecast(make_forecast_payload())
    days = aggregate_daily(samples, now=FIXED_NOW, tz=IST, policy="stride")
    assert len(days) == 5
    # 00:00Z, 03:00Z and 06:00Z are before "now"; the stride starts at 09:00Z (index 3).
    assert [d.temp for d in days] == [round_half_up(10.5 + i) for i in (3, 11, 19, 27, 35)]
    assert [d.date for d in days] == sorted({d.date for d in days})


def test_unknown_policy_is_rejected() -> None:
    with pytest.raises(ValueError):
        aggregate_daily([], now=FIXED_NOW, tz=IST, policy="weekly")  # type: ignore[arg-type]


@pytest.mark.parametrize("count", [0, 1, 3, 40])
def test_hourly_always_has_24_slots(count: int) -> None:
    samples = parse_forecast(make_forecast_payload(count=count))
    slots = synthesize_hourly(samples, now=FIXED_NOW, tz=IST)
    assert len(slots) == 24
    assert slots[0].time == "12:00 AM"
    assert slots[13].time == "01:00 PM"
    assert slots[23].time == "11:00 PM"


def test_hourly_placeholder_when_no_samples() -> None:
    slots = synthesize_hourly([], now=FIXED_NOW, tz=IST)
    assert {(s.temp, s.condition, s.icon) for s in slots} == {(0, "Unknown", "01d")}


def test_hourly_uses_nearest_sample_and_first_on_ties() -> None:
    samples = parse_forecast(make_forecast_payload())
    slots = synthesize_hourly(samples, now=FIXED_NOW, tz=IST)

    # Local midnight is 18:30Z the day before; the first sample (00:00Z) is nearest.
    assert slots[0].temp == 11
    # 07:00 IST is 01:30Z, equidistant from 00:00Z and 03:00Z.
    assert slots[7].temp == 11
    # 08:00 IST is 02:30Z, nearest to 03:00Z.
    assert slots[8].temp == 12


def test_hourly_uses_samples_outside_the_local_day() -> None:
    sample = make_forecast_entry(FIXED_NOW + timedelta(days=3), 21.4, main="Rain", icon="10d")
    slots = synthesize_hourly(parse_forecast({"list": [sample]}), now=FIXED_NOW, tz=IST)
    assert {(s.temp, s.condition, s.icon) for s in slots} == {(21, "Rain", "10d")}


def test_local_day_hours_follow_reference_timezone() -> None:
    hours = local_day_hours(FIXED_NOW, IST)
    assert hours[0].astimezone(timezone.utc) == datetime(2025, 11, 5, 18, 30, tzinfo=timezone.utc)
    assert hours[-1] - hours[0] == timedelta(hours=23)

    utc_hours = local_day_hours(FIXED_NOW, timezone.utc)
    assert utc_hours[0] == datetime(2025, 11, 6, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "now",
    [
        datetime(2025, 3, 9, 12, 0, tzinfo=timezone.utc),
        datetime(2025, 11, 2, 12, 0, tzinfo=timezone.utc),
    ],
)
def test_local_day_hours_are_distinct_across_dst_changes(now: datetime) -> None:
    hours = local_day_hours(now, ZoneInfo("America/New_York"))
    stamps = [h.timestamp() for h in hours]
    assert len(set(stamps)) == 24
    assert all(b - a == 3600 for a, b in zip(stamps, stamps[1:]))


def test_hourly_labels_follow_dst_wall_clock() -> None:
    eastern = ZoneInfo("America/New_York")
    spring = synthesize_hourly([], now=datetime(2025, 3, 9, 12, 0, tzinfo=timezone.utc), tz=eastern)
    assert [s.time for s in spring[:3]] == ["12:00 AM", "01:00 AM", "03:00 AM"]

    autumn = synthesize_hourly([], now=datetime(2025, 11, 2, 12, 0, tzinfo=timezone.utc), tz=eastern)
    assert [s.time for s in autumn[:3]] == ["12:00 AM", "01:00 AM", "01:00 AM"]


def test_stride_policy_skips_samples_before_now() -> None:
    early = make_forecast_entry(FIXED_NOW - timedelta(hours=1), 1.0)
    later = make_forecast_entry(FIXED_NOW + timedelta(hours=2), 5.0)
    days = aggregate_daily(parse_forecast({"list": [early, later]}), now=FIXED_NOW, tz=IST, policy="stride")
    assert [d.temp for d in days] == [5]


def test_normalize_weather_builds_full_result() -> None:
    result = normalize_weather(
        make_current_payload(temp=-3.5, humidity=40, pressure=1001, wind_speed=7.2),
        make_forecast_payload(),
        now=FIXED_NOW,
        tz=IST,
    )
    assert result.city == "London"
    assert result.country == "GB"
    assert result.temperature == -3
    assert result.condition == "Clouds"
    assert result.description == "broken clouds"
    assert result.icon == "04d"
    assert result.humidity == 40
    assert result.pressure == 1001
    assert result.wind_speed == 7.2
    assert len(result.forecast) == 5
    assert len(result.hourly) == 24


def test_naive_now_is_treated_as_utc() -> None:
    aware = normalize_weather(
        make_current_payload(), make_forecast_payload(), now=FIXED_NOW, tz=IST
    )
    naive = normalize_weather(
        make_current_payload(),
        make_forecast_payload(),
        now=FIXED_NOW.replace(tzinfo=None),
        tz=IST,
    )
    assert aware == naive


@pytest.mark.parametrize(
    "current",
    [
        {"cod": 200, "name": "London"},
        {**make_current_payload(), "weather": []},
        {**make_current_payload(), "main": {"temp": "warm", "humidity": 1, "pressure": 1}},
    ],
)
def test_malformed_current_payload(current: dict) -> None:
    with pytest.raises(UpstreamProtocolError):
        normalize_weather(current, make_forecast_payload(), now=FIXED_NOW, tz=IST)


@pytest.mark.parametrize(
    "forecast",
    [
        {"cod": "200"},
        {"cod": "200", "list": "nope"},
        {"cod": "200", "list": [{"dt": int(FORECAST_START.timestamp()), "main": {}}]},
    ],
)
def test_malformed_forecast_payload(forecast: dict) -> None:
    with pytest.raises(UpstreamProtocolError):
        normalize_weather(make_current_payload(), forecast, now=FIXED_NOW, tz=IST)


def test_out_of_range_values_are_protocol_errors() -> None:
    with pytest.raises(UpstreamProtocolError):
        normalize_weather(
            make_current_payload(humidity=140), make_forecast_payload(), now=FIXED_NOW, tz=IST
        )
