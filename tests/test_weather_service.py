"""날씨 서비스 테스트."""

from __future__ import annotations

import asyncio

import pytest
import requests

from app.core.config import get_settings
from app.schemas.itinerary import Day
from app.services.weather_service import (
    WeatherServiceError,
    fetch_forecast,
    fetch_weather_for_days,
    summarize_forecast,
    weather_emoji,
)


def _reading(dt_txt: str, temp: float, icon: str = "01d", pop: float = 0.0) -> dict:
    return {
        "dt_txt": dt_txt,
        "main": {"temp_min": temp - 2.4, "temp_max": temp + 2.6, "feels_like": temp + 0.4, "humidity": 40},
        "weather": [{"description": "clear sky", "icon": icon}],
        "wind": {"speed": 2.5},
        "pop": pop,
    }


class _FakeResponse:
    def __init__(self, status_code: int, payload: dict) -> None:
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)

    def json(self) -> dict:
        return self._payload


def _patch_session_get(monkeypatch, response: _FakeResponse) -> list[dict]:
    calls: list[dict] = []

    def _fake_get(self, url, params=None, timeout=None):
        calls.append({"url": url, "params": params, "timeout": timeout})
        return response

    monkeypatch.setattr("app.services.weather_service.requests.Session.get", _fake_get)
    return calls


def test_summarize_forecast_picks_reading_closest_to_noon() -> None:
    forecasts = summarize_forecast(
        [
            _reading("2025-03-02 09:00:00", 20.0),
            _reading("2025-03-01 06:00:00", 15.0),
            _reading("2025-03-01 12:00:00", 25.0, icon="10d", pop=0.42),
            _reading("2025-03-01 18:00:00", 18.0),
        ]
    )

    assert [forecast.date for forecast in forecasts] == ["2025-03-01", "2025-03-02"]
    first = forecasts[0]
    assert (first.temp_min, first.temp_max, first.feels_like) == (23, 28, 25)
    assert first.icon == "10d"
    assert first.pop == 42
    assert first.wind_kph == 9


def test_weather_emoji() -> None:
    assert weather_emoji("01d") == "☀️"
    assert weather_emoji("10n") == "🌦️"
    assert weather_emoji("99x") == "🌡️"
    assert weather_emoji(None) == "🌡️"


def test_fetch_forecast_requires_api_key(monkeypatch) -> None:
    monkeypatch.delenv("OPENWEATHER_API_KEY", raising=False)
    get_settings.cache_clear()

    try:
        with pytest.raises(WeatherServiceError) as exc_info:
            asyncio.run(fetch_forecast("Delhi"))
    finally:
        get_settings.cache_clear()

    assert exc_info.value.configured is False


def test_fetch_forecast_sends_metric_query(monkeypatch) -> None:
    calls = _patch_session_get(
        monkeypatch,
        _FakeResponse(200, {"list": [_reading("2025-03-01 12:00:00", 25.0)]}),
    )

    forecasts = asyncio.run(fetch_forecast("Delhi", api_key="w-key"))

    assert len(forecasts) == 1
    assert calls[0]["params"] == {"q": "Delhi", "appid": "w-key", "units": "metric", "cnt": 40}


def test_fetch_forecast_wraps_http_error(monkeypatch) -> None:
    _patch_session_get(monkeypatch, _FakeResponse(404, {"message": "city not found"}))

    with pytest.raises(WeatherServiceError, match="HTTP 404") as exc_info:
        asyncio.run(fetch_forecast("Atlantis", api_key="w-key"))

    assert exc_info.value.configured is True


def test_fetch_weather_for_days_matches_dates_per_day(monkeypatch) -> None:
    _patch_session_get(
        monkeypatch,
        _FakeResponse(
            200,
            {"list": [_reading("2025-03-01 12:00:00", 25.0), _reading("2025-03-02 12:00:00", 22.0)]},
        ),
    )
    days = [
        Day(day=1, date="2025-03-01", location="Delhi"),
        Day(day=2, date="2025-03-02", location="Delhi"),
        Day(day=3, date="2025-03-09", location="Delhi"),
    ]

    result = asyncio.run(fetch_weather_for_days(days, api_key="w-key"))

    assert sorted(result) == [1, 2]
    assert result[2].temp_max == 25


def test_fetch_weather_for_days_skips_failed_cities(monkeypatch) -> None:
    _patch_session_get(monkeypatch, _FakeResponse(500, {}))

    result = asyncio.run(fetch_weather_for_days([Day(day=1, date="2025-03-01", location="Delhi")], api_key="w-key"))

    assert result == {}
