"""OpenWeather 5일 예보 조회 및 일자별 요약."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import requests

from app.core.config import get_settings
from app.core.logger import get_logger
from app.core.timeout_policy import get_timeout_policy, to_requests_timeout
from app.schemas.itinerary import Day
from app.schemas.media import DailyForecast

logger = get_logger(__name__)

OPENWEATHER_FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"
_FORECAST_COUNT = 40
_NOON_HOUR = 12

_ICON_EMOJIS = {
    "01": "☀️",
    "02": "🌤️",
    "03": "⛅",
    "04": "☁️",
    "09": "🌧️",
    "10": "🌦️",
    "11": "⛈️",
    "13": "❄️",
    "50": "🌫️",
}
_DEFAULT_EMOJI = "🌡️"


class WeatherServiceError(RuntimeError):
    """날씨 조회 실패 시 발생하는 예외."""

    def __init__(self, message: str, *, configured: bool = True) -> None:
        super().__init__(message)
        self.configured = configured


def weather_emoji(icon: str | None) -> str:
    """OpenWeather 아이콘 코드(예: 10d)를 이모지로 바꿉니다."""
    if not icon:
        return _DEFAULT_EMOJI
    return _ICON_EMOJIS.get(icon[:2], _DEFAULT_EMOJI)


def _reading_hour(item: dict[str, Any]) -> int:
    try:
        return int(str(item.get("dt_txt", ""))[11:13])
    except ValueError:
        return 0


def summarize_forecast(readings: Sequence[dict[str, Any]]) -> list[DailyForecast]:
    """3시간 간격 예보를 날짜별로 정오에 가장 가까운 한 건으로 요약합니다."""
    by_date: dict[str, dict[str, Any]] = {}
    for item in readings:
        dt_txt = str(item.get("dt_txt", ""))
        if len(dt_txt) < 13:
            continue
        day = dt_txt[:10]
        current = by_date.get(day)
        if current is None or abs(_reading_hour(item) - _NOON_HOUR) < abs(_reading_hour(current) - _NOON_HOUR):
            by_date[day] = item

    forecasts = []
    for day in sorted(by_date):
        item = by_date[day]
        main = item.get("main") or {}
        weather = (item.get("weather") or [{}])[0] or {}
        wind = item.get("wind") or {}
        forecasts.append(
            DailyForecast(
                date=day,
                temp_min=round(main.get("temp_min", 0)),
                temp_max=round(main.get("temp_max", 0)),
                feels_like=round(main.get("feels_like", 0)),
                humidity=main.get("humidity", 0),
                description=weather.get("description", ""),
                icon=weather.get("icon", "01d"),
                wind_kph=round((wind.get("speed") or 0) * 3.6),
                pop=round((item.get("pop") or 0) * 100),
            )
        )
    return forecasts


async def fetch_forecast(city: str, api_key: str | None = None) -> list[DailyForecast]:
    """도시의 5일 예보를 일자별로 요약해 반환합니다."""
    settings = get_settings()
    key = api_key or settings.OPENWEATHER_API_KEY
    if not key:
        raise WeatherServiceError("OPENWEATHER_API_KEY is not configured.", configured=False)
    if not city.strip():
        raise ValueError("city must not be empty")

    params = {"q": city, "appid": key, "units": "metric", "cnt": _FORECAST_COUNT}
    request_timeout = to_requests_timeout(get_timeout_policy(settings).external_api_timeout_seconds)

    def _send() -> requests.Response:
        with requests.Session() as session:
            return session.get(OPENWEATHER_FORECAST_URL, params=params, timeout=request_timeout)

    try:
        response = await asyncio.to_thread(_send)
        response.raise_for_status()
        data = response.json()
    except requests.HTTPError as exc:
        response = exc.response
        status_code = response.status_code if response is not None else None
        logger.warning("OpenWeather API error: city=%s status=%s", city, status_code)
        raise WeatherServiceError(f"OpenWeather returned HTTP {status_code}") from exc
    except requests.RequestException as exc:
        logger.warning("OpenWeather API request failed: city=%s error=%s", city, exc)
        raise WeatherServiceError("OpenWeather request failed") from exc
    except ValueError as exc:
        raise WeatherServiceError("OpenWeather response is not valid JSON") from exc

    readings = data.get("list") if isinstance(data, dict) else None
    return summarize_forecast(readings or [])


async def fetch_weather_for_days(
    days: Sequence[Day],
    api_key: str | None = None,
    default_location: str = "",
) -> dict[int, DailyForecast]:
    """일정의 각 일자에 해당 도시 예보를 붙입니다.

    날씨는 부가 정보이므로 도시별 조회 실패는 로그만 남기고 건너뜁니다.
    예보 범위(5일) 밖의 일자는 결과에 포함되지 않습니다.
    """
    cities = {day.location or default_location for day in days}
    cities.discard("")
    forecasts_by_city: dict[str, dict[str, DailyForecast]] = {}
    for city in sorted(cities):
        try:
            forecasts = await fetch_forecast(city, api_key)
        except (WeatherServiceError, ValueError) as exc:
            logger.info("Skipping weather for city=%s: %s", city, exc)
            continue
        forecasts_by_city[city] = {forecast.date: forecast for forecast in forecasts}

    result: dict[int, DailyForecast] = {}
    for day in days:
        city_forecasts = forecasts_by_city.get(day.location or default_location, {})
        forecast = city_forecasts.get(day.date)
        if forecast is not None:
            result[day.day] = forecast
    return result
