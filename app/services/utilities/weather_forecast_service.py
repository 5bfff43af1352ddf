"""
Weather Forecast Service
========================

Five-day daily forecast for the dashboard's weather card, built from the
free OpenWeatherMap 5 day / 3 hour endpoint.

Features:
- Aggregates 3-hourly items into local calendar days (city timezone offset)
- Representative weather from the item nearest local noon
- Per-location caching to stay inside the free-tier quota
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

import requests

from app.constants import FORECAST_DAYS, OPENWEATHER_FORECAST_URL
from app.domain.exceptions import ConfigurationError, ExternalServiceError
from app.utils.cache import TTLCache

logger = logging.getLogger(__name__)

_NOON_HOUR = 12


def _local_time(item: dict[str, Any], offset_seconds: int) -> datetime:
    return datetime.fromtimestamp(int(item["dt"]), tz=timezone(timedelta(seconds=offset_seconds)))


def _mean(values: Iterable[float]) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def pick_noonish(items: list[dict[str, Any]], offset_seconds: int) -> dict[str, Any]:
    """Item whose local hour is closest to 12:00; the earliest wins ties."""
    return min(items, key=lambda item: abs(_local_time(item, offset_seconds).hour - _NOON_HOUR))


def aggregate_daily(raw: dict[str, Any], days: int = FORECAST_DAYS) -> dict[str, Any]:
    """Collapse the 3-hourly ``list`` of an OpenWeatherMap response into daily entries."""
    city = raw.get("city") or {}
    offset = int(city.get("timezone") or 0)

    by_day: dict[str, list[dict[str, Any]]] = {}
    for item in raw.get("list") or []:
        day_key = _local_time(item, offset).strftime("%Y-%m-%d")
        by_day.setdefault(day_key, []).append(item)

    daily = []
    for _, items in sorted(by_day.items())[:days]:
        rep = pick_noonish(items, offset)
        mains = [item.get("main") or {} for item in items]
        winds = [item.get("wind") or {} for item in items]

        avg_temp = _mean(float(main.get("temp", 0)) for main in mains)
        rain = sum(float((item.get("rain") or {}).get("3h", 0)) for item in items)
        entry: dict[str, Any] = {
            "dt": rep["dt"],
            "temp": {
                "day": avg_temp,
                "min": min(float(main.get("temp_min", main.get("temp", 0))) for main in mains),
                "max": max(float(main.get("temp_max", main.get("temp", 0))) for main in mains),
            },
            "humidity": round(_mean(float(main.get("humidity", 0)) for main in mains)),
            "weather": rep.get("weather") or [],
            "speed": _mean(float(wind.get("speed", 0)) for wind in winds),
            "deg": (rep.get("wind") or {}).get("deg", 0),
            "gust": max(float(wind.get("gust", 0)) for wind in winds),
            "pop": max(float(item.get("pop", 0)) for item in items),
        }
        if rain > 0:
            entry["rain"] = rain
        daily.append(entry)

    return {
        "city": {
            "id": city.get("id"),
            "name": city.get("name"),
            "coord": city.get("coord"),
            "country": city.get("country"),
            "timezone": offset,
        },
        "list": daily,
    }


class WeatherForecastService:
    """Cached OpenWeatherMap daily forecast lookups."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = OPENWEATHER_FORECAST_URL,
        timeout: float = 10,
        cache_ttl_seconds: int = 600,
        session: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._session = session or requests.Session()
        self._cache: TTLCache[dict[str, Any]] = TTLCache(ttl_seconds=cache_ttl_seconds, maxsize=32)

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    @property
    def cache(self) -> TTLCache[dict[str, Any]]:
        return self._cache

    def get_daily_forecast(self, lat: float, lon: float) -> dict[str, Any]:
        if not self._api_key:
            raise ConfigurationError(
                "OpenWeather API key tidak ditemukan. Set OPENWEATHER_API_KEY lalu restart server."
            )
        # ~1 km grid so small GPS jitter reuses the cached forecast
        key = (round(lat, 2), round(lon, 2))
        return self._cache.get(key, lambda: self._fetch(lat, lon))

    def _fetch(self, lat: float, lon: float) -> dict[str, Any]:
        params = {"lat": lat, "lon": lon, "units": "metric", "lang": "id", "appid": self._api_key}
        try:
            response = self._session.get(self._base_url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.warning("OpenWeather request failed: %s", exc)
            raise ExternalServiceError("Gagal menghubungi OpenWeather", detail={"reason": str(exc)}) from exc

        if not response.ok:
            logger.warning("OpenWeather returned HTTP %s for (%s, %s)", response.status_code, lat, lon)
            raise ExternalServiceError(
                f"OpenWeather request failed ({response.status_code})",
                detail={"status": response.status_code, "details": response.text[:500]},
            )

        try:
            raw = response.json()
        except ValueError as exc:
            raise ExternalServiceError("OpenWeather returned invalid JSON") from exc

        forecast = aggregate_daily(raw)
        logger.info(
            "Weather forecast for %s: %d days",
            forecast["city"].get("name") or f"{lat},{lon}",
            len(forecast["list"]),
        )
        return forecast
