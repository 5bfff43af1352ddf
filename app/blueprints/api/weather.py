"""
Weather API Blueprint
=====================

- GET /api/v1/weather/forecast?lat=&lon= - 5-day daily forecast (OpenWeatherMap)
"""

from __future__ import annotations

from flask import Blueprint, Response

from app.blueprints.api._common import get_weather_service, parse_query, success
from app.schemas.weather import ForecastQuery
from app.utils.http import safe_route

weather_api = Blueprint("weather_api", __name__)


@weather_api.get("/forecast")
@safe_route("Gagal mengambil prakiraan cuaca")
def forecast() -> Response:
    query = parse_query(ForecastQuery)
    return success(get_weather_service().get_daily_forecast(query.lat, query.lon))
