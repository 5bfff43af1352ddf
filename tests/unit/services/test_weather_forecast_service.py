from unittest.mock import MagicMock

import pytest
import requests

from app.domain.exceptions import ConfigurationError, ExternalServiceError
from app.services.utilities.weather_forecast_service import (
    WeatherForecastService,
    aggregate_daily,
    pick_noonish,
)

# Jakarta, UTC+7
OFFSET = 7 * 3600
# 2026-10-19T00:00:00+07:00
DAY_START = 1_792_342_800


def _item(local_hour: int, day: int = 0, *, temp: float = 30.0, humidity: int = 70, rain: float = 0.0, pop: float = 0.1):
    item = {
        "dt": DAY_START + day * 86400 + local_hour * 3600,
        "main": {"temp": temp, "temp_min": temp - 1, "temp_max": temp + 1, "humidity": humidity},
        "weather": [{"id": 800, "main": "Clear", "description": f"cerah {local_hour}", "icon": "01d"}],
        "wind": {"speed": 2.0, "deg": 90, "gust": 3.0},
        "pop": pop,
    }
    if rain:
        item["rain"] = {"3h": rain}
    return item


def _raw(items):
    return {
        "city": {"id": 1642911, "name": "Jakarta", "coord": {"lat": -6.2, "lon": 106.8}, "country": "ID", "timezone": OFFSET},
        "list": items,
    }


def test_pick_noonish_prefers_local_noon():
    items = [_item(6), _item(9), _item(12), _item(15)]
    assert pick_noonish(items, OFFSET)["dt"] == items[2]["dt"]


def test_pick_noonish_takes_earliest_on_tie():
    items = [_item(9), _item(15)]
    assert pick_noonish(items, OFFSET)["dt"] == items[0]["dt"]


def test_aggregate_daily_groups_by_local_day():
    items = [
        _item(21, day=-1, temp=25.0),
        _item(0, temp=24.0, humidity=80),
        _item(12, temp=32.0, humidity=60, rain=1.5, pop=0.6),
        _item(18, temp=28.0, humidity=70, rain=0.5),
        _item(3, day=1, temp=23.0),
    ]

    forecast = aggregate_daily(_raw(items))

    assert forecast["city"]["name"] == "Jakarta"
    assert forecast["city"]["timezone"] == OFFSET
    assert len(forecast["list"]) == 3

    today = forecast["list"][1]
    assert today["dt"] == items[2]["dt"]
    assert today["temp"]["day"] == pytest.approx((24 + 32 + 28) / 3)
    assert today["temp"]["min"] == 23.0
    assert today["temp"]["max"] == 33.0
    assert today["humidity"] == 70
    assert today["rain"] == pytest.approx(2.0)
    assert today["pop"] == 0.6
    assert today["weather"][0]["description"] == "cerah 12"
    assert "rain" not in forecast["list"][0]


def test_aggregate_daily_keeps_at_most_requested_days():
    items = [_item(12, day=day) for day in range(7)]
    assert len(aggregate_daily(_raw(items), days=5)["list"]) == 5


def _response(status=200, payload=None):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.json.return_value = payload
    response.text = "error body"
    return response


def test_forecast_requires_api_key():
    service = WeatherForecastService("", session=MagicMock())
    assert not service.is_configured
    with pytest.raises(ConfigurationError):
        service.get_daily_forecast(-6.2, 106.8)


def test_forecast_is_cached_per_rounded_location():
    session = MagicMock()
    session.get.return_value = _response(payload=_raw([_item(12)]))
    service = WeatherForecastService("key", session=session)

    first = service.get_daily_forecast(-6.2001, 106.8001)
    second = service.get_daily_forecast(-6.2004, 106.7999)

    assert first == second
    session.get.assert_called_once()
    params = session.get.call_args.kwargs["params"]
    assert params["units"] == "metric"
    assert params["lang"] == "id"
    assert params["appid"] == "key"


def test_upstream_error_status_raises_external_service_error():
    session = MagicMock()
    session.get.return_value = _response(status=401)
    service = WeatherForecastService("bad", session=session)

    with pytest.raises(ExternalServiceError) as excinfo:
        service.get_daily_forecast(-6.2, 106.8)
    assert excinfo.value.http_status == 502
    assert excinfo.value.detail["status"] == 401


def test_network_error_raises_external_service_error():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("unreachable")
    service = WeatherForecastService("key", session=session)

    with pytest.raises(ExternalServiceError):
        service.get_daily_forecast(-6.2, 106.8)
    assert len(service.cache) == 0
