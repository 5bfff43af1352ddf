"""HTTP contract of the dashboard API (rule-based provider, in-memory SQLite)."""

import time
from unittest.mock import MagicMock

import pytest


def _now_ms() -> int:
    return int(time.time() * 1000)


def _soil_data(count: int, moisture: float = 45.0):
    now = _now_ms()
    return [
        {"moisture": moisture, "rawADC": 2200, "pumpStatus": "ON" if index % 2 else "OFF", "timestamp": now - index * 60_000}
        for index in range(count)
    ]


# --- Analysis -------------------------------------------------------------------


def test_analyze_empty_window_is_400(client):
    response = client.post("/api/v1/analysis/analyze", json={"soilData": []})

    assert response.status_code == 400
    body = response.get_json()
    assert body["ok"] is False
    assert body["message"] == "Tidak cukup data untuk dianalisis"


def test_analyze_returns_fallback_report_without_provider(client):
    response = client.post("/api/v1/analysis/analyze", json={"soilData": _soil_data(20), "timeRange": "24 jam terakhir"})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["success"] is True
    assert data["isFallback"] is True
    assert data["source"] == "fallback"
    assert data["statistics"]["mean"] == 45.0
    assert data["statistics"]["trend"] == "stabil"
    assert data["pumpUsage"] == {"activations": 10, "percentage": 50.0}
    assert data["metadata"]["dataPoints"] == 20
    assert data["analysis"].startswith("# ANALISIS OTOMATIS")
    assert data["id"]


def test_second_fresh_analysis_is_rate_limited(client):
    assert client.post("/api/v1/analysis/analyze", json={"soilData": _soil_data(5)}).status_code == 200

    response = client.post("/api/v1/analysis/analyze", json={"soilData": _soil_data(6)})

    assert response.status_code == 429
    retry_after = int(response.headers["Retry-After"])
    assert 1 <= retry_after <= 15
    assert response.get_json()["error"]["retryAfter"] == retry_after


def test_invalid_body_is_400(client):
    response = client.post("/api/v1/analysis/analyze", json={"soilData": [{"rawADC": 100}]})

    assert response.status_code == 400
    assert response.get_json()["error"]["errors"]


def test_run_uses_stored_readings(client):
    for reading in _soil_data(3, moisture=25.0):
        assert client.post("/api/v1/sensors/readings", json=reading).status_code == 201

    response = client.post("/api/v1/analysis/run", json={"hours": 1})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["timeRange"] == "1 jam terakhir"
    assert data["metadata"]["dataPoints"] == 3
    assert "PERLU PERHATIAN" in data["analysis"]


def test_run_without_readings_is_400(client):
    response = client.post("/api/v1/analysis/run", json={"interval": "6h"})

    assert response.status_code == 400
    assert response.get_json()["error"]["timeRange"] == "6 Jam"


def test_status_reports_provider_and_schedule(client):
    data = client.get("/api/v1/analysis/status").get_json()["data"]

    assert data["provider"] == "none"
    assert data["providerAvailable"] is False
    assert data["schedule"]["interval"] == "manual"
    assert data["schedule"]["nextRun"] == "Manual"


# --- History --------------------------------------------------------------------


def test_history_lifecycle(client):
    created = client.post("/api/v1/analysis/analyze", json={"soilData": _soil_data(4)}).get_json()["data"]

    listing = client.get("/api/v1/analysis/history").get_json()["data"]
    assert listing["count"] == 1
    assert listing["items"][0]["id"] == created["id"]

    item = client.get(f"/api/v1/analysis/history/{created['id']}")
    assert item.status_code == 200
    assert item.get_json()["data"]["analysis"] == created["analysis"]

    assert client.delete(f"/api/v1/analysis/history/{created['id']}").status_code == 200
    assert client.get(f"/api/v1/analysis/history/{created['id']}").status_code == 404
    assert client.delete(f"/api/v1/analysis/history/{created['id']}").status_code == 404


def test_history_limit_is_clamped(client, container, make_readings):
    result = container.analysis_service.run_analysis(readings=make_readings([40, 41]))
    container.history.append(result)
    container.history.append(result)

    assert client.get("/api/v1/analysis/history?limit=2").get_json()["data"]["count"] == 2
    assert client.get("/api/v1/analysis/history?limit=0").get_json()["data"]["limit"] == 1
    assert client.get("/api/v1/analysis/history?limit=500").get_json()["data"]["limit"] == 50
    assert client.get("/api/v1/analysis/history?limit=abc").get_json()["data"]["limit"] == 20

    cleared = client.delete("/api/v1/analysis/history").get_json()["data"]
    assert cleared == {"removed": 3}
    assert client.get("/api/v1/analysis/history").get_json()["data"]["count"] == 0


# --- Schedule -------------------------------------------------------------------


def test_schedule_update(client):
    response = client.put("/api/v1/analysis/schedule", json={"interval": "3h"})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["interval"] == "3h"
    assert data["label"] == "3 Jam"
    assert data["nextRun"] in {"3 jam 0 menit lagi", "2 jam 59 menit lagi"}
    assert data["due"] is False

    assert client.get("/api/v1/analysis/schedule").get_json()["data"]["interval"] == "3h"


def test_schedule_rejects_unknown_interval(client):
    assert client.put("/api/v1/analysis/schedule", json={"interval": "2h"}).status_code == 400


def test_successful_analysis_marks_schedule_completed(client, container):
    client.put("/api/v1/analysis/schedule", json={"interval": "6h"})
    container.settings.set_setting("analysis_last_run_at", "0")
    assert container.schedule_service.is_due()

    client.post("/api/v1/analysis/analyze", json={"soilData": _soil_data(3)})

    assert not container.schedule_service.is_due()


def test_schedule_store_failure_still_returns_report(client, container, monkeypatch):
    mark_completed = MagicMock(side_effect=RuntimeError("database is locked"))
    monkeypatch.setattr(container.schedule_service, "mark_completed", mark_completed)

    response = client.post("/api/v1/analysis/analyze", json={"soilData": _soil_data(5)})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["analysis"]
    assert container.history.get(data["id"]) is not None
    mark_completed.assert_called_once_with()

    for reading in _soil_data(3):
        client.post("/api/v1/sensors/readings", json=reading)
    assert client.post("/api/v1/analysis/run", json={"hours": 1}).status_code == 429


# --- Sensors --------------------------------------------------------------------


def test_sensor_reading_ingest_and_latest(client):
    assert client.get("/api/v1/sensors/latest").status_code == 404

    response = client.post("/api/v1/sensors/readings", json={"moisture": 120, "rawADC": 900, "pumpStatus": "on"})
    assert response.status_code == 201
    stored = response.get_json()["data"]
    assert stored["moisture"] == 100.0
    assert stored["pumpStatus"] == "ON"
    assert stored["timestamp"] > 0

    latest = client.get("/api/v1/sensors/latest").get_json()["data"]
    assert latest == stored

    listing = client.get("/api/v1/sensors/readings?hours=1").get_json()["data"]
    assert listing["count"] == 1


def test_environment_ingest(client):
    assert client.get("/api/v1/sensors/environment/latest").status_code == 404

    response = client.post("/api/v1/sensors/environment", json={"temperature": 31.2, "humidity": 68, "rain": "hujan"})
    assert response.status_code == 201

    latest = client.get("/api/v1/sensors/environment/latest").get_json()["data"]
    assert latest["temperature"] == 31.2
    assert latest["rain"] is True


def test_environment_out_of_range_is_400(client):
    assert client.post("/api/v1/sensors/environment", json={"temperature": 31, "humidity": 140}).status_code == 400


# --- Weather --------------------------------------------------------------------


def test_weather_without_key_is_500(client):
    response = client.get("/api/v1/weather/forecast?lat=-6.2&lon=106.8")

    assert response.status_code == 500
    assert response.get_json()["ok"] is False


def test_weather_forecast(client, container, monkeypatch):
    forecast = {"city": {"name": "Jakarta"}, "list": []}
    service = MagicMock()
    service.get_daily_forecast.return_value = forecast
    monkeypatch.setattr(container, "weather_service", service)

    response = client.get("/api/weather-forecast?lat=-6.2&lon=106.8")

    assert response.status_code == 200
    assert response.get_json()["data"] == forecast
    service.get_daily_forecast.assert_called_once_with(-6.2, 106.8)


def test_weather_rejects_bad_coordinates(client):
    assert client.get("/api/v1/weather/forecast?lat=200&lon=0").status_code == 400


# --- Health & routing -----------------------------------------------------------


def test_health_endpoints(client):
    assert client.get("/api/v1/health/ping").get_json()["data"]["status"] == "ok"

    keys = client.get("/api/v1/health/keys").get_json()["data"]
    assert keys["llm"]["provider"] == "none"
    assert keys["llm"]["available"] is False
    assert keys["openweather"]["configured"] is False
    assert keys["store"] == "sqlite"

    caches = client.get("/api/v1/health/cache").get_json()["data"]
    assert set(caches["caches"]) == {"soil_analysis.results", "weather.forecast"}

    assert "queue_depth" in client.get("/api/v1/health/events").get_json()["data"]


@pytest.mark.parametrize("path", ["/api/analyze-soil", "/api/analysis/analyze"])
def test_legacy_paths_are_rewritten(client, path):
    response = client.post(path, json={"soilData": []})
    assert response.status_code == 400
    assert response.get_json()["message"] == "Tidak cukup data untuk dianalisis"


def test_unknown_api_route_is_json_404(client):
    response = client.get("/api/v1/nope")

    assert response.status_code == 404
    assert response.get_json()["ok"] is False
