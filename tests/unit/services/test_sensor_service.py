from unittest.mock import MagicMock

from app.domain.soil_reading import EnvironmentSnapshot, SoilReading
from app.enums.common import PumpStatus
from app.enums.events import SensorEvent
from app.schemas.events import EnvironmentSnapshotPayload, SoilReadingPayload
from app.services.application.sensor_service import SensorService

HOUR_MS = 60 * 60 * 1000


def test_ingest_soil_reading_stores_and_publishes(readings_repo, mock_event_bus):
    service = SensorService(readings_repo, readings_repo, event_bus=mock_event_bus)

    reading = service.ingest_soil_reading({"moisture": 42.5, "rawADC": 2300, "pumpStatus": "ON", "timestamp": 1000})

    assert reading.pump_status is PumpStatus.ON
    assert readings_repo.latest() == reading

    event, payload = mock_event_bus.publish.call_args.args
    assert event is SensorEvent.SOIL_READING
    assert isinstance(payload, SoilReadingPayload)
    assert payload.model_dump(by_alias=True) == {
        "schemaVersion": 1,
        "moisture": 42.5,
        "rawADC": 2300,
        "pumpStatus": "ON",
        "timestamp": 1000,
    }


def test_ingest_trims_history_to_retention(readings_repo, make_readings):
    service = SensorService(readings_repo, readings_repo, retention_count=3)

    for reading in make_readings([10, 20, 30, 40, 50]):
        service.ingest_soil_reading(reading)

    assert readings_repo.count() == 3
    assert [r.moisture for r in readings_repo.read_since(0)] == [30, 40, 50]


def test_trim_failure_does_not_reject_the_reading(make_readings):
    store = MagicMock()
    store.trim.side_effect = RuntimeError("locked")
    service = SensorService(store, MagicMock(), retention_count=10)

    reading = make_readings([33])[0]
    assert service.ingest_soil_reading(reading) is reading
    store.append.assert_called_once_with(reading)


def test_publish_failure_is_swallowed(readings_repo, make_readings):
    bus = MagicMock()
    bus.publish.side_effect = RuntimeError("queue closed")
    service = SensorService(readings_repo, readings_repo, event_bus=bus)

    service.ingest_soil_reading(make_readings([60])[0])

    assert readings_repo.count() == 1


def test_environment_snapshot_replaces_previous(readings_repo, mock_event_bus):
    service = SensorService(readings_repo, readings_repo, event_bus=mock_event_bus)

    service.ingest_environment({"temperature": 30.5, "humidity": 70, "rain": False, "timestamp": 1000})
    latest = service.ingest_environment({"temperature": 27.0, "humidity": 88, "rain": "hujan", "timestamp": 2000})

    assert latest.raining is True
    assert service.latest_environment() == EnvironmentSnapshot(
        temperature=27.0, humidity=88.0, raining=True, status="active", timestamp=2000
    )
    event, payload = mock_event_bus.publish.call_args.args
    assert event is SensorEvent.ENVIRONMENT_SNAPSHOT
    assert isinstance(payload, EnvironmentSnapshotPayload)
    assert payload.rain is True


def test_recent_readings_window(readings_repo, make_readings, now_ms):
    service = SensorService(readings_repo, readings_repo)
    for reading in make_readings([10, 20, 30, 40], step_ms=HOUR_MS, end_ms=now_ms):
        service.ingest_soil_reading(reading)

    recent = service.recent_readings(hours=2, now_ms=now_ms)
    assert [r.moisture for r in recent] == [20, 30, 40]

    newest = service.recent_readings(hours=24, limit=2, now_ms=now_ms)
    assert [r.moisture for r in newest] == [30, 40]


def test_latest_reading_none_when_empty(readings_repo):
    service = SensorService(readings_repo, readings_repo)
    assert service.latest_reading() is None
    assert service.latest_environment() is None


def test_accepts_domain_reading(readings_repo):
    service = SensorService(readings_repo, readings_repo)
    reading = SoilReading(moisture=55, raw_adc=1800, pump_status=PumpStatus.OFF, timestamp=5)

    assert service.ingest_soil_reading(reading) is reading
