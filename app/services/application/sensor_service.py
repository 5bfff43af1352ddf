"""
Sensor Service
==============
Ingest path for the field node: normalise, persist, notify the dashboard and
keep the reading history bounded.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from app.constants import DEFAULT_TIME_RANGE_SECONDS
from app.domain.soil_reading import EnvironmentSnapshot, SoilReading
from app.enums.events import SensorEvent
from app.schemas.events import EnvironmentSnapshotPayload, SoilReadingPayload
from app.utils.time import epoch_ms

if TYPE_CHECKING:
    from app.services.protocols import EnvironmentStore, SoilReadingStore
    from app.utils.event_bus import EventBus

logger = logging.getLogger(__name__)


class SensorService:
    def __init__(
        self,
        readings: "SoilReadingStore",
        environment: "EnvironmentStore",
        *,
        event_bus: "EventBus" | None = None,
        retention_count: int = 1000,
    ) -> None:
        self._readings = readings
        self._environment = environment
        self._event_bus = event_bus
        self._retention_count = retention_count

    def ingest_soil_reading(self, payload: Mapping[str, Any] | SoilReading) -> SoilReading:
        """Store one reading (timestamp defaults to now) and push it to the dashboard."""
        reading = payload if isinstance(payload, SoilReading) else SoilReading.from_dict(payload)
        self._readings.append(reading)
        logger.debug(
            "Soil reading stored: moisture=%.1f%% adc=%d pump=%s",
            reading.moisture,
            reading.raw_adc,
            reading.pump_status.value,
        )
        self._publish(SensorEvent.SOIL_READING, SoilReadingPayload.from_reading(reading))

        if self._retention_count > 0:
            try:
                self._readings.trim(self._retention_count)
            except Exception as exc:
                logger.warning("Failed to trim soil reading history: %s", exc, exc_info=True)
        return reading

    def ingest_environment(self, payload: Mapping[str, Any] | EnvironmentSnapshot) -> EnvironmentSnapshot:
        snapshot = payload if isinstance(payload, EnvironmentSnapshot) else EnvironmentSnapshot.from_dict(payload)
        self._environment.save_snapshot(snapshot)
        self._publish(SensorEvent.ENVIRONMENT_SNAPSHOT, EnvironmentSnapshotPayload.from_snapshot(snapshot))
        return snapshot

    def latest_reading(self) -> SoilReading | None:
        return self._readings.latest()

    def latest_environment(self) -> EnvironmentSnapshot | None:
        return self._environment.latest_snapshot()

    def recent_readings(
        self,
        *,
        hours: float = DEFAULT_TIME_RANGE_SECONDS / 3600,
        limit: int | None = None,
        now_ms: int | None = None,
    ) -> list[SoilReading]:
        now_ms = now_ms if now_ms is not None else epoch_ms()
        cutoff = now_ms - int(hours * 60 * 60 * 1000)
        return self._readings.read_since(cutoff, limit=limit)

    def _publish(self, event: SensorEvent, payload: Any) -> None:
        if self._event_bus is None:
            return
        try:
            self._event_bus.publish(event, payload)
        except Exception as exc:
            logger.warning("Failed to publish %s: %s", event.value, exc)
