from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.domain.soil_reading import EnvironmentSnapshot, SoilReading

if TYPE_CHECKING:
    from infrastructure.database.ops.soil_readings import SoilReadingOperations

logger = logging.getLogger(__name__)


class SoilReadingRepository:
    """Facade providing typed access to soil readings and the environment snapshot."""

    def __init__(self, backend: "SoilReadingOperations") -> None:
        self._backend = backend

    # Readings -----------------------------------------------------------------
    def append(self, reading: SoilReading) -> None:
        self._backend.insert_soil_reading(
            reading.moisture,
            reading.raw_adc,
            reading.pump_status.value,
            reading.timestamp,
        )

    def read_since(self, cutoff_ms: int, *, limit: int | None = None) -> list[SoilReading]:
        if limit is not None and limit <= 0:
            limit = None
        rows = self._backend.fetch_soil_readings_since(int(cutoff_ms), limit)
        return [SoilReading.from_dict(row) for row in rows]

    def latest(self) -> SoilReading | None:
        row = self._backend.fetch_latest_soil_reading()
        return SoilReading.from_dict(row) if row else None

    def count(self) -> int:
        return self._backend.count_soil_readings()

    def trim(self, keep: int) -> int:
        return self._backend.trim_soil_readings(keep)

    # Environment --------------------------------------------------------------
    def save_snapshot(self, snapshot: EnvironmentSnapshot) -> None:
        self._backend.upsert_environment_snapshot(
            snapshot.temperature,
            snapshot.humidity,
            snapshot.raining,
            snapshot.status,
            snapshot.timestamp,
        )

    def latest_snapshot(self) -> EnvironmentSnapshot | None:
        row = self._backend.fetch_environment_snapshot()
        return EnvironmentSnapshot.from_dict(row) if row else None
