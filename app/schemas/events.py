from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SoilReadingPayload(BaseModel):
    """Payload for ``soil_reading`` events and Socket.IO pushes."""

    schema_version: int = Field(default=1, alias="schemaVersion")
    moisture: float
    raw_adc: int = Field(alias="rawADC")
    pump_status: str = Field(alias="pumpStatus")
    timestamp: int

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_reading(cls, reading: Any) -> "SoilReadingPayload":
        return cls(
            moisture=reading.moisture,
            raw_adc=reading.raw_adc,
            pump_status=reading.pump_status.value,
            timestamp=reading.timestamp,
        )


class EnvironmentSnapshotPayload(BaseModel):
    schema_version: int = Field(default=1, alias="schemaVersion")
    temperature: float
    humidity: float
    rain: bool
    status: str
    timestamp: int

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_snapshot(cls, snapshot: Any) -> "EnvironmentSnapshotPayload":
        return cls(
            temperature=snapshot.temperature,
            humidity=snapshot.humidity,
            rain=snapshot.raining,
            status=snapshot.status,
            timestamp=snapshot.timestamp,
        )
