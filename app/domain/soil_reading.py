"""
Soil Reading Value Object
=========================
One soil-moisture sample pushed by the ESP32 node together with the pump
relay state at the time of measurement.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from app.constants import MOISTURE_MAX, MOISTURE_MIN, RAW_ADC_MAX, RAW_ADC_MIN
from app.enums.common import PumpStatus
from app.utils.time import epoch_ms


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


@dataclass(frozen=True)
class SoilReading:
    """Immutable soil sample. ``timestamp`` is epoch milliseconds."""

    moisture: float
    raw_adc: int
    pump_status: PumpStatus
    timestamp: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "moisture", _clamp(_as_float(self.moisture), MOISTURE_MIN, MOISTURE_MAX))
        object.__setattr__(self, "raw_adc", int(_clamp(int(_as_float(self.raw_adc)), RAW_ADC_MIN, RAW_ADC_MAX)))
        object.__setattr__(self, "pump_status", PumpStatus.parse(self.pump_status))
        object.__setattr__(self, "timestamp", int(_as_float(self.timestamp)))

    @property
    def pump_on(self) -> bool:
        return self.pump_status is PumpStatus.ON

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, default_timestamp: int | None = None) -> "SoilReading":
        """Build a reading from a device payload or a stored row.

        Accepts the firmware's camelCase keys (``rawADC``, ``pumpStatus``) and
        snake_case column names. Missing values fall back to 0 / ``"OFF"``; a
        missing timestamp falls back to *default_timestamp* or now.
        """
        raw_adc = data.get("rawADC", data.get("raw_adc", 0))
        pump = data.get("pumpStatus", data.get("pump_status", PumpStatus.OFF))
        timestamp = data.get("timestamp")
        if not timestamp:
            timestamp = default_timestamp if default_timestamp is not None else epoch_ms()
        return cls(
            moisture=data.get("moisture") or 0,
            raw_adc=raw_adc or 0,
            pump_status=pump,
            timestamp=timestamp,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "moisture": self.moisture,
            "rawADC": self.raw_adc,
            "pumpStatus": self.pump_status.value,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """Latest air temperature / humidity and rain sensor state from the node."""

    temperature: float
    humidity: float
    raining: bool
    status: str
    timestamp: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EnvironmentSnapshot":
        rain = data.get("rain", data.get("raining", False))
        if isinstance(rain, str):
            rain = rain.strip().lower() in {"1", "true", "yes", "hujan", "rain", "raining", "wet"}
        return cls(
            temperature=_as_float(data.get("temperature")),
            humidity=_clamp(_as_float(data.get("humidity")), 0.0, 100.0),
            raining=bool(rain),
            status=str(data.get("status") or "active"),
            timestamp=int(_as_float(data.get("timestamp"))) or epoch_ms(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "rain": self.raining,
            "status": self.status,
            "timestamp": self.timestamp,
        }
