"""
Analysis Schemas
================

Pydantic models for soil analysis requests.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.constants import ANALYSIS_MAX_READINGS, DEFAULT_TIME_RANGE_LABEL, DEFAULT_TIME_RANGE_SECONDS
from app.domain.analysis import TimeRange
from app.domain.soil_reading import SoilReading
from app.enums.common import PumpStatus, ScheduleInterval


class SoilReadingIn(BaseModel):
    """One soil sample as sent by the node firmware or the dashboard."""

    moisture: float = Field(..., description="Soil moisture percentage (clamped to 0-100)")
    raw_adc: int = Field(
        default=0,
        validation_alias=AliasChoices("rawADC", "raw_adc"),
        description="Raw 12-bit ADC value (clamped to 0-4095)",
    )
    pump_status: PumpStatus = Field(
        default=PumpStatus.OFF,
        validation_alias=AliasChoices("pumpStatus", "pump_status"),
    )
    timestamp: Optional[int] = Field(default=None, ge=0, description="Epoch milliseconds; defaults to now")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("pump_status", mode="before")
    @classmethod
    def _coerce_pump_status(cls, v):
        return PumpStatus.parse(v)

    def to_domain(self, *, default_timestamp: int | None = None) -> SoilReading:
        return SoilReading.from_dict(
            {
                "moisture": self.moisture,
                "rawADC": self.raw_adc,
                "pumpStatus": self.pump_status,
                "timestamp": self.timestamp,
            },
            default_timestamp=default_timestamp,
        )


class AnalyzeRequest(BaseModel):
    """Analyse the series the dashboard is currently displaying."""

    soil_data: list[SoilReadingIn] = Field(
        default_factory=list,
        max_length=ANALYSIS_MAX_READINGS * 10,
        validation_alias=AliasChoices("soilData", "soil_data"),
    )
    time_range: str = Field(
        default=DEFAULT_TIME_RANGE_LABEL,
        min_length=1,
        max_length=64,
        validation_alias=AliasChoices("timeRange", "time_range"),
    )
    manual: bool = Field(default=True, description="False when sent by the dashboard's schedule timer")

    model_config = ConfigDict(populate_by_name=True)

    def to_time_range(self) -> TimeRange:
        seconds = DEFAULT_TIME_RANGE_SECONDS
        for interval in ScheduleInterval:
            if interval.label == self.time_range and interval is not ScheduleInterval.MANUAL:
                seconds = interval.seconds
        return TimeRange(self.time_range, seconds)


class RunAnalysisRequest(BaseModel):
    """Analyse readings from the server-side store."""

    interval: Optional[ScheduleInterval] = Field(default=None, description="Analyse exactly one schedule period")
    hours: Optional[int] = Field(default=None, ge=1, le=24 * 31, description="Custom look-back in hours")
    manual: bool = Field(default=True)

    def to_time_range(self) -> TimeRange:
        if self.interval is not None:
            return TimeRange.for_interval(self.interval)
        if self.hours is not None:
            return TimeRange(f"{self.hours} jam terakhir", self.hours * 3600)
        return TimeRange.default()


class ScheduleUpdateRequest(BaseModel):
    interval: ScheduleInterval
