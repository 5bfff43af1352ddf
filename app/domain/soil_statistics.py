"""
Soil Moisture Statistics
========================
Pure aggregation over an analysis window: mean / min / max moisture, trend
classification and pump-usage accounting. No I/O and no state, so identical
input ordering always yields identical results.

Trend compares the mean of the last ``TREND_SLICE_SIZE`` readings against
the mean of the first ``TREND_SLICE_SIZE``. Windows shorter than twice the
slice size produce overlapping slices; a single reading is always "stabil".
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Sequence

from app.constants import TREND_SLICE_SIZE
from app.domain.exceptions import InsufficientDataError
from app.domain.soil_reading import SoilReading
from app.enums.common import MoistureTrend

_ONE_DECIMAL = Decimal("0.1")


def round1(value: float) -> float:
    """Round to one decimal place, ties away from zero on the exact binary value."""
    if not math.isfinite(value):
        return value
    return float(Decimal(value).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class MoistureStatistics:
    mean: float
    minimum: float
    maximum: float
    trend: MoistureTrend

    @property
    def spread(self) -> float:
        return round1(self.maximum - self.minimum)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mean": self.mean,
            "minimum": self.minimum,
            "maximum": self.maximum,
            "trend": self.trend.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MoistureStatistics":
        return cls(
            mean=float(data["mean"]),
            minimum=float(data["minimum"]),
            maximum=float(data["maximum"]),
            trend=MoistureTrend(data["trend"]),
        )


@dataclass(frozen=True)
class PumpUsage:
    activations: int
    percentage: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PumpUsage":
        return cls(activations=int(data["activations"]), percentage=float(data["percentage"]))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def classify_trend(moisture: Sequence[float], slice_size: int = TREND_SLICE_SIZE) -> MoistureTrend:
    """Compare late vs early sub-window means (slices may overlap)."""
    if not moisture:
        return MoistureTrend.STABLE
    older = _mean(moisture[:slice_size])
    recent = _mean(moisture[-slice_size:])
    if recent > older:
        return MoistureTrend.INCREASING
    if recent < older:
        return MoistureTrend.DECREASING
    return MoistureTrend.STABLE


def compute_statistics(window: Sequence[SoilReading]) -> MoistureStatistics:
    """Aggregate moisture over *window* (must contain at least one reading)."""
    if not window:
        raise InsufficientDataError()

    moisture = [reading.moisture for reading in window]
    return MoistureStatistics(
        mean=round1(_mean(moisture)),
        minimum=min(moisture),
        maximum=max(moisture),
        trend=classify_trend(moisture),
    )


def compute_pump_usage(window: Sequence[SoilReading]) -> PumpUsage:
    """Count readings taken with the pump running and their share of the window."""
    if not window:
        return PumpUsage(activations=0, percentage=0.0)

    activations = sum(1 for reading in window if reading.pump_on)
    return PumpUsage(
        activations=activations,
        percentage=round1(activations / len(window) * 100),
    )
