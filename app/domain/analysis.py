"""
Soil Analysis Domain Objects
============================
Value objects exchanged between the analysis orchestrator, the language
model provider, the fallback report generator and the history log.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Union

from app.constants import DEFAULT_TIME_RANGE_LABEL, DEFAULT_TIME_RANGE_SECONDS
from app.domain.soil_statistics import MoistureStatistics, PumpUsage
from app.enums.common import AnalysisSource, ScheduleInterval


@dataclass(frozen=True)
class TimeRange:
    """A labelled look-back window, e.g. ``"24 jam terakhir"`` over 86400 s."""

    label: str
    seconds: int

    @classmethod
    def default(cls) -> "TimeRange":
        return cls(DEFAULT_TIME_RANGE_LABEL, DEFAULT_TIME_RANGE_SECONDS)

    @classmethod
    def for_interval(cls, interval: ScheduleInterval) -> "TimeRange":
        """Automatic runs analyse exactly one schedule period; manual means 24 h."""
        if interval is ScheduleInterval.MANUAL:
            return cls.default()
        return cls(interval.label, interval.seconds)


# ---------------------------------------------------------------------------
# Provider outcome (tagged union)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProviderSuccess:
    text: str
    model: str = ""
    provider: str = ""
    latency_ms: float = 0.0


@dataclass(frozen=True)
class ProviderFailure:
    reason: str
    provider: str = ""


ProviderOutcome = Union[ProviderSuccess, ProviderFailure]


# ---------------------------------------------------------------------------
# Analysis result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisMetadata:
    data_points: int
    analyzed_at: str
    from_cache: bool = False
    # Serialized as "cacheExpiresIn": whole minutes of TTL left, rounded
    cache_expires_in_minutes: int | None = None
    provider: str | None = None
    model: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "dataPoints": self.data_points,
            "analyzedAt": self.analyzed_at,
            "fromCache": self.from_cache,
        }
        if self.cache_expires_in_minutes is not None:
            payload["cacheExpiresIn"] = self.cache_expires_in_minutes
        if self.provider:
            payload["provider"] = self.provider
        if self.model:
            payload["model"] = self.model
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisMetadata":
        return cls(
            data_points=int(data.get("dataPoints", 0)),
            analyzed_at=str(data.get("analyzedAt", "")),
            from_cache=bool(data.get("fromCache", False)),
            cache_expires_in_minutes=data.get("cacheExpiresIn"),
            provider=data.get("provider"),
            model=data.get("model"),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one successful ``run_analysis`` call (LLM, fallback or cache)."""

    timestamp: str
    time_range: str
    statistics: MoistureStatistics
    pump_usage: PumpUsage
    analysis: str
    source: AnalysisSource
    metadata: AnalysisMetadata
    success: bool = True
    notice: str | None = None
    id: str | None = field(default=None, compare=False)

    @property
    def is_fallback(self) -> bool:
        return self.source is AnalysisSource.FALLBACK

    @property
    def from_cache(self) -> bool:
        return self.metadata.from_cache

    def with_id(self, history_id: str) -> "AnalysisResult":
        return replace(self, id=history_id)

    def as_cache_hit(self, expires_in_minutes: int) -> "AnalysisResult":
        return replace(
            self,
            source=AnalysisSource.CACHE,
            metadata=replace(self.metadata, from_cache=True, cache_expires_in_minutes=expires_in_minutes),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "timestamp": self.timestamp,
            "timeRange": self.time_range,
            "statistics": self.statistics.to_dict(),
            "pumpUsage": self.pump_usage.to_dict(),
            "analysis": self.analysis,
            "source": self.source.value,
            "isFallback": self.is_fallback,
            "metadata": self.metadata.to_dict(),
        }
        if self.notice:
            payload["notice"] = self.notice
        if self.id:
            payload["id"] = self.id
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisResult":
        return cls(
            timestamp=str(data["timestamp"]),
            time_range=str(data.get("timeRange", "")),
            statistics=MoistureStatistics.from_dict(data["statistics"]),
            pump_usage=PumpUsage.from_dict(data["pumpUsage"]),
            analysis=str(data.get("analysis", "")),
            source=AnalysisSource(data.get("source", AnalysisSource.LLM.value)),
            metadata=AnalysisMetadata.from_dict(data.get("metadata") or {}),
            success=bool(data.get("success", True)),
            notice=data.get("notice"),
            id=data.get("id"),
        )
