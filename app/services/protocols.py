"""
Service protocols (structural typing interfaces).

Protocols let consumer services declare the *minimal* surface they depend on
without importing the concrete class, so the SQLite repositories, the
Firebase realtime store and test doubles are interchangeable.

Usage
-----
In a consumer service::

    from __future__ import annotations
    from typing import TYPE_CHECKING
    if TYPE_CHECKING:
        from app.services.protocols import SoilReadingStore

    class SensorService:
        def __init__(self, readings: "SoilReadingStore", ...): ...
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from app.domain.analysis import AnalysisResult
from app.domain.soil_reading import EnvironmentSnapshot, SoilReading


@runtime_checkable
class SoilReadingStore(Protocol):
    """Time series of soil readings pushed by the field node."""

    def append(self, reading: SoilReading) -> None:
        ...

    def read_since(self, cutoff_ms: int, *, limit: int | None = None) -> list[SoilReading]:
        """Readings with ``timestamp >= cutoff_ms``, oldest first.

        With *limit*, only the newest *limit* readings are returned (still
        oldest first).
        """
        ...

    def latest(self) -> SoilReading | None:
        ...

    def trim(self, keep: int) -> int:
        """Drop all but the newest *keep* readings; return how many were removed."""
        ...


@runtime_checkable
class EnvironmentStore(Protocol):
    """Latest air temperature / humidity / rain snapshot (not a history)."""

    def save_snapshot(self, snapshot: EnvironmentSnapshot) -> None:
        ...

    def latest_snapshot(self) -> EnvironmentSnapshot | None:
        ...


@runtime_checkable
class AnalysisHistoryLog(Protocol):
    """Append-only log of analysis results keyed by generated ids."""

    def append(self, result: AnalysisResult) -> str:
        """Persist *result* and return its generated id."""
        ...

    def list_newest_first(self, limit: int) -> list[AnalysisResult]:
        """At most *limit* results sorted by their own timestamp, newest first."""
        ...

    def get(self, history_id: str) -> AnalysisResult | None:
        ...

    def delete(self, history_id: str) -> bool:
        ...

    def clear(self) -> int:
        ...


@runtime_checkable
class SettingsStore(Protocol):
    """String key/value settings (analysis schedule and similar)."""

    def get_setting(self, key: str) -> str | None:
        ...

    def set_setting(self, key: str, value: str) -> None:
        ...
