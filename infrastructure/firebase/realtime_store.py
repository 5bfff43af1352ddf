"""
Firebase Realtime Database Store
================================
Reading store, environment snapshot, analysis history and settings backed by
the Firebase Realtime Database the field node already writes to.

Layout (shared with the node firmware and the web dashboard)::

    soilMoisture/<pushId>        soil reading history
    sensorData/latest            latest soil + environment values
    sensorData/history/<pushId>  alternative history written by older firmware
    aiAnalysisHistory/<pushId>   analysis results
    settings/<key>               backend settings

Range queries are done client-side over the whole collection so the database
needs no ``.indexOn`` rules.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, Iterator

from app.domain.analysis import AnalysisResult
from app.domain.exceptions import ConfigurationError, RepositoryError
from app.domain.soil_reading import EnvironmentSnapshot, SoilReading
from app.utils.time import coerce_datetime

logger = logging.getLogger(__name__)

SOIL_HISTORY_PATH = "soilMoisture"
LEGACY_HISTORY_PATH = "sensorData/history"
LATEST_PATH = "sensorData/latest"
ANALYSIS_HISTORY_PATH = "aiAnalysisHistory"
SETTINGS_PATH = "settings"

# Searched in order; the first path holding readings in range wins
READING_PATHS = (SOIL_HISTORY_PATH, LEGACY_HISTORY_PATH)

ReferenceFactory = Callable[[str], Any]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _children(value: Any) -> Iterator[tuple[str, Any]]:
    """Yield ``(key, child)`` pairs; the SDK returns lists for integer-like keys."""
    if isinstance(value, dict):
        yield from ((str(key), child) for key, child in value.items())
    elif isinstance(value, list):
        yield from ((str(index), child) for index, child in enumerate(value) if child is not None)


def _timestamp_of(item: Any) -> float:
    if not isinstance(item, dict):
        return 0
    try:
        return float(item.get("timestamp") or 0)
    except (TypeError, ValueError):
        return 0


class FirebaseRealtimeStore:
    """
    One adapter satisfying ``SoilReadingStore``, ``EnvironmentStore``,
    ``AnalysisHistoryLog`` and ``SettingsStore``.

    ``reference`` maps a path to a ``firebase_admin.db.Reference``; tests pass
    a factory returning mocks.
    """

    def __init__(self, reference: ReferenceFactory) -> None:
        self._reference = reference

    @classmethod
    def connect(cls, credentials_path: str, database_url: str, *, app_name: str = "kebunpintar") -> "FirebaseRealtimeStore":
        """Initialise (or reuse) a named firebase_admin app and bind a store to it."""
        if not credentials_path or not database_url:
            raise ConfigurationError(
                "FIREBASE_CREDENTIALS_PATH and FIREBASE_DATABASE_URL are required for the firebase store backend"
            )

        import firebase_admin
        from firebase_admin import credentials, db

        try:
            app = firebase_admin.get_app(app_name)
        except ValueError:
            app = firebase_admin.initialize_app(
                credentials.Certificate(credentials_path),
                {"databaseURL": database_url},
                name=app_name,
            )
            logger.info("Firebase app '%s' initialised for %s", app_name, database_url)
        return cls(partial(db.reference, app=app))

    # --- helpers ---------------------------------------------------------------
    def _get(self, path: str) -> Any:
        try:
            return self._reference(path).get()
        except Exception as exc:
            raise RepositoryError(f"Firebase read failed at {path}: {exc}") from exc

    def _write(self, path: str, action: str, *args: Any) -> Any:
        try:
            return getattr(self._reference(path), action)(*args)
        except Exception as exc:
            raise RepositoryError(f"Firebase {action} failed at {path}: {exc}") from exc

    # --- SoilReadingStore --------------------------------------------------------
    def append(self, reading: SoilReading) -> None:
        payload = reading.to_dict()
        self._write(SOIL_HISTORY_PATH, "push", payload)
        self._write(LATEST_PATH, "update", payload)

    def read_since(self, cutoff_ms: int, *, limit: int | None = None) -> list[SoilReading]:
        readings: list[SoilReading] = []
        for path in READING_PATHS:
            readings = [
                SoilReading.from_dict(item)
                for _, item in _children(self._get(path))
                if isinstance(item, dict) and item.get("timestamp") and _timestamp_of(item) >= cutoff_ms
            ]
            if readings:
                logger.debug("Resolved %d readings from %s", len(readings), path)
                break

        if not readings:
            latest = self.latest()
            if latest is not None and latest.timestamp >= cutoff_ms:
                logger.info("No reading history in range; using %s only", LATEST_PATH)
                readings = [latest]

        readings.sort(key=lambda reading: reading.timestamp)
        if limit is not None and limit > 0:
            readings = readings[-limit:]
        return readings

    def latest(self) -> SoilReading | None:
        data = self._get(LATEST_PATH)
        if not isinstance(data, dict) or "moisture" not in data:
            return None
        return SoilReading.from_dict(data)

    def trim(self, keep: int) -> int:
        entries = [
            (key, _timestamp_of(item))
            for key, item in _children(self._get(SOIL_HISTORY_PATH))
            if isinstance(item, dict) and item.get("timestamp")
        ]
        excess = len(entries) - max(0, keep)
        if excess <= 0:
            return 0
        entries.sort(key=lambda entry: entry[1])
        # Multi-path update with None deletes every key in one round trip
        self._write(SOIL_HISTORY_PATH, "update", {key: None for key, _ in entries[:excess]})
        logger.info("Trimmed %d old soil readings from %s", excess, SOIL_HISTORY_PATH)
        return excess

    # --- EnvironmentStore --------------------------------------------------------
    def save_snapshot(self, snapshot: EnvironmentSnapshot) -> None:
        self._write(
            LATEST_PATH,
            "update",
            {
                "temperature": snapshot.temperature,
                "humidity": snapshot.humidity,
                "rain": snapshot.raining,
                "status": snapshot.status,
                "environmentTimestamp": snapshot.timestamp,
            },
        )

    def latest_snapshot(self) -> EnvironmentSnapshot | None:
        data = self._get(LATEST_PATH)
        if not isinstance(data, dict) or "temperature" not in data:
            return None
        return EnvironmentSnapshot.from_dict(
            {**data, "timestamp": data.get("environmentTimestamp") or data.get("timestamp")}
        )

    # --- AnalysisHistoryLog --------------------------------------------------------
    def append_analysis(self, result: AnalysisResult) -> str:
        new_ref = self._write(ANALYSIS_HISTORY_PATH, "push")
        history_id = new_ref.key
        try:
            new_ref.set(result.with_id(history_id).to_dict())
        except Exception as exc:
            raise RepositoryError(f"Firebase write failed for analysis {history_id}: {exc}") from exc
        return history_id

    def list_newest_first(self, limit: int) -> list[AnalysisResult]:
        if limit <= 0:
            return []
        results: list[AnalysisResult] = []
        for key, item in _children(self._get(ANALYSIS_HISTORY_PATH)):
            if not isinstance(item, dict) or not item.get("timestamp"):
                logger.warning("Skipping invalid analysis history entry %s", key)
                continue
            try:
                results.append(AnalysisResult.from_dict({**item, "id": key}))
            except (TypeError, ValueError, KeyError) as exc:
                logger.warning("Skipping unreadable analysis history entry %s: %s", key, exc)
        results.sort(key=lambda result: coerce_datetime(result.timestamp) or _EPOCH, reverse=True)
        return results[:limit]

    def get_analysis(self, history_id: str) -> AnalysisResult | None:
        item = self._get(f"{ANALYSIS_HISTORY_PATH}/{history_id}")
        if not isinstance(item, dict):
            return None
        return AnalysisResult.from_dict({**item, "id": history_id})

    def delete_analysis(self, history_id: str) -> bool:
        if self._get(f"{ANALYSIS_HISTORY_PATH}/{history_id}") is None:
            return False
        self._write(f"{ANALYSIS_HISTORY_PATH}/{history_id}", "delete")
        return True

    def clear_analyses(self) -> int:
        count = sum(1 for _ in _children(self._get(ANALYSIS_HISTORY_PATH)))
        if count:
            self._write(ANALYSIS_HISTORY_PATH, "delete")
        return count

    # --- SettingsStore ---------------------------------------------------------------
    def get_setting(self, key: str) -> str | None:
        value = self._get(f"{SETTINGS_PATH}/{key}")
        return None if value is None else str(value)

    def set_setting(self, key: str, value: str) -> None:
        self._write(f"{SETTINGS_PATH}/{key}", "set", value)


class FirebaseAnalysisHistory:
    """``AnalysisHistoryLog`` view over :class:`FirebaseRealtimeStore`.

    The store already uses ``append``/``get``/``delete`` for readings, so the
    history operations are exposed under their protocol names here.
    """

    def __init__(self, store: FirebaseRealtimeStore) -> None:
        self._store = store

    def append(self, result: AnalysisResult) -> str:
        return self._store.append_analysis(result)

    def list_newest_first(self, limit: int) -> list[AnalysisResult]:
        return self._store.list_newest_first(limit)

    def get(self, history_id: str) -> AnalysisResult | None:
        return self._store.get_analysis(history_id)

    def delete(self, history_id: str) -> bool:
        return self._store.delete_analysis(history_id)

    def clear(self) -> int:
        return self._store.clear_analyses()
