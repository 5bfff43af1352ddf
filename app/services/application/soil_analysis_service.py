"""
Soil Analysis Service
=====================
Orchestrates one "AI analysis" of recent soil moisture:

1. resolve the window for the requested time range (empty window fails),
2. serve a cached result for ``(time range label, window size)`` if fresh,
3. pass the global cooldown (atomic check-and-set),
4. aggregate statistics and pump usage,
5. ask the language model, or build the rule-based report when it fails,
6. cache provider-backed results, then run the post-commit hooks
   (history append, ``analysis_completed`` event, registered callbacks).

Cache and cooldown are instance state: the container builds one service per
app, and tests build a fresh one per case. Manual and scheduled runs go
through the same path; there is no bypass of cache or cooldown.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Sequence

from app.constants import (
    ANALYSIS_CACHE_TTL_SECONDS,
    ANALYSIS_MAX_READINGS,
    ANALYSIS_MIN_INTERVAL_SECONDS,
)
from app.domain.analysis import (
    AnalysisMetadata,
    AnalysisResult,
    ProviderSuccess,
    TimeRange,
)
from app.domain.exceptions import AnalysisRateLimitError, InsufficientDataError
from app.domain.soil_reading import SoilReading
from app.domain.soil_statistics import compute_pump_usage, compute_statistics
from app.enums.common import AnalysisSource
from app.enums.events import AnalysisEvent
from app.services.ai.fallback_report import generate_fallback_report
from app.utils.cache import TTLCache
from app.utils.time import Clock, epoch_ms, format_local, utc_now

if TYPE_CHECKING:
    from app.services.ai.soil_analysis_provider import SoilAnalysisProvider
    from app.services.protocols import AnalysisHistoryLog, SoilReadingStore
    from app.utils.event_bus import EventBus

logger = logging.getLogger(__name__)

FALLBACK_NOTICE = "Terjadi error saat memanggil AI. Sistem menggunakan analisis otomatis."

CacheKey = tuple[str, int]
PostCommitHook = Callable[[AnalysisResult], None]


class SoilAnalysisService:
    """
    Cache + cooldown + provider/fallback pipeline for soil analyses.

    Parameters
    ----------
    readings:
        Store the analysis window is read from.
    provider:
        Language-model provider; its failures degrade to the fallback report.
    history:
        Optional history log; append failures are logged, never raised.
    event_bus:
        Optional bus receiving ``analysis_completed`` after each fresh run.
    cache_ttl_seconds / min_interval_seconds / max_readings:
        Cache freshness, global cooldown between provider-stage entries, and
        cap on the newest readings included in a window.
    clock:
        Monotonic seconds used for cache ages and the cooldown.
    wall_clock:
        Aware UTC ``datetime`` factory for result timestamps.
    """

    def __init__(
        self,
        readings: "SoilReadingStore",
        provider: "SoilAnalysisProvider",
        *,
        history: "AnalysisHistoryLog" | None = None,
        event_bus: "EventBus" | None = None,
        cache_ttl_seconds: float = ANALYSIS_CACHE_TTL_SECONDS,
        min_interval_seconds: float = ANALYSIS_MIN_INTERVAL_SECONDS,
        max_readings: int = ANALYSIS_MAX_READINGS,
        clock: Clock = time.monotonic,
        wall_clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._readings = readings
        self._provider = provider
        self._history = history
        self._event_bus = event_bus
        self._min_interval = float(min_interval_seconds)
        self._max_readings = max_readings
        self._clock = clock
        self._wall_clock = wall_clock

        self._cache: TTLCache[AnalysisResult] = TTLCache(
            ttl_seconds=cache_ttl_seconds,
            maxsize=64,
            clock=clock,
        )
        self._limiter_lock = threading.Lock()
        self._last_request_at: float | None = None
        self._hooks: list[PostCommitHook] = []

    # ------------------------------------------------------------------ API

    @property
    def cache(self) -> TTLCache[AnalysisResult]:
        return self._cache

    @property
    def provider_name(self) -> str:
        return self._provider.provider_name

    def add_post_commit_hook(self, hook: PostCommitHook) -> None:
        """Register a callback run after every fresh (non-cache) result."""
        self._hooks.append(hook)

    def resolve_window(self, time_range: TimeRange) -> list[SoilReading]:
        cutoff = epoch_ms(self._wall_clock().timestamp()) - time_range.seconds * 1000
        return self._readings.read_since(cutoff, limit=self._max_readings)

    def run_analysis(
        self,
        time_range: TimeRange | None = None,
        *,
        manual_trigger: bool = False,
        readings: Sequence[SoilReading] | None = None,
    ) -> AnalysisResult:
        """
        Analyse the window for *time_range* (default: last 24 hours).

        When *readings* is given it is used as the window instead of reading
        the store (dashboard clients post the series they are displaying).

        Raises
        ------
        InsufficientDataError
            The window is empty. Cache, cooldown and history are untouched.
        AnalysisRateLimitError
            A fresh analysis was requested before the cooldown elapsed.
        """
        time_range = time_range or TimeRange.default()
        trigger = "manual" if manual_trigger else "scheduled"

        if readings is None:
            window = self.resolve_window(time_range)
        else:
            window = list(readings)[-self._max_readings:] if self._max_readings > 0 else list(readings)

        if not window:
            logger.info("Analysis (%s) skipped: no readings for '%s'", trigger, time_range.label)
            raise InsufficientDataError(time_range=time_range.label)

        key: CacheKey = (time_range.label, len(window))
        cached = self._cache.get_entry(key)
        if cached is not None:
            expires_in = math.floor(cached.remaining_seconds / 60 + 0.5)
            logger.info(
                "Analysis (%s) served from cache for %s (expires in %d min)",
                trigger,
                key,
                expires_in,
            )
            return cached.value.as_cache_hit(expires_in)

        self._acquire_slot()

        statistics = compute_statistics(window)
        pump_usage = compute_pump_usage(window)
        analyzed_at = self._wall_clock()

        outcome = self._provider.analyze(statistics, pump_usage, window, time_range.label)
        if isinstance(outcome, ProviderSuccess):
            result = AnalysisResult(
                timestamp=analyzed_at.isoformat(timespec="milliseconds"),
                time_range=time_range.label,
                statistics=statistics,
                pump_usage=pump_usage,
                analysis=outcome.text,
                source=AnalysisSource.LLM,
                metadata=AnalysisMetadata(
                    data_points=len(window),
                    analyzed_at=format_local(analyzed_at),
                    provider=outcome.provider or None,
                    model=outcome.model or None,
                ),
            )
            self._cache.set(key, result)
            logger.info("Analysis (%s) for %s completed by %s", trigger, key, outcome.provider)
        else:
            logger.warning(
                "Analysis (%s) for %s using rule-based report: %s",
                trigger,
                key,
                outcome.reason,
            )
            result = AnalysisResult(
                timestamp=analyzed_at.isoformat(timespec="milliseconds"),
                time_range=time_range.label,
                statistics=statistics,
                pump_usage=pump_usage,
                analysis=generate_fallback_report(
                    statistics,
                    pump_usage,
                    len(window),
                    generated_at=analyzed_at,
                ),
                source=AnalysisSource.FALLBACK,
                notice=FALLBACK_NOTICE,
                metadata=AnalysisMetadata(
                    data_points=len(window),
                    analyzed_at=format_local(analyzed_at),
                ),
            )

        return self._commit(result, manual_trigger=manual_trigger)

    def seconds_until_allowed(self) -> float:
        """Remaining cooldown; 0 when a fresh analysis may start now."""
        with self._limiter_lock:
            if self._last_request_at is None:
                return 0.0
            return max(0.0, self._min_interval - (self._clock() - self._last_request_at))

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_status(self) -> dict[str, Any]:
        return {
            "provider": self._provider.provider_name,
            "providerAvailable": self._provider.is_available,
            "cache": self._cache.get_stats(),
            "minIntervalSeconds": self._min_interval,
            "retryAfterSeconds": math.ceil(self.seconds_until_allowed()),
        }

    # ------------------------------------------------------------ internals

    def _acquire_slot(self) -> None:
        with self._limiter_lock:
            now = self._clock()
            if self._last_request_at is not None:
                elapsed = now - self._last_request_at
                if elapsed < self._min_interval:
                    remaining = self._min_interval - elapsed
                    logger.info("Analysis rejected by cooldown (%.1fs remaining)", remaining)
                    raise AnalysisRateLimitError(remaining)
            self._last_request_at = now

    def _commit(self, result: AnalysisResult, *, manual_trigger: bool) -> AnalysisResult:
        """Post-commit hooks; each failure is logged and never reaches the caller."""
        if self._history is not None:
            try:
                result = result.with_id(self._history.append(result))
            except Exception as exc:
                logger.error("Failed to append analysis to history: %s", exc, exc_info=True)

        if self._event_bus is not None:
            try:
                payload = result.to_dict()
                payload["manualTrigger"] = manual_trigger
                self._event_bus.publish(AnalysisEvent.COMPLETED, payload)
            except Exception as exc:
                logger.error("Failed to publish %s: %s", AnalysisEvent.COMPLETED.value, exc, exc_info=True)

        for hook in list(self._hooks):
            try:
                hook(result)
            except Exception as exc:
                logger.error("Analysis post-commit hook %r failed: %s", hook, exc, exc_info=True)

        return result
