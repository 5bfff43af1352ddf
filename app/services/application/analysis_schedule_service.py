"""
Analysis Schedule Service
=========================
Keeps the dashboard's automatic-analysis cadence and the time of the last
completed analysis in the settings store, so the schedule survives restarts
and is shared by every dashboard tab.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Callable

from app.domain.analysis import TimeRange
from app.enums.common import ScheduleInterval
from app.utils.time import epoch_ms, iso_from_epoch

if TYPE_CHECKING:
    from app.services.protocols import SettingsStore

logger = logging.getLogger(__name__)

INTERVAL_KEY = "analysis_schedule_interval"
LAST_RUN_KEY = "analysis_last_run_at"

# Upper bound between due checks of the scheduler worker
MAX_TICK_SECONDS = 60.0


class AnalysisScheduleService:
    """Interval selection, due checks and the "next run" text for the dashboard."""

    def __init__(self, settings: "SettingsStore", *, clock: Callable[[], float] = time.time) -> None:
        self._settings = settings
        self._clock = clock

    # --- state -------------------------------------------------------------------
    @property
    def interval(self) -> ScheduleInterval:
        raw = self._settings.get_setting(INTERVAL_KEY)
        try:
            return ScheduleInterval(raw) if raw else ScheduleInterval.MANUAL
        except ValueError:
            logger.warning("Unknown stored schedule interval %r; using manual", raw)
            return ScheduleInterval.MANUAL

    @property
    def last_run_ms(self) -> int:
        raw = self._settings.get_setting(LAST_RUN_KEY)
        try:
            return int(float(raw)) if raw else 0
        except ValueError:
            return 0

    def set_interval(self, interval: ScheduleInterval) -> ScheduleInterval:
        """Persist *interval*; a non-manual choice restarts the countdown from now."""
        self._settings.set_setting(INTERVAL_KEY, interval.value)
        if interval is not ScheduleInterval.MANUAL:
            self.mark_completed()
        logger.info("Analysis schedule set to %s", interval.value)
        return interval

    def mark_completed(self, now_ms: int | None = None) -> None:
        self._settings.set_setting(LAST_RUN_KEY, str(now_ms if now_ms is not None else self._now_ms()))

    # --- queries -----------------------------------------------------------------
    def is_due(self, now_ms: int | None = None) -> bool:
        interval = self.interval
        if interval is ScheduleInterval.MANUAL:
            return False
        now_ms = now_ms if now_ms is not None else self._now_ms()
        return now_ms - self.last_run_ms >= interval.seconds * 1000

    def time_range(self) -> TimeRange:
        return TimeRange.for_interval(self.interval)

    def tick_seconds(self, ceiling: float = MAX_TICK_SECONDS) -> float:
        """How often the worker checks ``is_due``: at most a minute, or a tenth of the interval."""
        interval = self.interval
        if interval is ScheduleInterval.MANUAL:
            return ceiling
        return min(ceiling, interval.seconds / 10)

    def next_run_description(self, now_ms: int | None = None) -> str:
        interval = self.interval
        if interval is ScheduleInterval.MANUAL:
            return "Manual"

        now_ms = now_ms if now_ms is not None else self._now_ms()
        next_ms = self.last_run_ms + interval.seconds * 1000
        if next_ms <= now_ms:
            return "Sedang menunggu..."

        diff = next_ms - now_ms
        hours = diff // (60 * 60 * 1000)
        minutes = (diff % (60 * 60 * 1000)) // (60 * 1000)
        if hours > 24:
            return f"{hours // 24} hari lagi"
        if hours > 0:
            return f"{hours} jam {minutes} menit lagi"
        return f"{minutes} menit lagi"

    def get_status(self, now_ms: int | None = None) -> dict[str, Any]:
        now_ms = now_ms if now_ms is not None else self._now_ms()
        interval = self.interval
        last_run = self.last_run_ms
        return {
            "interval": interval.value,
            "label": interval.label,
            "lastAnalysisAt": iso_from_epoch(last_run / 1000) if last_run else None,
            "nextRun": self.next_run_description(now_ms),
            "due": self.is_due(now_ms),
        }

    def _now_ms(self) -> int:
        return epoch_ms(self._clock())
