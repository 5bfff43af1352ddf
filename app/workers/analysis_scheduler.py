"""
Analysis Scheduler
==================
Background thread that runs the automatic soil analysis whenever the
dashboard-selected interval has elapsed. Scheduled runs go through
``SoilAnalysisService.run_analysis`` like manual ones, so the cache and the
global cooldown apply to them unchanged.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from app.domain.analysis import AnalysisResult
from app.domain.exceptions import AnalysisRateLimitError, InsufficientDataError

if TYPE_CHECKING:
    from app.services.application.analysis_schedule_service import AnalysisScheduleService
    from app.services.application.soil_analysis_service import SoilAnalysisService

logger = logging.getLogger(__name__)


class AnalysisScheduler:
    def __init__(
        self,
        analysis_service: "SoilAnalysisService",
        schedule_service: "AnalysisScheduleService",
        *,
        max_tick_seconds: float = 60.0,
    ) -> None:
        self._analysis = analysis_service
        self._schedule = schedule_service
        self._max_tick = max_tick_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start the scheduler background thread."""
        if self.is_running():
            logger.warning("Analysis scheduler already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, daemon=True, name="AnalysisScheduler")
        self._thread.start()
        logger.info("Analysis scheduler started (interval=%s)", self._schedule.interval.value)

    def stop(self, wait: bool = True, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        if wait:
            self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Analysis scheduler stopped")

    def shutdown(self, wait: bool = True, timeout: float = 5.0) -> None:
        """Alias for stop(); matches other services' shutdown() convention."""
        self.stop(wait=wait, timeout=timeout)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> AnalysisResult | None:
        """Run one automatic analysis if the schedule is due; never raises."""
        if not self._schedule.is_due():
            return None

        time_range = self._schedule.time_range()
        try:
            result = self._analysis.run_analysis(time_range, manual_trigger=False)
        except AnalysisRateLimitError as exc:
            logger.info("Scheduled analysis postponed: cooldown (%ss)", exc.retry_after_seconds)
            return None
        except InsufficientDataError:
            logger.info("Scheduled analysis skipped: no readings in '%s'", time_range.label)
            return None
        except Exception as e:
            logger.error("Scheduled analysis failed: %s", e, exc_info=True)
            return None

        try:
            self._schedule.mark_completed()
        except Exception as e:
            logger.error("Failed to record scheduled analysis completion: %s", e, exc_info=True)
        logger.info("Scheduled analysis completed (source=%s)", result.source.value)
        return result

    def _run_loop(self) -> None:
        logger.debug("Analysis scheduler loop started")
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception as e:
                logger.error("Error in analysis scheduler loop: %s", e, exc_info=True)
            self._stop_event.wait(self._schedule.tick_seconds(self._max_tick))
        logger.debug("Analysis scheduler loop ended")
