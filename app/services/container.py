from __future__ import annotations

import logging
from dataclasses import dataclass

from app.config import AppConfig
from app.services.ai.soil_analysis_provider import SoilAnalysisProvider
from app.services.application.analysis_schedule_service import AnalysisScheduleService
from app.services.application.sensor_service import SensorService
from app.services.application.soil_analysis_service import SoilAnalysisService
from app.services.container_builder import ContainerBuilder
from app.services.protocols import AnalysisHistoryLog, EnvironmentStore, SettingsStore, SoilReadingStore
from app.services.utilities.weather_forecast_service import WeatherForecastService
from app.utils.cache import CacheRegistry
from app.utils.emitters import EmitterService
from app.utils.event_bus import EventBus
from app.workers.analysis_scheduler import AnalysisScheduler
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    database: SQLiteDatabaseHandler | None
    # Stores (SQLite repositories or the Firebase adapter)
    readings: SoilReadingStore
    environment: EnvironmentStore
    history: AnalysisHistoryLog
    settings: SettingsStore
    # Shared utilities
    event_bus: EventBus
    emitter_service: EmitterService
    cache_registry: CacheRegistry
    # Services
    analysis_provider: SoilAnalysisProvider
    sensor_service: SensorService
    analysis_service: SoilAnalysisService
    schedule_service: AnalysisScheduleService
    weather_service: WeatherForecastService
    analysis_scheduler: AnalysisScheduler

    @classmethod
    def build(cls, config: AppConfig, *, start_scheduler: bool = False) -> "ServiceContainer":
        """Construct the service container with all dependencies.

        Args:
            config: Application configuration
            start_scheduler: Whether to start the automatic analysis worker
        """
        logger.info("Building ServiceContainer using ContainerBuilder...")
        container = cls(**ContainerBuilder(config).build())

        if start_scheduler and config.analysis_scheduler_enabled:
            container.analysis_scheduler.start()

        logger.info("ServiceContainer built successfully.")
        return container

    def shutdown(self) -> None:
        """Release external resources before process exit."""
        try:
            self.analysis_scheduler.shutdown()
        except Exception as e:
            logger.warning("Failed to stop analysis scheduler: %s", e)

        self.emitter_service.unbind()

        if self.database is not None:
            self.database.close()
        logger.info("ServiceContainer shutdown complete.")
