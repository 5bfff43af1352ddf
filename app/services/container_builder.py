"""
Container Builder
=================

Extracts service container construction logic from ServiceContainer.build().

Each build_*() method focuses on one subsystem:

- build_stores(): reading store, environment snapshot, history log, settings
  (SQLite repositories or the Firebase Realtime Database adapter)
- build_ai(): language-model backend and the soil analysis provider
- build_application(): sensor ingest, analysis orchestrator, schedule, weather
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from app.config import AppConfig
from app.extensions import socketio
from app.services.ai.llm_backends import create_backend
from app.services.ai.soil_analysis_provider import SoilAnalysisProvider
from app.services.application.analysis_schedule_service import AnalysisScheduleService
from app.services.application.sensor_service import SensorService
from app.services.application.soil_analysis_service import SoilAnalysisService
from app.services.protocols import AnalysisHistoryLog, EnvironmentStore, SettingsStore, SoilReadingStore
from app.services.utilities.weather_forecast_service import WeatherForecastService
from app.utils.cache import CacheRegistry
from app.utils.emitters import EmitterService
from app.utils.event_bus import EventBus
from app.workers.analysis_scheduler import AnalysisScheduler
from infrastructure.database.repositories.analysis_history import AnalysisHistoryRepository
from infrastructure.database.repositories.settings import SettingsRepository
from infrastructure.database.repositories.soil_readings import SoilReadingRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.firebase.realtime_store import FirebaseAnalysisHistory, FirebaseRealtimeStore

logger = logging.getLogger(__name__)


@dataclass
class StoreComponents:
    """Persistence adapters behind the service protocols."""

    database: SQLiteDatabaseHandler | None
    readings: SoilReadingStore
    environment: EnvironmentStore
    history: AnalysisHistoryLog
    settings: SettingsStore


@dataclass
class AIComponents:
    analysis_provider: SoilAnalysisProvider


class ContainerBuilder:
    """Builds every component of the ServiceContainer from an AppConfig."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def build(self) -> dict[str, Any]:
        stores = self.build_stores()
        ai = self.build_ai()
        return self.build_application(stores, ai)

    def build_stores(self) -> StoreComponents:
        config = self.config
        if config.store_backend == "firebase":
            store = FirebaseRealtimeStore.connect(config.firebase_credentials_path, config.firebase_database_url)
            logger.info("Using Firebase Realtime Database store")
            return StoreComponents(
                database=None,
                readings=store,
                environment=store,
                history=FirebaseAnalysisHistory(store),
                settings=store,
            )

        database = SQLiteDatabaseHandler(config.database_path)
        database.create_tables()
        readings = SoilReadingRepository(database)
        logger.info("Using SQLite store at %s", config.database_path)
        return StoreComponents(
            database=database,
            readings=readings,
            environment=readings,
            history=AnalysisHistoryRepository(database),
            settings=SettingsRepository(database),
        )

    def build_ai(self) -> AIComponents:
        config = self.config
        backend = create_backend(
            config.llm_provider,
            api_key=config.llm_api_key,
            model=config.llm_model,
            base_url=config.llm_base_url or None,
            timeout=config.llm_timeout,
        )
        provider = SoilAnalysisProvider(
            backend,
            max_tokens=config.llm_max_tokens,
            temperature=config.llm_temperature,
            sample_size=config.analysis_sample_size,
        )
        logger.info("Soil analysis provider: %s (available=%s)", provider.provider_name, provider.is_available)
        return AIComponents(analysis_provider=provider)

    def build_application(self, stores: StoreComponents, ai: AIComponents) -> dict[str, Any]:
        config = self.config
        event_bus = EventBus()

        emitter_service = EmitterService(socketio)
        emitter_service.bind(event_bus)

        sensor_service = SensorService(
            stores.readings,
            stores.environment,
            event_bus=event_bus,
            retention_count=config.sensor_retention_count,
        )
        analysis_service = SoilAnalysisService(
            stores.readings,
            ai.analysis_provider,
            history=stores.history,
            event_bus=event_bus,
            cache_ttl_seconds=config.analysis_cache_ttl_seconds,
            min_interval_seconds=config.analysis_min_interval_seconds,
            max_readings=config.analysis_max_readings,
        )
        schedule_service = AnalysisScheduleService(stores.settings)
        weather_service = WeatherForecastService(
            config.openweather_api_key,
            timeout=config.weather_timeout_seconds,
            cache_ttl_seconds=config.weather_cache_ttl_seconds,
        )
        analysis_scheduler = AnalysisScheduler(
            analysis_service,
            schedule_service,
            max_tick_seconds=config.analysis_scheduler_tick_seconds,
        )

        cache_registry = CacheRegistry()
        cache_registry.register("soil_analysis.results", analysis_service.cache)
        cache_registry.register("weather.forecast", weather_service.cache)

        return {
            "config": config,
            "database": stores.database,
            "readings": stores.readings,
            "environment": stores.environment,
            "history": stores.history,
            "settings": stores.settings,
            "event_bus": event_bus,
            "emitter_service": emitter_service,
            "cache_registry": cache_registry,
            "analysis_provider": ai.analysis_provider,
            "sensor_service": sensor_service,
            "analysis_service": analysis_service,
            "schedule_service": schedule_service,
            "weather_service": weather_service,
            "analysis_scheduler": analysis_scheduler,
        }
