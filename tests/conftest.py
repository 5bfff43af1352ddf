"""
Shared test fixtures for the KebunPintar backend test suite.

Provides:
- In-memory SQLite database with all tables created
- Repository instances wired to the test database
- A controllable clock for cache / cooldown / schedule tests
- Mock provider and event bus for the analysis orchestrator
- Flask app and client built with the rule-based provider only

Usage:
    def test_example(readings_repo, make_readings):
        for reading in make_readings([40, 42, 44]):
            readings_repo.append(reading)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable
from unittest.mock import MagicMock

import pytest

from app.domain.analysis import ProviderFailure, ProviderSuccess
from app.domain.soil_reading import SoilReading
from app.services.application.soil_analysis_service import SoilAnalysisService
from infrastructure.database.repositories.analysis_history import AnalysisHistoryRepository
from infrastructure.database.repositories.settings import SettingsRepository
from infrastructure.database.repositories.soil_readings import SoilReadingRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

# ---------------------------------------------------------------------------
# Logging - keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("app").setLevel(logging.WARNING)

# 2026-10-19T05:00:00Z
NOW = datetime(2026, 10, 19, 5, 0, 0, tzinfo=timezone.utc)
NOW_MS = int(NOW.timestamp() * 1000)
MINUTE_MS = 60 * 1000


class FakeClock:
    """Monotonic seconds source that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_readings(
    moisture: Iterable[float],
    *,
    pump_on: Iterable[bool] | None = None,
    end_ms: int = NOW_MS,
    step_ms: int = MINUTE_MS,
) -> list[SoilReading]:
    """Readings oldest first, the last one at *end_ms*, one per *step_ms*."""
    values = list(moisture)
    pumps = list(pump_on) if pump_on is not None else [False] * len(values)
    start = end_ms - step_ms * (len(values) - 1)
    return [
        SoilReading(
            moisture=value,
            raw_adc=int(4095 - value * 40.95),
            pump_status="ON" if pump else "OFF",
            timestamp=start + index * step_ms,
        )
        for index, (value, pump) in enumerate(zip(values, pumps))
    ]


# ========================== Database Fixtures ==============================


@pytest.fixture()
def db_handler():
    """In-memory SQLite database with all tables created.

    Each test gets a fresh database - no cross-test contamination.
    """
    handler = SQLiteDatabaseHandler(":memory:")
    handler.create_tables()
    yield handler
    handler.close()


@pytest.fixture()
def readings_repo(db_handler):
    return SoilReadingRepository(db_handler)


@pytest.fixture()
def history_repo(db_handler):
    return AnalysisHistoryRepository(db_handler)


@pytest.fixture()
def settings_repo(db_handler):
    return SettingsRepository(db_handler)


# ========================== Helpers ========================================


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def make_readings():
    return build_readings


@pytest.fixture()
def now():
    return NOW


@pytest.fixture()
def now_ms():
    """Epoch milliseconds of the wall clock used by ``soil_analysis_service``."""
    return NOW_MS


# ========================== Mock Services ==================================


@pytest.fixture()
def mock_event_bus():
    bus = MagicMock()
    bus.publish = MagicMock()
    return bus


@pytest.fixture()
def mock_provider():
    """Provider double answering with a fixed LLM report."""
    provider = MagicMock()
    provider.provider_name = "openrouter"
    provider.model_name = "test-model"
    provider.is_available = True
    provider.analyze.return_value = ProviderSuccess(
        text="## Analisis\nKondisi tanah baik.",
        model="test-model",
        provider="openrouter",
        latency_ms=12.0,
    )
    return provider


@pytest.fixture()
def failing_provider(mock_provider):
    mock_provider.analyze.return_value = ProviderFailure(reason="TimeoutError: timed out", provider="openrouter")
    return mock_provider


@pytest.fixture()
def soil_analysis_service(readings_repo, history_repo, mock_provider, mock_event_bus, clock):
    return SoilAnalysisService(
        readings_repo,
        mock_provider,
        history=history_repo,
        event_bus=mock_event_bus,
        clock=clock,
        wall_clock=lambda: NOW,
    )


# ========================== Flask Application ==============================


@pytest.fixture()
def app():
    from app import create_app

    flask_app = create_app(
        {
            "database_path": ":memory:",
            "llm_provider": "none",
            "store_backend": "sqlite",
            "analysis_scheduler_enabled": False,
            "openweather_api_key": "",
        }
    )
    flask_app.config["TESTING"] = True
    yield flask_app
    flask_app.config["CONTAINER"].shutdown()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def container(app):
    return app.config["CONTAINER"]
