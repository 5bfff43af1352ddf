"""Repository facades exposing typed accessors over low-level mixins."""

from infrastructure.database.repositories.analysis_history import AnalysisHistoryRepository
from infrastructure.database.repositories.settings import SettingsRepository
from infrastructure.database.repositories.soil_readings import SoilReadingRepository

__all__ = [
    "AnalysisHistoryRepository",
    "SettingsRepository",
    "SoilReadingRepository",
]
