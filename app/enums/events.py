from enum import Enum
from typing import TypeAlias


class WebSocketEvent(str, Enum):
    """WebSocket event names for real-time communication."""

    SOIL_READING = "soil_reading"
    ENVIRONMENT_SNAPSHOT = "environment_snapshot"
    ANALYSIS_COMPLETED = "analysis_completed"


class SensorEvent(str, Enum):
    SOIL_READING = "soil_reading"
    ENVIRONMENT_SNAPSHOT = "environment_snapshot"


class AnalysisEvent(str, Enum):
    COMPLETED = "analysis_completed"


EventType: TypeAlias = SensorEvent | AnalysisEvent
