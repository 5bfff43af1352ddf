from app.enums.common import (
    AnalysisSource,
    MoistureTrend,
    PumpEfficiency,
    PumpStatus,
    ScheduleInterval,
    ShortTermAction,
    SoilHealth,
)
from app.enums.events import AnalysisEvent, EventType, SensorEvent, WebSocketEvent

__all__ = [
    "AnalysisEvent",
    "AnalysisSource",
    "EventType",
    "MoistureTrend",
    "PumpEfficiency",
    "PumpStatus",
    "ScheduleInterval",
    "SensorEvent",
    "ShortTermAction",
    "SoilHealth",
    "WebSocketEvent",
]
