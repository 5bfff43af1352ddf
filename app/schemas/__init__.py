"""
Schemas Module
==============

Pydantic models for request validation and event payloads.
"""

from app.schemas.analysis import AnalyzeRequest, RunAnalysisRequest, ScheduleUpdateRequest, SoilReadingIn
from app.schemas.events import EnvironmentSnapshotPayload, SoilReadingPayload
from app.schemas.sensors import EnvironmentIn, ReadingsQuery
from app.schemas.weather import ForecastQuery

__all__ = [
    "AnalyzeRequest",
    "EnvironmentIn",
    "EnvironmentSnapshotPayload",
    "ForecastQuery",
    "ReadingsQuery",
    "RunAnalysisRequest",
    "ScheduleUpdateRequest",
    "SoilReadingIn",
    "SoilReadingPayload",
]
