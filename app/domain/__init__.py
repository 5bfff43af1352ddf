"""
Domain Package
==============
Immutable value objects and pure functions for the soil analysis pipeline.

Value objects are immutable objects that represent descriptive aspects of the domain
with no conceptual identity. They are defined only by their attributes.
"""

from .analysis import (
    AnalysisMetadata,
    AnalysisResult,
    ProviderFailure,
    ProviderOutcome,
    ProviderSuccess,
    TimeRange,
)
from .soil_reading import EnvironmentSnapshot, SoilReading
from .soil_statistics import MoistureStatistics, PumpUsage, compute_pump_usage, compute_statistics

__all__ = [
    # Analysis
    "AnalysisMetadata",
    "AnalysisResult",
    "ProviderFailure",
    "ProviderOutcome",
    "ProviderSuccess",
    "TimeRange",
    # Readings
    "EnvironmentSnapshot",
    "SoilReading",
    # Statistics
    "MoistureStatistics",
    "PumpUsage",
    "compute_pump_usage",
    "compute_statistics",
]
