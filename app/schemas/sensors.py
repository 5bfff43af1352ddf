"""
Sensor Schemas
==============

Pydantic models for readings pushed by the field node.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field

from app.domain.soil_reading import EnvironmentSnapshot


class EnvironmentIn(BaseModel):
    """DHT temperature / humidity plus the rain sensor state."""

    temperature: float = Field(..., ge=-40, le=85, description="Air temperature in Celsius")
    humidity: float = Field(..., ge=0, le=100, description="Relative humidity percentage")
    rain: Union[bool, str] = Field(default=False, description="Rain detected (bool or sensor text)")
    status: str = Field(default="active", max_length=32)
    timestamp: Optional[int] = Field(default=None, ge=0)

    def to_domain(self) -> EnvironmentSnapshot:
        return EnvironmentSnapshot.from_dict(self.model_dump())


class ReadingsQuery(BaseModel):
    hours: int = Field(default=24, ge=1, le=24 * 31)
    limit: Optional[int] = Field(default=None, ge=1, le=5000)
