"""
Weather Schemas
===============
"""

from pydantic import BaseModel, Field


class ForecastQuery(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
