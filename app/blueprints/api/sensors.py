"""
Sensor API Blueprint
====================

Endpoints used by the ESP32 field node and the dashboard:

- POST /api/v1/sensors/readings - Push one soil reading
- GET /api/v1/sensors/readings - Recent readings (?hours=24&limit=N)
- GET /api/v1/sensors/latest - Latest soil reading
- POST /api/v1/sensors/environment - Push air temperature / humidity / rain
- GET /api/v1/sensors/environment/latest - Latest environment snapshot
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response

from app.blueprints.api._common import get_sensor_service, parse_body, parse_query, success
from app.domain.exceptions import NotFoundError
from app.schemas.analysis import SoilReadingIn
from app.schemas.sensors import EnvironmentIn, ReadingsQuery
from app.utils.http import safe_route

logger = logging.getLogger("sensors_api")

sensors_api = Blueprint("sensors_api", __name__)


@sensors_api.post("/readings")
@safe_route("Failed to store soil reading")
def push_reading() -> Response:
    body = parse_body(SoilReadingIn)
    reading = get_sensor_service().ingest_soil_reading(body.to_domain())
    return success(reading.to_dict(), 201)


@sensors_api.get("/readings")
@safe_route("Failed to load soil readings")
def list_readings() -> Response:
    query = parse_query(ReadingsQuery)
    readings = get_sensor_service().recent_readings(hours=query.hours, limit=query.limit)
    return success({"items": [r.to_dict() for r in readings], "count": len(readings), "hours": query.hours})


@sensors_api.get("/latest")
@safe_route("Failed to load latest soil reading")
def latest_reading() -> Response:
    reading = get_sensor_service().latest_reading()
    if reading is None:
        raise NotFoundError("Belum ada data dari sensor")
    return success(reading.to_dict())


@sensors_api.post("/environment")
@safe_route("Failed to store environment snapshot")
def push_environment() -> Response:
    body = parse_body(EnvironmentIn)
    snapshot = get_sensor_service().ingest_environment(body.to_domain())
    return success(snapshot.to_dict(), 201)


@sensors_api.get("/environment/latest")
@safe_route("Failed to load environment snapshot")
def latest_environment() -> Response:
    snapshot = get_sensor_service().latest_environment()
    if snapshot is None:
        raise NotFoundError("Belum ada data lingkungan dari sensor")
    return success(snapshot.to_dict())
