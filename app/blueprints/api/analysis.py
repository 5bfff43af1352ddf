"""
Soil Analysis API Blueprint
===========================

Endpoints:
- POST /api/v1/analysis/run - Analyse readings from the server-side store
- POST /api/v1/analysis/analyze - Analyse the series posted by the dashboard
- GET /api/v1/analysis/status - Provider, cache and cooldown state
- GET /api/v1/analysis/history - Past results, newest first
- GET /api/v1/analysis/history/<id> - One past result
- DELETE /api/v1/analysis/history/<id> - Remove one past result
- DELETE /api/v1/analysis/history - Remove every past result
- GET /api/v1/analysis/schedule - Automatic analysis interval
- PUT /api/v1/analysis/schedule - Change the automatic analysis interval
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, request

from app.blueprints.api._common import (
    fail,
    get_analysis_service,
    get_container,
    get_history_log,
    get_schedule_service,
    parse_body,
    success,
)
from app.constants import HISTORY_MAX_LIMIT
from app.domain.exceptions import NotFoundError
from app.schemas.analysis import AnalyzeRequest, RunAnalysisRequest, ScheduleUpdateRequest
from app.utils.http import safe_route

logger = logging.getLogger("analysis_api")

analysis_api = Blueprint("analysis_api", __name__)


def _history_limit() -> int:
    default = get_container().config.analysis_history_limit
    try:
        limit = int(request.args.get("limit", default))
    except (TypeError, ValueError):
        limit = default
    return max(1, min(limit, HISTORY_MAX_LIMIT))


def _mark_schedule_completed() -> None:
    """Restart the schedule countdown; the analysis is already committed, so failures are only logged."""
    try:
        get_schedule_service().mark_completed()
    except Exception as exc:
        logger.error("Failed to record analysis completion in the schedule: %s", exc, exc_info=True)


@analysis_api.post("/run")
@safe_route("Failed to run soil analysis")
def run_analysis() -> Response:
    """
    Run an analysis over stored readings.

    Request body (optional):
    - interval: schedule interval whose period is analysed ("3h" ... "30d")
    - hours: custom look-back in hours
    - manual: false when triggered by a timer (default true)
    """
    body = parse_body(RunAnalysisRequest)
    result = get_analysis_service().run_analysis(body.to_time_range(), manual_trigger=body.manual)
    _mark_schedule_completed()
    return success(result.to_dict())


@analysis_api.post("/analyze")
@safe_route("Gagal menganalisis data")
def analyze() -> Response:
    """
    Analyse the readings supplied by the caller.

    Request body:
    - soilData: list of {moisture, rawADC, pumpStatus, timestamp}
    - timeRange: label shown in the report (default "24 jam terakhir")
    """
    body = parse_body(AnalyzeRequest)
    readings = [item.to_domain() for item in body.soil_data]
    result = get_analysis_service().run_analysis(
        body.to_time_range(),
        manual_trigger=body.manual,
        readings=readings,
    )
    _mark_schedule_completed()
    return success(result.to_dict())


@analysis_api.get("/status")
@safe_route("Failed to get analysis status")
def analysis_status() -> Response:
    return success(
        {
            **get_analysis_service().get_status(),
            "schedule": get_schedule_service().get_status(),
        }
    )


# --- History -------------------------------------------------------------------


@analysis_api.get("/history")
@safe_route("Failed to load analysis history")
def list_history() -> Response:
    limit = _history_limit()
    items = get_history_log().list_newest_first(limit)
    return success({"items": [item.to_dict() for item in items], "count": len(items), "limit": limit})


@analysis_api.get("/history/<history_id>")
@safe_route("Failed to load analysis")
def get_history_item(history_id: str) -> Response:
    item = get_history_log().get(history_id)
    if item is None:
        raise NotFoundError(f"Analysis {history_id} not found")
    return success(item.to_dict())


@analysis_api.delete("/history/<history_id>")
@safe_route("Failed to delete analysis")
def delete_history_item(history_id: str) -> Response:
    if not get_history_log().delete(history_id):
        return fail(f"Analysis {history_id} not found", 404)
    return success({"id": history_id}, message="Analysis deleted")


@analysis_api.delete("/history")
@safe_route("Failed to clear analysis history")
def clear_history() -> Response:
    removed = get_history_log().clear()
    logger.info("Analysis history cleared (%d entries)", removed)
    return success({"removed": removed})


# --- Schedule ------------------------------------------------------------------


@analysis_api.get("/schedule")
@safe_route("Failed to get analysis schedule")
def get_schedule() -> Response:
    return success(get_schedule_service().get_status())


@analysis_api.put("/schedule")
@safe_route("Failed to update analysis schedule")
def update_schedule() -> Response:
    body = parse_body(ScheduleUpdateRequest)
    schedule = get_schedule_service()
    schedule.set_interval(body.interval)
    return success(schedule.get_status(), message="Schedule updated")
