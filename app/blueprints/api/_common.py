"""
Blueprint Common Utilities
==========================

Shared helper functions for all API blueprints.
Import these instead of duplicating helper code in each blueprint.

Usage:
    from app.blueprints.api._common import (
        get_container, parse_body, parse_query, success, fail,
        get_analysis_service, get_sensor_service, ...
    )
"""
from __future__ import annotations

import logging
from typing import TypeVar

from flask import current_app, request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.domain.exceptions import ValidationError
from app.utils.http import error_response, success_response

logger = logging.getLogger("api._common")

ModelT = TypeVar("ModelT", bound=BaseModel)

# ============================================================================
# CONTAINER ACCESS
# ============================================================================


def get_container():
    """
    Get the service container from Flask app config.

    Returns:
        ServiceContainer: The application service container

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_analysis_service():
    return get_container().analysis_service


def get_schedule_service():
    return get_container().schedule_service


def get_history_log():
    return get_container().history


def get_sensor_service():
    return get_container().sensor_service


def get_weather_service():
    return get_container().weather_service


# ============================================================================
# REQUEST HELPERS
# ============================================================================


def get_json() -> dict:
    """
    Get JSON request body with silent failure.

    Returns:
        dict: Parsed JSON body or empty dict if not available
    """
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _validate(model: type[ModelT], raw: dict) -> ModelT:
    try:
        return model.model_validate(raw)
    except PydanticValidationError as ve:
        raise ValidationError(
            "Invalid request",
            detail={"errors": ve.errors(include_url=False, include_context=False, include_input=False)},
        ) from ve


def parse_body(model: type[ModelT]) -> ModelT:
    """Validate the JSON body against *model*; raises a 400 ``ValidationError``."""
    return _validate(model, get_json())


def parse_query(model: type[ModelT]) -> ModelT:
    return _validate(model, request.args.to_dict())


# ============================================================================
# RESPONSE HELPERS
# ============================================================================


def success(data: dict | list | None = None, status: int = 200, *, message: str | None = None):
    """
    Standard success response wrapper.

    Returns:
        Flask Response with format: {"ok": true, "data": ..., "error": null}
    """
    return success_response(data, status, message=message)


def fail(message: str, status: int = 400, *, details: dict | None = None):
    """
    Standard error response wrapper.

    Returns:
        Flask Response with format: {"ok": false, "data": null, "error": {...}}
    """
    return error_response(message, status, details=details)
