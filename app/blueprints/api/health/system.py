"""
System Health Endpoints
=======================
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response

from app.blueprints.api._common import get_container, success
from app.utils.http import safe_route
from app.utils.time import iso_now

logger = logging.getLogger("health_api")


def register_system_routes(health_api: Blueprint):
    """Register liveness and configuration routes on the blueprint."""

    @health_api.get("/ping")
    @safe_route("Health check failed")
    def ping() -> Response:
        return success({"status": "ok", "timestamp": iso_now()})

    @health_api.get("/keys")
    @safe_route("Failed to check API keys")
    def api_keys() -> Response:
        """
        Report which external API keys are configured. Values are never returned.

        Returns:
            {"llm": {"provider", "configured", "available", "model"},
             "openweather": {"configured"}, "store": "sqlite|firebase"}
        """
        container = get_container()
        config = container.config
        provider = container.analysis_provider
        return success(
            {
                "llm": {
                    "provider": config.llm_provider,
                    "configured": bool(config.llm_api_key),
                    "available": provider.is_available,
                    "model": provider.model_name or None,
                },
                "openweather": {"configured": container.weather_service.is_configured},
                "store": config.store_backend,
            }
        )

    @health_api.get("/events")
    @safe_route("Failed to get event bus metrics")
    def event_metrics() -> Response:
        return success(get_container().event_bus.get_metrics())
