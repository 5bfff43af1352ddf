"""
Cache Health Endpoints
======================

Health monitoring endpoints for cache metrics.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response

from app.blueprints.api._common import get_container, success as _success
from app.utils.http import safe_route
from app.utils.time import iso_now

logger = logging.getLogger("health_api")


def register_cache_routes(health_api: Blueprint):
    """Register cache health routes on the blueprint."""

    @health_api.get("/cache")
    @safe_route("Failed to get cache metrics")
    def get_cache_metrics() -> Response:
        """
        Get cache performance metrics for all registered caches.

        Returns:
            {
                "caches": {...},
                "summary": {...},
                "timestamp": "2026-10-19T..."
            }
        """
        registry = get_container().cache_registry
        return _success(
            {
                "caches": registry.get_all_stats(),
                "summary": registry.get_summary(),
                "timestamp": iso_now(),
            }
        )
