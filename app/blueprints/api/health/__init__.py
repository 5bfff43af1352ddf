"""
Health API Blueprint
====================

Routes:
- GET /api/v1/health/ping - Basic liveness check
- GET /api/v1/health/keys - Which external API keys are configured
- GET /api/v1/health/cache - Cache performance metrics
- GET /api/v1/health/events - EventBus queue metrics
"""

from __future__ import annotations

import logging

from flask import Blueprint

logger = logging.getLogger("health_api")

health_api = Blueprint("health_api", __name__)

from app.blueprints.api.health.cache import register_cache_routes  # noqa: E402
from app.blueprints.api.health.system import register_system_routes  # noqa: E402

register_system_routes(health_api)
register_cache_routes(health_api)

__all__ = ["health_api"]
