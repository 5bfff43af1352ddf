from __future__ import annotations

import atexit
import contextlib
import logging
import signal
import threading
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from app.blueprints.api.analysis import analysis_api
from app.blueprints.api.health import health_api
from app.blueprints.api.sensors import sensors_api
from app.blueprints.api.weather import weather_api
from app.config import load_config, setup_logging
from app.extensions import init_extensions, socketio


def create_app(config_overrides: dict[str, Any] | None = None, *, start_scheduler: bool = False) -> Flask:
    config = load_config()
    if config_overrides:
        for key, value in config_overrides.items():
            setattr(config, key.lower(), value)

    setup_logging(debug=config.DEBUG, level=config.log_level)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())

    # Reject request bodies larger than 2 MB (a 1000-reading series is ~100 KB)
    flask_app.config["MAX_CONTENT_LENGTH"] = 2 * 1024 * 1024

    # Initialize Socket.IO BEFORE building ServiceContainer (EmitterService needs it)
    init_extensions(flask_app, config.socketio_cors_origins)

    from app.services.container import ServiceContainer

    container = ServiceContainer.build(config, start_scheduler=start_scheduler)
    flask_app.config["CONTAINER"] = container

    # ── Graceful shutdown handlers ──────────────────────────────────
    _shutdown_lock = threading.Lock()
    _shutdown_done = False

    def _graceful_shutdown(reason: str = "unknown") -> None:
        nonlocal _shutdown_done
        with _shutdown_lock:
            if _shutdown_done:
                return
            _shutdown_done = True
        logging.info("Graceful shutdown initiated (%s)", reason)
        try:
            container.shutdown()
        except Exception as exc:
            logging.warning("Error during graceful shutdown: %s", exc)

    def _signal_handler(signum: int, _frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logging.info("Received %s, shutting down", sig_name)
        _graceful_shutdown(sig_name)
        raise SystemExit(0)

    atexit.register(_graceful_shutdown, "atexit")

    # Only the main thread may install signal handlers
    if start_scheduler:
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(OSError, ValueError):
                signal.signal(sig, _signal_handler)

    # Global JSON error handler: domain exceptions carry their own
    # ``http_status``; anything else becomes a generic 500.
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        if not request.path.startswith("/api/"):
            raise exc
        from app.domain.exceptions import KebunError
        from app.utils.http import domain_error_response, error_response, safe_error

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            return error_response(exc.description or "Request failed", status)

        if isinstance(exc, KebunError):
            return domain_error_response(exc)

        return safe_error(exc, 500, context="unhandled")

    @flask_app.errorhandler(413)
    def _handle_too_large(_exc):
        from app.utils.http import error_response

        return error_response("Request payload too large", 413)

    # ── API version prefix ──────────────────────────────────────────
    V1 = "/api/v1"

    flask_app.register_blueprint(analysis_api, url_prefix=f"{V1}/analysis")
    flask_app.register_blueprint(sensors_api, url_prefix=f"{V1}/sensors")
    flask_app.register_blueprint(weather_api, url_prefix=f"{V1}/weather")
    flask_app.register_blueprint(health_api, url_prefix=f"{V1}/health")

    # Register Socket.IO event handlers (must be after socketio init)
    from app.socketio import register_handlers

    register_handlers()

    for bp_name in flask_app.blueprints:
        logging.info(" Registered blueprint: %s", bp_name)

    # ── Backward-compat: rewrite /api/* → /api/v1/* ─────────────
    # WSGI-level rewrite (no HTTP redirect, fully transparent to clients).
    # Keeps the dashboard's /api/analyze-soil and /api/weather-forecast working.
    _legacy_paths = {
        "/api/analyze-soil": f"{V1}/analysis/analyze",
        "/api/weather-forecast": f"{V1}/weather/forecast",
    }
    _original_wsgi = flask_app.wsgi_app

    def _legacy_api_rewrite(environ, start_response):
        path = environ.get("PATH_INFO", "")
        if path in _legacy_paths:
            environ["PATH_INFO"] = _legacy_paths[path]
        elif path.startswith("/api/") and not path.startswith("/api/v1/"):
            environ["PATH_INFO"] = "/api/v1" + path[4:]
        return _original_wsgi(environ, start_response)

    flask_app.wsgi_app = _legacy_api_rewrite  # type: ignore[assignment]

    logger = logging.getLogger(__name__)
    logger.info("KebunPintar application initialized successfully.")

    return flask_app


__all__ = ["create_app", "socketio"]
