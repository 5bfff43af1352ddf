"""app.socketio.dashboard_handlers

Socket.IO handlers for the ``/dashboard`` namespace.

Live pushes (``soil_reading``, ``environment_snapshot``, ``analysis_completed``)
are sent by EmitterService from EventBus events; these handlers only greet a
new client with the current values so the dashboard renders before the next
reading arrives.
"""

import logging

from flask import current_app, request
from flask_socketio import emit

from app.enums.events import WebSocketEvent
from app.extensions import socketio
from app.utils.emitters import SOCKETIO_NAMESPACE_DASHBOARD

logger = logging.getLogger(__name__)


def _emit_current_state() -> None:
    container = current_app.config.get("CONTAINER")
    if container is None:
        return
    try:
        reading = container.sensor_service.latest_reading()
        if reading is not None:
            emit(WebSocketEvent.SOIL_READING.value, reading.to_dict())
        snapshot = container.sensor_service.latest_environment()
        if snapshot is not None:
            emit(WebSocketEvent.ENVIRONMENT_SNAPSHOT.value, snapshot.to_dict())
    except Exception as e:
        logger.warning("Failed to send current state to client %s: %s", request.sid, e)


@socketio.on("connect", namespace=SOCKETIO_NAMESPACE_DASHBOARD)
def handle_dashboard_connect():
    logger.info("Client %s connected to %s", request.sid, SOCKETIO_NAMESPACE_DASHBOARD)
    _emit_current_state()


@socketio.on("request_latest", namespace=SOCKETIO_NAMESPACE_DASHBOARD)
def handle_request_latest(_data=None):
    _emit_current_state()


@socketio.on("disconnect", namespace=SOCKETIO_NAMESPACE_DASHBOARD)
def handle_dashboard_disconnect(*_args):
    logger.info("Client %s disconnected from %s", request.sid, SOCKETIO_NAMESPACE_DASHBOARD)
