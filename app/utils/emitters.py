"""
WebSocket Emitters
==================

Pushes sensor and analysis events to dashboards connected to the
``/dashboard`` Socket.IO namespace.

``EmitterService.bind`` subscribes the emitter to the EventBus, so services
only publish events and never talk to Socket.IO directly. Emission errors are
logged and swallowed: a disconnected browser must never break ingestion or
analysis.
"""

import logging
from typing import Any, Callable

from flask_socketio import SocketIO

from app.enums.events import AnalysisEvent, SensorEvent, WebSocketEvent

logger = logging.getLogger("emitters")

SOCKETIO_NAMESPACE_DASHBOARD = "/dashboard"


class EmitterService:
    """
    Centralized WebSocket Emitter Service.

    Attributes:
        sio: The Socket.IO server used for emitting events.
    """

    def __init__(self, sio: SocketIO, namespace: str = SOCKETIO_NAMESPACE_DASHBOARD):
        self.sio = sio
        self.namespace = namespace
        self._unsubscribers: list[Callable[[], None]] = []

    def emit(self, event: str, payload: dict, room: str | None = None) -> bool:
        """
        Emit a Socket.IO event to the dashboard namespace.

        Args:
            event: Event name (e.g., "soil_reading").
            payload: JSON serializable data to send.
            room: Socket.IO room identifier. Broadcasts if None.

        Returns:
            True when the emit call succeeded.
        """
        try:
            self.sio.emit(event, payload, to=room, namespace=self.namespace)
            logger.debug("Emitted '%s' to %s (%s)", event, self.namespace, room or "broadcast")
            return True
        except Exception as e:
            logger.exception("[Emitter] Failed to emit event '%s': %s", event, e)
            return False

    def emit_soil_reading(self, payload: dict[str, Any]) -> bool:
        return self.emit(WebSocketEvent.SOIL_READING.value, payload)

    def emit_environment_snapshot(self, payload: dict[str, Any]) -> bool:
        return self.emit(WebSocketEvent.ENVIRONMENT_SNAPSHOT.value, payload)

    def emit_analysis_completed(self, payload: dict[str, Any]) -> bool:
        return self.emit(WebSocketEvent.ANALYSIS_COMPLETED.value, payload)

    def bind(self, event_bus: Any) -> None:
        """Forward bus events to connected dashboards."""
        self._unsubscribers = [
            event_bus.subscribe(SensorEvent.SOIL_READING, self.emit_soil_reading),
            event_bus.subscribe(SensorEvent.ENVIRONMENT_SNAPSHOT, self.emit_environment_snapshot),
            event_bus.subscribe(AnalysisEvent.COMPLETED, self.emit_analysis_completed),
        ]

    def unbind(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
