from app.enums.events import AnalysisEvent, SensorEvent
from app.utils.emitters import SOCKETIO_NAMESPACE_DASHBOARD, EmitterService


class FakeSocketIO:
    def __init__(self) -> None:
        self.emits: list[dict] = []

    def emit(self, event, payload, to=None, namespace="/"):
        self.emits.append(
            {
                "event": event,
                "payload": payload,
                "room": to,
                "namespace": namespace,
            }
        )


class FakeEventBus:
    def __init__(self) -> None:
        self.subscribers: dict[str, list] = {}

    def subscribe(self, event, callback):
        self.subscribers.setdefault(event.value, []).append(callback)
        return lambda: self.subscribers[event.value].remove(callback)

    def deliver(self, event, payload):
        for callback in list(self.subscribers.get(event.value, [])):
            callback(payload)


def test_soil_reading_is_broadcast_to_dashboard_namespace():
    sio = FakeSocketIO()
    emitter = EmitterService(sio=sio)

    assert emitter.emit_soil_reading({"moisture": 41.0})

    assert sio.emits == [
        {
            "event": "soil_reading",
            "payload": {"moisture": 41.0},
            "room": None,
            "namespace": SOCKETIO_NAMESPACE_DASHBOARD,
        }
    ]


def test_bind_forwards_bus_events_until_unbound():
    sio = FakeSocketIO()
    bus = FakeEventBus()
    emitter = EmitterService(sio=sio)
    emitter.bind(bus)

    bus.deliver(SensorEvent.ENVIRONMENT_SNAPSHOT, {"temperature": 29.0})
    bus.deliver(AnalysisEvent.COMPLETED, {"id": "abc", "manualTrigger": False})

    assert [e["event"] for e in sio.emits] == ["environment_snapshot", "analysis_completed"]

    emitter.unbind()
    bus.deliver(SensorEvent.SOIL_READING, {"moisture": 10.0})
    assert len(sio.emits) == 2


def test_emit_failure_is_reported_not_raised():
    class BrokenSocketIO:
        def emit(self, *args, **kwargs):
            raise ConnectionError("client gone")

    assert EmitterService(sio=BrokenSocketIO()).emit_analysis_completed({"id": "x"}) is False
