"""
Lightweight EventBus singleton shared by services, workers and Socket.IO.

Key invariants (enforced by call sites + tests):
  - Event topics come from enums in app.enums.events (EventType).
  - Payloads are dicts, dataclasses or Pydantic models from app.schemas.events.
  - Subscribers always receive a plain dict payload, on a worker thread.
"""
import logging
import threading
import time
from collections import defaultdict
from dataclasses import asdict, is_dataclass
from enum import Enum
from queue import Full, Queue
from typing import Any, Callable, Dict, Hashable, Iterable, Optional

from pydantic import BaseModel

from app.config import load_config
from app.enums.events import EventType

logger = logging.getLogger(__name__)

_DROP_WARNING_THRESHOLD = 10
_DROP_WARNING_INTERVAL_SECONDS = 60


class EventBus:
    """
    Publish/subscribe hub with a bounded queue and a small worker pool.

    Singleton so publishers and subscribers share the same routing table.
    ``publish`` never blocks: when the queue is full the event is dropped
    and counted.
    """

    _instance: Optional["EventBus"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "EventBus":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    config = load_config()
                    instance = super(EventBus, cls).__new__(cls)
                    instance.subscribers = defaultdict(list)
                    instance.lock = threading.Lock()
                    instance._queue_size = config.eventbus_queue_size
                    instance._queue = Queue(maxsize=instance._queue_size)
                    instance._worker_pool_size = max(1, config.eventbus_worker_count)
                    instance._workers_started = False
                    instance._dropped_events = 0
                    instance._drops_by_event = defaultdict(int)
                    instance._drops_since_last_warning = 0
                    instance._last_drop_warning_time = 0.0
                    cls._instance = instance
        return cls._instance

    def __init__(self) -> None:
        if not self._workers_started:
            self._start_workers()

    def _start_workers(self) -> None:
        with self.lock:
            if self._workers_started:
                return
            self._workers: list[threading.Thread] = []
            for index in range(self._worker_pool_size):
                worker = threading.Thread(target=self._worker_loop, name=f"eventbus-{index}", daemon=True)
                worker.start()
                self._workers.append(worker)
            self._workers_started = True
            logger.info(
                "EventBus workers started (pool=%s queue=%s)",
                self._worker_pool_size,
                self._queue_size,
            )

    def subscribe(self, event_name: EventType | str, callback: Callable[[Any], None]) -> Callable[[], None]:
        """
        Subscribe *callback* to an event; returns an unsubscribe function.

        Args:
            event_name: The enum topic (preferred) or raw string.
            callback: Function called with the dict payload.
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name
        with self.lock:
            self.subscribers[name].append(callback)

        def unsubscribe() -> None:
            with self.lock:
                callbacks = self.subscribers.get(name, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def _worker_loop(self) -> None:
        while True:
            event_name, callback, payload = self._queue.get()
            try:
                callback(payload)
            except Exception as exc:
                logger.error("Error in callback for event %s: %s", event_name, exc, exc_info=True)
            finally:
                self._queue.task_done()

    def publish(self, event_name: EventType | str, data: Any | None = None) -> None:
        """
        Queue *data* for every subscriber of *event_name*.

        Args:
            event_name: The enum topic (preferred) or raw string.
            data: Pydantic model, dataclass, or dict/primitive.
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name

        if isinstance(data, BaseModel):
            payload: Any = data.model_dump(by_alias=True)
        elif is_dataclass(data) and not isinstance(data, type):
            payload = asdict(data)
        else:
            payload = data

        with self.lock:
            callbacks: Iterable[Callable[[Any], None]] = list(self.subscribers.get(name, []))
        for callback in callbacks:
            try:
                self._queue.put_nowait((name, callback, payload))
            except Full:
                self._record_drop(name)
                break

    def wait_idle(self, timeout: float = 5.0) -> bool:
        """Block until queued callbacks have run (used by shutdown and tests)."""
        deadline = time.monotonic() + timeout
        while self._queue.unfinished_tasks:
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def _record_drop(self, event_name: str) -> None:
        self._dropped_events += 1
        self._drops_by_event[event_name] += 1
        self._drops_since_last_warning += 1

        now = time.time()
        should_warn = (
            self._drops_since_last_warning >= _DROP_WARNING_THRESHOLD
            and (now - self._last_drop_warning_time) >= _DROP_WARNING_INTERVAL_SECONDS
        )
        if should_warn:
            top_drops = sorted(self._drops_by_event.items(), key=lambda x: x[1], reverse=True)[:5]
            logger.warning(
                "EventBus dropping events! queue_size=%d, total_dropped=%d, recent_drops=%d, top=[%s]. "
                "Consider increasing KEBUN_EVENTBUS_QUEUE_SIZE.",
                self._queue_size,
                self._dropped_events,
                self._drops_since_last_warning,
                ", ".join(f"{k}:{v}" for k, v in top_drops),
            )
            self._drops_since_last_warning = 0
            self._last_drop_warning_time = now

    def get_metrics(self) -> Dict[str, Any]:
        """Return lightweight metrics for the health endpoint."""
        with self.lock:
            subscribers = sum(len(values) for values in self.subscribers.values())
        return {
            "queue_depth": self._queue.qsize(),
            "queue_size": self._queue_size,
            "dropped_events": self._dropped_events,
            "drops_by_event_top5": dict(
                sorted(self._drops_by_event.items(), key=lambda x: x[1], reverse=True)[:5]
            ),
            "subscribers": subscribers,
        }
