"""
Observer Pattern Implementation for Device Telemetry

This module implements the listener registry that fans classified telemetry
and connection events out to the rest of the application. Dispatch is
synchronous and ordered; a failing listener is logged and isolated.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from ..exceptions import ListenerError


class EventCategory(Enum):
    """Categories an observer can subscribe to."""
    CONNECTION = "connection"
    ULTRASONIC = "ultrasonic"
    TOF = "tof"
    VIBRATOR = "vibrator"
    GPS = "gps"
    IMU = "imu"


Listener = Callable[[Any], Any]


def as_category(category: Union[EventCategory, str]) -> EventCategory:
    """Accept either an EventCategory or its string value."""
    if isinstance(category, EventCategory):
        return category
    try:
        return EventCategory(category)
    except ValueError:
        raise ValueError(f"Unknown event category: {category!r}") from None


class TelemetryEventBus:
    """Ordered, multi-subscriber event registry keyed by EventCategory."""

    def __init__(self):
        self._listeners: Dict[EventCategory, List[Listener]] = {}
        self._pending: set = set()
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, category: Union[EventCategory, str], callback: Listener) -> None:
        """Append a callback; subscribing the same callback twice registers it twice."""
        if not callable(callback):
            raise TypeError("callback must be callable")
        key = as_category(category)
        self._listeners.setdefault(key, []).append(callback)
        self._logger.debug(f"Subscribed {_name(callback)} to {key.value}")

    def unsubscribe(self, category: Union[EventCategory, str], callback: Listener) -> None:
        """Remove the first registration of ``callback``; no-op when absent."""
        key = as_category(category)
        callbacks = self._listeners.get(key)
        if not callbacks:
            return
        for index, registered in enumerate(callbacks):
            if registered is callback:
                del callbacks[index]
                self._logger.debug(f"Unsubscribed {_name(callback)} from {key.value}")
                return

    def publish(self, category: Union[EventCategory, str], event: Any) -> List[ListenerError]:
        """Invoke every listener of ``category`` in registration order.

        Listener failures never reach the publisher; they are logged and
        returned so callers and tests can inspect them.
        """
        key = as_category(category)
        failures: List[ListenerError] = []

        # snapshot: listeners may (un)subscribe while being notified
        for callback in list(self._listeners.get(key, ())):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    self._schedule(key, callback, result)
            except Exception as e:
                failure = ListenerError(key.value, callback, e)
                self._logger.error(str(failure), exc_info=True)
                failures.append(failure)
        return failures

    def clear(self) -> None:
        self._listeners.clear()

    def listener_count(self, category: Optional[Union[EventCategory, str]] = None) -> int:
        if category is None:
            return sum(len(callbacks) for callbacks in self._listeners.values())
        return len(self._listeners.get(as_category(category), ()))

    # ---- coroutine listeners ----
    def _schedule(self, key: EventCategory, callback: Listener, awaitable) -> None:
        try:
            task = asyncio.ensure_future(awaitable, loop=asyncio.get_running_loop())
        except RuntimeError as e:
            # no running loop to drive the coroutine
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            self._logger.error(str(ListenerError(key.value, callback, e)))
            return
        self._pending.add(task)
        task.add_done_callback(lambda t: self._on_task_done(key, callback, t))

    def _on_task_done(self, key: EventCategory, callback: Listener, task: "asyncio.Future") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error(str(ListenerError(key.value, callback, exc)), exc_info=exc)


def _name(callback: Listener) -> str:
    return getattr(callback, "__qualname__", repr(callback))
