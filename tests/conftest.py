"""Shared test fixtures.

The stream tests never open a socket: ``FakeTransport`` lets a test fire the
open/message/close/error callbacks by hand, and ``FakeScheduler`` stands in
for ``loop.call_later`` so reconnect timers can be inspected and run
synchronously.
"""

import json
import socket
from typing import Any, Callable, List, Optional

import pytest

from canelink.core.exceptions import TransportError
from canelink.core.patterns.backoff import LinearBackoff
from canelink.core.patterns.observer import EventCategory, TelemetryEventBus
from canelink.mapping.telemetry_classifier import TelemetryClassifier
from canelink.models.telemetry_models import Endpoint
from canelink.protocols.stream_transport import BaseStreamTransport
from canelink.services.connection_manager import ConnectionManager


class FakeTransport(BaseStreamTransport):
    def __init__(self, url, on_open, on_message, on_close, on_error, fail_open=False):
        super().__init__(url, on_open, on_message, on_close, on_error)
        self.fail_open = fail_open
        self.opened = False
        self.closed = False

    def open(self) -> None:
        if self.fail_open:
            raise TransportError(f"connection refused: {self.url}")
        self.opened = True

    def close(self) -> None:
        self._closing = True
        self.closed = True

    # ---- test drivers; they bypass the closing guard on purpose ----
    def fire_open(self):
        self._on_open()

    def fire_message(self, payload: Any):
        frame = payload if isinstance(payload, (str, bytes)) else json.dumps(payload)
        self._on_message(frame)

    def fire_close(self):
        self._on_close()

    def fire_error(self, exc: Optional[Exception] = None):
        self._on_error(exc or TransportError("stream reset"))


class FakeTransportFactory:
    def __init__(self):
        self.transports: List[FakeTransport] = []
        self.fail_open = False

    def __call__(self, url, **callbacks) -> FakeTransport:
        transport = FakeTransport(url, fail_open=self.fail_open, **callbacks)
        self.transports.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.transports[-1]


class FakeHandle:
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    def run(self):
        assert not self.cancelled, "ran a cancelled reconnect"
        self.fired = True
        self.callback()


class FakeScheduler:
    def __init__(self):
        self.handles: List[FakeHandle] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> List[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    @property
    def delays(self) -> List[float]:
        return [h.delay for h in self.handles]

    def run_pending(self):
        pending = self.pending
        assert len(pending) == 1, f"expected one pending reconnect, found {len(pending)}"
        pending[0].run()


class EventRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    @property
    def statuses(self):
        return [e.status for e in self.events]


def unused_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def transports() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def bus() -> TelemetryEventBus:
    return TelemetryEventBus()


@pytest.fixture
def endpoint() -> Endpoint:
    return Endpoint("cane.local")


@pytest.fixture
def manager(endpoint, bus, transports, scheduler) -> ConnectionManager:
    return ConnectionManager(
        endpoint,
        TelemetryClassifier(),
        bus,
        backoff=LinearBackoff(base_delay=3.0, max_attempts=5),
        transport_factory=transports,
        call_later=scheduler,
    )


@pytest.fixture
def connection_events(bus) -> EventRecorder:
    recorder = EventRecorder()
    bus.subscribe(EventCategory.CONNECTION, recorder)
    return recorder
