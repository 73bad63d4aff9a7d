# connection_manager.py - owns the telemetry stream and its reconnect policy

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from ..core.exceptions import ParseError, TransportError
from ..core.patterns.backoff import LinearBackoff
from ..core.patterns.observer import EventCategory, TelemetryEventBus
from ..core.patterns.state_machine import ConnectionStatus, StateMachine
from ..mapping.telemetry_classifier import TelemetryClassifier
from ..models.telemetry_models import ConnectionEvent, ConnectionSnapshot, Endpoint
from ..protocols.stream_transport import BaseStreamTransport, Frame, WebSocketTransport

TransportFactory = Callable[..., BaseStreamTransport]
Scheduler = Callable[[float, Callable[[], None]], Any]


def loop_call_later(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


@dataclass
class ReconnectState:
    """Retry bookkeeping; at most one scheduled retry exists at a time."""
    max_attempts: int
    attempts: int = 0
    handle: Optional[Any] = None      # anything with .cancel(), usually asyncio.TimerHandle

    @property
    def pending(self) -> bool:
        return self.handle is not None

    def cancel(self) -> bool:
        if self.handle is None:
            return False
        self.handle.cancel()
        self.handle = None
        return True


class ConnectionManager:
    """
    Connection state machine for the telemetry stream.

    The only component allowed to change the connection status or touch the
    live transport. Transport callbacks arrive one at a time; anything going
    wrong in here is turned into a ``connection`` event, never raised.
    """

    def __init__(self,
                 endpoint: Endpoint,
                 classifier: TelemetryClassifier,
                 bus: TelemetryEventBus,
                 backoff: Optional[LinearBackoff] = None,
                 transport_factory: TransportFactory = WebSocketTransport,
                 call_later: Scheduler = loop_call_later):
        self.endpoint = endpoint
        self.classifier = classifier
        self.bus = bus
        self.backoff = backoff or LinearBackoff()
        self._transport_factory = transport_factory
        self._call_later = call_later
        self._machine = StateMachine(ConnectionStatus.DISCONNECTED)
        self._reconnect = ReconnectState(max_attempts=self.backoff.max_attempts)
        self._transport: Optional[BaseStreamTransport] = None
        self._retired: List[BaseStreamTransport] = []
        self._generation = 0
        self._intentional_close = False
        self.logger = logging.getLogger(self.__class__.__name__)

    # ---- Read-only state ----
    @property
    def status(self) -> ConnectionStatus:
        return self._machine.state

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect.attempts

    @property
    def retry_pending(self) -> bool:
        return self._reconnect.pending

    def snapshot(self) -> ConnectionSnapshot:
        return ConnectionSnapshot(
            status=self.status,
            reconnect_attempts=self._reconnect.attempts,
            endpoint=self.endpoint.copy(),
        )

    # ---- Commands ----
    def connect(self) -> None:
        """Open the stream unless it is already open or opening."""
        if self.status in (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED):
            self.logger.debug(f"connect() ignored, stream is {self.status.value}")
            return

        self._intentional_close = False
        self._reconnect.cancel()
        if self.status == ConnectionStatus.FAILED:
            self.logger.info("Manual reconnect after failure, retry budget restored")
            self._reconnect.attempts = 0
        self._open_transport()

    def disconnect(self) -> None:
        """Close the stream, drop every listener and suppress automatic retries."""
        self._intentional_close = True
        if self._reconnect.cancel():
            self.logger.info("Cancelled pending reconnect")
        self._generation += 1
        self._retire_transport()
        self.bus.clear()
        self._machine.transition(ConnectionStatus.DISCONNECTED)
        self.logger.info("Disconnected from device")

    async def wait_closed(self) -> None:
        """Wait for every transport we let go of to release its resources."""
        retired, self._retired = self._retired, []
        for transport in retired:
            await transport.wait_closed()

    # ---- Transport lifecycle ----
    def _open_transport(self) -> None:
        self._machine.transition(ConnectionStatus.CONNECTING)
        self._generation += 1
        gen = self._generation
        url = self.endpoint.stream_url
        self.logger.info(f"Opening telemetry stream {url}")

        try:
            self._transport = self._transport_factory(
                url,
                on_open=lambda: self._handle_open(gen),
                on_message=lambda frame: self._handle_message(gen, frame),
                on_close=lambda: self._handle_close(gen),
                on_error=lambda exc: self._handle_error(gen, exc),
            )
            self._transport.open()
        except Exception as e:
            error = e if isinstance(e, TransportError) else TransportError(f"cannot open {url}: {e}")
            self._handle_error(gen, error)

    def _retire_transport(self) -> None:
        if self._transport is None:
            return
        transport, self._transport = self._transport, None
        transport.close()
        self._retired = [t for t in self._retired if not t.released]
        self._retired.append(transport)

    def _is_current(self, gen: int) -> bool:
        if gen != self._generation:
            self.logger.debug("Ignoring callback from a stale transport")
            return False
        return True

    # ---- Transport callbacks ----
    def _handle_open(self, gen: int) -> None:
        if not self._is_current(gen):
            return
        self._machine.transition(ConnectionStatus.CONNECTED)
        self._reconnect.attempts = 0
        self._reconnect.cancel()
        self.logger.info(f"Connected to device at {self.endpoint.stream_url}")
        self._emit(ConnectionStatus.CONNECTED)

    def _handle_message(self, gen: int, frame: Frame) -> None:
        if not self._is_current(gen) or self.status != ConnectionStatus.CONNECTED:
            return
        try:
            event = self.classifier.process(frame)
        except ParseError as e:
            self.logger.warning(f"Dropping malformed telemetry frame: {e}")
            return
        if event is not None:
            self.bus.publish(event.category, event)

    def _handle_close(self, gen: int) -> None:
        if not self._is_current(gen):
            return
        self._generation += 1          # a session ends once
        self._retire_transport()
        if self.status == ConnectionStatus.FAILED:
            return
        self.logger.info("Telemetry stream closed")
        self._machine.transition(ConnectionStatus.DISCONNECTED)
        self._emit(ConnectionStatus.DISCONNECTED)
        self._schedule_reconnect()

    def _handle_error(self, gen: int, exc: Exception) -> None:
        if not self._is_current(gen):
            return
        self._generation += 1
        self._retire_transport()
        if self.status == ConnectionStatus.FAILED:
            return
        self.logger.error(f"Telemetry stream error: {exc}")
        self._machine.transition(ConnectionStatus.ERROR)
        self._emit(ConnectionStatus.ERROR, error=str(exc))
        self._schedule_reconnect()

    # ---- Reconnect policy ----
    def _schedule_reconnect(self) -> None:
        # a connection listener may already have called connect() or disconnect()
        if self._intentional_close or self.status not in (ConnectionStatus.DISCONNECTED,
                                                          ConnectionStatus.ERROR):
            return

        if self.backoff.exhausted(self._reconnect.attempts):
            self._machine.transition(ConnectionStatus.FAILED)
            self.logger.error(f"Giving up after {self._reconnect.attempts} reconnect attempts")
            self._emit(ConnectionStatus.FAILED)
            return

        self._reconnect.attempts += 1
        delay = self.backoff.delay(self._reconnect.attempts)
        if self._reconnect.cancel():
            self.logger.warning("Replaced a stale pending reconnect")
        try:
            self._reconnect.handle = self._call_later(delay, self._retry)
        except RuntimeError as e:
            self.logger.error(f"Cannot schedule reconnect: {e}")
            return
        self.logger.warning(
            f"Reconnect attempt {self._reconnect.attempts}/{self._reconnect.max_attempts} "
            f"in {delay:.1f}s"
        )

    def _retry(self) -> None:
        self._reconnect.handle = None
        if self._intentional_close or self.status not in (ConnectionStatus.DISCONNECTED,
                                                          ConnectionStatus.ERROR):
            return
        self._open_transport()

    def _emit(self, status: ConnectionStatus, error: Optional[str] = None) -> None:
        self.bus.publish(EventCategory.CONNECTION, ConnectionEvent(
            status=status,
            error=error,
            reconnect_attempts=self._reconnect.attempts,
        ))
