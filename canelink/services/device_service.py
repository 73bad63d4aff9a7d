# device_service.py - the single object the application talks to

import logging
from typing import Any, Callable, Dict, Optional, Union

from ..core.exceptions import CaneLinkError, CommandError, CommandErrorKind
from ..core.patterns.backoff import LinearBackoff
from ..core.patterns.observer import EventCategory, TelemetryEventBus
from ..core.patterns.state_machine import ConnectionStatus
from ..mapping.telemetry_classifier import TelemetryClassifier
from ..models.telemetry_models import (
    ConnectionReport,
    ConnectionSnapshot,
    Endpoint,
    SystemStatus,
)
from ..protocols.command_client import CommandDispatcher, DEFAULT_COMMAND_TIMEOUT
from ..protocols.stream_transport import WebSocketTransport
from .connection_manager import ConnectionManager, Scheduler, TransportFactory, loop_call_later


class DeviceClient:
    """
    Device connectivity client for the smart cane.

    Composes the telemetry stream (ConnectionManager), the classifier, the
    event bus and the command dispatcher behind one facade. Construct one per
    application run and hand it to whoever needs it:

        client = DeviceClient(Endpoint("192.168.1.100"))
        client.subscribe(EventCategory.ULTRASONIC, on_reading)
        client.connect()
        ...
        client.disconnect()
    """

    def __init__(self,
                 endpoint: Endpoint,
                 *,
                 classifier: Optional[TelemetryClassifier] = None,
                 backoff: Optional[LinearBackoff] = None,
                 command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
                 transport_factory: TransportFactory = WebSocketTransport,
                 call_later: Scheduler = loop_call_later):
        self.endpoint = endpoint
        self.bus = TelemetryEventBus()
        self.classifier = classifier or TelemetryClassifier()
        self.connection = ConnectionManager(
            endpoint,
            self.classifier,
            self.bus,
            backoff=backoff,
            transport_factory=transport_factory,
            call_later=call_later,
        )
        self.commands = CommandDispatcher(endpoint, timeout=command_timeout)
        self.log = logging.getLogger(self.__class__.__name__)

    @classmethod
    def from_settings(cls, settings, **overrides) -> "DeviceClient":
        """Build a client from the ``config.app_config.settings`` namespace."""
        endpoint = Endpoint(
            host=settings.CANE_HOST,
            command_port=settings.CANE_COMMAND_PORT,
            stream_port=settings.CANE_STREAM_PORT,
        )
        kwargs: Dict[str, Any] = dict(
            classifier=TelemetryClassifier(
                ultrasonic_threshold=settings.ULTRASONIC_THRESHOLD,
                tof_threshold=settings.TOF_THRESHOLD,
            ),
            backoff=LinearBackoff(
                base_delay=settings.RECONNECT_BASE_DELAY,
                max_attempts=settings.MAX_RECONNECT_ATTEMPTS,
            ),
            command_timeout=settings.COMMAND_TIMEOUT,
        )
        kwargs.update(overrides)
        return cls(endpoint, **kwargs)

    # ---- Context manager protocol ----
    async def __aenter__(self):
        self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
        await self.wait_closed()
        return False

    # ---- Endpoint & connection ----
    def set_endpoint(self, host: str, command_port: Optional[int] = None,
                     stream_port: Optional[int] = None) -> None:
        """Point both channels at a new host; takes effect on the next connect()."""
        candidate = Endpoint(
            host=host,
            command_port=command_port if command_port is not None else self.endpoint.command_port,
            stream_port=stream_port if stream_port is not None else self.endpoint.stream_port,
        )
        # mutate in place, the dispatcher and connection manager share this object
        self.endpoint.host = candidate.host
        self.endpoint.command_port = candidate.command_port
        self.endpoint.stream_port = candidate.stream_port
        self.log.info(f"Endpoint set to {self.endpoint.host} "
                      f"(commands :{self.endpoint.command_port}, stream :{self.endpoint.stream_port})")

    def connect(self) -> None:
        self.connection.connect()

    def disconnect(self) -> None:
        self.connection.disconnect()

    async def wait_closed(self) -> None:
        await self.connection.wait_closed()

    def get_connection_status(self) -> ConnectionSnapshot:
        return self.connection.snapshot()

    @property
    def is_connected(self) -> bool:
        return self.connection.status == ConnectionStatus.CONNECTED

    # ---- Observers ----
    def subscribe(self, category: Union[EventCategory, str], callback: Callable[[Any], Any]) -> None:
        self.bus.subscribe(category, callback)

    def unsubscribe(self, category: Union[EventCategory, str], callback: Callable[[Any], Any]) -> None:
        self.bus.unsubscribe(category, callback)

    # ---- Commands ----
    async def send_command(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """POST ``payload`` as JSON to ``path``. Raises CommandError on failure."""
        return await self.commands.send(path, payload)

    async def activate_vibration(self, pattern: str = "alert", intensity: int = 50) -> Dict[str, Any]:
        return await self.send_command("/vibrate", {"pattern": pattern, "intensity": intensity})

    async def set_vibrator_pattern(self, pattern: str) -> Dict[str, Any]:
        return await self.send_command("/vibrator/pattern", {"pattern": pattern})

    async def calibrate_sensors(self) -> Dict[str, Any]:
        return await self.send_command("/calibrate")

    async def get_system_status(self) -> SystemStatus:
        row = await self.commands.fetch("/status")
        if not isinstance(row, dict):
            raise CommandError(CommandErrorKind.INVALID_RESPONSE,
                               f"/status returned {type(row).__name__}, expected an object")
        return SystemStatus.from_row(row)

    async def check_connection(self) -> ConnectionReport:
        """Probe ``GET /`` then ``GET /status``; failures end up in the report."""
        report = ConnectionReport(endpoint=self.endpoint.copy())

        try:
            await self.commands.fetch_text("/")
            report.root_ok = True
        except CommandError as e:
            report.errors.append(f"GET /: {e}")
            return report

        try:
            report.system_status = await self.get_system_status()
            report.status_ok = True
        except CaneLinkError as e:
            report.errors.append(f"GET /status: {e}")
        return report
