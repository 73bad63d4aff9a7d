from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional, Union

from ..core.exceptions import ConfigurationError
from ..core.patterns.observer import EventCategory
from ..core.patterns.state_machine import ConnectionStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


###############################################################################
# 1. ENDPOINT -----------------------------------------------------------------
###############################################################################

@dataclass(slots=True)
class Endpoint:
    """Where the cane lives on the LAN. Mutable; changes apply on next connect."""
    host: str
    command_port: int = 80
    stream_port: int = 81

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if not self.host or not str(self.host).strip():
            raise ConfigurationError("Device host is required")
        for name in ("command_port", "stream_port"):
            port = getattr(self, name)
            if isinstance(port, bool) or not isinstance(port, int) or not (1 <= port <= 65535):
                raise ConfigurationError(f"{name} must be a valid port number, got {port!r}")

    @property
    def command_url(self) -> str:
        return f"http://{self.host}:{self.command_port}"

    @property
    def stream_url(self) -> str:
        return f"ws://{self.host}:{self.stream_port}"

    def copy(self) -> "Endpoint":
        return replace(self)


###############################################################################
# 2. TELEMETRY EVENTS ---------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class UltrasonicEvent:
    """Distance to an obstacle ahead of the cane."""
    category: ClassVar[EventCategory] = EventCategory.ULTRASONIC
    distance: float                   # cm
    obstacle: bool
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class TofEvent:
    """Time-of-flight distance to the ground below the tip."""
    category: ClassVar[EventCategory] = EventCategory.TOF
    distance: float                   # cm
    stair: bool
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class VibratorEvent:
    category: ClassVar[EventCategory] = EventCategory.VIBRATOR
    pattern: Optional[str]
    intensity: Optional[float]        # 0-100
    active: Optional[bool]
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class GpsEvent:
    category: ClassVar[EventCategory] = EventCategory.GPS
    latitude: Optional[float]
    longitude: Optional[float]
    accuracy: Optional[float]
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class ImuEvent:
    category: ClassVar[EventCategory] = EventCategory.IMU
    acceleration: Any
    gyroscope: Any
    orientation: Any                  # degrees
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class ConnectionEvent:
    """Status transition of the stream connection."""
    category: ClassVar[EventCategory] = EventCategory.CONNECTION
    status: ConnectionStatus
    timestamp: datetime = field(default_factory=utcnow)
    error: Optional[str] = None
    reconnect_attempts: int = 0


TelemetryEvent = Union[UltrasonicEvent, TofEvent, VibratorEvent, GpsEvent, ImuEvent]
DeviceEvent = Union[TelemetryEvent, ConnectionEvent]


###############################################################################
# 3. SNAPSHOTS & DEVICE REPORTS -----------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class ConnectionSnapshot:
    """Read-only view returned by ``DeviceClient.get_connection_status()``."""
    status: ConnectionStatus
    reconnect_attempts: int
    endpoint: Endpoint

    @property
    def is_connected(self) -> bool:
        return self.status == ConnectionStatus.CONNECTED


@dataclass(frozen=True, slots=True)
class SystemStatus:
    """Projection of the device's ``GET /status`` response."""
    status: Optional[str] = None
    ip: Optional[str] = None
    battery: Optional[float] = None
    temperature: Optional[float] = None
    uptime: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[tuple] = ("status", "ip", "battery", "temperature", "uptime")

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SystemStatus":
        return cls(
            status      = row.get("status"),
            ip          = row.get("ip"),
            battery     = row.get("battery"),
            temperature = row.get("temperature"),
            uptime      = row.get("uptime"),
            extra       = {k: v for k, v in row.items() if k not in cls._KNOWN},
        )


@dataclass(slots=True)
class ConnectionReport:
    """Outcome of ``DeviceClient.check_connection()``."""
    endpoint: Endpoint
    root_ok: bool = False
    status_ok: bool = False
    system_status: Optional[SystemStatus] = None
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.root_ok and self.status_ok
