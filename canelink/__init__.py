"""CaneLink - Smart cane device connectivity client"""

__version__ = '1.0.0'
__description__ = 'Telemetry stream, command surface and reconnect policy for the smart cane'

# Core patterns - most fundamental
from .core import (
    ConnectionStatus,
    EventCategory,
    LinearBackoff,
    TelemetryEventBus,
    CaneLinkError,
    CommandError,
    CommandErrorKind,
)

# Models - domain objects
from .models import Endpoint, ConnectionSnapshot, SystemStatus, ConnectionReport

# Classification
from .mapping import TelemetryClassifier

# Transports
from .protocols import WebSocketTransport, CommandDispatcher

# Services - the facade most callers want
from .services import DeviceClient, ConnectionManager

__all__ = [
    # Core
    'ConnectionStatus',
    'EventCategory',
    'LinearBackoff',
    'TelemetryEventBus',
    'CaneLinkError',
    'CommandError',
    'CommandErrorKind',

    # Models
    'Endpoint',
    'ConnectionSnapshot',
    'SystemStatus',
    'ConnectionReport',

    # Components
    'TelemetryClassifier',
    'WebSocketTransport',
    'CommandDispatcher',
    'ConnectionManager',

    # Facade
    'DeviceClient'
]
