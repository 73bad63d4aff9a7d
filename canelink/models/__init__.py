"""Data models and domain objects."""

from .telemetry_models import (
    Endpoint,
    UltrasonicEvent,
    TofEvent,
    VibratorEvent,
    GpsEvent,
    ImuEvent,
    ConnectionEvent,
    TelemetryEvent,
    DeviceEvent,
    ConnectionSnapshot,
    SystemStatus,
    ConnectionReport,
)

__all__ = [
    # Configuration
    'Endpoint',

    # Events
    'UltrasonicEvent',
    'TofEvent',
    'VibratorEvent',
    'GpsEvent',
    'ImuEvent',
    'ConnectionEvent',
    'TelemetryEvent',
    'DeviceEvent',

    # Reports
    'ConnectionSnapshot',
    'SystemStatus',
    'ConnectionReport'
]
