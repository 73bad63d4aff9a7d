"""Connection management and the device client facade."""

from .connection_manager import ConnectionManager, ReconnectState
from .device_service import DeviceClient

__all__ = [
    'ConnectionManager',
    'ReconnectState',
    'DeviceClient'
]
