"""Device transports: telemetry stream and command surface."""

from .stream_transport import (
    BaseStreamTransport,
    WebSocketTransport,
    Frame
)

from .command_client import CommandDispatcher, DEFAULT_COMMAND_TIMEOUT

__all__ = [
    # Stream
    'BaseStreamTransport',
    'WebSocketTransport',
    'Frame',

    # Commands
    'CommandDispatcher',
    'DEFAULT_COMMAND_TIMEOUT'
]
