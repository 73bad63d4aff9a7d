# canelink/core/__init__.py
"""Core infrastructure components for the cane device client."""

# Import order: most fundamental to most specific

from .exceptions import (
    CaneLinkError,
    ConfigurationError,
    TransportError,
    ParseError,
    ListenerError,
    CommandError,
    CommandErrorKind,
)

from .patterns.state_machine import StateMachine, ConnectionStatus
from .patterns.backoff import LinearBackoff
from .patterns.observer import EventCategory, TelemetryEventBus


__all__ = [
    "StateMachine",
    "ConnectionStatus",
    "LinearBackoff",
    "EventCategory",
    "TelemetryEventBus",
    "CaneLinkError",             # make available at package root
    "ConfigurationError",
    "TransportError",
    "ParseError",
    "ListenerError",
    "CommandError",
    "CommandErrorKind",
]
