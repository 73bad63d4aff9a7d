"""
Centralised exception definitions for the CaneLink device client.
All custom exceptions should inherit from CaneLinkError.
"""
from __future__ import annotations
from enum import Enum
from typing import Optional


class CaneLinkError(Exception):
    """Base class for every custom exception thrown by this project."""

class ConfigurationError(CaneLinkError):
    """Raised when settings, environment variables or endpoint values are invalid."""

class TransportError(CaneLinkError):
    """The stream transport could not be opened or failed while open."""

class ParseError(CaneLinkError):
    """An inbound stream payload is not the JSON object we expect."""

class ListenerError(CaneLinkError):
    """A subscriber raised while an event was being published."""

    def __init__(self, category: str, callback, original: BaseException):
        self.category = category
        self.callback = callback
        self.original = original
        name = getattr(callback, "__qualname__", repr(callback))
        super().__init__(f"listener {name} for '{category}' failed: {original!r}")


class CommandErrorKind(Enum):
    NETWORK          = "network"
    HTTP_STATUS      = "http_status"
    TIMEOUT          = "timeout"
    INVALID_RESPONSE = "invalid_response"


class CommandError(CaneLinkError):
    """A command call to the device failed; ``kind`` tells the caller why."""

    def __init__(self, kind: CommandErrorKind, message: str, *, status: Optional[int] = None):
        self.kind = kind
        self.status = status
        super().__init__(f"[{kind.value}] {message}")
