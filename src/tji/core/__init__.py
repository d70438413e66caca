"""Core infrastructure: configuration, logging, events and errors."""

from tji.core.config import ConfigManager
from tji.core.events import Event
from tji.core.exceptions import (
    AuthenticationProtocolError,
    ConfigurationError,
    ResponseFormatError,
    ServerError,
    TJIError,
    TransportError,
)
from tji.core.log import Log, LogBroadcaster, setup_logging

__all__ = [
    "ConfigManager",
    "Event",
    "Log",
    "LogBroadcaster",
    "setup_logging",
    "TJIError",
    "ConfigurationError",
    "AuthenticationProtocolError",
    "TransportError",
    "ServerError",
    "ResponseFormatError",
]
