"""Exception types raised by TJI."""

from typing import Optional


class TJIError(Exception):
    """Base class for TJI errors."""

    pass


class ConfigurationError(TJIError, ValueError):
    """Invalid or missing configuration, such as an empty API token."""

    pass


class AuthenticationProtocolError(TJIError):
    """Session endpoint did not answer with the expected session cookie."""

    pass


class TransportError(TJIError):
    """Connection, timeout or HTTP-level failure while talking to Toggl."""

    pass


class ServerError(TJIError):
    """Toggl answered with an unexpected status code."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"Server returned '{status_code}'")


class ResponseFormatError(TJIError):
    """Response body could not be read as the expected payload."""

    pass
