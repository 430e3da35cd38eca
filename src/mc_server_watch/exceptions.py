"""
Exception classes for the server watch system.

All exceptions inherit from ServerWatchError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class ServerWatchError(Exception):
    """Base exception for all server watch errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NetworkError(ServerWatchError):
    """Raised inside a status client when the TCP connection cannot be opened."""

    pass


class ProtocolError(ServerWatchError):
    """Raised inside a status client when the server response cannot be decoded."""

    pass


class UsageError(ServerWatchError):
    """Raised when the library is called in a way its preconditions forbid."""

    pass


class ConfigError(ServerWatchError):
    """Raised when configuration values are invalid."""

    pass


class NotificationError(ServerWatchError):
    """Raised when a webhook delivery fails."""

    pass
