"""
Enumeration types for the server watch system.

These enums provide type-safe constants for error classifications,
event kinds, and logging levels throughout the system.
"""

from enum import Enum


class ProbeErrorCode(Enum):
    """Classification of a failed status query."""

    CONNECT_FAILURE = "connect_failure"
    TIMEOUT = "timeout"
    PROTOCOL_VIOLATION = "protocol_violation"
    MALFORMED_LEGACY_RESPONSE = "malformed_legacy_response"


class ProtocolVariant(Enum):
    """Status query protocol generation."""

    LEGACY = "legacy"
    MODERN = "modern"


class EventKind(Enum):
    """Discriminant of a change event."""

    ONLINE_STATUS_CHANGED = "online_status_changed"
    PLAYER_COUNT_CHANGED = "player_count_changed"
    PLAYER_PRESENCE_CHANGED = "player_presence_changed"


class LogLevel(Enum):
    """Logging severity levels, ordered from most to least verbose."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 40,
}
