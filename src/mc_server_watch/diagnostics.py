"""
Diagnostic logger for the server watch system.

Provides leveled line logging with text or JSON output and masking of
sensitive values such as webhook URLs. Logging never influences control flow.
"""

import json
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, TextIO

from .enums import LogLevel


@dataclass
class LogEntry:
    """Represents a single log entry with all metadata."""

    timestamp: str
    level: LogLevel
    component: str
    message: str
    data: dict = field(default_factory=dict)


class DiagnosticLogger:
    """
    Leveled logger with text or JSON output.

    Entries below ``min_level`` are dropped. Values stored under sensitive
    keys are replaced by a mask before output.
    """

    # Keys that should be masked in log output
    SENSITIVE_KEYS = frozenset({
        'token', 'secret', 'password', 'webhook_url', 'auth',
        'authorization', 'credential', 'api_key',
    })

    MASK_VALUE = "***MASKED***"

    def __init__(
        self,
        min_level: LogLevel = LogLevel.INFO,
        output_format: str = "text",
        output_stream: Optional[TextIO] = None,
        keep_entries: bool = False,
    ):
        """
        Initialize the diagnostic logger.

        Args:
            min_level: Least severe level that is still written
            output_format: Output format - 'json', 'text', or 'both'
            output_stream: Output stream for log entries (defaults to sys.stderr)
            keep_entries: Retain written entries in memory (for testing)
        """
        if output_format not in ("json", "text", "both"):
            raise ValueError(f"Invalid output_format: {output_format}")

        self._min_level = min_level
        self._output_format = output_format
        self._output_stream = output_stream or sys.stderr
        self._keep_entries = keep_entries
        self._entries: list[LogEntry] = []

    @property
    def min_level(self) -> LogLevel:
        return self._min_level

    @min_level.setter
    def min_level(self, level: LogLevel) -> None:
        self._min_level = level

    @property
    def output_format(self) -> str:
        """Get the current output format."""
        return self._output_format

    @property
    def entries(self) -> list[LogEntry]:
        """Get all retained entries (for testing)."""
        return self._entries.copy()

    def is_enabled_for(self, level: LogLevel) -> bool:
        return level.severity >= self._min_level.severity

    def log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Log an entry in the configured format(s).

        Args:
            level: Log severity level
            component: Component name generating the log
            message: Human-readable log message
            data: Optional additional data to include

        Returns:
            The created LogEntry, or None if the level is filtered out
        """
        if not self.is_enabled_for(level):
            return None

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            component=component,
            message=message,
            data=self.mask_sensitive_data(data or {}),
        )

        if self._keep_entries:
            self._entries.append(entry)

        try:
            self._output_entry(entry)
        except (OSError, ValueError):
            # closed or broken stream
            pass

        return entry

    def mask_sensitive_data(self, data: dict) -> dict:
        """
        Recursively mask sensitive data in a dictionary.

        Args:
            data: Dictionary potentially containing sensitive data

        Returns:
            New dictionary with sensitive values masked
        """
        if not isinstance(data, dict):
            return data

        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()

            is_sensitive = any(
                sensitive_key in key_lower
                for sensitive_key in self.SENSITIVE_KEYS
            )

            if is_sensitive:
                masked[key] = self.MASK_VALUE
            elif isinstance(value, dict):
                masked[key] = self.mask_sensitive_data(value)
            elif isinstance(value, list):
                masked[key] = [
                    self.mask_sensitive_data(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                masked[key] = value

        return masked

    def _output_entry(self, entry: LogEntry) -> None:
        if self._output_format in ("json", "both"):
            self._output_stream.write(self.format_json(entry) + "\n")

        if self._output_format in ("text", "both"):
            self._output_stream.write(self.format_text(entry) + "\n")

        self._output_stream.flush()

    def format_json(self, entry: LogEntry) -> str:
        """Format a log entry as a single JSON line."""
        obj = {
            "timestamp": entry.timestamp,
            "level": entry.level.value,
            "component": entry.component,
            "message": entry.message,
            "data": entry.data,
        }
        return json.dumps(obj, ensure_ascii=False, default=str)

    def format_text(self, entry: LogEntry) -> str:
        """Format a log entry as ``[TIMESTAMP] LEVEL [COMPONENT] MESSAGE {data}``."""
        parts = [
            f"[{entry.timestamp}]",
            entry.level.value.upper(),
            f"[{entry.component}]",
            entry.message,
        ]

        if entry.data:
            parts.append(json.dumps(entry.data, ensure_ascii=False, default=str))

        return " ".join(parts)

    def clear_entries(self) -> None:
        """Clear all retained log entries (for testing)."""
        self._entries.clear()
