"""
Configuration dataclasses for the server watch system.

This module defines all configuration structures used throughout the system,
including probe timing, auto-update, monitored servers, webhook delivery
and logging configuration.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from .exceptions import ConfigError
from .i18n import SUPPORTED_LANGUAGES
from .models import DEFAULT_PORT

WEBHOOK_FORMATS = ("json", "discord")
LOG_LEVELS = ("debug", "info", "warn", "error")
LOG_OUTPUT_FORMATS = ("json", "text", "both")


@dataclass
class ProbeConfig:
    """Probe timing and concurrency configuration."""

    timeout_seconds: float = 30.0
    retention_seconds: float = 60.0
    max_parallel_probes: int = 10

    @property
    def retention(self) -> timedelta:
        return timedelta(seconds=self.retention_seconds)


@dataclass
class AutoUpdateConfig:
    """Auto-update loop configuration."""

    interval_seconds: float = 30.0


@dataclass
class LoggingConfig:
    """Diagnostic logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class WebhookConfig:
    """Webhook notification channel configuration."""

    url: str
    format: str = "json"  # 'json' or 'discord'
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class ServerConfig:
    """A monitored server entry."""

    host: str
    port: int = DEFAULT_PORT
    label: str = ""
    force_new: bool = False
    notify_online_status: bool = True
    notify_player_count: bool = True
    notify_named_players: bool = False


@dataclass
class SystemConfig:
    """Main system configuration combining all sub-configurations."""

    servers: list[ServerConfig] = field(default_factory=list)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    auto_update: AutoUpdateConfig = field(default_factory=AutoUpdateConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    webhook: Optional[WebhookConfig] = None
    language: str = "en"  # 'de' or 'en'

    def validate(self) -> None:
        """
        Check all values for consistency.

        Raises:
            ConfigError: If any value is out of range
        """
        _require_non_negative("probe.timeout_seconds", self.probe.timeout_seconds)
        _require_non_negative("probe.retention_seconds", self.probe.retention_seconds)
        _require_non_negative("auto_update.interval_seconds", self.auto_update.interval_seconds)

        if self.probe.max_parallel_probes < 1:
            raise _invalid("probe.max_parallel_probes", self.probe.max_parallel_probes)

        for index, server in enumerate(self.servers):
            if not server.host or not server.host.strip():
                raise _invalid(f"servers[{index}].host", server.host)
            if not 0 <= server.port <= 65535:
                raise _invalid(f"servers[{index}].port", server.port)

        if self.language not in SUPPORTED_LANGUAGES:
            raise _invalid("language", self.language)
        if self.logging.level not in LOG_LEVELS:
            raise _invalid("logging.level", self.logging.level)
        if self.logging.output_format not in LOG_OUTPUT_FORMATS:
            raise _invalid("logging.output_format", self.logging.output_format)

        if self.webhook is not None:
            if not self.webhook.url:
                raise _invalid("webhook.url", self.webhook.url)
            if self.webhook.format not in WEBHOOK_FORMATS:
                raise _invalid("webhook.format", self.webhook.format)


def _invalid(field_name: str, value: object) -> ConfigError:
    return ConfigError(
        code="invalid_value",
        message=f"Invalid configuration value for {field_name}: {value!r}",
        details={"field": field_name, "value": value},
    )


def _require_non_negative(field_name: str, value: float) -> None:
    if value < 0:
        raise _invalid(field_name, value)
