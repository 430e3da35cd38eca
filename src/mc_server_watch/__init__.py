"""
mc-server-watch - Minecraft server status monitor.

This package probes Minecraft servers with both the legacy and the modern
server list ping, keeps a short rolling history per server and turns
successive results into change events for subscribers.
"""

__version__ = "0.1.0"
__author__ = "mc-server-watch Team"

from mc_server_watch.exceptions import (
    ServerWatchError,
    NetworkError,
    ProtocolError,
    UsageError,
    ConfigError,
    NotificationError,
)
from mc_server_watch.enums import (
    EventKind,
    LogLevel,
    ProbeErrorCode,
    ProtocolVariant,
)
from mc_server_watch.models import (
    DEFAULT_PORT,
    PlayerSample,
    ProbeError,
    ProbeResult,
    Snapshot,
    Target,
    normalize_host,
    parse_address,
)
from mc_server_watch.chat import (
    flatten_component,
    strip_formatting,
)
from mc_server_watch.events import (
    Event,
    OnlineStatusChanged,
    PlayerCountChanged,
    PlayerPresenceChanged,
)
from mc_server_watch.config import (
    AutoUpdateConfig,
    LoggingConfig,
    ProbeConfig,
    ServerConfig,
    SystemConfig,
    WebhookConfig,
)
from mc_server_watch.diagnostics import (
    DiagnosticLogger,
    LogEntry,
)
from mc_server_watch.status_client import (
    StatusClient,
    StatusPayload,
)
from mc_server_watch.legacy_client import (
    LegacyStatusClient,
    parse_legacy_payload,
)
from mc_server_watch.modern_client import (
    ModernStatusClient,
    parse_status_json,
)
from mc_server_watch.orchestrator import ProbeOrchestrator
from mc_server_watch.diff_engine import DiffEngine
from mc_server_watch.scheduler import AutoUpdater
from mc_server_watch.registry import Registry
from mc_server_watch.notifications import WebhookSubscriber
from mc_server_watch.i18n import (
    get_message,
    render_event,
    TRANSLATIONS,
    SUPPORTED_LANGUAGES,
    DEFAULT_LANGUAGE,
)
from mc_server_watch.cli import (
    main as cli_main,
    create_parser,
    create_default_config,
    load_config_from_env,
    load_config_from_file,
    save_config_to_file,
)

__all__ = [
    # Exceptions
    "ServerWatchError",
    "NetworkError",
    "ProtocolError",
    "UsageError",
    "ConfigError",
    "NotificationError",
    # Enums
    "EventKind",
    "LogLevel",
    "ProbeErrorCode",
    "ProtocolVariant",
    # Models
    "DEFAULT_PORT",
    "PlayerSample",
    "ProbeError",
    "ProbeResult",
    "Snapshot",
    "Target",
    "normalize_host",
    "parse_address",
    # Chat formatting
    "flatten_component",
    "strip_formatting",
    # Events
    "Event",
    "OnlineStatusChanged",
    "PlayerCountChanged",
    "PlayerPresenceChanged",
    # Configuration
    "AutoUpdateConfig",
    "LoggingConfig",
    "ProbeConfig",
    "ServerConfig",
    "SystemConfig",
    "WebhookConfig",
    # Diagnostics
    "DiagnosticLogger",
    "LogEntry",
    # Status clients
    "StatusClient",
    "StatusPayload",
    "LegacyStatusClient",
    "parse_legacy_payload",
    "ModernStatusClient",
    "parse_status_json",
    # Core
    "ProbeOrchestrator",
    "DiffEngine",
    "AutoUpdater",
    "Registry",
    # Notifications
    "WebhookSubscriber",
    # I18n
    "get_message",
    "render_event",
    "TRANSLATIONS",
    "SUPPORTED_LANGUAGES",
    "DEFAULT_LANGUAGE",
    # CLI
    "cli_main",
    "create_parser",
    "create_default_config",
    "load_config_from_env",
    "load_config_from_file",
    "save_config_to_file",
]
