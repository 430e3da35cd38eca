"""
Command-line interface for the server watch system.

This module provides the main CLI entry point with commands for:
- ping: Probe a single server once and print the merged result
- watch: Monitor servers and print change events as they happen
- config: Configuration management
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from . import __version__
from .config import (
    AutoUpdateConfig,
    LoggingConfig,
    ProbeConfig,
    ServerConfig,
    SystemConfig,
    WebhookConfig,
)
from .diagnostics import DiagnosticLogger
from .diff_engine import DiffEngine
from .enums import LogLevel
from .events import Event
from .exceptions import ConfigError, UsageError
from .i18n import get_message, render_event
from .models import ProbeResult, parse_address
from .notifications import WebhookSubscriber
from .orchestrator import ProbeOrchestrator
from .registry import Registry

DEFAULT_CONFIG_PATH = Path.home() / ".mc_server_watch" / "config.json"


def create_default_config(language: str = "en") -> SystemConfig:
    """
    Create a default system configuration.

    Args:
        language: Output language ('de' or 'en')

    Returns:
        SystemConfig with default settings and one example server
    """
    return SystemConfig(
        servers=[ServerConfig(host="localhost", label="Local server")],
        probe=ProbeConfig(),
        auto_update=AutoUpdateConfig(),
        logging=LoggingConfig(level="info", output_format="text"),
        webhook=None,
        language=language,
    )


def create_logger(config: LoggingConfig, verbose: bool = False) -> DiagnosticLogger:
    """Create the diagnostic logger described by the logging configuration."""
    level = LogLevel.DEBUG if verbose else LogLevel(config.level)
    return DiagnosticLogger(min_level=level, output_format=config.output_format)


def parse_servers(value: str) -> list[ServerConfig]:
    """
    Parse a comma, semicolon or whitespace separated list of ``host[:port]``.

    Duplicate addresses are dropped, entries starting with '#' are ignored.

    Raises:
        ConfigError: If a port is not a valid number
    """
    if not value:
        return []

    raw = [p.strip() for chunk in value.replace(";", ",").split(",") for p in chunk.split()]
    seen, servers = set(), []
    for address in raw:
        if not address or address.startswith("#"):
            continue
        try:
            target = parse_address(address)
        except ValueError as e:
            raise ConfigError(
                code="invalid_server",
                message=f"Invalid server address '{address}': {e}",
                details={"address": address},
            ) from e
        if target.key not in seen:
            seen.add(target.key)
            servers.append(ServerConfig(host=target.host, port=target.port))
    return servers


def _env_number(name: str, default: float, cast=float):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(
            code="invalid_value",
            message=get_message("config.invalid_value", "en", field=name, value=raw),
            details={"field": name, "value": raw},
        ) from None


def load_config_from_env(env_file: Optional[Path] = None) -> SystemConfig:
    """
    Build a configuration from ``MSW_*`` environment variables.

    Variables from ``env_file`` (or a ``.env`` in the working directory) are
    loaded first without overriding the real environment.

    Raises:
        ConfigError: If a numeric variable cannot be parsed
    """
    load_dotenv(dotenv_path=env_file)

    webhook = None
    webhook_url = os.getenv("MSW_WEBHOOK_URL", "").strip()
    if webhook_url:
        webhook = WebhookConfig(
            url=webhook_url,
            format=(os.getenv("MSW_WEBHOOK_FORMAT", "json") or "json").strip().lower(),
        )

    return SystemConfig(
        servers=parse_servers(os.getenv("MSW_SERVERS", "")),
        probe=ProbeConfig(
            timeout_seconds=_env_number("MSW_TIMEOUT", 30.0),
            retention_seconds=_env_number("MSW_RETENTION", 60.0),
            max_parallel_probes=_env_number("MSW_MAX_PARALLEL", 10, int),
        ),
        auto_update=AutoUpdateConfig(
            interval_seconds=_env_number("MSW_INTERVAL", 30.0),
        ),
        logging=LoggingConfig(
            level=(os.getenv("MSW_LOG_LEVEL", "info") or "info").strip().lower(),
            output_format="text",
        ),
        webhook=webhook,
        language=(os.getenv("MSW_LANGUAGE", "en") or "en").strip().lower(),
    )


def load_config_from_file(config_path: Path) -> Optional[SystemConfig]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        SystemConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        servers = []
        for server_data in data.get("servers", []):
            servers.append(ServerConfig(
                host=server_data["host"],
                port=server_data.get("port", 25565),
                label=server_data.get("label", ""),
                force_new=server_data.get("force_new", False),
                notify_online_status=server_data.get("notify_online_status", True),
                notify_player_count=server_data.get("notify_player_count", True),
                notify_named_players=server_data.get("notify_named_players", False),
            ))

        probe_data = data.get("probe", {})
        probe = ProbeConfig(
            timeout_seconds=probe_data.get("timeout_seconds", 30.0),
            retention_seconds=probe_data.get("retention_seconds", 60.0),
            max_parallel_probes=probe_data.get("max_parallel_probes", 10),
        )

        auto_update_data = data.get("auto_update", {})
        auto_update = AutoUpdateConfig(
            interval_seconds=auto_update_data.get("interval_seconds", 30.0),
        )

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", "info"),
            output_format=logging_data.get("output_format", "text"),
        )

        webhook = None
        webhook_data = data.get("webhook") or {}
        if webhook_data.get("url"):
            webhook = WebhookConfig(
                url=webhook_data["url"],
                format=webhook_data.get("format", "json"),
                headers=webhook_data.get("headers", {}),
            )

        return SystemConfig(
            servers=servers,
            probe=probe,
            auto_update=auto_update,
            logging=logging_config,
            webhook=webhook,
            language=data.get("language", "en"),
        )

    except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None
    except FileNotFoundError:
        return None


def save_config_to_file(config: SystemConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    Args:
        config: SystemConfig to save
        config_path: Path to save the configuration

    Returns:
        True if successful, False otherwise
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "servers": [
                {
                    "host": server.host,
                    "port": server.port,
                    "label": server.label,
                    "force_new": server.force_new,
                    "notify_online_status": server.notify_online_status,
                    "notify_player_count": server.notify_player_count,
                    "notify_named_players": server.notify_named_players,
                }
                for server in config.servers
            ],
            "probe": {
                "timeout_seconds": config.probe.timeout_seconds,
                "retention_seconds": config.probe.retention_seconds,
                "max_parallel_probes": config.probe.max_parallel_probes,
            },
            "auto_update": {
                "interval_seconds": config.auto_update.interval_seconds,
            },
            "logging": {
                "level": config.logging.level,
                "output_format": config.logging.output_format,
            },
            "webhook": {
                "url": config.webhook.url,
                "format": config.webhook.format,
                "headers": config.webhook.headers,
            } if config.webhook else None,
            "language": config.language,
        }

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        return True

    except (OSError, TypeError) as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False


def result_to_dict(result: ProbeResult) -> dict:
    """Serialize a probe result for JSON output."""
    return {
        "online": result.succeeded,
        "ping_ms": result.ping_ms,
        "requested_at": result.requested_at.isoformat(),
        "error": {
            "code": result.error.code.value,
            "message": result.error.message,
        } if result.error else None,
        "motd": result.display_motd,
        "motd_raw": result.display_motd_raw,
        "version": result.version_name,
        "players": {
            "online": result.current_players,
            "max": result.max_players,
            "sample": [
                {"id": player.id, "name": player.name}
                for player in result.sample_players
            ],
        },
        "legacy_ok": result.legacy.succeeded,
        "modern_ok": result.modern.succeeded,
    }


def format_result(target: str, result: ProbeResult, language: Optional[str]) -> str:
    """Format a probe result as two human-readable lines."""
    status_key = "status.online" if result.succeeded else "status.offline"
    summary = get_message(
        "probe.summary",
        language,
        target=target,
        status=get_message(status_key, language),
        online=result.current_players,
        max=result.max_players,
        version=result.version_name or "-",
        ping=result.ping_ms,
    )
    if result.succeeded:
        return summary + "\n  " + get_message("probe.motd", language, motd=result.display_motd)
    if result.error:
        detail = get_message("status.connection_failed", language, error=result.error.code.value)
        return f"{summary}\n  {detail}: {result.error.message}"
    return summary


async def ping_server(
    address: str,
    timeout: float,
    as_json: bool = False,
    language: Optional[str] = None,
    verbose: bool = False,
) -> int:
    """
    Probe a server once and print the result.

    Returns:
        Exit code (0 if the server is online, 1 otherwise)
    """
    target = parse_address(address)
    logger = DiagnosticLogger(min_level=LogLevel.DEBUG) if verbose else None

    orchestrator = ProbeOrchestrator(target.host, target.port, logger=logger)
    result = await orchestrator.probe(timeout)

    if as_json:
        print(json.dumps(result_to_dict(result), indent=2, ensure_ascii=False))
    else:
        print(format_result(str(target), result, language))

    return 0 if result.succeeded else 1


def create_registry(config: SystemConfig, logger: Optional[DiagnosticLogger] = None) -> Registry:
    """Create a registry with one entry per configured server."""
    registry = Registry(config=config.probe, logger=logger, language=config.language)
    for server in config.servers:
        entry = registry.add_entry(
            server.host,
            server.port,
            force_new=server.force_new,
            label=server.label,
        )
        entry.notify_online_status = server.notify_online_status
        entry.notify_player_count = server.notify_player_count
        entry.notify_named_players = server.notify_named_players
    return registry


async def watch_servers(
    config: SystemConfig,
    duration: Optional[float] = None,
    verbose: bool = False,
) -> int:
    """
    Monitor the configured servers and print events until stopped.

    Args:
        config: System configuration with at least one server
        duration: Stop after this many seconds (run until interrupted if None)
        verbose: Enable debug logging

    Returns:
        Exit code
    """
    language = config.language
    logger = create_logger(config.logging, verbose)

    def print_events(entry: DiffEngine, events: list[Event]) -> None:
        name = entry.label or str(entry.orchestrator.target)
        for event in events:
            print(f"[{entry.last_update}] {name}: {render_event(event, language)}", flush=True)

    async with create_registry(config, logger) as registry:
        registry.subscribe(print_events)
        if config.webhook:
            registry.subscribe(WebhookSubscriber(config.webhook, language=language, logger=logger))

        await registry.start_auto_update(config.auto_update.interval_seconds)
        print(get_message("autoupdate.started", language, interval=config.auto_update.interval_seconds))

        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)

    print(get_message("autoupdate.stopped", language))
    return 0


def _load_watch_config(args: argparse.Namespace) -> Optional[SystemConfig]:
    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(get_message("config.file_not_found", args.language, path=config_path), file=sys.stderr)
            return None
        config = load_config_from_file(config_path)
        if config is None:
            print(get_message("config.load_failed", args.language, path=config_path), file=sys.stderr)
            return None
    elif args.env:
        config = load_config_from_env(Path(args.env_file) if args.env_file else None)
    else:
        config = create_default_config(language=args.language or "en")
        config.servers = []

    if args.servers:
        config.servers.extend(parse_servers(" ".join(args.servers)))
    if args.interval is not None:
        config.auto_update.interval_seconds = args.interval
    if args.timeout is not None:
        config.probe.timeout_seconds = args.timeout
    if args.language:
        config.language = args.language
    if args.names:
        for server in config.servers:
            server.notify_named_players = True

    return config


def cmd_ping(args: argparse.Namespace) -> int:
    """Handle the 'ping' command."""
    try:
        return asyncio.run(ping_server(
            address=args.address,
            timeout=args.timeout,
            as_json=args.json,
            language=args.language,
            verbose=args.verbose,
        ))
    except (ValueError, UsageError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


def cmd_watch(args: argparse.Namespace) -> int:
    """Handle the 'watch' command."""
    try:
        config = _load_watch_config(args)
        if config is None:
            return 1
        config.validate()
    except ConfigError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if not config.servers:
        print(get_message("config.no_servers", config.language), file=sys.stderr)
        return 1

    try:
        return asyncio.run(watch_servers(config, duration=args.duration, verbose=args.verbose))
    except KeyboardInterrupt:
        return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH

    if args.action == "show":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"No configuration found at: {config_path}")
            print("Use 'config init' to create a default configuration.")
            return 1

        print(f"Configuration from: {config_path}")
        print(f"  Language: {config.language}")
        print(f"  Servers: {', '.join(f'{s.host}:{s.port}' for s in config.servers) or '-'}")
        print(f"  Probe timeout: {config.probe.timeout_seconds}s")
        print(f"  Retention: {config.probe.retention_seconds}s")
        print(f"  Interval: {config.auto_update.interval_seconds}s")
        print(f"  Log level: {config.logging.level}")
        print(f"  Webhook: {config.webhook.format if config.webhook else '-'}")
        return 0

    elif args.action == "init":
        if config_path.exists() and not args.force:
            print(get_message("config.file_exists", args.language, path=config_path))
            print("Use --force to overwrite.")
            return 1

        config = create_default_config(language=args.language or "en")
        if save_config_to_file(config, config_path):
            print(get_message("config.created", args.language, path=config_path))
            return 0
        return 1

    elif args.action == "validate":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"Error: Could not load config from {config_path}", file=sys.stderr)
            return 1
        try:
            config.validate()
        except ConfigError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1

        print(f"Configuration at {config_path} is valid.")
        return 0

    return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="mc-server-watch",
        description="Minecraft server status monitor",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'ping' command
    ping_parser = subparsers.add_parser(
        "ping",
        help="Probe a server once",
    )
    ping_parser.add_argument(
        "address",
        help="Server address (e.g., mc.example.com or mc.example.com:25566)",
    )
    ping_parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=5.0,
        help="Probe timeout in seconds (default: 5)",
    )
    ping_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )
    ping_parser.add_argument(
        "--language", "-l",
        choices=["de", "en"],
        default="en",
        help="Output language (default: en)",
    )
    ping_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    ping_parser.set_defaults(func=cmd_ping)

    # 'watch' command
    watch_parser = subparsers.add_parser(
        "watch",
        help="Monitor servers and print change events",
    )
    watch_parser.add_argument(
        "servers",
        nargs="*",
        help="Server addresses to watch in addition to the configured ones",
    )
    watch_parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    watch_parser.add_argument(
        "--env",
        action="store_true",
        help="Read configuration from MSW_* environment variables",
    )
    watch_parser.add_argument(
        "--env-file",
        help="Path to a .env file (implies --env)",
    )
    watch_parser.add_argument(
        "--interval", "-i",
        type=float,
        help="Seconds between update cycles",
    )
    watch_parser.add_argument(
        "--timeout", "-t",
        type=float,
        help="Probe timeout in seconds",
    )
    watch_parser.add_argument(
        "--names",
        action="store_true",
        help="Report sampled players joining and leaving",
    )
    watch_parser.add_argument(
        "--duration",
        type=float,
        help="Stop after this many seconds",
    )
    watch_parser.add_argument(
        "--language", "-l",
        choices=["de", "en"],
        help="Output language",
    )
    watch_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    watch_parser.set_defaults(func=cmd_watch)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.add_argument(
        "--language", "-l",
        choices=["de", "en"],
        default="en",
        help="Default language for new configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if getattr(args, "env_file", None):
        args.env = True

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
