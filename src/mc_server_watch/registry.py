"""
Registry for the server watch system.

The registry owns all probe orchestrators and diff engines. It deduplicates
targets so that entries watching the same server share one orchestrator,
probes every distinct target concurrently and drives the auto-update loop
that dispatches change events to subscribers.
"""

import asyncio
import inspect
import threading
from typing import Awaitable, Callable, Iterable, Optional, Union

from .config import ProbeConfig
from .diagnostics import DiagnosticLogger
from .diff_engine import DiffEngine
from .enums import LogLevel
from .events import Event
from .exceptions import UsageError
from .i18n import get_message
from .models import DEFAULT_PORT, ProbeResult
from .orchestrator import ProbeOrchestrator
from .scheduler import AutoUpdater
from .status_client import StatusClient

DEFAULT_INTERVAL_SECONDS = 30.0

Subscriber = Callable[[DiffEngine, list[Event]], Union[None, Awaitable[None]]]
ClientFactory = Callable[[str, int], tuple[StatusClient, StatusClient]]


class Registry:
    """
    Owner of orchestrators and entries.

    Collections are mutated under a lock and every cycle works on a
    snapshot, so entries added or removed mid-cycle take effect in the
    next cycle.
    """

    def __init__(
        self,
        config: Optional[ProbeConfig] = None,
        logger: Optional[DiagnosticLogger] = None,
        client_factory: Optional[ClientFactory] = None,
        language: Optional[str] = None,
    ) -> None:
        """
        Initialize the registry.

        Args:
            config: Probe timing and concurrency configuration
            logger: Optional diagnostic logger
            client_factory: Creates the (legacy, modern) clients for a new
                orchestrator given host and port (default clients if not provided)
            language: Language for event status texts and usage messages
        """
        self._config = config or ProbeConfig()
        self._logger = logger
        self._client_factory = client_factory
        self._language = language

        self._orchestrators: list[ProbeOrchestrator] = []
        self._entries: list[DiffEngine] = []
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()
        self._updater = AutoUpdater(self._update_cycle, logger=logger, language=language)

    async def __aenter__(self) -> "Registry":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit, stops auto-update."""
        await self.stop_auto_update()

    @property
    def config(self) -> ProbeConfig:
        return self._config

    @property
    def orchestrators(self) -> list[ProbeOrchestrator]:
        with self._lock:
            return list(self._orchestrators)

    @property
    def entries(self) -> list[DiffEngine]:
        with self._lock:
            return list(self._entries)

    @property
    def subscribers(self) -> list[Subscriber]:
        with self._lock:
            return list(self._subscribers)

    @property
    def auto_updating(self) -> bool:
        return self._updater.is_running()

    def resolve(self, host: str, port: int = DEFAULT_PORT, force_new: bool = False) -> ProbeOrchestrator:
        """
        Get the orchestrator for a target, creating it if needed.

        Args:
            host: Server host (compared case-insensitively)
            port: Server TCP port
            force_new: Always create a new orchestrator

        Returns:
            The shared or newly created orchestrator
        """
        with self._lock:
            if not force_new:
                for orchestrator in self._orchestrators:
                    if orchestrator.matches(host, port):
                        return orchestrator

            orchestrator = self._create_orchestrator(host, port)
            self._orchestrators.append(orchestrator)

        self._log(LogLevel.DEBUG, f"Created orchestrator for {host}:{port}", {"force_new": force_new})
        return orchestrator

    def add_entry(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        force_new: bool = False,
        label: str = "",
    ) -> DiffEngine:
        """
        Register a new monitored entry.

        Returns:
            The diff engine that serves as the entry handle
        """
        orchestrator = self.resolve(host, port, force_new)
        entry = DiffEngine(orchestrator, label=label, logger=self._logger, language=self._language)

        with self._lock:
            self._entries.append(entry)

        self._log(LogLevel.DEBUG, f"Added entry {entry!r}", {"label": label})
        return entry

    def remove_entry(self, entry: DiffEngine) -> bool:
        """
        Unregister an entry.

        The entry's orchestrator is discarded as well once no remaining
        entry references it.

        Returns:
            True if the entry was registered, False otherwise
        """
        with self._lock:
            if entry not in self._entries:
                return False
            self._entries.remove(entry)

            orchestrator = entry.orchestrator
            still_used = any(other.orchestrator is orchestrator for other in self._entries)
            if not still_used and orchestrator in self._orchestrators:
                self._orchestrators.remove(orchestrator)

        self._log(
            LogLevel.DEBUG,
            f"Removed entry {entry!r}",
            {"orchestrator_discarded": not still_used},
        )
        return True

    def remove_entries(self, entries: Iterable[DiffEngine]) -> bool:
        """Unregister several entries. Returns True only if all were registered."""
        removed = True
        for entry in list(entries):
            removed = self.remove_entry(entry) and removed
        return removed

    async def probe_all(self, timeout: Optional[float] = None) -> list[ProbeResult]:
        """
        Probe every distinct orchestrator once, concurrently.

        Args:
            timeout: Per-client deadline (defaults to the configured timeout)

        Returns:
            Results in the order of the orchestrator snapshot
        """
        if timeout is None:
            timeout = self._config.timeout_seconds

        orchestrators = self.orchestrators
        if not orchestrators:
            return []

        semaphore = asyncio.Semaphore(self._config.max_parallel_probes)

        async def probe_one(orchestrator: ProbeOrchestrator) -> ProbeResult:
            async with semaphore:
                return await orchestrator.probe(timeout)

        return list(await asyncio.gather(*(probe_one(o) for o in orchestrators)))

    def subscribe(self, callback: Subscriber) -> None:
        """Attach a callback invoked with (entry, events) during auto-update."""
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> bool:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)
                return True
            return False

    async def start_auto_update(self, interval: float = DEFAULT_INTERVAL_SECONDS) -> None:
        """
        Start the periodic probe, diff and dispatch loop.

        A running loop is stopped first.

        Args:
            interval: Seconds to wait between cycles

        Raises:
            UsageError: If no subscriber is attached or interval is negative
        """
        if not self.subscribers:
            raise UsageError(
                code="no_subscriber",
                message=get_message("autoupdate.no_subscriber", self._language),
            )
        if interval < 0:
            raise UsageError(
                code="negative_interval",
                message=get_message("autoupdate.negative_interval", self._language, interval=interval),
                details={"interval": interval},
            )

        await self.stop_auto_update()
        self._updater.start(interval)
        self._log(
            LogLevel.INFO,
            get_message("autoupdate.started", self._language, interval=interval),
            {"interval": interval},
        )

    async def stop_auto_update(self) -> None:
        """Stop the auto-update loop and wait for it to exit. No-op when idle."""
        was_running = self._updater.is_running()
        try:
            await self._updater.stop()
        except Exception as e:
            self._log(LogLevel.DEBUG, f"Error while stopping auto-update: {e!r}", {"error": repr(e)})

        if was_running:
            self._log(LogLevel.INFO, get_message("autoupdate.stopped", self._language), {})

    async def _update_cycle(self) -> None:
        await self.probe_all()

        for entry in self.entries:
            try:
                events = entry.update()
            except Exception as e:
                self._log(LogLevel.ERROR, f"Diff failed for {entry!r}: {e!r}", {"error": repr(e)})
                continue

            if events:
                await self._dispatch(entry, events)

    async def _dispatch(self, entry: DiffEngine, events: list[Event]) -> None:
        for callback in self.subscribers:
            try:
                result = callback(entry, list(events))
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self._log(
                    LogLevel.ERROR,
                    f"Subscriber failed for {entry!r}: {e!r}",
                    {"error": repr(e)},
                )

    def _create_orchestrator(self, host: str, port: int) -> ProbeOrchestrator:
        legacy_client = modern_client = None
        if self._client_factory is not None:
            legacy_client, modern_client = self._client_factory(host, port)
        return ProbeOrchestrator(
            host,
            port,
            legacy_client=legacy_client,
            modern_client=modern_client,
            retention=self._config.retention,
            logger=self._logger,
        )

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "Registry", message, data)
