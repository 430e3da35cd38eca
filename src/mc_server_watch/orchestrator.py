"""
Probe Orchestrator for the server watch system.

An orchestrator owns one (host, port) target. Each probe cycle races the
legacy and modern status clients under the same timeout, merges both
snapshots into a ProbeResult and appends it to a rolling history that is
purged to the retention window.
"""

import asyncio
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from .diagnostics import DiagnosticLogger
from .enums import LogLevel, ProbeErrorCode
from .exceptions import UsageError
from .legacy_client import LegacyStatusClient
from .models import DEFAULT_PORT, ProbeResult, Snapshot, Target
from .modern_client import ModernStatusClient
from .status_client import StatusClient

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RETENTION = timedelta(seconds=60)

# Extra time granted to the combined launch beyond the per-client timeout
OUTER_GRACE_SECONDS = 1.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProbeOrchestrator:
    """
    Per-target probe runner with a bounded result history.

    History is mutated only by ``probe`` and read through copies, both under
    a lock, so a caller never observes a half-written result.
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        legacy_client: Optional[StatusClient] = None,
        modern_client: Optional[StatusClient] = None,
        retention: timedelta = DEFAULT_RETENTION,
        logger: Optional[DiagnosticLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            host: Server host name or address
            port: Server TCP port
            legacy_client: Client for the legacy ping (created if not provided)
            modern_client: Client for the modern ping (created if not provided)
            retention: How long results are kept in the history
            logger: Optional diagnostic logger
            clock: Source of the current UTC time (for testing)
        """
        self._target = Target(host=host, port=port)
        self._logger = logger
        self._legacy_client = legacy_client or LegacyStatusClient(logger=logger)
        self._modern_client = modern_client or ModernStatusClient(logger=logger)
        self._retention = retention
        self._clock = clock or _utc_now
        self._history: list[ProbeResult] = []
        self._lock = threading.Lock()

    @property
    def target(self) -> Target:
        return self._target

    @property
    def host(self) -> str:
        return self._target.host

    @property
    def port(self) -> int:
        return self._target.port

    @property
    def key(self) -> tuple[str, int]:
        """Identity used for deduplication (normalized host, port)."""
        return self._target.key

    @property
    def retention(self) -> timedelta:
        return self._retention

    @property
    def history(self) -> list[ProbeResult]:
        """Copy of the retained results, oldest first."""
        with self._lock:
            return list(self._history)

    def matches(self, host: str, port: int) -> bool:
        return self._target.matches(host, port)

    async def probe(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> ProbeResult:
        """
        Run one probe cycle against the target.

        Both clients start together with the same timeout. Exactly one
        result is appended per call, even when the combined launch itself
        overruns or fails.

        Args:
            timeout: Per-client deadline in seconds

        Returns:
            The appended ProbeResult

        Raises:
            UsageError: If timeout is negative
        """
        if timeout < 0:
            raise UsageError(
                code="negative_timeout",
                message=f"Timeout must not be negative: {timeout}",
                details={"timeout": timeout},
            )

        self._log(LogLevel.INFO, f"Pinging server {self._target}", {"timeout": timeout})

        try:
            legacy, modern = await asyncio.wait_for(
                asyncio.gather(
                    self._legacy_client.query(self.host, self.port, timeout),
                    self._modern_client.query(self.host, self.port, timeout),
                ),
                timeout=timeout + OUTER_GRACE_SECONDS,
            )
            result = ProbeResult(legacy=legacy, modern=modern)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._log(
                LogLevel.WARN,
                f"Probe of {self._target} did not complete, recording timeout",
                {"error": repr(e)},
            )
            result = self._timeout_result(timeout)

        self._log(LogLevel.DEBUG, f"Ping result {self._target}: {result}", {})
        self._append(result)
        return result

    def latest(self, only_successful: bool = False) -> Optional[ProbeResult]:
        """
        Get the most recently completed result.

        Args:
            only_successful: Consider only results where either client succeeded

        Returns:
            The result with the greatest completion time, or None
        """
        with self._lock:
            candidates = [
                result for result in self._history
                if result.succeeded or not only_successful
            ]
        if not candidates:
            return None
        return max(candidates, key=lambda result: result.completed_at)

    def _timeout_result(self, timeout: float) -> ProbeResult:
        requested_at = self._clock() - timedelta(seconds=timeout)
        elapsed_ms = int(timeout * 1000)
        message = f"No response within {timeout}s"
        return ProbeResult(
            legacy=Snapshot.failure(requested_at, elapsed_ms, ProbeErrorCode.TIMEOUT, message),
            modern=Snapshot.failure(requested_at, elapsed_ms, ProbeErrorCode.TIMEOUT, message),
        )

    def _append(self, result: ProbeResult) -> None:
        with self._lock:
            self._history.append(result)
            cutoff = self._clock() - self._retention
            self._history = [r for r in self._history if r.requested_at >= cutoff]

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "ProbeOrchestrator", message, data)

    def __repr__(self) -> str:
        return f"ProbeOrchestrator({self._target})"
