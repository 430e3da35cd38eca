"""
Shared connection handling for the status query clients.

A status client opens one TCP connection, runs its protocol-specific
exchange and turns the outcome into a Snapshot. Every failure is captured
as a failed Snapshot with a classified error; nothing is raised past
``query``.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .diagnostics import DiagnosticLogger
from .enums import LogLevel, ProbeErrorCode, ProtocolVariant
from .exceptions import NetworkError, ProtocolError
from .models import PlayerSample, Snapshot


@dataclass
class StatusPayload:
    """Decoded fields of a successful status response."""

    motd_raw: str
    max_players: int
    current_players: int
    version_name: str = ""
    favicon: Optional[str] = None
    sample_players: list[PlayerSample] = field(default_factory=list)


class StatusClient:
    """
    Base class for the legacy and modern status clients.

    Subclasses implement ``_exchange`` and set ``variant`` and
    ``protocol_error_code``.
    """

    variant: ProtocolVariant
    protocol_error_code: ProbeErrorCode = ProbeErrorCode.PROTOCOL_VIOLATION

    def __init__(self, logger: Optional[DiagnosticLogger] = None) -> None:
        self._logger = logger

    async def query(self, host: str, port: int, timeout: float) -> Snapshot:
        """
        Query a server's status.

        Args:
            host: Server host name or address
            port: Server TCP port
            timeout: Deadline in seconds covering connect, write and read

        Returns:
            Snapshot, failed with a classified error when anything went wrong
        """
        requested_at = datetime.now(timezone.utc)
        start_time = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - start_time) * 1000)

        def failed(code: ProbeErrorCode, message: str) -> Snapshot:
            self._log(
                LogLevel.DEBUG,
                f"{self.variant.value} query failed for {host}:{port}: {message}",
                {"error_code": code.value},
            )
            return Snapshot.failure(requested_at, elapsed_ms(), code, message)

        try:
            payload = await asyncio.wait_for(
                self._connect_and_exchange(host, port),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            return failed(ProbeErrorCode.TIMEOUT, f"No response within {timeout}s")
        except NetworkError as e:
            return failed(ProbeErrorCode.CONNECT_FAILURE, e.message)
        except ProtocolError as e:
            return failed(self.protocol_error_code, e.message)
        except (asyncio.IncompleteReadError, ConnectionResetError, ConnectionAbortedError) as e:
            return failed(self.protocol_error_code, f"Truncated response: {e!r}")
        except OSError as e:
            return failed(ProbeErrorCode.CONNECT_FAILURE, f"Socket error: {e}")
        except Exception as e:
            return failed(self.protocol_error_code, f"Unexpected error: {e!r}")

        return Snapshot.success(
            requested_at=requested_at,
            elapsed_ms=elapsed_ms(),
            motd_raw=payload.motd_raw,
            max_players=payload.max_players,
            current_players=payload.current_players,
            version_name=payload.version_name,
            favicon=payload.favicon,
            sample_players=tuple(payload.sample_players),
        )

    async def _connect_and_exchange(self, host: str, port: int) -> StatusPayload:
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except asyncio.TimeoutError:
            # an OSError subclass since 3.11
            raise
        except OSError as e:
            raise NetworkError(
                code="connect_failed",
                message=f"Connection to {host}:{port} failed: {e}",
                details={"host": host, "port": port},
            ) from e

        try:
            return await self._exchange(reader, writer, host, port)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

    async def _exchange(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        host: str,
        port: int,
    ) -> StatusPayload:
        raise NotImplementedError

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, self.__class__.__name__, message, data)
