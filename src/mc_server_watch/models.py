"""
Data models for the server watch system.

This module defines the probe snapshot produced by a single status client,
the merged result of one probe cycle, and the identity of a probe target.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

import idna

from .chat import strip_formatting
from .enums import ProbeErrorCode

DEFAULT_PORT = 25565


@dataclass(frozen=True)
class ProbeError:
    """Classification of a failed probe attempt."""

    code: ProbeErrorCode
    message: str


@dataclass(frozen=True)
class PlayerSample:
    """A player entry from the server's advisory sample list."""

    id: str
    raw_name: str

    @property
    def name(self) -> str:
        """Display name with formatting codes removed."""
        return strip_formatting(self.raw_name)


@dataclass(frozen=True)
class Snapshot:
    """Outcome of one probe attempt via one protocol variant."""

    requested_at: datetime
    elapsed_ms: int
    succeeded: bool
    error: Optional[ProbeError] = None
    motd_raw: str = ""
    max_players: int = 0
    current_players: int = 0
    version_name: str = ""
    favicon: Optional[str] = None
    sample_players: tuple[PlayerSample, ...] = field(default_factory=tuple)

    @classmethod
    def success(
        cls,
        requested_at: datetime,
        elapsed_ms: int,
        motd_raw: str,
        max_players: int,
        current_players: int,
        version_name: str,
        favicon: Optional[str] = None,
        sample_players: tuple[PlayerSample, ...] = (),
    ) -> "Snapshot":
        return cls(
            requested_at=requested_at,
            elapsed_ms=max(0, elapsed_ms),
            succeeded=True,
            error=None,
            motd_raw=motd_raw,
            max_players=max_players,
            current_players=current_players,
            version_name=version_name,
            favicon=favicon,
            sample_players=tuple(sample_players),
        )

    @classmethod
    def failure(
        cls,
        requested_at: datetime,
        elapsed_ms: int,
        code: ProbeErrorCode,
        message: str,
    ) -> "Snapshot":
        return cls(
            requested_at=requested_at,
            elapsed_ms=max(0, elapsed_ms),
            succeeded=False,
            error=ProbeError(code=code, message=message),
        )

    @property
    def completed_at(self) -> datetime:
        return self.requested_at + timedelta(milliseconds=self.elapsed_ms)


@dataclass(frozen=True)
class ProbeResult:
    """
    Legacy and modern snapshots from one probe cycle for one target.

    Effective values come from the preferred snapshot: the modern one when it
    succeeded, the legacy one otherwise. The display MOTD is the exception,
    see ``display_motd_raw``.
    """

    legacy: Snapshot
    modern: Snapshot

    @property
    def succeeded(self) -> bool:
        return self.legacy.succeeded or self.modern.succeeded

    @property
    def preferred(self) -> Snapshot:
        return self.modern if self.modern.succeeded else self.legacy

    @property
    def ping_ms(self) -> int:
        return min(self.legacy.elapsed_ms, self.modern.elapsed_ms)

    @property
    def requested_at(self) -> datetime:
        return self.preferred.requested_at

    @property
    def elapsed_ms(self) -> int:
        return self.preferred.elapsed_ms

    @property
    def completed_at(self) -> datetime:
        return self.preferred.completed_at

    @property
    def error(self) -> Optional[ProbeError]:
        return self.preferred.error

    @property
    def motd_raw(self) -> str:
        return self.preferred.motd_raw

    @property
    def motd(self) -> str:
        return strip_formatting(self.motd_raw)

    @property
    def display_motd_raw(self) -> str:
        """
        Raw MOTD for display.

        The legacy MOTD keeps inline formatting codes that the flattened
        modern description loses, so it wins whenever it succeeded and is
        strictly longer than the preferred one.
        """
        preferred = self.preferred
        if (
            self.legacy.succeeded
            and preferred is not self.legacy
            and len(self.legacy.motd_raw) > len(preferred.motd_raw)
        ):
            return self.legacy.motd_raw
        return preferred.motd_raw

    @property
    def display_motd(self) -> str:
        return strip_formatting(self.display_motd_raw)

    @property
    def max_players(self) -> int:
        return self.preferred.max_players

    @property
    def current_players(self) -> int:
        return self.preferred.current_players

    @property
    def version_name(self) -> str:
        return self.preferred.version_name

    @property
    def favicon(self) -> Optional[str]:
        return self.preferred.favicon

    @property
    def sample_players(self) -> tuple[PlayerSample, ...]:
        return self.preferred.sample_players

    def __str__(self) -> str:
        error = self.error.code.value if self.error else "-"
        return (
            f"[Success:{self.succeeded}, Ping:{self.ping_ms}ms, LastError:{error}, "
            f"Motd:{self.display_motd}, MaxPlayers:{self.max_players}, "
            f"CurrentPlayers:{self.current_players}, Version:{self.version_name}]"
        )


def normalize_host(host: str) -> str:
    """
    Convert a host name to its lowercase ASCII form.

    Internationalized names are IDNA encoded so that the Unicode and
    punycode spellings of the same host compare equal.
    """
    host_lower = host.strip().lower()
    if any(ord(c) > 127 for c in host_lower):
        try:
            return idna.encode(host_lower, uts46=True).decode("ascii")
        except idna.IDNAError:
            return host_lower
    return host_lower


@dataclass(frozen=True)
class Target:
    """A (host, port) probe target. Host comparison is case-insensitive."""

    host: str
    port: int = DEFAULT_PORT

    @property
    def key(self) -> tuple[str, int]:
        return normalize_host(self.host), self.port

    def matches(self, host: str, port: int) -> bool:
        return self.key == (normalize_host(host), port)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


def parse_address(address: str, default_port: int = DEFAULT_PORT) -> Target:
    """
    Parse ``host`` or ``host:port`` into a Target.

    Raises:
        ValueError: If the port is not an integer in 0-65535
    """
    address = address.strip()
    host, sep, port_str = address.rpartition(":")
    if not sep or not host:
        return Target(host=address, port=default_port)
    port = int(port_str)
    if not 0 <= port <= 65535:
        raise ValueError(f"Port out of range: {port}")
    return Target(host=host, port=port)
