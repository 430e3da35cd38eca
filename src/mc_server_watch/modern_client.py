"""
Modern status client (Minecraft 1.7 and later).

The client sends the handshake and the empty status request back to back,
then reads one length-prefixed response packet carrying a JSON document.
"""

import asyncio
import json
from typing import Any, Optional

from .chat import flatten_component
from .enums import ProbeErrorCode, ProtocolVariant
from .exceptions import ProtocolError
from .models import PlayerSample
from .packets import (
    MAX_PACKET_LENGTH,
    PacketReader,
    build_handshake,
    build_status_request,
    read_varint,
)
from .status_client import StatusClient, StatusPayload


def _violation(code: str, message: str, details: Optional[dict] = None) -> ProtocolError:
    return ProtocolError(code=code, message=message, details=details)


def parse_description(description: Any) -> str:
    """
    Resolve the server description to its raw MOTD.

    The object form (``{"text": ..., "extra": [...]}``) is tried first, the
    bare string form second.
    """
    motd = ""
    if isinstance(description, dict):
        motd = flatten_component(description)
    if not motd and isinstance(description, str):
        motd = description
    return motd


def _require_int(container: dict, key: str, section: str) -> int:
    value = container.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise _violation(
            "missing_field",
            f"Field '{section}.{key}' is missing or not an integer",
        )
    if value < 0:
        raise _violation(
            "negative_count",
            f"Field '{section}.{key}' is negative: {value}",
            {"field": f"{section}.{key}", "value": value},
        )
    return value


def parse_status_json(document: str) -> StatusPayload:
    """
    Decode the JSON status document.

    Raises:
        ProtocolError: If the document is not JSON, lacks required fields,
            or has an empty description
    """
    try:
        data = json.loads(document)
    except json.JSONDecodeError as e:
        raise _violation("invalid_json", f"Status response is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise _violation("invalid_json", "Status response is not a JSON object")

    motd = parse_description(data.get("description"))
    if not motd:
        raise _violation("empty_description", "Empty description")

    players = data.get("players")
    if not isinstance(players, dict):
        raise _violation("missing_field", "Field 'players' is missing")
    max_players = _require_int(players, "max", "players")
    current_players = _require_int(players, "online", "players")

    version = data.get("version")
    version_name = version.get("name") if isinstance(version, dict) else None
    if not isinstance(version_name, str):
        raise _violation("missing_field", "Field 'version.name' is missing")

    sample: list[PlayerSample] = []
    raw_sample = players.get("sample")
    if isinstance(raw_sample, list):
        for entry in raw_sample:
            if not isinstance(entry, dict):
                continue
            player_id = entry.get("id")
            name = entry.get("name")
            if not isinstance(player_id, str) or not isinstance(name, str):
                continue
            sample.append(PlayerSample(id=player_id, raw_name=name))

    favicon = data.get("favicon")
    if not isinstance(favicon, str):
        favicon = None

    return StatusPayload(
        motd_raw=motd,
        max_players=max_players,
        current_players=current_players,
        version_name=version_name,
        favicon=favicon,
        sample_players=sample,
    )


def parse_response_packet(packet: bytes) -> StatusPayload:
    """Decode a response packet body (packet id, then the JSON string)."""
    reader = PacketReader(packet)
    reader.read_varint()  # packet id
    return parse_status_json(reader.read_string())


class ModernStatusClient(StatusClient):
    """Status client for the varint-framed JSON protocol."""

    variant = ProtocolVariant.MODERN
    protocol_error_code = ProbeErrorCode.PROTOCOL_VIOLATION

    async def _exchange(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        host: str,
        port: int,
    ) -> StatusPayload:
        # Some servers only answer once both packets have arrived
        writer.write(build_handshake(host, port) + build_status_request())
        await writer.drain()

        length = await read_varint(reader)
        if length < 1 or length > MAX_PACKET_LENGTH:
            raise _violation(
                "invalid_packet_length",
                f"Invalid packet length: {length}",
                {"length": length},
            )
        packet = await reader.readexactly(length)
        return parse_response_packet(packet)
