"""
Legacy status client (Minecraft Beta 1.8 up to 1.6).

The client sends the ``FE 01`` server list ping and expects a ``FF`` kick
packet in reply. The kick reason is a UTF-16BE string prefixed by its length
in characters (unsigned big-endian short). Two payload layouts exist:

- 1.4 and later: ``§1`` NUL protocol NUL version NUL motd NUL online NUL max
- Beta 1.8 to 1.3: motd ``§`` online ``§`` max

Modern servers still answer this ping using the 1.4 layout.
"""

import asyncio
import struct

from .enums import ProbeErrorCode, ProtocolVariant
from .exceptions import ProtocolError
from .status_client import StatusClient, StatusPayload

LEGACY_PING_REQUEST = bytes([0xFE, 0x01])
KICK_PACKET_ID = 0xFF
EXTENDED_PAYLOAD_PREFIX = "§1\x00"
EXTENDED_FIELD_COUNT = 6


def _malformed(message: str, details: dict) -> ProtocolError:
    return ProtocolError(code="malformed_legacy_response", message=message, details=details)


def _parse_count(value: str, field_name: str) -> int:
    try:
        count = int(value)
    except ValueError:
        raise _malformed(
            f"Legacy {field_name} is not an integer",
            {"field": field_name, "value": value},
        ) from None
    if count < 0:
        raise _malformed(
            f"Legacy {field_name} is negative",
            {"field": field_name, "value": value},
        )
    return count


def parse_legacy_payload(payload: str) -> StatusPayload:
    """
    Decode the text carried by the legacy kick packet.

    Raises:
        ProtocolError: If the payload matches neither layout
    """
    if payload.startswith(EXTENDED_PAYLOAD_PREFIX):
        fields = payload.split("\x00")
        if len(fields) != EXTENDED_FIELD_COUNT:
            raise _malformed(
                f"Expected {EXTENDED_FIELD_COUNT} fields, got {len(fields)}",
                {"field_count": len(fields)},
            )
        _, _protocol, version, motd, online, maximum = fields
        return StatusPayload(
            motd_raw=motd,
            max_players=_parse_count(maximum, "max_players"),
            current_players=_parse_count(online, "current_players"),
            version_name=version,
        )

    # The MOTD may itself contain section signs, only the last two split
    parts = payload.split("§")
    if len(parts) < 3:
        raise _malformed(
            "Legacy payload has fewer than 3 fields",
            {"field_count": len(parts)},
        )
    return StatusPayload(
        motd_raw="§".join(parts[:-2]),
        max_players=_parse_count(parts[-1], "max_players"),
        current_players=_parse_count(parts[-2], "current_players"),
    )


def decode_kick_packet(packet: bytes) -> StatusPayload:
    """Decode a complete kick packet (id, length, UTF-16BE payload)."""
    if len(packet) < 3:
        raise _malformed("Kick packet shorter than its header", {"length": len(packet)})
    _check_packet_id(packet[0])
    (char_count,) = struct.unpack(">H", packet[1:3])
    body = packet[3:]
    if len(body) != char_count * 2:
        raise _malformed(
            "Kick packet length does not match its payload",
            {"declared_chars": char_count, "body_bytes": len(body)},
        )
    return parse_legacy_payload(_decode_utf16(body))


def _check_packet_id(packet_id: int) -> None:
    if packet_id != KICK_PACKET_ID:
        raise _malformed(
            f"Unexpected packet id 0x{packet_id:02X}",
            {"packet_id": packet_id},
        )


def _decode_utf16(body: bytes) -> str:
    try:
        return body.decode("utf-16-be")
    except UnicodeDecodeError as e:
        raise _malformed(f"Payload is not UTF-16BE: {e}", {}) from e


class LegacyStatusClient(StatusClient):
    """Status client for the pre-netty server list ping."""

    variant = ProtocolVariant.LEGACY
    protocol_error_code = ProbeErrorCode.MALFORMED_LEGACY_RESPONSE

    async def _exchange(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        host: str,
        port: int,
    ) -> StatusPayload:
        writer.write(LEGACY_PING_REQUEST)
        await writer.drain()

        header = await reader.readexactly(3)
        _check_packet_id(header[0])
        (char_count,) = struct.unpack(">H", header[1:3])
        body = await reader.readexactly(char_count * 2)
        return decode_kick_packet(header + body)
