"""
Byte-level helpers for the Minecraft status protocols.

Provides varint encoding and decoding, packet framing for the modern
handshake, and a cursor-based reader over a received packet body.
"""

import asyncio
import struct

from .exceptions import ProtocolError

VARINT_MAX_BYTES = 5
# Largest value a 3-byte varint can carry, the server-side packet size limit
MAX_PACKET_LENGTH = 2_097_151

HANDSHAKE_PACKET_ID = 0x00
STATUS_REQUEST_PACKET_ID = 0x00
NEXT_STATE_STATUS = 1
# The server answers with its own version no matter what the client claims
PROTOCOL_VERSION = 47


def _too_long(consumed: int) -> ProtocolError:
    return ProtocolError(
        code="varint_too_long",
        message=f"VarInt exceeds {VARINT_MAX_BYTES} bytes",
        details={"bytes_consumed": consumed},
    )


def encode_varint(value: int) -> bytes:
    """
    Encode an integer as a varint.

    Negative values are encoded as their 32-bit two's complement.

    Raises:
        ValueError: If the value does not fit into five varint bytes
    """
    if value < 0:
        value &= 0xFFFFFFFF
    if value >= 1 << (7 * VARINT_MAX_BYTES):
        raise ValueError(f"Value too large for a varint: {value}")

    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_varint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """
    Decode a varint from ``data`` starting at ``offset``.

    Returns:
        Tuple of (value, new_offset)

    Raises:
        ProtocolError: If the varint is truncated or longer than five bytes
    """
    value = 0
    for index in range(VARINT_MAX_BYTES):
        if offset >= len(data):
            raise ProtocolError(
                code="truncated_varint",
                message="Packet ended inside a VarInt",
                details={"offset": offset},
            )
        byte = data[offset]
        offset += 1
        value |= (byte & 0x7F) << (7 * index)
        if not byte & 0x80:
            return value, offset
    raise _too_long(VARINT_MAX_BYTES + 1)


async def read_varint(reader: asyncio.StreamReader) -> int:
    """
    Read a varint from a stream one byte at a time.

    Raises:
        ProtocolError: If the varint is longer than five bytes
        asyncio.IncompleteReadError: If the stream ends first
    """
    value = 0
    for index in range(VARINT_MAX_BYTES):
        byte = (await reader.readexactly(1))[0]
        value |= (byte & 0x7F) << (7 * index)
        if not byte & 0x80:
            return value
    raise _too_long(VARINT_MAX_BYTES + 1)


def encode_string(text: str) -> bytes:
    """Encode a string as varint length followed by UTF-8 bytes."""
    raw = text.encode("utf-8")
    return encode_varint(len(raw)) + raw


def frame_packet(packet_id: int, body: bytes = b"") -> bytes:
    """Prefix packet id and body with their combined varint length."""
    payload = encode_varint(packet_id) + body
    return encode_varint(len(payload)) + payload


def build_handshake(host: str, port: int, protocol_version: int = PROTOCOL_VERSION) -> bytes:
    """Build the handshake packet announcing the status next state."""
    body = (
        encode_varint(protocol_version)
        + encode_string(host)
        + struct.pack(">H", port & 0xFFFF)
        + encode_varint(NEXT_STATE_STATUS)
    )
    return frame_packet(HANDSHAKE_PACKET_ID, body)


def build_status_request() -> bytes:
    """Build the empty status request packet."""
    return frame_packet(STATUS_REQUEST_PACKET_ID)


class PacketReader:
    """Cursor over a received packet body."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def read_varint(self) -> int:
        value, self._offset = decode_varint(self._data, self._offset)
        return value

    def read_bytes(self, length: int) -> bytes:
        if length < 0 or length > self.remaining:
            raise ProtocolError(
                code="truncated_packet",
                message=f"Requested {length} bytes, {self.remaining} available",
                details={"offset": self._offset},
            )
        chunk = self._data[self._offset:self._offset + length]
        self._offset += length
        return chunk

    def read_string(self) -> str:
        length = self.read_varint()
        raw = self.read_bytes(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError(
                code="invalid_utf8",
                message=f"String is not valid UTF-8: {e}",
            ) from e
