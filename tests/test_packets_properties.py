"""
Property-based tests for the packet helpers.

Uses Hypothesis to verify varint encoding, packet framing and the
cursor-based packet reader.
"""

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mc_server_watch.exceptions import ProtocolError
from mc_server_watch.packets import (
    MAX_PACKET_LENGTH,
    PacketReader,
    build_handshake,
    build_status_request,
    decode_varint,
    encode_string,
    encode_varint,
    frame_packet,
    read_varint,
)


def run_async(coro):
    """Helper to run async code in tests."""
    return asyncio.run(coro)


async def read_varint_from(data: bytes) -> int:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    return await read_varint(reader)


KNOWN_VARINTS = [
    (0, bytes([0x00])),
    (1, bytes([0x01])),
    (127, bytes([0x7F])),
    (128, bytes([0x80, 0x01])),
    (255, bytes([0xFF, 0x01])),
    (25565, bytes([0xDD, 0xC7, 0x01])),
    (MAX_PACKET_LENGTH, bytes([0xFF, 0xFF, 0x7F])),
    (2147483647, bytes([0xFF, 0xFF, 0xFF, 0xFF, 0x07])),
]


class TestVarIntProperties:
    """Varint encoding and decoding."""

    @pytest.mark.parametrize("value,encoded", KNOWN_VARINTS)
    def test_known_encodings(self, value: int, encoded: bytes) -> None:
        assert encode_varint(value) == encoded
        assert decode_varint(encoded) == (value, len(encoded))

    def test_negative_values_use_32_bit_twos_complement(self) -> None:
        assert encode_varint(-1) == bytes([0xFF, 0xFF, 0xFF, 0xFF, 0x0F])
        assert encode_varint(-2147483648) == bytes([0x80, 0x80, 0x80, 0x80, 0x08])

    @given(value=st.integers(min_value=0, max_value=(1 << 35) - 1))
    @settings(max_examples=200)
    def test_encoded_varint_decodes_back(self, value: int) -> None:
        """
        Property: Every canonical varint of at most five bytes decodes to the
        value it encodes, and re-encoding the value yields the same bytes.
        """
        encoded = encode_varint(value)
        assert 1 <= len(encoded) <= 5

        decoded, offset = decode_varint(encoded)
        assert decoded == value
        assert offset == len(encoded)
        assert encode_varint(decoded) == encoded

    @given(
        value=st.integers(min_value=0, max_value=(1 << 35) - 1),
        prefix=st.binary(max_size=8),
        suffix=st.binary(max_size=8),
    )
    @settings(max_examples=100)
    def test_decode_at_offset(self, value: int, prefix: bytes, suffix: bytes) -> None:
        """Property: Decoding honors the offset and returns the position after the varint."""
        encoded = encode_varint(value)
        data = prefix + encoded + suffix

        decoded, offset = decode_varint(data, len(prefix))

        assert decoded == value
        assert offset == len(prefix) + len(encoded)

    @given(tail=st.binary(min_size=0, max_size=4))
    @settings(max_examples=50)
    def test_sixth_byte_is_rejected(self, tail: bytes) -> None:
        """Property: Five continuation bytes make the varint too long, whatever follows."""
        data = bytes([0x80] * 5) + bytes([0x01]) + tail

        with pytest.raises(ProtocolError) as exc_info:
            decode_varint(data)

        assert exc_info.value.code == "varint_too_long"

    def test_truncated_varint_is_rejected(self) -> None:
        with pytest.raises(ProtocolError) as exc_info:
            decode_varint(bytes([0x80, 0x80]))
        assert exc_info.value.code == "truncated_varint"

    def test_encode_rejects_values_beyond_five_bytes(self) -> None:
        with pytest.raises(ValueError):
            encode_varint(1 << 35)

    @given(value=st.integers(min_value=0, max_value=(1 << 35) - 1))
    @settings(max_examples=50)
    def test_stream_reader_matches_buffer_decoder(self, value: int) -> None:
        encoded = encode_varint(value)
        assert run_async(read_varint_from(encoded + b"\x00")) == value

    def test_stream_reader_rejects_sixth_byte(self) -> None:
        with pytest.raises(ProtocolError):
            run_async(read_varint_from(bytes([0xFF] * 6)))

    def test_stream_reader_reports_eof(self) -> None:
        with pytest.raises(asyncio.IncompleteReadError):
            run_async(read_varint_from(bytes([0x80])))


class TestHandshakeGoldenBytes:
    """Exact bytes sent by the modern client."""

    def test_handshake_for_localhost(self) -> None:
        expected = bytes([0x0F, 0x00, 0x2F, 0x09]) + b"localhost" + bytes([0x63, 0xDD, 0x01])
        assert build_handshake("localhost", 25565) == expected

    def test_port_is_big_endian(self) -> None:
        packet = build_handshake("a", 0x1234)
        # length, id, protocol, host length, host, port (2 bytes), next state
        assert packet[-3:-1] == bytes([0x12, 0x34])

    def test_status_request(self) -> None:
        assert build_status_request() == bytes([0x01, 0x00])

    def test_host_is_utf8_length_prefixed(self) -> None:
        assert encode_string("é") == bytes([0x02, 0xC3, 0xA9])

    @given(
        packet_id=st.integers(min_value=0, max_value=0x7F),
        body=st.binary(max_size=300),
    )
    @settings(max_examples=100)
    def test_frame_length_covers_id_and_body(self, packet_id: int, body: bytes) -> None:
        """Property: The frame length prefix equals the size of id plus body."""
        framed = frame_packet(packet_id, body)

        length, offset = decode_varint(framed)
        assert length == len(framed) - offset
        assert framed[offset] == packet_id
        assert framed[offset + 1:] == body


class TestPacketReader:
    """Cursor reads over a packet body."""

    @given(text=st.text(max_size=200))
    @settings(max_examples=100)
    def test_read_string(self, text: str) -> None:
        reader = PacketReader(encode_varint(0) + encode_string(text))

        assert reader.read_varint() == 0
        assert reader.read_string() == text
        assert reader.remaining == 0

    def test_string_longer_than_packet_is_truncated(self) -> None:
        reader = PacketReader(encode_varint(10) + b"abc")
        with pytest.raises(ProtocolError) as exc_info:
            reader.read_string()
        assert exc_info.value.code == "truncated_packet"

    def test_invalid_utf8_is_rejected(self) -> None:
        reader = PacketReader(encode_varint(2) + bytes([0xC3, 0x28]))
        with pytest.raises(ProtocolError) as exc_info:
            reader.read_string()
        assert exc_info.value.code == "invalid_utf8"
