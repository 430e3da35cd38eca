"""
Tests for the legacy status client.

Payload layouts are pinned with golden bytes for both the 1.4+ and the
Beta 1.8 kick packet formats.
"""

import asyncio
import struct

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mc_server_watch.enums import ProbeErrorCode
from mc_server_watch.exceptions import ProtocolError
from mc_server_watch.legacy_client import (
    LEGACY_PING_REQUEST,
    LegacyStatusClient,
    decode_kick_packet,
    parse_legacy_payload,
)


def run_async(coro):
    """Helper to run async code in tests."""
    return asyncio.run(coro)


def kick_packet(text: str) -> bytes:
    body = text.encode("utf-16-be")
    return bytes([0xFF]) + struct.pack(">H", len(body) // 2) + body


async def query_fake_server(payload: bytes, timeout: float = 2.0):
    received = []

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            received.append(await reader.readexactly(2))
            writer.write(payload)
            await writer.drain()
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        snapshot = await LegacyStatusClient().query("127.0.0.1", port, timeout)
    finally:
        server.close()
        await server.wait_closed()
    return snapshot, received


async def query_and_watch_close(payload: bytes, timeout: float = 2.0):
    """Run a query, then return the snapshot and what the server reads until EOF."""
    tail = asyncio.get_running_loop().create_future()

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            await reader.readexactly(2)
            writer.write(payload)
            await writer.drain()
            remaining = await reader.read()
            if not tail.done():
                tail.set_result(remaining)
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        snapshot = await LegacyStatusClient().query("127.0.0.1", port, timeout)
        remaining = await asyncio.wait_for(tail, timeout=2.0)
    finally:
        server.close()
        await server.wait_closed()
    return snapshot, remaining


EXTENDED_PAYLOAD = "§1\x00127\x001.4.2\x00A Minecraft Server\x000\x0020"


class TestLegacyGoldenBytes:
    """Exact byte layouts of the legacy ping."""

    def test_request_bytes(self) -> None:
        assert LEGACY_PING_REQUEST == bytes([0xFE, 0x01])

    def test_extended_kick_packet(self) -> None:
        packet = (
            bytes([0xFF, 0x00, 0x24])
            + bytes([0x00, 0xA7, 0x00, 0x31, 0x00, 0x00])   # §1 NUL
            + bytes([0x00, 0x31, 0x00, 0x32, 0x00, 0x37, 0x00, 0x00])   # 127 NUL
            + "1.4.2\x00A Minecraft Server\x000\x0020".encode("utf-16-be")
        )
        assert packet == kick_packet(EXTENDED_PAYLOAD)

        payload = decode_kick_packet(packet)

        assert payload.motd_raw == "A Minecraft Server"
        assert payload.version_name == "1.4.2"
        assert payload.current_players == 0
        assert payload.max_players == 20

    def test_beta_kick_packet(self) -> None:
        packet = kick_packet("A Minecraft Server§3§20")
        assert packet[:3] == bytes([0xFF, 0x00, 0x17])

        payload = decode_kick_packet(packet)

        assert payload.motd_raw == "A Minecraft Server"
        assert payload.version_name == ""
        assert payload.current_players == 3
        assert payload.max_players == 20


class TestLegacyPayloadParsing:
    """Decoding of the kick reason text."""

    def test_beta_motd_may_contain_section_signs(self) -> None:
        payload = parse_legacy_payload("§aGreen §lserver§5§10")
        assert payload.motd_raw == "§aGreen §lserver"
        assert payload.current_players == 5
        assert payload.max_players == 10

    @given(
        motd=st.text(alphabet=st.characters(blacklist_characters="\x00§"), max_size=40),
        online=st.integers(min_value=0, max_value=100000),
        maximum=st.integers(min_value=0, max_value=100000),
        version=st.text(alphabet=st.characters(blacklist_characters="\x00"), max_size=20),
    )
    @settings(max_examples=100)
    def test_extended_fields(self, motd: str, online: int, maximum: int, version: str) -> None:
        """Property: Every well-formed 1.4+ payload yields its six fields unchanged."""
        payload = parse_legacy_payload(f"§1\x0074\x00{version}\x00{motd}\x00{online}\x00{maximum}")

        assert payload.motd_raw == motd
        assert payload.version_name == version
        assert payload.current_players == online
        assert payload.max_players == maximum

    @pytest.mark.parametrize(
        "text",
        [
            "§1\x00127\x001.4.2\x00motd\x000",           # five fields
            "§1\x00127\x001.4.2\x00motd\x000\x0020\x00x",  # seven fields
            "§1\x00127\x001.4.2\x00motd\x00many\x0020",  # non-integer count
            "§1\x00127\x001.4.2\x00motd\x00-1\x0020",    # negative count
            "just a message",
            "motd§3",
            "motd§x§20",
        ],
    )
    def test_malformed_payloads(self, text: str) -> None:
        with pytest.raises(ProtocolError) as exc_info:
            parse_legacy_payload(text)
        assert exc_info.value.code == "malformed_legacy_response"

    def test_wrong_packet_id(self) -> None:
        with pytest.raises(ProtocolError):
            decode_kick_packet(bytes([0xFE, 0x00, 0x00]))

    def test_length_mismatch(self) -> None:
        with pytest.raises(ProtocolError):
            decode_kick_packet(kick_packet("a§1§2") + b"\x00")


class TestLegacyExchange:
    """Full exchange against a local server."""

    def test_successful_query(self) -> None:
        snapshot, received = run_async(query_fake_server(kick_packet(EXTENDED_PAYLOAD)))

        assert received == [bytes([0xFE, 0x01])]
        assert snapshot.succeeded
        assert snapshot.motd_raw == "A Minecraft Server"
        assert snapshot.version_name == "1.4.2"
        assert snapshot.max_players == 20
        assert snapshot.sample_players == ()

    def test_wrong_packet_id_is_malformed(self) -> None:
        snapshot, _ = run_async(query_fake_server(bytes([0x00, 0x00, 0x01, 0x00, 0x41])))

        assert not snapshot.succeeded
        assert snapshot.error.code == ProbeErrorCode.MALFORMED_LEGACY_RESPONSE

    def test_truncated_payload_is_malformed(self) -> None:
        snapshot, _ = run_async(query_fake_server(bytes([0xFF, 0x00, 0x10, 0x00, 0x41])))

        assert not snapshot.succeeded
        assert snapshot.error.code == ProbeErrorCode.MALFORMED_LEGACY_RESPONSE

    def test_garbage_text_is_malformed(self) -> None:
        snapshot, _ = run_async(query_fake_server(kick_packet("You are banned")))

        assert snapshot.error.code == ProbeErrorCode.MALFORMED_LEGACY_RESPONSE


class TestConnectionClosed:
    """The client closes its connection whatever the outcome."""

    def test_closed_after_success(self) -> None:
        snapshot, remaining = run_async(query_and_watch_close(kick_packet(EXTENDED_PAYLOAD)))

        assert snapshot.succeeded
        assert remaining == b""

    def test_closed_after_malformed_response(self) -> None:
        snapshot, remaining = run_async(query_and_watch_close(kick_packet("You are banned")))

        assert snapshot.error.code == ProbeErrorCode.MALFORMED_LEGACY_RESPONSE
        assert remaining == b""

    def test_closed_after_timeout(self) -> None:
        snapshot, remaining = run_async(query_and_watch_close(b"", timeout=0.2))

        assert snapshot.error.code == ProbeErrorCode.TIMEOUT
        assert remaining == b""


class TestFragmentedResponse:
    """Responses arriving in several TCP segments."""

    def test_kick_packet_split_across_reads(self) -> None:
        async def scenario():
            packet = kick_packet(EXTENDED_PAYLOAD)

            async def handle(reader, writer):
                try:
                    await reader.readexactly(2)
                    for chunk in (packet[:1], packet[1:2], packet[2:7], packet[7:]):
                        writer.write(chunk)
                        await writer.drain()
                        await asyncio.sleep(0.02)
                finally:
                    writer.close()

            server = await asyncio.start_server(handle, "127.0.0.1", 0)
            port = server.sockets[0].getsockname()[1]
            try:
                return await LegacyStatusClient().query("127.0.0.1", port, 2.0)
            finally:
                server.close()
                await server.wait_closed()

        snapshot = run_async(scenario())

        assert snapshot.succeeded
        assert snapshot.max_players == 20
