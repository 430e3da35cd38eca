"""
Tests for webhook notifications.

HTTP traffic goes through httpx.MockTransport, so no request leaves the
test process.
"""

import asyncio
import json
from io import StringIO

import httpx
from hypothesis import given, settings
from hypothesis import strategies as st

from mc_server_watch.config import WebhookConfig
from mc_server_watch.diagnostics import DiagnosticLogger
from mc_server_watch.diff_engine import DiffEngine
from mc_server_watch.enums import LogLevel
from mc_server_watch.events import Event
from mc_server_watch.notifications import DISCORD_CONTENT_LIMIT, WebhookSubscriber
from mc_server_watch.orchestrator import ProbeOrchestrator

WEBHOOK_URL = "https://hooks.example/api/webhooks/1234/s3cr3t"


def run_async(coro):
    """Helper to run async code in tests."""
    return asyncio.run(coro)


def make_entry(label: str = "Main") -> DiffEngine:
    return DiffEngine(ProbeOrchestrator("mc.example.com", 25565), label=label)


class RecordingHandler:
    """MockTransport handler storing every request it receives."""

    def __init__(self, status_code: int = 204) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code)


def make_subscriber(handler, fmt: str = "json", language: str = "en", logger=None, headers=None):
    config = WebhookConfig(url=WEBHOOK_URL, format=fmt, headers=headers or {})
    return WebhookSubscriber(
        config,
        language=language,
        logger=logger,
        transport=httpx.MockTransport(handler),
    )


class TestJsonPayload:
    """Generic JSON webhook format."""

    def test_events_are_posted(self) -> None:
        handler = RecordingHandler()
        subscriber = make_subscriber(handler, headers={"X-Token": "abc"})
        events = [
            Event.online_status(True, "A Minecraft Server"),
            Event.player_count(2),
            Event.player_presence("uuid-1", "Notch", False),
        ]

        assert run_async(subscriber.send(make_entry(), events)) is True

        request = handler.requests[0]
        assert str(request.url) == WEBHOOK_URL
        assert request.headers["X-Token"] == "abc"
        body = json.loads(request.content)
        assert body["server"] == "mc.example.com:25565"
        assert body["label"] == "Main"
        assert body["language"] == "en"
        assert [e["kind"] for e in body["events"]] == [
            "online_status_changed",
            "player_count_changed",
            "player_presence_changed",
        ]
        assert body["events"][0]["is_online"] is True
        assert body["events"][0]["message"] == "Server is online: A Minecraft Server"
        assert body["events"][1]["delta"] == 2
        assert body["events"][2]["player_name"] == "Notch"
        assert body["events"][2]["message"] == "Player Notch left"

    def test_empty_event_list_sends_nothing(self) -> None:
        handler = RecordingHandler()
        subscriber = make_subscriber(handler)

        assert run_async(subscriber.send(make_entry(), [])) is True
        assert handler.requests == []

    def test_subscriber_is_callable(self) -> None:
        handler = RecordingHandler()
        subscriber = make_subscriber(handler)

        run_async(subscriber(make_entry(), [Event.player_count(-1)]))

        assert len(handler.requests) == 1


class TestDiscordPayload:
    """Discord webhook format."""

    def test_content_lists_title_and_messages(self) -> None:
        handler = RecordingHandler()
        subscriber = make_subscriber(handler, fmt="discord", language="de")

        run_async(subscriber.send(make_entry(label=""), [Event.player_count(-3)]))

        body = json.loads(handler.requests[0].content)
        assert body == {"content": "**Minecraft-Server mc.example.com:25565**\n3 Spieler gegangen"}

    @given(count=st.integers(min_value=1, max_value=400))
    @settings(max_examples=30)
    def test_content_is_capped(self, count: int) -> None:
        """Property: Discord content never exceeds the message limit."""
        subscriber = make_subscriber(RecordingHandler(), fmt="discord")
        events = [Event.player_presence(str(i), f"Player{i:04d}", True) for i in range(count)]

        payload = subscriber.build_payload(make_entry(), events)

        assert len(payload["content"]) <= DISCORD_CONTENT_LIMIT
        assert payload["content"].startswith("**Minecraft server Main**")


class TestDeliveryFailures:
    """Failed deliveries are logged, never raised."""

    def test_rejected_status(self) -> None:
        stream = StringIO()
        logger = DiagnosticLogger(output_format="json", output_stream=stream, keep_entries=True)
        subscriber = make_subscriber(RecordingHandler(status_code=500), logger=logger)

        assert run_async(subscriber.send(make_entry(), [Event.player_count(1)])) is False

        entry = logger.entries[0]
        assert entry.level == LogLevel.ERROR
        assert entry.component == "WebhookSubscriber"
        assert entry.data["status_code"] == 500
        assert entry.data["webhook_url"] == DiagnosticLogger.MASK_VALUE
        assert "s3cr3t" not in stream.getvalue()

    def test_connection_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        logger = DiagnosticLogger(output_stream=StringIO(), keep_entries=True)
        subscriber = make_subscriber(refuse, logger=logger)

        assert run_async(subscriber.send(make_entry(), [Event.player_count(1)])) is False
        assert logger.entries[0].level == LogLevel.ERROR
        assert "connection refused" in logger.entries[0].message

    def test_failure_without_logger(self) -> None:
        subscriber = make_subscriber(RecordingHandler(status_code=404))

        assert run_async(subscriber.send(make_entry(), [Event.player_count(1)])) is False
