"""
Webhook notifications for the server watch system.

Provides a ready-made auto-update subscriber that forwards rendered change
events to an HTTP webhook, either as a generic JSON document or as a
Discord webhook message.
"""

import dataclasses
from datetime import datetime, timezone
from typing import Optional

import httpx

from .config import WebhookConfig
from .diagnostics import DiagnosticLogger
from .diff_engine import DiffEngine
from .enums import LogLevel
from .events import Event
from .exceptions import NotificationError
from .i18n import get_message, render_event

# Discord rejects message content longer than this
DISCORD_CONTENT_LIMIT = 2000


class WebhookSubscriber:
    """
    Subscriber callback posting events to a webhook.

    Delivery failures are logged and never raised, so a broken webhook
    cannot stop the auto-update loop.
    """

    def __init__(
        self,
        config: WebhookConfig,
        language: Optional[str] = None,
        logger: Optional[DiagnosticLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize the webhook subscriber.

        Args:
            config: Webhook configuration with URL, format and optional headers
            language: Language for rendered messages
            logger: Optional diagnostic logger
            transport: Custom httpx transport (for testing)
            timeout: HTTP request timeout in seconds
        """
        self._url = config.url
        self._format = config.format
        self._headers = config.headers.copy()
        self._language = language
        self._logger = logger
        self._transport = transport
        self._timeout = timeout

    @property
    def format(self) -> str:
        return self._format

    async def __call__(self, entry: DiffEngine, events: list[Event]) -> None:
        await self.send(entry, events)

    async def send(self, entry: DiffEngine, events: list[Event]) -> bool:
        """
        Deliver events for one entry.

        Returns:
            True if the webhook accepted the message, False otherwise
        """
        if not events:
            return True

        try:
            await self._post(self.build_payload(entry, events))
        except NotificationError as e:
            self._log(
                LogLevel.ERROR,
                get_message("notification.failed", self._language, error=e.message),
                {"webhook_url": self._url, **e.details},
            )
            return False
        return True

    def build_payload(self, entry: DiffEngine, events: list[Event]) -> dict:
        """Build the request body in the configured format."""
        target = str(entry.orchestrator.target)
        messages = [render_event(event, self._language) for event in events]

        if self._format == "discord":
            title = get_message("notification.title", self._language, target=entry.label or target)
            content = "\n".join([f"**{title}**"] + messages)
            return {"content": content[:DISCORD_CONTENT_LIMIT]}

        return {
            "server": target,
            "label": entry.label,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "language": self._language,
            "events": [
                {
                    "kind": event.kind.value,
                    "message": message,
                    **dataclasses.asdict(event.payload),
                }
                for event, message in zip(events, messages)
            ],
        }

    async def _post(self, payload: dict) -> None:
        headers = {"Content-Type": "application/json"}
        headers.update(self._headers)

        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.post(
                    self._url,
                    json=payload,
                    headers=headers,
                    timeout=self._timeout,
                )
            except httpx.HTTPError as e:
                raise NotificationError(
                    code="delivery_failed",
                    message=f"Webhook request failed: {e!r}",
                ) from e

        if not 200 <= response.status_code < 300:
            raise NotificationError(
                code="rejected",
                message=f"Webhook returned HTTP {response.status_code}",
                details={"status_code": response.status_code},
            )

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "WebhookSubscriber", message, data)
