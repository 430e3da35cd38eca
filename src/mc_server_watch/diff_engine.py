"""
Diff Engine for the server watch system.

A diff engine is one labeled monitor bound to a probe orchestrator. Each
``update`` compares the orchestrator's latest result with the previously
seen one and emits change events: online status flips, player count deltas
and sampled player joins and leaves.
"""

from typing import Optional

from .diagnostics import DiagnosticLogger
from .enums import LogLevel
from .events import Event
from .i18n import get_message
from .models import ProbeResult
from .orchestrator import ProbeOrchestrator

# Mirrored field defaults when no result is available
DEFAULT_VERSION = "0.0.0"
PLACEHOLDER = "-"


class DiffEngine:
    """
    Turns successive probe results into change events.

    Player tables only accumulate: an id once seen keeps its last known
    name and its online flag is flipped, never removed.
    """

    def __init__(
        self,
        orchestrator: ProbeOrchestrator,
        label: str = "",
        logger: Optional[DiagnosticLogger] = None,
        language: Optional[str] = None,
    ) -> None:
        self._orchestrator = orchestrator
        self.label = label
        self.language = language
        self._logger = logger

        self.notify_online_status = True
        self.notify_player_count = True
        self.notify_named_players = False

        self.last_result: Optional[ProbeResult] = None
        self.player_states: dict[str, bool] = {}
        self.player_names: dict[str, str] = {}

        self._reset_mirrored()

    @property
    def orchestrator(self) -> ProbeOrchestrator:
        return self._orchestrator

    def player_name(self, player_id: str) -> Optional[str]:
        """Last known display name of a player, or None if never seen."""
        return self.player_names.get(player_id)

    def update(self) -> list[Event]:
        """
        Compare the latest result with the previous one.

        Returns:
            Events in order: online status, player count, then presence
        """
        result = self._orchestrator.latest()
        if result is None:
            self._reset_mirrored()
            return []

        previous = self.last_result
        events: list[Event] = []

        if self.notify_online_status and (
            previous is None or previous.succeeded != result.succeeded
        ):
            events.append(Event.online_status(result.succeeded, self._status_text(result)))

        previous_count = previous.current_players if previous is not None else 0
        delta = result.current_players - previous_count
        if self.notify_player_count and delta != 0:
            events.append(Event.player_count(delta))

        events.extend(self._presence_events(result))

        self.last_result = result
        self._refresh_mirrored(result)

        if events:
            self._log(
                LogLevel.DEBUG,
                f"{len(events)} event(s) for {self._describe()}",
                {"kinds": [event.kind.value for event in events]},
            )
        return events

    def _presence_events(self, result: ProbeResult) -> list[Event]:
        events: list[Event] = []
        present: set[str] = set()

        for player in result.sample_players:
            present.add(player.id)
            self.player_names[player.id] = player.name
            if not self.player_states.get(player.id, False):
                if self.notify_named_players:
                    events.append(Event.player_presence(player.id, player.name, True))
                self.player_states[player.id] = True

        for player_id, online in list(self.player_states.items()):
            if online and player_id not in present:
                if self.notify_named_players:
                    events.append(
                        Event.player_presence(player_id, self.player_names.get(player_id, ""), False)
                    )
                self.player_states[player_id] = False

        return events

    def _status_text(self, result: ProbeResult) -> str:
        if result.succeeded:
            return result.motd
        if result.error is None:
            return ""
        return get_message("status.connection_failed", self.language, error=result.error.code.value)

    def _reset_mirrored(self) -> None:
        self.is_online = False
        self.player_count = 0
        self.max_player_count = 0
        self.version = DEFAULT_VERSION
        self.motd = PLACEHOLDER
        self.last_error = PLACEHOLDER
        self.player_list: list[str] = []
        self.last_update = PLACEHOLDER

    def _refresh_mirrored(self, result: ProbeResult) -> None:
        self.is_online = result.succeeded
        self.player_count = result.current_players
        self.max_player_count = result.max_players
        self.version = result.version_name if result.succeeded else DEFAULT_VERSION
        self.motd = result.display_motd if result.succeeded else PLACEHOLDER
        self.last_error = result.error.code.value if result.error else PLACEHOLDER
        self.player_list = [player.name for player in result.sample_players]
        self.last_update = result.completed_at.strftime("%H:%M:%S")

    def _describe(self) -> str:
        if self.label:
            return f"{self.label} ({self._orchestrator.target})"
        return str(self._orchestrator.target)

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "DiffEngine", message, data)

    def __repr__(self) -> str:
        return f"DiffEngine({self._describe()})"
