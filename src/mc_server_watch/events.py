"""
Change events produced by the diff engine.

An Event is a tagged union: ``kind`` is the discriminant and ``payload``
carries the kind-specific data. Events are transient and never stored.
"""

from dataclasses import dataclass
from typing import Union

from .enums import EventKind


@dataclass(frozen=True)
class OnlineStatusChanged:
    """The server went online or offline."""

    is_online: bool
    status_text: str


@dataclass(frozen=True)
class PlayerCountChanged:
    """Signed change of the online player count."""

    delta: int


@dataclass(frozen=True)
class PlayerPresenceChanged:
    """A sampled player joined or left."""

    player_id: str
    player_name: str
    is_online: bool


EventPayload = Union[OnlineStatusChanged, PlayerCountChanged, PlayerPresenceChanged]

_PAYLOAD_KINDS = {
    OnlineStatusChanged: EventKind.ONLINE_STATUS_CHANGED,
    PlayerCountChanged: EventKind.PLAYER_COUNT_CHANGED,
    PlayerPresenceChanged: EventKind.PLAYER_PRESENCE_CHANGED,
}


@dataclass(frozen=True)
class Event:
    kind: EventKind
    payload: EventPayload

    def __post_init__(self) -> None:
        expected = _PAYLOAD_KINDS.get(type(self.payload))
        if expected is not self.kind:
            raise ValueError(
                f"Payload {type(self.payload).__name__} does not match kind {self.kind.value}"
            )

    @classmethod
    def of(cls, payload: EventPayload) -> "Event":
        """Wrap a payload in an Event with the matching kind."""
        return cls(kind=_PAYLOAD_KINDS[type(payload)], payload=payload)

    @classmethod
    def online_status(cls, is_online: bool, status_text: str) -> "Event":
        return cls.of(OnlineStatusChanged(is_online=is_online, status_text=status_text))

    @classmethod
    def player_count(cls, delta: int) -> "Event":
        return cls.of(PlayerCountChanged(delta=delta))

    @classmethod
    def player_presence(cls, player_id: str, player_name: str, is_online: bool) -> "Event":
        return cls.of(
            PlayerPresenceChanged(
                player_id=player_id,
                player_name=player_name,
                is_online=is_online,
            )
        )
