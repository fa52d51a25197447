"""
models.py
─────────
Platform-neutral data models.

A TeamSpeak server is first read into a ServerSnapshot.  The projector turns
the snapshot into a Representation, which the Discord sink renders as an
embed.  Nothing in here talks to TeamSpeak or Discord.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class UrgencyClass(Enum):
    """Occupancy-derived display category.  The value is the embed colour."""

    CONNECTING = 0xFAA61A  # orange – no state yet
    EMPTY = 0x95A5A6  # gray
    NOMINAL = 0x2ECC71  # green
    BUSY = 0xF39C12  # orange
    CRITICAL = 0xE74C3C  # red – almost full

    @property
    def colour(self) -> int:
        return self.value


@dataclass(frozen=True)
class User:
    id: int
    nickname: str
    channel_id: int  # refers to a Channel.id; may not resolve
    input_muted: bool = False  # microphone muted
    output_muted: bool = False  # speakers muted (deafened)
    away: bool = False
    away_message: str = ""
    idle_time: float = 0.0  # seconds
    is_recording: bool = False


@dataclass(frozen=True)
class Channel:
    id: int
    name: str
    parent_id: int = 0  # informational only, channels are listed flat
    order: int = 0
    users: tuple[User, ...] = ()

    @property
    def is_spacer(self) -> bool:
        return "spacer" in self.name.lower()


@dataclass(frozen=True)
class ServerSnapshot:
    """
    One point-in-time read of a voice server.
    total_users also counts users whose channel did not resolve.
    """

    name: str
    uptime: float = 0.0  # seconds
    channels: tuple[Channel, ...] = ()
    total_users: int = 0
    max_clients: int = 0

    def channel_by_id(self, channel_id: int) -> Channel | None:
        for ch in self.channels:
            if ch.id == channel_id:
                return ch
        return None

    def summary(self) -> str:
        return (
            f"'{self.name}' — "
            f"{len(self.channels)} channels, "
            f"{self.total_users}/{self.max_clients} online"
        )


# ── Representation ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass(frozen=True)
class Representation:
    """Everything the status message shows for one tick."""

    title: str
    urgency: UrgencyClass
    content: str
    fields: tuple[EmbedField, ...] = ()
    footer: str = ""
    thumbnail_url: str = ""
    container_name: str | None = None  # channel rename target, if configured


# ── Artifact bookkeeping ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Message:
    id: str
    author_id: str
    has_structured_content: bool = False  # carries at least one embed


@dataclass(frozen=True)
class ArtifactHandle:
    channel_id: str
    message_id: str
    adopted: bool = False  # True when a pre-existing message was taken over


@dataclass
class RenameState:
    count: int | None = None  # online count at the last applied rename
    at: float | None = None  # monotonic time of the last applied rename


@dataclass(frozen=True)
class DisplayOptions:
    """Projection options, taken from the display section of the config."""

    show_empty_channels: bool = False
    server_address: str = ""
    server_password: str = ""
    custom_footer: str = ""
    channel_name_format: str = ""  # e.g. "TS: {online}/{max}"
    thumbnail_url: str = ""
