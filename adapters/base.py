"""
adapters/base.py
────────────────
Abstract interfaces for the two collaborators the bridge drives.

  StateSource  – where server state comes from (TeamSpeak ServerQuery)
  MessageSink  – where the status message lives (Discord)

To add a new platform:
  1. Create adapters/myplatform.py
  2. Subclass MessageSink (or StateSource)
  3. Implement the abstract methods
  4. Wire it up in main.py
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from models import Message, Representation, ServerSnapshot


class StateSource(ABC):
    """
    A state source holds one connection to the remote server and turns its
    raw records into a ServerSnapshot.
    """

    # Human-readable name used in log messages
    platform_name: str = "Unknown Source"

    @abstractmethod
    def start(self) -> None:
        """
        Connect and authenticate.
        Must raise BridgeConnectionError on failure without leaving a
        half-open connection behind.
        """

    @abstractmethod
    def stop(self) -> None:
        """Disconnect.  Safe to call when never started."""

    @abstractmethod
    def fetch_snapshot(self) -> ServerSnapshot:
        """
        Read the current server state.
        Raises FetchError when not connected or on transport errors.
        """


class MessageSink(ABC):
    """
    A message sink knows how to list, post and edit messages in a text
    channel, and how to rename that channel.
    """

    platform_name: str = "Unknown Platform"

    # ── lifecycle ─────────────────────────────────────────────────────────

    @abstractmethod
    def start(self) -> None:
        """Connect and learn our own identity.  Raises BridgeConnectionError."""

    @abstractmethod
    def stop(self) -> None:
        """Disconnect.  Safe to call when never started."""

    @abstractmethod
    def self_id(self) -> str:
        """The author id this process posts as."""

    # ── messages ──────────────────────────────────────────────────────────

    @abstractmethod
    def list_recent_messages(self, channel_id: str, limit: int) -> list[Message]:
        """Most recent messages in the channel, newest first."""

    @abstractmethod
    def create_message(self, channel_id: str, representation: Representation) -> str:
        """Post a new message and return its id."""

    @abstractmethod
    def edit_message(
        self, channel_id: str, message_id: str, representation: Representation
    ) -> None:
        """Replace the content of an existing message."""

    # ── optional hooks ────────────────────────────────────────────────────

    def rename_container(self, channel_id: str, name: str) -> None:
        """
        Rename the channel the message lives in.
        Not all platforms can do this; the default raises.
        """
        raise NotImplementedError(f"{self.platform_name} cannot rename channels")
