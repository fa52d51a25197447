"""
registry.py
───────────
Keeps track of the one status message this bot owns.

On startup the last 50 messages of the channel are searched for an embed we
posted earlier, so a restart takes that message over instead of posting a
duplicate.  Every tick then edits the same message.  A message deleted by
someone else is not recreated mid-run; the next restart posts a fresh one.
"""

from __future__ import annotations
import logging
import threading

from adapters.base import MessageSink
from errors import ApplyError
from models import ArtifactHandle, DisplayOptions, Representation
from projector import project

logger = logging.getLogger(__name__)

LOOKBACK = 50


class ArtifactRegistry:
    def __init__(
        self,
        sink: MessageSink,
        channel_id: str,
        options: DisplayOptions | None = None,
        lookback: int = LOOKBACK,
    ):
        self.sink = sink
        self.channel_id = channel_id
        self.options = options or DisplayOptions()
        self.lookback = lookback
        self._handle: ArtifactHandle | None = None
        self._lock = threading.Lock()

    @property
    def handle(self) -> ArtifactHandle | None:
        return self._handle

    def adopt_or_create(self) -> ArtifactHandle:
        """
        Find our previous status message or post a placeholder.
        Calling it again returns the same handle without touching Discord.
        """
        with self._lock:
            if self._handle is not None:
                return self._handle

            me = self.sink.self_id()
            for msg in self.sink.list_recent_messages(self.channel_id, self.lookback):
                if msg.author_id == me and msg.has_structured_content:
                    self._handle = ArtifactHandle(
                        channel_id=self.channel_id, message_id=msg.id, adopted=True
                    )
                    logger.info("Found existing status message %s", msg.id)
                    return self._handle

            message_id = self.sink.create_message(
                self.channel_id, project(None, self.options)
            )
            self._handle = ArtifactHandle(
                channel_id=self.channel_id, message_id=message_id
            )
            logger.info("Created new status message %s", message_id)
            return self._handle

    def apply(self, representation: Representation) -> None:
        """Edit the status message to show `representation`."""
        with self._lock:
            if self._handle is None:
                raise ApplyError("no status message; adopt_or_create() not called")

            try:
                self.sink.edit_message(
                    self._handle.channel_id, self._handle.message_id, representation
                )
            except Exception as e:
                raise ApplyError(
                    f"failed to update status message {self._handle.message_id}: {e}"
                ) from e

    def release(self) -> None:
        """Forget the handle.  The message itself stays in the channel."""
        with self._lock:
            self._handle = None
