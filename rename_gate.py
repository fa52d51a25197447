"""
rename_gate.py
──────────────
Decides whether the status channel gets renamed this tick.

Discord allows two channel renames per ten minutes, so a rename only fires
when the online count changed and the cooldown since the last applied rename
has passed.  Renaming is best-effort: a failure is logged, the state is left
alone and the next eligible tick tries again.
"""

from __future__ import annotations
import logging
import threading
import time
from typing import Callable

from adapters.base import MessageSink
from errors import MutationError
from models import RenameState

logger = logging.getLogger(__name__)

RENAME_COOLDOWN = 5 * 60  # seconds


class RenameGate:
    def __init__(
        self,
        sink: MessageSink,
        channel_id: str,
        cooldown: float = RENAME_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
        state: RenameState | None = None,
    ):
        self.sink = sink
        self.channel_id = channel_id
        self.cooldown = cooldown
        self.clock = clock
        self.state = state or RenameState()
        self._lock = threading.Lock()

    def maybe_rename(self, count: int, name: str, now: float | None = None) -> bool:
        """Rename the channel to `name` if allowed.  Returns True if renamed."""
        with self._lock:
            if now is None:
                now = self.clock()

            if count == self.state.count:
                return False

            if self.state.at is not None and now - self.state.at < self.cooldown:
                logger.debug(
                    "Skipping channel rename due to rate limit "
                    "(last_rename=%.0f, next_allowed=%.0f)",
                    self.state.at,
                    self.state.at + self.cooldown,
                )
                return False

            try:
                self.sink.rename_container(self.channel_id, name)
            except Exception as e:
                err = MutationError(f"failed to rename channel to {name!r}: {e}")
                logger.warning("%s", err)
                return False

            self.state.count = count
            self.state.at = now
            logger.info("Updated channel name to %r", name)
            return True
