"""
bridge.py
─────────
The sync engine.

Takes any StateSource and MessageSink, then drives the status loop:
  1. Start the source, then the sink
  2. Take over (or post) the status message
  3. Sync once right away
  4. Every interval: fetch → project → edit message → maybe rename channel
  5. On stop: wait for the running tick, stop the sink, then the source

Completely platform-agnostic — zero imports from TeamSpeak or Discord code.
"""

from __future__ import annotations
import logging
import threading

from adapters.base import MessageSink, StateSource
from errors import ApplyError, BridgeConnectionError, FetchError
from models import DisplayOptions, Representation
from projector import project
from registry import ArtifactRegistry
from rename_gate import RenameGate

logger = logging.getLogger(__name__)

MIN_INTERVAL = 5.0  # seconds


class Bridge:
    def __init__(
        self,
        source: StateSource,
        sink: MessageSink,
        registry: ArtifactRegistry,
        gate: RenameGate | None = None,
        options: DisplayOptions | None = None,
        interval: float = 30.0,
    ):
        if interval < MIN_INTERVAL:
            raise ValueError(
                f"update interval must be at least {MIN_INTERVAL:.0f}s, got {interval}s"
            )
        self.source = source
        self.sink = sink
        self.registry = registry
        self.gate = gate
        self.options = options or DisplayOptions()
        self.interval = interval

        self._done = threading.Event()
        self._thread: threading.Thread | None = None
        self._stopped = False

    # ── lifecycle ─────────────────────────────────────────────────────────

    def start(self, cancel: threading.Event | None = None) -> None:
        """
        Connect both collaborators and start the loop.
        `cancel` is an optional event; setting it ends the loop like stop().
        Raises BridgeConnectionError if anything needed to run fails.
        """
        if cancel is not None:
            self._done = cancel

        try:
            self.source.start()
        except Exception as e:
            raise BridgeConnectionError(
                f"failed to start {self.source.platform_name} service: {e}"
            ) from e

        try:
            self.sink.start()
        except Exception as e:
            self._stop_quietly(self.source)
            raise BridgeConnectionError(
                f"failed to start {self.sink.platform_name} service: {e}"
            ) from e

        try:
            self.registry.adopt_or_create()
        except Exception as e:
            self._stop_quietly(self.sink)
            self._stop_quietly(self.source)
            raise BridgeConnectionError(
                f"failed to find or create status message: {e}"
            ) from e

        try:
            self.sync()
        except Exception as e:
            logger.warning("Initial update failed: %s", e)

        self._thread = threading.Thread(
            target=self._loop, name="ts-discord-status-bridge", daemon=True
        )
        self._thread.start()
        logger.info("Bridge started (interval=%ss)", self.interval)

    def stop(self) -> None:
        """Stop the loop and disconnect.  Errors are logged, never raised."""
        if self._stopped:
            return
        self._stopped = True

        self._done.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

        self._stop_quietly(self.sink)
        self._stop_quietly(self.source)
        self.registry.release()
        logger.info("Bridge stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ── loop ──────────────────────────────────────────────────────────────

    def _loop(self) -> None:
        # wait() returns True once stop() or the caller's cancel event fires
        while not self._done.wait(self.interval):
            try:
                self.sync()
            except Exception as e:
                logger.warning("Update failed: %s", e)

    def sync(self) -> Representation:
        """One fetch → project → apply pass.  Raises FetchError / ApplyError."""
        try:
            snapshot = self.source.fetch_snapshot()
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(
                f"failed to get {self.source.platform_name} state: {e}"
            ) from e

        logger.debug("Fetched state: %s", snapshot.summary())

        representation = project(snapshot, self.options)

        try:
            self.registry.apply(representation)
        except ApplyError:
            raise
        except Exception as e:
            raise ApplyError(f"failed to update status message: {e}") from e

        if self.gate is not None and representation.container_name is not None:
            self.gate.maybe_rename(snapshot.total_users, representation.container_name)

        return representation

    @staticmethod
    def _stop_quietly(service: StateSource | MessageSink) -> None:
        try:
            service.stop()
        except Exception as e:
            logger.warning("Failed to stop %s service: %s", service.platform_name, e)
