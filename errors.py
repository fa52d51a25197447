"""
errors.py
─────────
Exception types shared by the bridge and its adapters.

Only BridgeConnectionError (at startup) and ConfigError abort a run.
Everything raised during a tick is logged and retried on the next tick.
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for all ts-discord-status errors."""


class ConfigError(BridgeError, ValueError):
    """The configuration file is missing, unreadable or invalid."""


class BridgeConnectionError(BridgeError):
    """A collaborator could not be started."""


class FetchError(BridgeError):
    """The server state could not be read this tick."""


class ApplyError(BridgeError):
    """The status message could not be edited this tick."""


class MutationError(BridgeError):
    """The channel rename failed.  Never escalated past the rename gate."""


class ShutdownError(BridgeError):
    """A collaborator failed to stop cleanly."""
