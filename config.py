"""
config.py
─────────
Loads and validates config.json.

Example:

    {
      "teamspeak": {"host": "ts.example.com", "password": "secret"},
      "discord":   {"token": "...", "channel_id": "123456789012345678"},
      "display":   {"update_interval": "30s",
                    "channel_name_format": "TS: {online}/{max}"},
      "logging":   {"level": "info"}
    }

Everything except the TeamSpeak host/password and the Discord token/channel
has a default.
"""

from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass, field

from errors import ConfigError
from models import DisplayOptions

MIN_UPDATE_INTERVAL = 5.0  # seconds

_PLAIN_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}


def parse_duration(value) -> float:
    """Seconds from a number or a string such as "30s", "1m30s" or "2h"."""
    if isinstance(value, bool):
        raise ConfigError(f"invalid duration {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        raise ConfigError(f"invalid duration {value!r}")

    text = value.strip()
    if _PLAIN_NUMBER.fullmatch(text):
        return float(text)

    pos = 0
    total = 0.0
    for m in _DURATION_PART.finditer(text):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _UNIT_SECONDS[m.group(2)]
        pos = m.end()
    if pos == 0 or pos != len(text):
        raise ConfigError(f"invalid duration {value!r}")
    return total


# ── sections ──────────────────────────────────────────────────────────────────


@dataclass
class TeamSpeakConfig:
    host: str = ""
    query_port: int = 10011
    username: str = "serveradmin"
    password: str = ""
    server_id: int = 1


@dataclass
class DiscordConfig:
    token: str = ""
    channel_id: str = ""


@dataclass
class ServerInfo:
    address: str = ""
    password: str = ""


@dataclass
class DisplayConfig:
    show_empty_channels: bool = False
    update_interval: float = 30.0  # seconds
    server_info: ServerInfo = field(default_factory=ServerInfo)
    custom_footer: str = ""
    channel_name_format: str = ""  # e.g. "TS: {online}/{max}"
    thumbnail_url: str = ""

    def options(self) -> DisplayOptions:
        return DisplayOptions(
            show_empty_channels=self.show_empty_channels,
            server_address=self.server_info.address,
            server_password=self.server_info.password,
            custom_footer=self.custom_footer,
            channel_name_format=self.channel_name_format,
            thumbnail_url=self.thumbnail_url,
        )


@dataclass
class LoggingConfig:
    level: str = "info"


@dataclass
class Config:
    teamspeak: TeamSpeakConfig = field(default_factory=TeamSpeakConfig)
    discord: DiscordConfig = field(default_factory=DiscordConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        """Raise ConfigError naming the first missing or invalid field."""
        if not self.teamspeak.host:
            raise ConfigError("teamspeak.host is required")
        if not self.teamspeak.password:
            raise ConfigError("teamspeak.password is required")
        if not self.discord.token:
            raise ConfigError("discord.token is required")
        if not self.discord.channel_id:
            raise ConfigError("discord.channel_id is required")
        if self.display.update_interval < MIN_UPDATE_INTERVAL:
            raise ConfigError("display.update_interval must be at least 5s")
        if log_level(self.logging.level) is None:
            raise ConfigError(f"invalid log level {self.logging.level!r}")


def log_level(name: str) -> int | None:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else None


# ── loading ───────────────────────────────────────────────────────────────────


def _section(raw: dict, key: str) -> dict:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be an object")
    return value


def _flag(section: dict, name: str, key: str, default: bool = False) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{name}.{key} must be true or false, got {value!r}")
    return value


def from_dict(raw: dict) -> Config:
    """Build a Config from parsed JSON, applying defaults.  Does not validate."""
    if not isinstance(raw, dict):
        raise ConfigError("configuration must be a JSON object")

    ts = _section(raw, "teamspeak")
    dc = _section(raw, "discord")
    disp = _section(raw, "display")
    log = _section(raw, "logging")
    info = _section(disp, "server_info")

    cfg = Config()
    try:
        cfg.teamspeak = TeamSpeakConfig(
            host=str(ts.get("host", "")),
            query_port=int(ts.get("query_port", 10011)),
            username=str(ts.get("username", "serveradmin")),
            password=str(ts.get("password", "")),
            server_id=int(ts.get("server_id", 1)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid teamspeak section: {e}") from e

    cfg.discord = DiscordConfig(
        token=str(dc.get("token", "")),
        channel_id=str(dc.get("channel_id", "")),
    )
    cfg.display = DisplayConfig(
        show_empty_channels=_flag(disp, "display", "show_empty_channels"),
        update_interval=parse_duration(disp.get("update_interval", 30)),
        server_info=ServerInfo(
            address=str(info.get("address", "")),
            password=str(info.get("password", "")),
        ),
        custom_footer=str(disp.get("custom_footer", "")),
        channel_name_format=str(disp.get("channel_name_format", "")),
        thumbnail_url=str(disp.get("thumbnail_url", "")),
    )
    cfg.logging = LoggingConfig(level=str(log.get("level", "info")))
    return cfg


def load_config(path: str) -> Config:
    """Read, parse and validate the configuration file at `path`."""
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise ConfigError(f"failed to read config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"failed to parse config file: {e}") from e

    cfg = from_dict(raw)
    cfg.validate()
    return cfg
