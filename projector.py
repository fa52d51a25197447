"""
projector.py
────────────
Turns a ServerSnapshot into the Representation shown in Discord.

project() is a pure function: no I/O, no clock.  The same snapshot and
options always give an equal Representation, so the embed timestamp is
added by the sink when the message is sent, never here.
"""

from __future__ import annotations

from models import (
    Channel,
    DisplayOptions,
    EmbedField,
    Representation,
    ServerSnapshot,
    UrgencyClass,
    User,
)

CONNECTING_TEXT = "```\n⏳ Connecting to server...\n```"
NO_ACTIVITY_TEXT = "*No active channels*"
DEFAULT_FOOTER = "Last updated"

# Discord rejects embed field values above this length
FIELD_VALUE_LIMIT = 1024

IDLE_THRESHOLD = 5 * 60  # seconds

# Status markers, in the order they are rendered
RECORDING = "🔴"
OUTPUT_MUTED = "🔇"  # deafened, can't hear
INPUT_MUTED = "🎙️"  # mic muted
AWAY = "💤"

# Hangul filler: Discord strips leading spaces but keeps this
INDENT = "ㅤ"


# ── formatting helpers ────────────────────────────────────────────────────────


def format_duration(seconds: float) -> str:
    """Uptime as "{d}d {h}h", "{h}h {m}m" or "{m}m"."""
    total = int(seconds)
    days = total // 86400
    hours = total // 3600 % 24
    minutes = total // 60 % 60

    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_idle(seconds: float) -> str:
    total = int(seconds)
    hours = total // 3600
    minutes = total // 60 % 60
    if hours > 0:
        return f"{hours}h{minutes}m"
    return f"{minutes}m"


def user_status(user: User) -> str:
    """Status suffix for a user, e.g. "🔴 🔇 💤 idle 1h10m"."""
    parts: list[str] = []

    if user.is_recording:
        parts.append(RECORDING)

    if user.output_muted:
        parts.append(OUTPUT_MUTED)
    elif user.input_muted:
        parts.append(INPUT_MUTED)

    if user.away:
        parts.append(f"{AWAY}({user.away_message})" if user.away_message else AWAY)

    if user.idle_time > IDLE_THRESHOLD:
        parts.append(f"idle {format_idle(user.idle_time)}")

    return " ".join(parts)


def classify(occupied: int, capacity: int) -> UrgencyClass:
    if occupied == 0:
        return UrgencyClass.EMPTY
    if capacity <= 0:
        return UrgencyClass.CRITICAL

    ratio = occupied / capacity
    if ratio >= 0.8:
        return UrgencyClass.CRITICAL
    if ratio >= 0.5:
        return UrgencyClass.BUSY
    return UrgencyClass.NOMINAL


def visible_channels(
    snapshot: ServerSnapshot, show_empty: bool = False
) -> list[Channel]:
    """Channels that are displayed, in snapshot order."""
    return [
        ch
        for ch in snapshot.channels
        if not ch.is_spacer and (show_empty or ch.users)
    ]


def container_name(template: str, snapshot: ServerSnapshot) -> str | None:
    if not template:
        return None
    return (
        template.replace("{online}", str(snapshot.total_users))
        .replace("{max}", str(snapshot.max_clients))
        .replace("{server}", snapshot.name)
    )


# ── channel block ─────────────────────────────────────────────────────────────


def _truncate_block(text: str, limit: int = FIELD_VALUE_LIMIT) -> str:
    if len(text) <= limit:
        return text

    kept: list[str] = []
    size = 0
    for line in text.split("\n"):
        # +1 for the newline, +2 for the trailing "\n…"
        if size + len(line) + 1 + 2 > limit:
            break
        kept.append(line)
        size += len(line) + 1
    return "\n".join(kept).rstrip("\n") + "\n…"


def channel_block(snapshot: ServerSnapshot, show_empty: bool = False) -> str:
    blocks: list[str] = []

    for ch in visible_channels(snapshot, show_empty):
        lines = [f"**#{ch.name}** `{len(ch.users)}`"]
        for user in ch.users:
            status = user_status(user)
            if status:
                lines.append(f"{INDENT}• {user.nickname} {status}")
            else:
                lines.append(f"{INDENT}• {user.nickname}")
        blocks.append("\n".join(lines))

    if not blocks:
        return NO_ACTIVITY_TEXT

    return _truncate_block("\n\n".join(blocks))


# ── projection ────────────────────────────────────────────────────────────────


def project(
    snapshot: ServerSnapshot | None, options: DisplayOptions | None = None
) -> Representation:
    """
    Map a snapshot to its Representation.
    A None snapshot means "not connected yet" and yields the connecting
    placeholder.
    """
    options = options or DisplayOptions()
    footer = options.custom_footer or DEFAULT_FOOTER

    if snapshot is None:
        return Representation(
            title="",
            urgency=UrgencyClass.CONNECTING,
            content=CONNECTING_TEXT,
            footer=footer,
        )

    content = channel_block(snapshot, options.show_empty_channels)

    fields = [
        EmbedField(
            "👥 Online",
            f"**{snapshot.total_users}** / {snapshot.max_clients}",
            inline=True,
        ),
        EmbedField("⏱️ Uptime", format_duration(snapshot.uptime), inline=True),
    ]

    if options.server_address:
        connect = f"`{options.server_address}`"
        if options.server_password:
            connect += f"\nPass: `{options.server_password}`"
        fields.append(EmbedField("🔗 Connect", connect, inline=True))

    fields.append(EmbedField("📢 Channels", content, inline=False))

    return Representation(
        title=snapshot.name,
        urgency=classify(snapshot.total_users, snapshot.max_clients),
        content=content,
        fields=tuple(fields),
        footer=footer,
        thumbnail_url=options.thumbnail_url,
        container_name=container_name(options.channel_name_format, snapshot),
    )
