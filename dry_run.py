"""
dry_run.py
──────────
Console preview of what the status message would show.

Used by `--dry-run`: nothing is sent to Discord, the snapshot is drawn as a
fixed-width box instead.  Channel filtering and user status follow the same
rules as the embed (see projector.py).
"""

from __future__ import annotations

from models import DisplayOptions, ServerSnapshot
from projector import format_duration, user_status, visible_channels

WIDTH = 62  # inner width of the box

TOP = "╔" + "═" * WIDTH + "╗"
RULE = "╠" + "═" * WIDTH + "╣"
BOTTOM = "╚" + "═" * WIDTH + "╝"


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def _row(text: str) -> str:
    return "║  " + truncate(text, WIDTH - 3).ljust(WIDTH - 3) + " ║"


def _centred(text: str) -> str:
    text = truncate(text, WIDTH)
    padding = (WIDTH - len(text)) // 2
    return "║" + " " * padding + text + " " * (WIDTH - padding - len(text)) + "║"


def render(snapshot: ServerSnapshot, options: DisplayOptions | None = None) -> str:
    options = options or DisplayOptions()
    lines = [TOP, _centred(f"TeamSpeak Status ({snapshot.name})"), RULE]

    if options.server_address or options.server_password:
        if options.server_address:
            lines.append(_row(f"Address: {options.server_address}"))
        if options.server_password:
            lines.append(_row(f"Password: {options.server_password}"))
        lines.append(RULE)

    channels = visible_channels(snapshot, options.show_empty_channels)
    for ch in channels:
        lines.append(_row(f"📁 {truncate(ch.name, 50)} ({len(ch.users)})"))
        for user in ch.users:
            status = user_status(user)
            display = f"{user.nickname} {status}" if status else user.nickname
            lines.append(_row(f"    • {truncate(display, 50)}"))

    if not channels:
        lines.append(_row("No users online"))

    lines.append(RULE)
    lines.append(
        _row(
            f"{snapshot.total_users}/{snapshot.max_clients} online • "
            f"Uptime: {format_duration(snapshot.uptime)}"
        )
    )
    if options.custom_footer:
        lines.append(_row(options.custom_footer))
    lines.append(BOTTOM)

    return "\n".join(lines)
