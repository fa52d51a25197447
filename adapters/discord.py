"""
adapters/discord.py
───────────────────
Message sink for Discord.

API base: https://discord.com/api/v10
Auth:     Authorization: Bot <token>

The bot needs these permissions in the status channel:
  • View Channel, Send Messages, Embed Links, Read Message History
  • Manage Channels  ← only if channel_name_format is set
"""

from __future__ import annotations
import logging
import time
from datetime import datetime, timezone

import requests

from adapters.base import MessageSink
from errors import BridgeConnectionError
from models import Message, Representation

logger = logging.getLogger(__name__)

DISCORD_API = "https://discord.com/api/v10"
REQUEST_TIMEOUT = 10  # seconds
MAX_RETRIES = 5

AUTHOR_NAME = "TeamSpeak Server"
AUTHOR_ICON = "https://i.imgur.com/pK2qRkC.png"  # TS3 icon


class DiscordAPIError(Exception):
    def __init__(self, status: int, endpoint: str, body: str = ""):
        super().__init__(f"Discord {status} on {endpoint}: {body[:200]}")
        self.status = status
        self.endpoint = endpoint


def to_embed(representation: Representation, timestamp: datetime | None = None) -> dict:
    """Render a Representation as a Discord embed object."""
    timestamp = timestamp or datetime.now(timezone.utc)
    embed: dict = {
        "color": representation.urgency.colour,
        "timestamp": timestamp.isoformat(),
        "author": {"name": AUTHOR_NAME, "icon_url": AUTHOR_ICON},
    }

    if representation.title:
        embed["title"] = representation.title

    if representation.fields:
        embed["fields"] = [
            {"name": f.name, "value": f.value, "inline": f.inline}
            for f in representation.fields
        ]
    else:
        # placeholder states carry their text in the description
        embed["description"] = representation.content

    if representation.thumbnail_url:
        embed["thumbnail"] = {"url": representation.thumbnail_url}

    if representation.footer:
        embed["footer"] = {"text": representation.footer}

    return embed


class DiscordSink(MessageSink):
    platform_name = "Discord"

    def __init__(self, token: str, session: requests.Session | None = None):
        self.token = token
        self._session = session
        self._owns_session = session is None
        self._user_id: str = ""

    # ── internal HTTP helpers ─────────────────────────────────────────────

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bot {self.token}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, endpoint: str, payload: dict | None = None, params: dict | None = None):
        if self._session is None:
            raise DiscordAPIError(0, endpoint, "not connected to Discord")

        url = f"{DISCORD_API}{endpoint}"
        for _ in range(MAX_RETRIES):
            r = self._session.request(
                method,
                url,
                json=payload,
                params=params,
                headers=self._headers(),
                timeout=REQUEST_TIMEOUT,
            )
            if r.status_code == 429:
                wait = float(r.json().get("retry_after", 1.0))
                logger.info("Discord rate-limit – waiting %.1fs", wait)
                time.sleep(wait + 0.1)
                continue
            if not r.ok:
                raise DiscordAPIError(r.status_code, endpoint, r.text)
            if r.status_code == 204 or not r.content:
                return None
            return r.json()
        raise DiscordAPIError(429, endpoint, "too many retries")

    # ── lifecycle ─────────────────────────────────────────────────────────

    def start(self) -> None:
        if self._session is None:
            self._session = requests.Session()
            self._owns_session = True

        try:
            me = self._request("GET", "/users/@me")
        except (requests.RequestException, DiscordAPIError) as e:
            self.stop()
            if isinstance(e, DiscordAPIError) and e.status == 401:
                raise BridgeConnectionError("invalid Discord bot token") from e
            raise BridgeConnectionError(f"failed to connect to Discord: {e}") from e

        self._user_id = str(me["id"])
        logger.info("Connected to Discord as %s (%s)", me.get("username", "?"), self._user_id)

    def stop(self) -> None:
        if self._session is None:
            return
        if self._owns_session:
            self._session.close()
        self._session = None
        logger.info("Disconnected from Discord")

    def self_id(self) -> str:
        return self._user_id

    # ── MessageSink interface ─────────────────────────────────────────────

    def list_recent_messages(self, channel_id: str, limit: int) -> list[Message]:
        raw = self._request("GET", f"/channels/{channel_id}/messages", params={"limit": limit}) or []
        return [
            Message(
                id=str(m["id"]),
                author_id=str(m.get("author", {}).get("id", "")),
                has_structured_content=bool(m.get("embeds")),
            )
            for m in raw
        ]

    def create_message(self, channel_id: str, representation: Representation) -> str:
        result = self._request(
            "POST",
            f"/channels/{channel_id}/messages",
            {"embeds": [to_embed(representation)]},
        )
        return str(result["id"])

    def edit_message(self, channel_id: str, message_id: str, representation: Representation) -> None:
        self._request(
            "PATCH",
            f"/channels/{channel_id}/messages/{message_id}",
            {"embeds": [to_embed(representation)]},
        )

    def rename_container(self, channel_id: str, name: str) -> None:
        self._request("PATCH", f"/channels/{channel_id}", {"name": name})
