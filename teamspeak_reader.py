"""
teamspeak_reader.py
───────────────────
Reads a TeamSpeak 3 virtual server via ServerQuery and converts it into a
platform-neutral ServerSnapshot.

Requires a ServerQuery login (usually "serveradmin") that may run:
  • serverinfo
  • channellist
  • clientlist -voice -times -away
"""

from __future__ import annotations
import logging
import socket
import threading
import time
from dataclasses import replace
from typing import Callable

from adapters.base import StateSource
from errors import BridgeConnectionError, FetchError, ShutdownError
from models import Channel, ServerSnapshot, User

logger = logging.getLogger(__name__)

DEFAULT_QUERY_PORT = 10011
CONNECT_TIMEOUT = 10  # seconds
KEEPALIVE_AFTER = 240  # seconds; the server drops idle query clients at 300

# ServerQuery client_type: 0 = voice client, 1 = query client
_QUERY_CLIENT = 1

# ServerQuery escape sequences (order matters: backslash first)
_ESCAPES = [
    ("\\", "\\\\"),
    ("/", "\\/"),
    (" ", "\\s"),
    ("|", "\\p"),
    ("\a", "\\a"),
    ("\b", "\\b"),
    ("\f", "\\f"),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("\t", "\\t"),
    ("\v", "\\v"),
]
_UNESCAPES = {esc[1]: raw for raw, esc in _ESCAPES}


class QueryError(Exception):
    """The server answered a command with a non-zero error id."""

    def __init__(self, error_id: int, message: str):
        super().__init__(f"error {error_id}: {message}")
        self.error_id = error_id
        self.message = message


# ── protocol helpers ──────────────────────────────────────────────────────────


def escape(value: str) -> str:
    for raw, esc in _ESCAPES:
        value = value.replace(raw, esc)
    return value


def unescape(value: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(value):
        pair = value[i : i + 2]
        if pair in _UNESCAPES:
            out.append(_UNESCAPES[pair])
            i += 2
        else:
            out.append(value[i])
            i += 1
    return "".join(out)


def parse_record(text: str) -> dict[str, str]:
    """Parse one "k1=v1 k2=v2 flag" record."""
    record: dict[str, str] = {}
    for prop in text.split(" "):
        if not prop:
            continue
        key, _, value = prop.partition("=")
        record[key] = unescape(value)
    return record


def parse_records(text: str) -> list[dict[str, str]]:
    """Parse a "|"-separated list of records."""
    if not text:
        return []
    return [parse_record(part) for part in text.split("|")]


def build_command(command: str, params: dict | None = None, options=()) -> str:
    parts = [command]
    for key, value in (params or {}).items():
        parts.append(f"{key}={escape(str(value))}")
    parts.extend(f"-{opt}" for opt in options)
    return " ".join(parts)


def _int(record: dict[str, str], key: str, default: int = 0) -> int:
    try:
        return int(record.get(key, default))
    except ValueError:
        return default


def _bool(record: dict[str, str], key: str) -> bool:
    return record.get(key, "0") == "1"


# ── connection ────────────────────────────────────────────────────────────────


class ServerQueryConnection:
    """A blocking ServerQuery connection.  One command at a time."""

    def __init__(self, host: str, port: int = DEFAULT_QUERY_PORT, timeout: float = CONNECT_TIMEOUT):
        self._sock = socket.create_connection((host, port), timeout=timeout)
        self._buffer = b""
        try:
            banner = self._read_line()
            if banner != "TS3":
                raise QueryError(-1, f"not a ServerQuery interface (banner {banner!r})")
            self._read_line()  # "Welcome to the TeamSpeak 3 ServerQuery interface..."
        except Exception:
            self.close()
            raise

    def _read_line(self) -> str:
        while b"\n" not in self._buffer:
            chunk = self._sock.recv(4096)
            if not chunk:
                raise ConnectionError("ServerQuery connection closed by server")
            self._buffer += chunk
        line, _, self._buffer = self._buffer.partition(b"\n")
        return line.decode("utf-8", errors="replace").strip("\r")

    def query(self, command: str, params: dict | None = None, options=()) -> list[dict[str, str]]:
        """Send a command and return its parsed records."""
        self._sock.sendall(build_command(command, params, options).encode("utf-8") + b"\n")

        data: list[str] = []
        while True:
            line = self._read_line()
            if not line:
                continue
            if line.startswith("error "):
                status = parse_record(line[len("error ") :])
                error_id = _int(status, "id", -1)
                if error_id != 0:
                    raise QueryError(error_id, status.get("msg", ""))
                return parse_records("".join(data))
            if line.startswith("notify"):
                continue
            data.append(line)

    def close(self) -> None:
        self._sock.close()


# ── reader ────────────────────────────────────────────────────────────────────


class TeamSpeakReader(StateSource):
    """
    Holds one ServerQuery session for the lifetime of the reader.

    A session that fails mid-command is thrown away, never reused: a reply
    left half-read on the stream would otherwise be taken as the answer to
    the next command.  The next fetch opens a fresh session (connect, login,
    use).  The server drops idle query clients after about five minutes, so a
    session idle for KEEPALIVE_AFTER seconds is checked with "version" before
    it is used.
    """

    platform_name = "TeamSpeak"

    def __init__(
        self,
        host: str,
        query_port: int = DEFAULT_QUERY_PORT,
        username: str = "serveradmin",
        password: str = "",
        server_id: int = 1,
        connect: Callable[..., ServerQueryConnection] = ServerQueryConnection,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.host = host
        self.query_port = query_port
        self.username = username
        self.password = password
        self.server_id = server_id
        self._connect = connect
        self._clock = clock
        self._conn: ServerQueryConnection | None = None
        self._running = False
        self._last_used = 0.0
        self._lock = threading.Lock()

    def start(self) -> None:
        with self._lock:
            logger.info("Connecting to TeamSpeak server at %s:%s", self.host, self.query_port)
            self._conn = self._open()
            self._running = True
            logger.info("Connected to TeamSpeak server")

    def stop(self) -> None:
        with self._lock:
            self._running = False
            if self._conn is None:
                return
            conn, self._conn = self._conn, None
            try:
                conn.query("quit")
            except (OSError, QueryError) as e:
                logger.debug("quit not acknowledged: %s", e)
            try:
                conn.close()
            except OSError as e:
                raise ShutdownError(f"failed to close ServerQuery connection: {e}") from e
            logger.info("Disconnected from TeamSpeak server")

    def fetch_snapshot(self) -> ServerSnapshot:
        with self._lock:
            if not self._running:
                raise FetchError("not connected to TeamSpeak server")
            conn = self._session()

            try:
                server = conn.query("serverinfo")
                channels = conn.query("channellist")
                clients = conn.query("clientlist", options=("voice", "times", "away"))
            except (OSError, QueryError) as e:
                self._discard()
                raise FetchError(f"failed to query TeamSpeak server: {e}") from e
            self._last_used = self._clock()

        return build_snapshot(server[0] if server else {}, channels, clients)

    # ── session handling ──────────────────────────────────────────────────────

    def _open(self) -> ServerQueryConnection:
        """Connect, log in and select the virtual server."""
        addr = f"{self.host}:{self.query_port}"
        try:
            conn = self._connect(self.host, self.query_port)
        except (OSError, QueryError) as e:
            raise BridgeConnectionError(f"failed to connect to TeamSpeak at {addr}: {e}") from e

        try:
            conn.query(
                "login",
                {"client_login_name": self.username, "client_login_password": self.password},
            )
        except (OSError, QueryError) as e:
            conn.close()
            raise BridgeConnectionError(f"failed to authenticate: {e}") from e

        try:
            conn.query("use", {"sid": self.server_id})
        except (OSError, QueryError) as e:
            conn.close()
            raise BridgeConnectionError(
                f"failed to select virtual server {self.server_id}: {e}"
            ) from e

        self._last_used = self._clock()
        return conn

    def _discard(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            conn.close()
        except OSError as e:
            logger.debug("closing broken ServerQuery connection: %s", e)

    def _session(self) -> ServerQueryConnection:
        """The live connection, checked when idle and reopened when lost."""
        if self._conn is not None and self._clock() - self._last_used >= KEEPALIVE_AFTER:
            try:
                self._conn.query("version")
                self._last_used = self._clock()
            except (OSError, QueryError) as e:
                logger.warning("ServerQuery connection went stale: %s", e)
                self._discard()

        if self._conn is None:
            logger.info("Reconnecting to TeamSpeak server at %s:%s", self.host, self.query_port)
            try:
                self._conn = self._open()
            except BridgeConnectionError as e:
                raise FetchError(f"reconnect failed: {e}") from e
            logger.info("Reconnected to TeamSpeak server")
        return self._conn


def build_snapshot(
    server: dict[str, str],
    channels: list[dict[str, str]],
    clients: list[dict[str, str]],
) -> ServerSnapshot:
    """
    Assemble a snapshot from raw ServerQuery records.
    Users in a channel that is not in the list still count toward the total.
    """
    snapshot = ServerSnapshot(
        name=server.get("virtualserver_name", ""),
        uptime=float(_int(server, "virtualserver_uptime")),
        channels=tuple(
            Channel(
                id=_int(ch, "cid"),
                name=ch.get("channel_name", ""),
                parent_id=_int(ch, "pid"),
                order=_int(ch, "channel_order"),
            )
            for ch in channels
        ),
        max_clients=_int(server, "virtualserver_maxclients"),
    )

    users_by_channel: dict[int, list[User]] = {}
    total_users = 0

    for cl in clients:
        if _int(cl, "client_type") == _QUERY_CLIENT:
            continue

        user = User(
            id=_int(cl, "clid"),
            nickname=cl.get("client_nickname", ""),
            channel_id=_int(cl, "cid"),
            input_muted=_bool(cl, "client_input_muted"),
            output_muted=_bool(cl, "client_output_muted"),
            away=_bool(cl, "client_away"),
            away_message=cl.get("client_away_message", ""),
            idle_time=_int(cl, "client_idle_time") / 1000,  # ms
            is_recording=_bool(cl, "client_is_recording"),
        )

        if snapshot.channel_by_id(user.channel_id) is not None:
            users_by_channel.setdefault(user.channel_id, []).append(user)

        total_users += 1

    return replace(
        snapshot,
        channels=tuple(
            replace(ch, users=tuple(users_by_channel.get(ch.id, ()))) for ch in snapshot.channels
        ),
        total_users=total_users,
    )
