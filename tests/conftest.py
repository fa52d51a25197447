"""Shared test fixtures for ts-discord-status."""

from __future__ import annotations

import threading

import pytest

from adapters.base import MessageSink, StateSource
from models import Channel, Message, Representation, ServerSnapshot, User


class FakeSource(StateSource):
    """In-memory StateSource.  Set `fail_*` to make a call raise."""

    platform_name = "FakeSource"

    def __init__(self, events: list[str], snapshot: ServerSnapshot | None = None):
        self.events = events
        self.snapshot = snapshot or ServerSnapshot(name="Test Server", max_clients=10)
        self.started = False
        self.fetches = 0
        self.fail_start: Exception | None = None
        self.fail_stop: Exception | None = None
        self.fail_fetch: Exception | None = None

    def start(self) -> None:
        self.events.append("source.start")
        if self.fail_start:
            raise self.fail_start
        self.started = True

    def stop(self) -> None:
        self.events.append("source.stop")
        self.started = False
        if self.fail_stop:
            raise self.fail_stop

    def fetch_snapshot(self) -> ServerSnapshot:
        self.events.append("source.fetch")
        self.fetches += 1
        if self.fail_fetch:
            raise self.fail_fetch
        return self.snapshot


class FakeSink(MessageSink):
    """In-memory MessageSink recording every call."""

    platform_name = "FakeSink"

    def __init__(self, events: list[str], me: str = "bot-1"):
        self.events = events
        self.me = me
        self.started = False
        self.messages: list[Message] = []
        self.created: list[Representation] = []
        self.edits: list[tuple[str, Representation]] = []
        self.renames: list[str] = []
        self.list_calls: list[int] = []
        self.fail_start: Exception | None = None
        self.fail_stop: Exception | None = None
        self.fail_list: Exception | None = None
        self.fail_edit: Exception | None = None
        self.fail_rename: Exception | None = None
        # once `hold_after` edits have landed, the next edit waits for `hold`
        self.hold: threading.Event | None = None
        self.hold_after = 0
        self.holding = threading.Event()

    def start(self) -> None:
        self.events.append("sink.start")
        if self.fail_start:
            raise self.fail_start
        self.started = True

    def stop(self) -> None:
        self.events.append("sink.stop")
        self.started = False
        if self.fail_stop:
            raise self.fail_stop

    def self_id(self) -> str:
        return self.me

    def list_recent_messages(self, channel_id: str, limit: int) -> list[Message]:
        self.list_calls.append(limit)
        if self.fail_list:
            raise self.fail_list
        return list(self.messages[:limit])

    def create_message(self, channel_id: str, representation: Representation) -> str:
        self.events.append("sink.create")
        self.created.append(representation)
        return f"msg-{len(self.created)}"

    def edit_message(self, channel_id: str, message_id: str, representation: Representation) -> None:
        self.events.append("sink.edit")
        if self.hold is not None and len(self.edits) >= self.hold_after:
            self.holding.set()
            self.hold.wait()
        if self.fail_edit:
            raise self.fail_edit
        self.edits.append((message_id, representation))

    def rename_container(self, channel_id: str, name: str) -> None:
        self.events.append("sink.rename")
        if self.fail_rename:
            raise self.fail_rename
        self.renames.append(name)


@pytest.fixture
def events() -> list[str]:
    """Call log shared by the fake source and sink, for ordering checks."""
    return []


@pytest.fixture
def source(events: list[str]) -> FakeSource:
    return FakeSource(events)


@pytest.fixture
def sink(events: list[str]) -> FakeSink:
    return FakeSink(events)


@pytest.fixture
def scenario_snapshot() -> ServerSnapshot:
    """Lobby (2 users), *spacer* (empty), Gaming (3 users), capacity 10."""
    lobby = Channel(
        id=1,
        name="Lobby",
        users=(User(id=1, nickname="alice", channel_id=1), User(id=2, nickname="bob", channel_id=1)),
    )
    spacer = Channel(id=2, name="*spacer*")
    gaming = Channel(
        id=3,
        name="Gaming",
        users=tuple(User(id=i, nickname=f"gamer{i}", channel_id=3) for i in (3, 4, 5)),
    )
    return ServerSnapshot(
        name="Test Server",
        uptime=3 * 3600 + 25 * 60,
        channels=(lobby, spacer, gaming),
        total_users=5,
        max_clients=10,
    )
