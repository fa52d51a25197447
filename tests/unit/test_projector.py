"""Unit tests for the projector — pure snapshot → Representation mapping."""

from __future__ import annotations

import pytest

from models import Channel, DisplayOptions, ServerSnapshot, UrgencyClass, User
from projector import (
    CONNECTING_TEXT,
    FIELD_VALUE_LIMIT,
    NO_ACTIVITY_TEXT,
    channel_block,
    classify,
    container_name,
    format_duration,
    format_idle,
    project,
    user_status,
)


# ---------------------------------------------------------------------------
# Test: urgency classification
# ---------------------------------------------------------------------------


class TestClassify:
    @pytest.mark.parametrize(
        "occupied,capacity,expected",
        [
            (0, 10, UrgencyClass.EMPTY),
            (8, 10, UrgencyClass.CRITICAL),
            (5, 10, UrgencyClass.BUSY),
            (1, 10, UrgencyClass.NOMINAL),
            (4, 10, UrgencyClass.NOMINAL),
            (10, 10, UrgencyClass.CRITICAL),
        ],
    )
    def test_thresholds(self, occupied, capacity, expected):
        assert classify(occupied, capacity) is expected

    def test_zero_capacity_does_not_divide(self):
        assert classify(0, 0) is UrgencyClass.EMPTY
        assert classify(3, 0) is UrgencyClass.CRITICAL


# ---------------------------------------------------------------------------
# Test: user status suffix
# ---------------------------------------------------------------------------


class TestUserStatus:
    def test_plain_user_has_no_status(self):
        assert user_status(User(id=1, nickname="a", channel_id=1)) == ""

    def test_full_status_order(self):
        user = User(
            id=1,
            nickname="a",
            channel_id=1,
            is_recording=True,
            output_muted=True,
            input_muted=True,
            away=True,
            idle_time=70 * 60,
        )
        assert user_status(user) == "🔴 🔇 💤 idle 1h10m"

    def test_output_mute_wins_over_input_mute(self):
        user = User(id=1, nickname="a", channel_id=1, input_muted=True, output_muted=True)
        assert user_status(user) == "🔇"

    def test_input_muted(self):
        user = User(id=1, nickname="a", channel_id=1, input_muted=True)
        assert user_status(user) == "🎙️"

    def test_away_message_in_parentheses(self):
        user = User(id=1, nickname="a", channel_id=1, away=True, away_message="brb")
        assert user_status(user) == "💤(brb)"

    def test_idle_only_after_five_minutes(self):
        assert user_status(User(id=1, nickname="a", channel_id=1, idle_time=300)) == ""
        assert user_status(User(id=1, nickname="a", channel_id=1, idle_time=301)) == "idle 5m"
        assert user_status(User(id=1, nickname="a", channel_id=1, idle_time=12 * 60)) == "idle 12m"


class TestFormatting:
    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (59, "0m"),
            (45 * 60, "45m"),
            (2 * 3600 + 5 * 60, "2h 5m"),
            (3 * 86400 + 4 * 3600 + 59 * 60, "3d 4h"),
        ],
    )
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_format_idle(self):
        assert format_idle(7 * 60) == "7m"
        assert format_idle(3600) == "1h0m"
        assert format_idle(2 * 3600 + 30 * 60) == "2h30m"


# ---------------------------------------------------------------------------
# Test: channel block
# ---------------------------------------------------------------------------


class TestChannelBlock:
    def test_scenario_order_and_spacer(self, scenario_snapshot):
        block = channel_block(scenario_snapshot)
        assert "spacer" not in block
        assert block.index("**#Lobby** `2`") < block.index("**#Gaming** `3`")
        assert "ㅤ• alice" in block
        assert "ㅤ• gamer5" in block

    def test_channels_separated_by_blank_line(self, scenario_snapshot):
        block = channel_block(scenario_snapshot)
        assert block == (
            "**#Lobby** `2`\nㅤ• alice\nㅤ• bob\n\n"
            "**#Gaming** `3`\nㅤ• gamer3\nㅤ• gamer4\nㅤ• gamer5"
        )

    def test_spacer_hidden_even_with_users(self):
        snap = ServerSnapshot(
            name="s",
            channels=(Channel(id=1, name="[cSPACER0]---", users=(User(id=1, nickname="x", channel_id=1),)),),
            total_users=1,
            max_clients=10,
        )
        assert channel_block(snap, show_empty=True) == NO_ACTIVITY_TEXT

    def test_empty_channels_hidden_by_default(self):
        snap = ServerSnapshot(name="s", channels=(Channel(id=1, name="AFK"),), max_clients=10)
        assert channel_block(snap) == NO_ACTIVITY_TEXT

    def test_empty_channels_shown_with_zero(self):
        snap = ServerSnapshot(name="s", channels=(Channel(id=1, name="AFK"),), max_clients=10)
        assert channel_block(snap, show_empty=True) == "**#AFK** `0`"

    def test_user_line_with_status(self):
        user = User(id=1, nickname="carol", channel_id=1, input_muted=True)
        snap = ServerSnapshot(
            name="s", channels=(Channel(id=1, name="Lobby", users=(user,)),), total_users=1, max_clients=10
        )
        assert "ㅤ• carol 🎙️" in channel_block(snap)

    def test_orphans_counted_not_listed(self):
        lobby = Channel(id=1, name="Lobby", users=(User(id=1, nickname="alice", channel_id=1),))
        snap = ServerSnapshot(name="s", channels=(lobby,), total_users=2, max_clients=10)
        rep = project(snap)
        assert rep.fields[0].value == "**2** / 10"
        assert rep.content == "**#Lobby** `1`\nㅤ• alice"

    def test_long_block_is_truncated(self):
        users = tuple(User(id=i, nickname=f"user-with-a-long-name-{i:03d}", channel_id=1) for i in range(80))
        snap = ServerSnapshot(
            name="s", channels=(Channel(id=1, name="Big", users=users),), total_users=80, max_clients=100
        )
        block = channel_block(snap)
        assert len(block) <= FIELD_VALUE_LIMIT
        assert block.endswith("\n…")
        assert block.startswith("**#Big** `80`")


# ---------------------------------------------------------------------------
# Test: full projection
# ---------------------------------------------------------------------------


class TestProject:
    def test_connecting_representation(self):
        rep = project(None)
        assert rep.urgency is UrgencyClass.CONNECTING
        assert rep.content == CONNECTING_TEXT
        assert rep.fields == ()
        assert rep.container_name is None
        assert rep.footer == "Last updated"

    def test_scenario(self, scenario_snapshot):
        rep = project(scenario_snapshot)
        assert rep.title == "Test Server"
        assert rep.urgency is UrgencyClass.BUSY
        assert [f.name for f in rep.fields] == ["👥 Online", "⏱️ Uptime", "📢 Channels"]
        assert rep.fields[0].value == "**5** / 10"
        assert rep.fields[1].value == "3h 25m"
        assert rep.fields[2].value == rep.content
        assert rep.fields[2].inline is False

    def test_is_pure(self, scenario_snapshot):
        options = DisplayOptions(server_address="ts.example.com", channel_name_format="TS: {online}/{max}")
        assert project(scenario_snapshot, options) == project(scenario_snapshot, options)

    def test_connect_field(self, scenario_snapshot):
        options = DisplayOptions(server_address="ts.example.com", server_password="hunter2")
        rep = project(scenario_snapshot, options)
        connect = [f for f in rep.fields if f.name == "🔗 Connect"]
        assert connect and connect[0].value == "`ts.example.com`\nPass: `hunter2`"

    def test_custom_footer_and_thumbnail(self, scenario_snapshot):
        options = DisplayOptions(custom_footer="Join us!", thumbnail_url="https://example.com/t.png")
        rep = project(scenario_snapshot, options)
        assert rep.footer == "Join us!"
        assert rep.thumbnail_url == "https://example.com/t.png"

    def test_container_name_template(self, scenario_snapshot):
        options = DisplayOptions(channel_name_format="{server}: {online}/{max}")
        assert project(scenario_snapshot, options).container_name == "Test Server: 5/10"

    def test_no_template_no_rename(self, scenario_snapshot):
        assert project(scenario_snapshot).container_name is None
        assert container_name("", scenario_snapshot) is None
