"""
Unit tests for IRCDispatcher protocol handling.

Lines are fed through a registered connection whose transport is an
in-memory fake, so every assertion is on sent lines, state and events.
"""

from unittest.mock import patch

import pytest

from relaychat.irc.dispatcher import next_nick_candidate
from relaychat.irc.models import ConnectionState, MessageKind
from tests.fixtures.irc_fakes import feed


def test_next_nick_candidate_appends_numeric_suffix():
    candidate = next_nick_candidate("alice")
    prefix, _, suffix = candidate.rpartition("_")
    assert prefix == "alice"
    assert suffix.isdigit()
    assert 0 <= int(suffix) < 1000


class TestRegistration:
    """Test class for PING, welcome and nickname collisions."""

    @pytest.mark.asyncio
    async def test_ping_answered_with_same_token(self, registered, transport):
        feed(registered, "PING :irc.example.org")
        assert transport.sent == ["PONG :irc.example.org"]

    @pytest.mark.asyncio
    async def test_ping_token_as_middle_param(self, registered, transport):
        feed(registered, "PING abc123")
        assert transport.sent == ["PONG :abc123"]

    @pytest.mark.asyncio
    async def test_welcome_registers(self, connection, recorder):
        await connection.connect()
        recorder.clear()
        feed(connection, ":irc.example.org 001 alice :Welcome")
        assert connection.registered is True
        assert connection.connection_state is ConnectionState.REGISTERED
        assert "IRC registration successful" in recorder.notices
        assert recorder.snapshots[-1].registered is True

    @pytest.mark.asyncio
    async def test_welcome_confirms_nick_from_server(self, connection):
        await connection.connect()
        feed(connection, ":irc.example.org 001 alice_42 :Welcome")
        assert connection.get_nick() == "alice_42"

    @pytest.mark.asyncio
    async def test_repeated_welcome_is_ignored(self, registered, recorder):
        feed(registered, ":irc.example.org 001 alice :Welcome again")
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_nick_in_use_retries_with_new_candidate(
        self, connection, transport, recorder
    ):
        await connection.connect()
        transport.sent.clear()
        with patch("relaychat.irc.dispatcher.secrets.randbelow", return_value=7):
            feed(connection, ":irc.example.org 433 * alice :Nickname is already in use")
        assert transport.sent == ["NICK alice_7"]
        assert connection.requested_nick == "alice_7"
        assert connection.nick_attempts == 1
        assert "Nickname in use, trying alice_7" in recorder.notices
        assert connection.registered is False

    @pytest.mark.asyncio
    async def test_nick_retry_budget_is_bounded(self, connection, transport, recorder):
        """Test each retry derives from the previous candidate, then gives up."""
        await connection.connect()
        transport.sent.clear()
        limit = connection.config.max_nick_attempts
        candidates = []
        for _ in range(limit):
            feed(connection, ":irc.example.org 433 * x :in use")
            candidates.append(connection.requested_nick)
        assert [line.split(" ", 1)[1] for line in transport.sent] == candidates
        for previous, current in zip(["alice", *candidates], candidates):
            assert current.startswith(f"{previous}_")

        transport.sent.clear()
        recorder.clear()
        feed(connection, ":irc.example.org 433 * x :in use")
        assert transport.sent == []
        assert recorder.notices == ["Nickname in use; unable to find available nick"]
        assert connection.connected is True

    @pytest.mark.asyncio
    async def test_welcome_after_retry_adopts_candidate(self, connection):
        await connection.connect()
        with patch("relaychat.irc.dispatcher.secrets.randbelow", return_value=3):
            feed(connection, ":irc.example.org 433 * alice :in use")
        feed(connection, ":irc.example.org 001 alice_3 :Welcome")
        assert connection.get_nick() == "alice_3"
        assert connection.nick_attempts == 0


class TestMessages:
    @pytest.mark.asyncio
    async def test_privmsg_emits_message(self, registered, recorder):
        feed(registered, ":bob!b@host PRIVMSG #chan :hello: world")
        (msg,) = recorder.messages
        assert (msg.channel, msg.nick, msg.content) == ("#chan", "bob", "hello: world")
        assert msg.kind is MessageKind.MESSAGE
        assert msg.id
        assert msg.timestamp > 0

    @pytest.mark.asyncio
    async def test_message_ids_are_unique(self, registered, recorder):
        feed(registered, ":bob!b@h PRIVMSG #c :one", ":bob!b@h PRIVMSG #c :one")
        first, second = recorder.messages
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_privmsg_without_text_is_ignored(self, registered, recorder):
        feed(registered, ":bob!b@h PRIVMSG #chan", ":bob!b@h PRIVMSG #chan :")
        assert recorder.messages == []

    @pytest.mark.asyncio
    async def test_notice_from_server_uses_system_nick(self, registered, recorder):
        feed(registered, "NOTICE * :*** Looking up your hostname")
        (msg,) = recorder.messages
        assert msg.kind is MessageKind.NOTICE
        assert msg.nick == "irc"
        assert msg.channel == "*"
        assert msg.content == "*** Looking up your hostname"

    @pytest.mark.asyncio
    async def test_unknown_command_is_ignored(self, registered, recorder, transport):
        feed(registered, ":irc.example.org 372 alice :- message of the day")
        feed(registered, ":bob!b@h WALLOPS :hi")
        assert recorder.events == []
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_unparseable_lines_are_dropped(self, registered, recorder):
        feed(registered, "", "   ", ":prefixonly")
        feed(registered, ":bob!b@h PRIVMSG #c :still works")
        assert [m.content for m in recorder.messages] == ["still works"]


class TestMembership:
    @pytest.mark.asyncio
    async def test_self_join_adds_channel(self, registered, recorder):
        feed(registered, ":alice!a@h JOIN #chan")
        assert registered.get_state().channels == ("#chan",)
        (msg,) = recorder.messages
        assert msg.kind is MessageKind.JOIN
        assert msg.content == "joined #chan"
        assert recorder.snapshots[-1].channels == ("#chan",)

    @pytest.mark.asyncio
    async def test_join_channel_in_trailing(self, registered):
        feed(registered, ":alice!a@h JOIN :#chan")
        assert registered.get_state().channels == ("#chan",)

    @pytest.mark.asyncio
    async def test_other_join_adds_member_only(self, registered):
        registered.join_channel("#chan")
        feed(registered, ":bob!b@h JOIN #chan")
        (info,) = registered.get_channels()
        assert "bob" in info.users
        assert registered.get_state().channels == ("#chan",)

    @pytest.mark.asyncio
    async def test_other_part_removes_member(self, registered, recorder):
        feed(registered, ":alice!a@h JOIN #chan", ":bob!b@h JOIN #chan")
        recorder.clear()
        feed(registered, ":bob!b@h PART #chan :bye")
        (info,) = registered.get_channels()
        assert info.users == ("alice",)
        (msg,) = recorder.messages
        assert (msg.kind, msg.nick, msg.content) == (MessageKind.PART, "bob", "left #chan")

    @pytest.mark.asyncio
    async def test_self_part_forgets_channel(self, registered):
        feed(registered, ":alice!a@h JOIN #chan", ":irc.x 332 alice #chan :topic")
        feed(registered, ":alice!a@h PART #chan")
        assert registered.get_state().channels == ()
        assert registered.get_channels() == []

    @pytest.mark.asyncio
    async def test_quit_removes_nick_from_every_roster(self, registered, recorder):
        feed(
            registered,
            ":alice!a@h JOIN #a",
            ":alice!a@h JOIN #b",
            ":bob!b@h JOIN #a",
            ":bob!b@h JOIN #b",
        )
        recorder.clear()
        feed(registered, ":bob!b@h QUIT :Ping timeout")
        assert all("bob" not in info.users for info in registered.get_channels())
        parts = recorder.messages
        assert [m.channel for m in parts] == ["#a", "#b"]
        assert all(m.kind is MessageKind.PART for m in parts)
        assert parts[0].content == "quit (Ping timeout)"

    @pytest.mark.asyncio
    async def test_self_quit_clears_joined_channels(self, registered, recorder):
        """Test our own QUIT leaves every channel and reports each one."""
        feed(registered, ":alice!a@h JOIN #a", ":alice!a@h JOIN #b", ":bob!b@h JOIN #a")
        recorder.clear()
        feed(registered, ":alice!a@h QUIT :bye")
        assert registered.get_state().channels == ()
        assert registered.get_channels() == []
        parts = recorder.messages
        assert [(m.channel, m.nick) for m in parts] == [("#a", "alice"), ("#b", "alice")]
        assert all(m.kind is MessageKind.PART for m in parts)
        assert all(m.content == "quit (bye)" for m in parts)
        assert recorder.snapshots[-1].channels == ()

    @pytest.mark.asyncio
    async def test_quit_without_reason(self, registered, recorder):
        feed(registered, ":alice!a@h JOIN #a", ":bob!b@h JOIN #a")
        recorder.clear()
        feed(registered, ":bob!b@h QUIT")
        assert recorder.messages[0].content == "quit"

    @pytest.mark.asyncio
    async def test_topic_change(self, registered, recorder):
        feed(registered, ":alice!a@h JOIN #a")
        recorder.clear()
        feed(registered, ":bob!b@h TOPIC #a :new topic")
        (msg,) = recorder.messages
        assert (msg.kind, msg.content) == (MessageKind.TOPIC, "topic: new topic")
        assert registered.get_channels()[0].topic == "new topic"

    @pytest.mark.asyncio
    async def test_topic_reply_sets_topic(self, registered, recorder):
        feed(registered, ":alice!a@h JOIN #a")
        recorder.clear()
        feed(registered, ":irc.example.org 332 alice #a :The topic")
        assert registered.get_channels()[0].topic == "The topic"
        assert recorder.messages == []
        assert recorder.snapshots

    @pytest.mark.asyncio
    async def test_other_nick_change_renames_in_rosters(self, registered, recorder):
        feed(registered, ":alice!a@h JOIN #a", ":bob!b@h JOIN #a")
        recorder.clear()
        feed(registered, ":bob!b@h NICK :robert")
        assert registered.get_channels()[0].users == ("alice", "robert")
        (msg,) = recorder.messages
        assert (msg.channel, msg.nick, msg.kind) == ("#a", "bob", MessageKind.NICK)
        assert msg.content == "is now known as robert"

    @pytest.mark.asyncio
    async def test_self_nick_change(self, registered, recorder):
        feed(registered, ":alice!a@h NICK alicia")
        assert registered.get_nick() == "alicia"
        assert "Nick changed to alicia" in recorder.notices
        assert recorder.snapshots[-1].nick == "alicia"
        (msg,) = recorder.messages
        assert msg.channel == "irc"

    @pytest.mark.asyncio
    async def test_names_reply_builds_roster(self, registered):
        feed(registered, ":alice!a@h JOIN #chan")
        feed(registered, ":irc.example.org 353 alice = #chan :@alice +bob carol")
        (info,) = registered.get_channels()
        assert info.roster_complete is False
        feed(registered, ":irc.example.org 366 alice #chan :End of /NAMES list.")
        (info,) = registered.get_channels()
        assert set(info.users) == {"alice", "bob", "carol"}
        assert info.user_count == 3
        assert info.roster_complete is True

    @pytest.mark.asyncio
    async def test_names_reply_accumulates_across_lines(self, registered):
        feed(
            registered,
            ":alice!a@h JOIN #chan",
            ":irc.example.org 353 alice = #chan :@alice ~dave",
            ":irc.example.org 353 alice = #chan :%erin &frank",
        )
        assert registered.get_channels()[0].users == ("alice", "dave", "erin", "frank")

    @pytest.mark.asyncio
    async def test_names_reply_missing_channel_is_ignored(self, registered, recorder):
        feed(registered, ":irc.example.org 353 :@alice")
        assert recorder.events == []
