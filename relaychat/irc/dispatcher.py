"""Protocol state machine: parsed lines in, state changes and events out."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from typing import TYPE_CHECKING

from ..constants import (
    ERR_NICKNAMEINUSE,
    NAMES_PRIVILEGE_MARKERS,
    NICK_SUFFIX_RANGE,
    RPL_ENDOFNAMES,
    RPL_NAMREPLY,
    RPL_TOPIC,
    RPL_WELCOME,
    SYSTEM_NICK,
)
from ..errors.internal import ParsingError
from ..logs.logger import logger
from .models import ConnectionState, MessageKind
from .parser import (
    IRCMessage,
    format_line,
    normalize_channel_name,
    parse_irc_message,
)

if TYPE_CHECKING:  # pragma: no cover
    from .client import IRCConnection


def next_nick_candidate(current: str) -> str:
    """Derive a retry nick by appending a random numeric suffix."""
    return f"{current}_{secrets.randbelow(NICK_SUFFIX_RANGE)}"


class IRCDispatcher:
    def __init__(self, client: IRCConnection):
        self.client = client
        self._handlers: dict[str, Callable[[IRCMessage], None]] = {
            "PING": self._handle_ping,
            RPL_WELCOME: self._handle_welcome,
            ERR_NICKNAMEINUSE: self._handle_nick_in_use,
            "PRIVMSG": self._handle_privmsg,
            "NOTICE": self._handle_notice,
            "JOIN": self._handle_join,
            "PART": self._handle_part,
            "QUIT": self._handle_quit,
            "TOPIC": self._handle_topic,
            "NICK": self._handle_nick,
            RPL_TOPIC: self._handle_topic_reply,
            RPL_NAMREPLY: self._handle_names_reply,
            RPL_ENDOFNAMES: self._handle_end_of_names,
        }

    def handle_line(self, raw_line: str) -> None:
        """Parse and dispatch one line; unparseable lines are dropped."""
        if not raw_line.strip():
            return
        try:
            parsed = parse_irc_message(raw_line)
        except ParsingError as e:
            logger.log_event(
                "irc",
                "parse_dropped",
                level=logging.DEBUG,
                nick=self.client.nick,
                error=str(e),
                raw=raw_line,
            )
            return
        self.dispatch(parsed)

    def dispatch(self, parsed: IRCMessage) -> None:
        if parsed.command != "PING":
            logger.log_event(
                "irc", "raw", level=logging.DEBUG, nick=self.client.nick, raw=parsed.raw
            )
        handler = self._handlers.get(parsed.command)
        if handler is None:
            return
        handler(parsed)

    def _sender(self, parsed: IRCMessage) -> str:
        return parsed.nick or SYSTEM_NICK

    # Registration ---------------------------------------------------------

    def _handle_ping(self, parsed: IRCMessage) -> None:
        token = parsed.trailing or parsed.param(0)
        self.client._send_line(format_line("PONG", trailing=token))  # noqa: SLF001

    def _handle_welcome(self, parsed: IRCMessage) -> None:
        client = self.client
        if client.registered:
            logger.log_event(
                "irc", "welcome_repeated", level=logging.DEBUG, nick=client.nick
            )
            return
        confirmed = parsed.param(0) or client.requested_nick
        client.nick = confirmed
        client.requested_nick = confirmed
        client.nick_attempts = 0
        client.registered = True
        client._set_state(ConnectionState.REGISTERED)  # noqa: SLF001
        logger.log_event("irc", "registered", nick=confirmed)
        client._emit_system("IRC registration successful")  # noqa: SLF001
        client._emit_state()  # noqa: SLF001
        client._flush_pending_joins()  # noqa: SLF001

    def _handle_nick_in_use(self, parsed: IRCMessage) -> None:
        client = self.client
        if client.nick_attempts >= client.config.max_nick_attempts:
            logger.log_event(
                "irc",
                "nick_exhausted",
                level=logging.WARNING,
                nick=client.requested_nick,
                attempts=client.nick_attempts,
            )
            client._emit_system("Nickname in use; unable to find available nick")  # noqa: SLF001
            return
        client.nick_attempts += 1
        previous = client.requested_nick
        client.requested_nick = next_nick_candidate(previous)
        logger.log_event(
            "irc",
            "nick_retry",
            level=logging.WARNING,
            nick=previous,
            candidate=client.requested_nick,
            attempt=client.nick_attempts,
        )
        client._send_line(format_line("NICK", client.requested_nick))  # noqa: SLF001
        client._emit_system(f"Nickname in use, trying {client.requested_nick}")  # noqa: SLF001

    # Messages ---------------------------------------------------------------

    def _handle_privmsg(self, parsed: IRCMessage) -> None:
        target = parsed.param(0)
        if not target or not parsed.trailing:
            return
        sender = self._sender(parsed)
        logger.log_event(
            "chat",
            "privmsg",
            level=logging.DEBUG,
            nick=sender,
            channel=target,
            chat_message=parsed.trailing,
        )
        self.client._emit_message(target, sender, parsed.trailing, MessageKind.MESSAGE)  # noqa: SLF001

    def _handle_notice(self, parsed: IRCMessage) -> None:
        if not parsed.trailing:
            return
        target = parsed.param(0) or SYSTEM_NICK
        self.client._emit_message(  # noqa: SLF001
            target, self._sender(parsed), parsed.trailing, MessageKind.NOTICE
        )

    # Membership -------------------------------------------------------------

    def _handle_join(self, parsed: IRCMessage) -> None:
        raw_channel = parsed.trailing or parsed.param(0)
        if not raw_channel:
            return
        client = self.client
        channel = normalize_channel_name(raw_channel)
        nick = self._sender(parsed)
        client.store.add_member(channel, nick)
        if nick == client.nick:
            client.store.add_channel(channel)
            logger.log_event("irc", "self_join", nick=nick, channel=channel)
        client._emit_message(channel, nick, f"joined {channel}", MessageKind.JOIN)  # noqa: SLF001
        client._emit_state()  # noqa: SLF001

    def _handle_part(self, parsed: IRCMessage) -> None:
        raw_channel = parsed.param(0) or parsed.trailing
        if not raw_channel:
            return
        client = self.client
        channel = normalize_channel_name(raw_channel)
        nick = self._sender(parsed)
        client.store.remove_member(channel, nick)
        if nick == client.nick:
            client.store.remove_channel(channel)
            logger.log_event("irc", "self_part", nick=nick, channel=channel)
        client._emit_message(channel, nick, f"left {channel}", MessageKind.PART)  # noqa: SLF001
        client._emit_state()  # noqa: SLF001

    def _handle_quit(self, parsed: IRCMessage) -> None:
        # QUIT names no channel: the nick leaves every roster that holds it.
        client = self.client
        nick = self._sender(parsed)
        content = f"quit ({parsed.trailing})" if parsed.trailing else "quit"
        for channel in client.store.remove_member_everywhere(nick):
            client._emit_message(channel, nick, content, MessageKind.PART)  # noqa: SLF001
        if nick == client.nick:
            for channel in client.store.channels:
                client.store.remove_channel(channel)
        client._emit_state()  # noqa: SLF001

    def _handle_topic(self, parsed: IRCMessage) -> None:
        raw_channel = parsed.param(0)
        if not raw_channel:
            return
        channel = normalize_channel_name(raw_channel)
        topic = parsed.trailing or ""
        self.client.store.set_topic(channel, topic)
        self.client._emit_message(  # noqa: SLF001
            channel, self._sender(parsed), f"topic: {topic}", MessageKind.TOPIC
        )
        self.client._emit_state()  # noqa: SLF001

    def _handle_nick(self, parsed: IRCMessage) -> None:
        new_nick = parsed.trailing or parsed.param(0)
        old_nick = parsed.nick
        if not new_nick or not old_nick:
            return
        client = self.client
        if old_nick == client.nick:
            client.nick = new_nick
            client.requested_nick = new_nick
            logger.log_event("irc", "self_nick_change", nick=new_nick, old=old_nick)
            client._emit_system(f"Nick changed to {new_nick}")  # noqa: SLF001
        affected = client.store.rename_member(old_nick, new_nick)
        content = f"is now known as {new_nick}"
        for channel in affected or [SYSTEM_NICK]:
            client._emit_message(channel, old_nick, content, MessageKind.NICK)  # noqa: SLF001
        client._emit_state()  # noqa: SLF001

    # Numerics ---------------------------------------------------------------

    def _handle_topic_reply(self, parsed: IRCMessage) -> None:
        raw_channel = parsed.param(1)
        if not raw_channel:
            return
        self.client.store.set_topic(
            normalize_channel_name(raw_channel), parsed.trailing or ""
        )
        self.client._emit_state()  # noqa: SLF001

    def _handle_names_reply(self, parsed: IRCMessage) -> None:
        # :server 353 <me> <=|*|@> <channel> :<names>
        raw_channel = parsed.param(-1) if len(parsed.params) >= 2 else ""
        if not raw_channel:
            return
        channel = normalize_channel_name(raw_channel)
        names = [
            name.lstrip(NAMES_PRIVILEGE_MARKERS)
            for name in (parsed.trailing or "").split(" ")
        ]
        self.client.store.add_members(channel, [n for n in names if n])
        self.client._emit_state()  # noqa: SLF001

    def _handle_end_of_names(self, parsed: IRCMessage) -> None:
        raw_channel = parsed.param(1)
        if raw_channel:
            channel = normalize_channel_name(raw_channel)
            self.client.store.mark_roster_complete(channel)
            logger.log_event(
                "irc",
                "names_complete",
                level=logging.DEBUG,
                nick=self.client.nick,
                channel=channel,
                members=self.client.store.channel_info(channel).user_count,
            )
        self.client._emit_state()  # noqa: SLF001
