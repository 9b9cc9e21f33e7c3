"""Public IRC connection object: command surface and lifecycle handling."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..config.model import ClientConfig
from ..errors.handling import log_error
from ..errors.internal import NetworkError
from ..logs.logger import logger
from .dispatcher import IRCDispatcher
from .events import EventListener, EventSink
from .models import (
    ChannelInfo,
    ChatMessage,
    ConnectionState,
    IRCEvent,
    MessageKind,
    StateSnapshot,
    SystemNotice,
)
from .parser import format_line, normalize_channel_name
from .state import ChannelStateStore
from .transport import IRCTransport


class IRCConnection:  # pylint: disable=too-many-instance-attributes
    """One client connection to one IRC server.

    All state lives here and is only mutated from the event loop: by the
    transport's read task (through the dispatcher) and by the command
    methods. Commands are fire-and-forget writes; only ``connect`` and
    ``disconnect`` are awaited.
    """

    def __init__(self, config: ClientConfig) -> None:
        self.config = config
        self.nick = config.nick
        self.requested_nick = config.nick
        self.connected = False
        self.registered = False
        self.nick_attempts = 0
        self.connection_state = ConnectionState.DISCONNECTED
        self.store = ChannelStateStore()
        self.events = EventSink()
        self.dispatcher = IRCDispatcher(self)
        self.transport = IRCTransport(
            config.host,
            config.port,
            on_line=self.dispatcher.handle_line,
            on_error=self._on_transport_error,
            on_closed=self._on_transport_closed,
            connect_timeout=config.connect_timeout,
            max_line_bytes=config.max_line_bytes,
        )
        self._pending_joins: dict[str, None] = {}
        self._closing = False

    @classmethod
    def for_nick(cls, nick: str, **settings: Any) -> IRCConnection:
        return cls(ClientConfig(nick=nick, **settings))

    async def __aenter__(self) -> IRCConnection:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()

    # Lifecycle ----------------------------------------------------------------

    async def connect(self) -> bool:
        """Open the socket and start registration.

        A no-op returning True unless currently disconnected. Connection
        failures are reported as events and a False return, never raised.
        """
        if self.connection_state is not ConnectionState.DISCONNECTED:
            logger.log_event(
                "irc", "connect_skipped", level=logging.DEBUG, nick=self.nick
            )
            return True
        self._set_state(ConnectionState.CONNECTING)
        logger.log_event(
            "irc",
            "connect_start",
            nick=self.requested_nick,
            server=self.config.host,
            port=self.config.port,
        )
        try:
            opened = await self.transport.open()
        except NetworkError as e:
            log_error("IRC connect failed", e)
            self._set_state(ConnectionState.DISCONNECTED)
            self._emit_system(f"Connection error: {e}")
            self._emit_state()
            return False
        except asyncio.CancelledError:
            self._set_state(ConnectionState.DISCONNECTED)
            raise
        if not opened:
            # disconnect() won the race and already reported the close.
            return False

        self.connected = True
        self._set_state(ConnectionState.AWAITING_REGISTRATION)
        self._emit_system(f"Connected to {self.config.host}:{self.config.port}")
        self._send_line(format_line("NICK", self.requested_nick))
        self._send_line(
            format_line("USER", self.requested_nick, "0", "*", trailing=self.config.realname)
        )
        self._emit_state()
        return True

    async def disconnect(self) -> None:
        """Send QUIT and close.

        Does nothing when already disconnected or while another disconnect
        is in progress.
        """
        if self.connection_state is ConnectionState.DISCONNECTED or self._closing:
            return
        self._closing = True
        try:
            logger.log_event("irc", "disconnect", nick=self.nick)
            self._send_line(format_line("QUIT", trailing=self.config.quit_reason))
            await self.transport.close()
            self._handle_closed()
        finally:
            self._closing = False

    def _on_transport_error(self, error: Exception) -> None:
        log_error("IRC connection error", error, context={"nick": self.nick})
        self.connected = False
        self._emit_system(f"Connection error: {error}")
        self._emit_state()

    def _on_transport_closed(self) -> None:
        self._handle_closed()

    def _handle_closed(self) -> None:
        if self.connection_state is ConnectionState.DISCONNECTED:
            return
        self._reset_session()
        logger.log_event("irc", "disconnected", level=logging.WARNING, nick=self.nick)
        self._emit_system("Connection closed")
        self._emit_state()

    def _reset_session(self) -> None:
        self.connected = False
        self.registered = False
        self.nick_attempts = 0
        self.requested_nick = self.nick
        self.store.clear()
        self._pending_joins.clear()
        self._set_state(ConnectionState.DISCONNECTED)

    def _set_state(self, new_state: ConnectionState) -> None:
        if self.connection_state != new_state:
            logger.log_event(
                "irc",
                "state_change",
                level=logging.DEBUG,
                nick=self.nick,
                old_state=self.connection_state.name,
                new_state=new_state.name,
            )
            self.connection_state = new_state

    # Commands -----------------------------------------------------------------

    def join_channel(self, name: str) -> str:
        """Join ``name`` (``#`` added when missing) and return the channel.

        Before registration the JOIN is held back and sent on the welcome
        reply; the channel shows up in snapshots immediately either way.
        """
        channel = normalize_channel_name(name)
        self.store.add_channel(channel)
        if self.registered:
            self._send_line(format_line("JOIN", channel))
        else:
            self._pending_joins.setdefault(channel, None)
        self._emit_state()
        return channel

    def part_channel(self, name: str) -> str:
        channel = normalize_channel_name(name)
        self.store.remove_channel(channel)
        self._pending_joins.pop(channel, None)
        self._send_line(format_line("PART", channel))
        self._emit_state()
        return channel

    def send_message(self, channel: str, text: str) -> None:
        """Send ``text`` to ``channel``, one PRIVMSG per non-empty line.

        The target is always a channel: a name without ``#`` gets one, so
        ``"bob"`` is sent to ``#bob``. Direct messages to nicks are not
        supported.
        """
        target = normalize_channel_name(channel)
        for line in text.splitlines():
            if not line.strip():
                continue
            sent = self._send_line(format_line("PRIVMSG", target, trailing=line))
            if sent and self.config.echo_own_messages:
                self._emit_message(target, self.nick, line, MessageKind.MESSAGE)

    def _flush_pending_joins(self) -> None:
        pending = [ch for ch in self._pending_joins if self.store.is_joined(ch)]
        self._pending_joins.clear()
        for channel in pending:
            self._send_line(format_line("JOIN", channel))

    # Queries ------------------------------------------------------------------

    def get_nick(self) -> str:
        return self.nick

    def get_state(self) -> StateSnapshot:
        return StateSnapshot(
            connected=self.connected,
            nick=self.nick,
            channels=self.store.channels,
            registered=self.registered,
            server_info={"name": self.config.host} if self.connected else None,
        )

    def get_channels(self) -> list[ChannelInfo]:
        return self.store.channel_infos()

    # Events -------------------------------------------------------------------

    def on_event(self, listener: EventListener) -> None:
        self.events.subscribe(listener)

    def remove_event_listener(self, listener: EventListener) -> None:
        self.events.unsubscribe(listener)

    def _emit(self, event: IRCEvent) -> None:
        self.events.emit(event)

    def _emit_system(self, text: str) -> None:
        self._emit(SystemNotice(text))

    def _emit_state(self) -> None:
        self._emit(self.get_state())

    def _emit_message(
        self, channel: str, nick: str, content: str, kind: MessageKind
    ) -> None:
        self._emit(ChatMessage(channel=channel, nick=nick, content=content, kind=kind))

    def _send_line(self, line: str) -> bool:
        return self.transport.send_line(line)
