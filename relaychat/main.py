#!/usr/bin/env python3
"""
Console entry point for the relaychat IRC client
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime

from .config import load_config
from .errors.handling import log_error
from .errors.internal import ConfigError
from .irc.client import IRCConnection
from .irc.models import ChatMessage, IRCEvent, MessageKind, StateSnapshot, SystemNotice
from .logging_config import LoggerConfigurator


def format_event(event: IRCEvent) -> str | None:
    """Render an event as one console line; snapshots are not printed."""
    if isinstance(event, ChatMessage):
        stamp = datetime.fromtimestamp(event.timestamp / 1000).strftime("%H:%M:%S")
        if event.kind is MessageKind.MESSAGE:
            return f"{stamp} {event.channel} <{event.nick}> {event.content}"
        if event.kind is MessageKind.NOTICE:
            return f"{stamp} {event.channel} -{event.nick}- {event.content}"
        return f"{stamp} {event.channel} * {event.nick} {event.content}"
    if isinstance(event, SystemNotice):
        return f"-- {event.text}"
    if isinstance(event, StateSnapshot):
        return None
    return None


class ConsoleSession:
    """Reads commands from stdin and forwards them to the connection.

    ``/join #chan``, ``/part [#chan]``, ``/msg #chan text`` (channels only),
    ``/names``, ``/quit``;
    anything else is sent to the most recently joined channel.
    """

    def __init__(self, connection: IRCConnection) -> None:
        self.connection = connection
        self.current: str | None = None

    def on_event(self, event: IRCEvent) -> None:
        line = format_event(event)
        if line is not None:
            print(line, flush=True)

    def handle_input(self, line: str) -> bool:
        """Apply one input line. Returns False when the session should end."""
        text = line.strip()
        if not text:
            return True
        if not text.startswith("/"):
            if self.current is None:
                print("-- join a channel first: /join #channel", flush=True)
            else:
                self.connection.send_message(self.current, text)
            return True
        command, _, rest = text[1:].partition(" ")
        command = command.lower()
        rest = rest.strip()
        if command == "quit":
            return False
        if command == "join" and rest:
            self.current = self.connection.join_channel(rest.split()[0])
        elif command == "part":
            target = rest.split()[0] if rest else self.current
            if target:
                parted = self.connection.part_channel(target)
                if parted == self.current:
                    channels = self.connection.get_state().channels
                    self.current = channels[-1] if channels else None
        elif command == "msg" and " " in rest:
            target, _, message = rest.partition(" ")
            self.connection.send_message(target, message)
        elif command == "names":
            for info in self.connection.get_channels():
                print(
                    f"-- {info.name} ({info.user_count}): {' '.join(info.users)}",
                    flush=True,
                )
        else:
            print(f"-- unknown command: /{command}", flush=True)
        return True


async def run_console(connection: IRCConnection, channels: list[str]) -> None:
    session = ConsoleSession(connection)
    connection.on_event(session.on_event)
    for channel in channels:
        session.current = connection.join_channel(channel)
    if not await connection.connect():
        return
    try:
        while True:
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:  # EOF
                break
            if not session.handle_input(line):
                break
    finally:
        await connection.disconnect()
        connection.remove_event_listener(session.on_event)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relaychat", description="Minimal IRC channel chat client"
    )
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--host")
    parser.add_argument("--port", type=int)
    parser.add_argument("--nick")
    parser.add_argument(
        "channels", nargs="*", help="Channels to join after registration"
    )
    return parser


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(
            args.config,
            host=args.host,
            port=args.port,
            nick=args.nick,
            channels=args.channels or None,
        )
    except ConfigError as e:
        log_error("Configuration error", e)
        return 2
    connection = IRCConnection(config)
    await run_console(connection, config.channels)
    return 0


def run() -> None:
    """Synchronous entry point for the application."""
    LoggerConfigurator().configure()
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        sys.exit(0)


if __name__ == "__main__":
    run()
