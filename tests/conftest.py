"""Shared fixtures: a connection wired to an in-memory transport."""

from __future__ import annotations

import pytest
import pytest_asyncio

from relaychat.config.model import ClientConfig
from relaychat.irc.client import IRCConnection
from tests.fixtures.irc_fakes import EventRecorder, FakeTransport, feed


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(nick="alice", host="irc.example.org", port=6667)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def connection(config, transport, recorder) -> IRCConnection:
    conn = IRCConnection(config)
    conn.transport = transport  # type: ignore[assignment]
    conn.on_event(recorder)
    return conn


@pytest_asyncio.fixture
async def registered(connection, transport, recorder) -> IRCConnection:
    """A connection that has completed registration as 'alice'."""
    await connection.connect()
    feed(connection, ":irc.example.org 001 alice :Welcome to the network")
    transport.sent.clear()
    recorder.clear()
    return connection
