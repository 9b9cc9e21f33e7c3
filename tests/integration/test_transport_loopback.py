"""
Integration tests: a real IRCConnection against a scripted local server.
"""

import asyncio

import pytest
import pytest_asyncio

from relaychat.config.model import ClientConfig
from relaychat.irc.client import IRCConnection
from relaychat.irc.models import ConnectionState
from tests.fixtures.irc_fakes import EventRecorder


class ScriptedServer:
    """Minimal line server that records what the client sends."""

    def __init__(self) -> None:
        self.received: list[str] = []
        self.writer: asyncio.StreamWriter | None = None
        self.connected = asyncio.Event()
        self.got_line = asyncio.Event()
        self.server: asyncio.Server | None = None
        self.port = 0

    async def start(self) -> int:
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self.server.sockets[0].getsockname()[1]
        return self.port

    async def _handle(self, reader, writer):
        self.writer = writer
        self.connected.set()
        while True:
            line = await reader.readline()
            if not line:
                break
            self.received.append(line.decode().rstrip("\r\n"))
            self.got_line.set()

    async def send(self, data: bytes) -> None:
        self.writer.write(data)
        await self.writer.drain()

    async def wait_for_line(self, prefix: str, timeout: float = 2.0) -> str:
        async def _wait():
            while True:
                for line in self.received:
                    if line.startswith(prefix):
                        return line
                self.got_line.clear()
                await self.got_line.wait()

        return await asyncio.wait_for(_wait(), timeout)

    async def close_client(self) -> None:
        self.writer.close()

    async def stop(self) -> None:
        if self.writer is not None:
            self.writer.close()
        self.server.close()
        await self.server.wait_closed()


async def wait_until(predicate, timeout: float = 2.0) -> None:
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)


@pytest_asyncio.fixture
async def server():
    srv = ScriptedServer()
    await srv.start()
    yield srv
    await srv.stop()


def make_connection(port: int, **overrides) -> tuple[IRCConnection, EventRecorder]:
    config = ClientConfig(nick="alice", host="127.0.0.1", port=port, **overrides)
    conn = IRCConnection(config)
    recorder = EventRecorder()
    conn.on_event(recorder)
    return conn, recorder


class TestLoopback:
    """Test class for the full socket path."""

    @pytest.mark.asyncio
    async def test_registration_join_and_chat(self, server):
        port = server.port
        conn, recorder = make_connection(port)
        conn.join_channel("chan")
        assert await conn.connect() is True
        await server.wait_for_line("USER")
        assert server.received[:2] == ["NICK alice", "USER alice 0 * :relaychat"]

        # Split a line across writes to exercise framing on a real socket.
        await server.send(b":irc.local 001 alice :Welc")
        await server.send(b"ome\r\nPING :tok\r\n")
        await server.wait_for_line("JOIN")
        await server.wait_for_line("PONG")
        assert "PONG :tok" in server.received
        assert conn.registered is True

        await server.send(
            b":alice!a@h JOIN #chan\r\n"
            b":irc.local 353 alice = #chan :@alice bob\r\n"
            b":irc.local 366 alice #chan :End\r\n"
            b":bob!b@h PRIVMSG #chan :hi alice\r\n"
        )
        await wait_until(lambda: recorder.messages and recorder.messages[-1].content == "hi alice")
        (info,) = conn.get_channels()
        assert info.users == ("alice", "bob")
        assert info.roster_complete is True

        conn.send_message("#chan", "hello bob")
        await server.wait_for_line("PRIVMSG")
        assert "PRIVMSG #chan :hello bob" in server.received

        await conn.disconnect()
        await server.wait_for_line("QUIT")
        assert recorder.notices[-1] == "Connection closed"
        assert conn.connection_state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_no_events_after_disconnect(self, server):
        port = server.port
        conn, recorder = make_connection(port)
        await conn.connect()
        await server.connected.wait()
        await conn.disconnect()
        count = len(recorder.events)
        await asyncio.sleep(0.05)
        assert len(recorder.events) == count
        assert recorder.notices.count("Connection closed") == 1

    @pytest.mark.asyncio
    async def test_peer_close_resets_state(self, server):
        port = server.port
        conn, recorder = make_connection(port)
        await conn.connect()
        await server.connected.wait()
        await server.send(b":irc.local 001 alice :Welcome\r\n")
        await wait_until(lambda: conn.registered)
        await server.close_client()
        await wait_until(lambda: conn.connection_state is ConnectionState.DISCONNECTED)
        assert recorder.notices[-1] == "Connection closed"
        assert conn.get_state().connected is False

    @pytest.mark.asyncio
    async def test_overlong_line_closes_connection(self, server):
        port = server.port
        conn, recorder = make_connection(port, max_line_bytes=512)
        await conn.connect()
        await server.connected.wait()
        await server.send(b"x" * 600)
        await wait_until(lambda: conn.connection_state is ConnectionState.DISCONNECTED)
        assert any(n.startswith("Connection error: Line exceeds 512") for n in recorder.notices)
        assert recorder.notices[-1] == "Connection closed"


    @pytest.mark.asyncio
    async def test_lines_before_overlong_line_are_dispatched(self, server):
        conn, recorder = make_connection(server.port, max_line_bytes=512)
        await conn.connect()
        await server.connected.wait()
        await server.send(
            b":bob!b@h PRIVMSG #chan :before the flood\r\nPING :keepalive\r\n" + b"x" * 600
        )
        await server.wait_for_line("PONG")
        assert "PONG :keepalive" in server.received
        await wait_until(lambda: conn.connection_state is ConnectionState.DISCONNECTED)
        assert [m.content for m in recorder.messages] == ["before the flood"]
        assert recorder.notices[-1] == "Connection closed"


@pytest.mark.asyncio
async def test_connection_refused():
    closed_server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = closed_server.sockets[0].getsockname()[1]
    closed_server.close()
    await closed_server.wait_closed()

    conn, recorder = make_connection(port)
    assert await conn.connect() is False
    assert recorder.notices[0].startswith("Connection error: Unable to connect")
    assert conn.connection_state is ConnectionState.DISCONNECTED
