"""TCP transport: socket lifecycle and the read loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from ..constants import IRC_CONNECT_TIMEOUT, IRC_MAX_LINE_BYTES, IRC_READ_CHUNK_SIZE
from ..errors.internal import LineTooLongError, NetworkError
from ..logs.logger import logger
from .framer import LineFramer


class IRCTransport:
    """Owns one asyncio stream pair and feeds received lines to ``on_line``.

    Lifecycle callbacks:
        on_line(line)    every complete line, in arrival order
        on_error(exc)    read failure, followed by on_closed()
        on_closed()      the peer went away (EOF or error)

    ``close()`` is the local cancellation path and fires none of them.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        on_line: Callable[[str], None],
        on_error: Callable[[Exception], None],
        on_closed: Callable[[], None],
        connect_timeout: float = IRC_CONNECT_TIMEOUT,
        max_line_bytes: int = IRC_MAX_LINE_BYTES,
        read_chunk_size: int = IRC_READ_CHUNK_SIZE,
    ) -> None:
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self.read_chunk_size = read_chunk_size
        self._on_line = on_line
        self._on_error = on_error
        self._on_closed = on_closed
        self._framer = LineFramer(max_line_bytes)
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self._connect_task: asyncio.Task[Any] | None = None
        self._read_task: asyncio.Task[None] | None = None
        self._closing = False

    @property
    def is_open(self) -> bool:
        return self.writer is not None and not self.writer.is_closing()

    async def open(self) -> bool:
        """Open the connection and start reading.

        Returns False when ``close()`` was called while the connect was in
        flight.

        Raises:
            NetworkError: connect refused, unreachable or timed out.
        """
        if self.writer is not None:
            return True
        self._closing = False
        self._framer.reset()
        self._connect_task = asyncio.ensure_future(
            asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.connect_timeout,
            )
        )
        try:
            self.reader, self.writer = await self._connect_task
        except asyncio.CancelledError:
            if self._closing:
                return False
            raise
        except (OSError, TimeoutError) as e:
            reason = str(e) or type(e).__name__
            raise NetworkError(
                f"Unable to connect to {self.host}:{self.port}: {reason}",
                data={"host": self.host, "port": self.port},
            ) from e
        finally:
            self._connect_task = None

        if self._closing:
            await self._close_writer()
            return False

        logger.log_event(
            "transport",
            "opened",
            level=logging.DEBUG,
            host=self.host,
            port=self.port,
        )
        self._read_task = asyncio.create_task(self._read_loop())
        return True

    def send_line(self, line: str) -> bool:
        """Queue ``line`` plus CR LF on the socket without waiting.

        CR and LF inside ``line`` are removed so a caller cannot smuggle a
        second command into one write.
        """
        if not self.is_open:
            logger.log_event(
                "transport", "send_skipped", level=logging.DEBUG, line=line
            )
            return False
        clean = line.replace("\r", "").replace("\n", "")
        try:
            self.writer.write(f"{clean}\r\n".encode())  # type: ignore[union-attr]
        except (OSError, RuntimeError) as e:
            logger.log_event(
                "transport", "send_failed", level=logging.WARNING, error=str(e)
            )
            return False
        logger.log_event("transport", "sent", level=logging.DEBUG, line=clean)
        return True

    async def close(self) -> None:
        """Stop reading and close the socket. Safe to call repeatedly."""
        self._closing = True
        if self._connect_task is not None and not self._connect_task.done():
            self._connect_task.cancel()
        task = self._read_task
        self._read_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._close_writer()
        self._framer.reset()

    async def _close_writer(self) -> None:
        writer = self.writer
        self.writer = None
        self.reader = None
        if writer is None:
            return
        try:
            # Flush a pending QUIT before the socket goes away.
            await writer.drain()
        except (OSError, RuntimeError) as e:
            logger.log_event(
                "transport", "close_error", level=logging.DEBUG, error=str(e)
            )
        writer.close()
        try:
            await writer.wait_closed()
        except (OSError, RuntimeError) as e:
            logger.log_event(
                "transport", "close_error", level=logging.DEBUG, error=str(e)
            )

    async def _read_loop(self) -> None:
        error: Exception | None = None
        try:
            while True:
                data = await self.reader.read(self.read_chunk_size)  # type: ignore[union-attr]
                if not data:
                    logger.log_event("transport", "eof", level=logging.DEBUG)
                    break
                try:
                    lines = self._framer.feed(data)
                except LineTooLongError as e:
                    for line in e.lines:
                        self._on_line(line)
                    raise
                for line in lines:
                    self._on_line(line)
        except (OSError, NetworkError) as e:
            error = e
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "transport",
                "read_loop_error",
                level=logging.ERROR,
                error=str(e),
                error_type=type(e).__name__,
            )
            error = e
        # Peer-side end: release the socket, then report.
        self._read_task = None
        writer = self.writer
        self.writer = None
        self.reader = None
        if writer is not None:
            writer.close()
        self._framer.reset()
        if error is not None:
            self._on_error(error)
        self._on_closed()
