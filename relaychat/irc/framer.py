"""CR LF line framing over an arbitrary byte stream."""

from __future__ import annotations

from ..constants import IRC_MAX_LINE_BYTES
from ..errors.internal import LineTooLongError

LINE_TERMINATOR = b"\r\n"


class LineFramer:
    """Turns socket chunks into complete protocol lines.

    Bytes are buffered until a CR LF arrives, so terminators and multi-byte
    UTF-8 sequences split across reads are reassembled before decoding.
    """

    def __init__(self, max_line_bytes: int = IRC_MAX_LINE_BYTES) -> None:
        self.max_line_bytes = max_line_bytes
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Number of bytes held for the next, still incomplete line."""
        return len(self._buffer)

    def feed(self, data: bytes) -> list[str]:
        """Add a chunk and return every line it completed, in order.

        Raises:
            LineTooLongError: if the remaining partial line is over the cap.
                The lines completed by this chunk are carried on ``lines``.
        """
        self._buffer += data
        lines: list[str] = []
        start = 0
        while True:
            end = self._buffer.find(LINE_TERMINATOR, start)
            if end == -1:
                break
            lines.append(self._buffer[start:end].decode("utf-8", errors="replace"))
            start = end + len(LINE_TERMINATOR)
        if start:
            del self._buffer[:start]
        if len(self._buffer) > self.max_line_bytes:
            buffered = len(self._buffer)
            self._buffer.clear()
            raise LineTooLongError(buffered, self.max_line_bytes, lines)
        return lines

    def reset(self) -> None:
        self._buffer.clear()
