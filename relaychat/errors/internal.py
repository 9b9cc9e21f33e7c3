"""Centralized internal error hierarchy.

These exceptions give semantic categories to the failures the client handles
internally. None of them cross the event sink boundary: the connection turns
them into system notices and state snapshots.

Classes:
  InternalError        – Base for all internal errors.
  NetworkError         – Socket connect / read / write failures.
  LineTooLongError     – Peer sent a partial line larger than the framer allows.
  ParsingError         – A protocol line that does not parse.
  ConfigError          – Invalid client configuration.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Base class for all internal application errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(InternalError):
    """Exception raised for network or transport layer errors.

    This covers failed connects, connect timeouts and socket errors while
    reading or writing.
    """


class LineTooLongError(NetworkError):
    """Raised by the line framer when the buffered partial line exceeds its cap.

    ``lines`` holds the complete lines the same chunk produced before the
    overflow; they are still dispatched. The connection then treats this
    like any other transport failure and closes.
    """

    def __init__(
        self, buffered: int, limit: int, lines: list[str] | None = None
    ) -> None:
        super().__init__(
            f"Line exceeds {limit} bytes without terminator",
            data={"buffered": buffered, "limit": limit},
        )
        self.lines: list[str] = list(lines) if lines else []


class ParsingError(InternalError):
    """Exception raised for protocol lines that cannot be parsed.

    Unparseable lines are dropped by the dispatcher; this is never fatal.
    """


class ConfigError(InternalError):
    """Exception raised when the client configuration fails validation."""


__all__ = [
    "InternalError",
    "NetworkError",
    "LineTooLongError",
    "ParsingError",
    "ConfigError",
]
