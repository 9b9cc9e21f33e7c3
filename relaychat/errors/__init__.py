"""Error hierarchy and structured error logging helpers."""

from .handling import classify_error, log_error  # noqa: F401
from .internal import (  # noqa: F401
    ConfigError,
    InternalError,
    LineTooLongError,
    NetworkError,
    ParsingError,
)

__all__ = [
    "ConfigError",
    "InternalError",
    "LineTooLongError",
    "NetworkError",
    "ParsingError",
    "classify_error",
    "log_error",
]
