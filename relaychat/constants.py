"""
Configuration constants for the relaychat IRC client

This module contains all configurable constants used throughout the application.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is not None and value.strip():
        return value.strip()
    return default


# Default connection target (overridden per instance through ClientConfig)
IRC_DEFAULT_HOST = _get_env_str("IRC_DEFAULT_HOST", "irc.pieter.com")
IRC_DEFAULT_PORT = _get_env_int("IRC_DEFAULT_PORT", 6667)

# Transport
IRC_CONNECT_TIMEOUT = _get_env_float(
    "IRC_CONNECT_TIMEOUT", 10.0
)  # Seconds allowed for the TCP connect itself
IRC_READ_CHUNK_SIZE = _get_env_int(
    "IRC_READ_CHUNK_SIZE", 4096
)  # Bytes requested per socket read
IRC_MAX_LINE_BYTES = _get_env_int(
    "IRC_MAX_LINE_BYTES", 8192
)  # Largest partial line the framer will buffer before failing the connection

# Registration
MAX_NICK_ATTEMPTS = _get_env_int(
    "MAX_NICK_ATTEMPTS", 5
)  # NICK retries after ERR_NICKNAMEINUSE before giving up
NICK_SUFFIX_RANGE = _get_env_int(
    "NICK_SUFFIX_RANGE", 1000
)  # Retry suffix is drawn from [0, NICK_SUFFIX_RANGE)
IRC_DEFAULT_REALNAME = _get_env_str("IRC_DEFAULT_REALNAME", "relaychat")
IRC_QUIT_REASON = _get_env_str("IRC_QUIT_REASON", "relaychat disconnect")

# Protocol
CHANNEL_PREFIX = "#"
SYSTEM_NICK = "irc"  # Attributed sender when a line carries no usable prefix
NAMES_PRIVILEGE_MARKERS = "@+~&%"

RPL_WELCOME = "001"
RPL_TOPIC = "332"
RPL_NAMREPLY = "353"
RPL_ENDOFNAMES = "366"
ERR_NICKNAMEINUSE = "433"
