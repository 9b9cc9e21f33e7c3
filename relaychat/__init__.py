"""relaychat: asyncio client for IRC-style channel chat."""

from .config import ClientConfig, load_config  # noqa: F401
from .irc import (  # noqa: F401
    ChannelInfo,
    ChatMessage,
    IRCConnection,
    MessageKind,
    StateSnapshot,
    SystemNotice,
)

__version__ = "0.1.0"

__all__ = [
    "ChannelInfo",
    "ChatMessage",
    "ClientConfig",
    "IRCConnection",
    "MessageKind",
    "StateSnapshot",
    "SystemNotice",
    "load_config",
]
