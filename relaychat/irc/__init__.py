"""IRC subsystem package.

Contains framing, parsing, channel state, dispatch, transport and the public
connection object.
"""

from .client import IRCConnection  # noqa: F401
from .dispatcher import IRCDispatcher, next_nick_candidate  # noqa: F401
from .events import EventSink  # noqa: F401
from .framer import LineFramer  # noqa: F401
from .models import (  # noqa: F401
    ChannelInfo,
    ChatMessage,
    ConnectionState,
    IRCEvent,
    MessageKind,
    StateSnapshot,
    SystemNotice,
)
from .parser import (  # noqa: F401
    IRCMessage,
    normalize_channel_name,
    parse_irc_message,
    parse_prefix_nick,
)
from .state import ChannelStateStore  # noqa: F401
from .transport import IRCTransport  # noqa: F401

__all__ = [
    "ChannelInfo",
    "ChannelStateStore",
    "ChatMessage",
    "ConnectionState",
    "EventSink",
    "IRCConnection",
    "IRCDispatcher",
    "IRCEvent",
    "IRCMessage",
    "IRCTransport",
    "LineFramer",
    "MessageKind",
    "StateSnapshot",
    "SystemNotice",
    "next_nick_candidate",
    "normalize_channel_name",
    "parse_irc_message",
    "parse_prefix_nick",
]
