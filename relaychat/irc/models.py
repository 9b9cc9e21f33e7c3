"""Shared IRC data models: lifecycle states and the outbound event shapes."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, TypeAlias


class ConnectionState(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    AWAITING_REGISTRATION = auto()
    REGISTERED = auto()


class MessageKind(str, Enum):
    MESSAGE = "message"
    NOTICE = "notice"
    JOIN = "join"
    PART = "part"
    TOPIC = "topic"
    NICK = "nick"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """A chat line or membership change scoped to a channel (or nick)."""

    channel: str
    nick: str
    content: str
    kind: MessageKind = MessageKind.MESSAGE
    timestamp: int = field(default_factory=_now_ms)
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "message",
            "payload": {
                "id": self.id,
                "channel": self.channel,
                "nick": self.nick,
                "content": self.content,
                "timestamp": self.timestamp,
                "type": self.kind.value,
            },
        }


@dataclass(frozen=True, slots=True)
class SystemNotice:
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "system", "payload": {"text": self.text}}


@dataclass(frozen=True, slots=True)
class StateSnapshot:
    """Point-in-time view of the connection for the UI layer."""

    connected: bool
    nick: str
    channels: tuple[str, ...] = ()
    registered: bool = False
    server_info: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        state: dict[str, Any] = {
            "connected": self.connected,
            "nick": self.nick,
            "channels": list(self.channels),
            "registered": self.registered,
        }
        if self.server_info is not None:
            state["serverInfo"] = dict(self.server_info)
        return {"type": "state", "payload": {"state": state}}


@dataclass(frozen=True, slots=True)
class ChannelInfo:
    name: str
    topic: str | None
    users: tuple[str, ...]
    roster_complete: bool = False

    @property
    def user_count(self) -> int:
        return len(self.users)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "topic": self.topic,
            "users": list(self.users),
            "userCount": self.user_count,
        }


IRCEvent: TypeAlias = ChatMessage | SystemNotice | StateSnapshot
