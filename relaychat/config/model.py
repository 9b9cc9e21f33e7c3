from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..constants import (
    CHANNEL_PREFIX,
    IRC_CONNECT_TIMEOUT,
    IRC_DEFAULT_HOST,
    IRC_DEFAULT_PORT,
    IRC_DEFAULT_REALNAME,
    IRC_MAX_LINE_BYTES,
    IRC_QUIT_REASON,
    MAX_NICK_ATTEMPTS,
)


def normalize_channels(channels: list[str]) -> list[str]:
    """Strip, ``#``-prefix and deduplicate channel names, keeping order."""
    normalized: list[str] = []
    for raw in channels:
        name = raw.strip()
        if not name or name == CHANNEL_PREFIX:
            continue
        if not name.startswith(CHANNEL_PREFIX):
            name = f"{CHANNEL_PREFIX}{name}"
        normalized.append(name)
    return list(dict.fromkeys(normalized))


class ClientConfig(BaseModel):
    """Settings for one server connection.

    Attributes:
        host: Server host name.
        port: Server TCP port.
        nick: Nickname requested at registration.
        realname: Real name sent with USER.
        channels: Channels joined once registration completes.
        quit_reason: Reason sent with QUIT on disconnect.
        max_nick_attempts: NICK retries after a collision before giving up.
        connect_timeout: Seconds allowed for the TCP connect.
        max_line_bytes: Largest partial line buffered before failing.
        echo_own_messages: Emit a local message event for lines we send.
    """

    host: str = Field(default=IRC_DEFAULT_HOST, min_length=1)
    port: int = Field(default=IRC_DEFAULT_PORT, ge=1, le=65535)
    nick: str = Field(min_length=1, max_length=64)
    realname: str = Field(default=IRC_DEFAULT_REALNAME, min_length=1)
    channels: list[str] = Field(default_factory=list)
    quit_reason: str = IRC_QUIT_REASON
    max_nick_attempts: int = Field(default=MAX_NICK_ATTEMPTS, ge=0)
    connect_timeout: float = Field(default=IRC_CONNECT_TIMEOUT, gt=0)
    max_line_bytes: int = Field(default=IRC_MAX_LINE_BYTES, ge=512)
    echo_own_messages: bool = False

    @field_validator("host", "realname", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("nick", mode="before")
    @classmethod
    def validate_nick(cls, v: Any) -> str:
        """Nicknames are a single token: no spaces, no leading ':' or '#'."""
        if not isinstance(v, str):
            raise ValueError("nick must be a string")
        nick = v.strip()
        if not nick:
            raise ValueError("nick must not be empty")
        if any(ch.isspace() for ch in nick):
            raise ValueError("nick must not contain whitespace")
        if nick[0] in (":", CHANNEL_PREFIX):
            raise ValueError("nick must not start with ':' or '#'")
        return nick

    @field_validator("channels", mode="before")
    @classmethod
    def validate_channels(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            v = v.split(",")
        if not isinstance(v, list | tuple):
            raise ValueError("channels must be a list")
        return normalize_channels([c for c in v if isinstance(c, str)])

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ClientConfig:
        return cls.model_validate(dict(data))

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()
