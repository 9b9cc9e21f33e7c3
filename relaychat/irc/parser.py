"""IRC line parsing utilities.

Lines are scanned by hand rather than with a regex so the difference between
a missing trailing parameter (``None``) and an empty one (``""``) stays
explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..constants import CHANNEL_PREFIX
from ..errors.internal import ParsingError


@dataclass(slots=True)
class IRCMessage:
    raw: str
    prefix: str | None
    command: str
    params: list[str] = field(default_factory=list)
    trailing: str | None = None

    @property
    def nick(self) -> str | None:
        return parse_prefix_nick(self.prefix)

    def param(self, index: int, default: str = "") -> str:
        """Positional parameter at ``index`` or ``default`` when absent."""
        if -len(self.params) <= index < len(self.params):
            return self.params[index]
        return default


def parse_irc_message(raw_line: str) -> IRCMessage:
    """Parse one terminator-stripped line.

    Format: ``[:prefix] COMMAND [params...] [:trailing]``

    Raises:
        ParsingError: for blank lines or a prefix with no command after it.
    """
    rest = raw_line.strip()
    if not rest:
        raise ParsingError("Empty line", data={"raw": raw_line})

    prefix: str | None = None
    if rest.startswith(":"):
        prefix, sep, rest = rest[1:].partition(" ")
        if not prefix or not sep:
            raise ParsingError("Prefix without command", data={"raw": raw_line})

    command: str | None = None
    params: list[str] = []
    trailing: str | None = None
    pos = 0
    length = len(rest)
    while pos < length:
        if rest[pos] == " ":
            pos += 1
            continue
        if command is not None and rest[pos] == ":":
            trailing = rest[pos + 1 :]
            break
        end = rest.find(" ", pos)
        if end == -1:
            end = length
        token = rest[pos:end]
        if command is None:
            command = token.upper()
        else:
            params.append(token)
        pos = end

    if not command:
        raise ParsingError("Missing command", data={"raw": raw_line})

    return IRCMessage(
        raw=raw_line, prefix=prefix, command=command, params=params, trailing=trailing
    )


def parse_prefix_nick(prefix: str | None) -> str | None:
    """Reduce ``nick!user@host`` to ``nick``; a bare prefix is returned as is."""
    if not prefix:
        return None
    nick, _, _ = prefix.partition("!")
    return nick


def normalize_channel_name(name: str) -> str:
    name = name.strip()
    return name if name.startswith(CHANNEL_PREFIX) else f"{CHANNEL_PREFIX}{name}"


def format_line(command: str, *params: str, trailing: str | None = None) -> str:
    """Build an outbound line; ``trailing`` is emitted with its ``:`` marker."""
    parts = [command, *params]
    if trailing is not None:
        parts.append(f":{trailing}")
    return " ".join(parts)
