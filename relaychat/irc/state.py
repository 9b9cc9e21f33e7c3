"""In-memory channel state owned by a single connection.

Only the connection's read path and its public command methods touch this
store, and both run on the same event loop, so no locking is involved.
"""

from __future__ import annotations

from .models import ChannelInfo


class ChannelStateStore:
    """Joined channels, their topics and their rosters.

    Joined channels keep insertion order so snapshots list them in the order
    they were joined.
    """

    def __init__(self) -> None:
        self._joined: dict[str, None] = {}
        self.topics: dict[str, str] = {}
        self.rosters: dict[str, set[str]] = {}
        self._complete: set[str] = set()

    @property
    def channels(self) -> tuple[str, ...]:
        return tuple(self._joined)

    def is_joined(self, channel: str) -> bool:
        return channel in self._joined

    def add_channel(self, channel: str) -> None:
        self._joined.setdefault(channel, None)
        self.rosters.setdefault(channel, set())

    def remove_channel(self, channel: str) -> None:
        """Forget a channel entirely: membership, roster, topic."""
        self._joined.pop(channel, None)
        self.rosters.pop(channel, None)
        self.topics.pop(channel, None)
        self._complete.discard(channel)

    def add_member(self, channel: str, nick: str) -> None:
        self.rosters.setdefault(channel, set()).add(nick)

    def add_members(self, channel: str, nicks: list[str]) -> None:
        self.rosters.setdefault(channel, set()).update(nicks)

    def remove_member(self, channel: str, nick: str) -> bool:
        members = self.rosters.get(channel)
        if members is None or nick not in members:
            return False
        members.discard(nick)
        return True

    def remove_member_everywhere(self, nick: str) -> list[str]:
        """Drop ``nick`` from every roster; return the affected channels."""
        affected = [ch for ch, members in self.rosters.items() if nick in members]
        for channel in affected:
            self.rosters[channel].discard(nick)
        return affected

    def rename_member(self, old_nick: str, new_nick: str) -> list[str]:
        """Rename ``old_nick`` in place in every roster that holds it."""
        affected = [ch for ch, members in self.rosters.items() if old_nick in members]
        for channel in affected:
            members = self.rosters[channel]
            members.discard(old_nick)
            members.add(new_nick)
        return affected

    def set_topic(self, channel: str, topic: str) -> None:
        self.topics[channel] = topic

    def mark_roster_complete(self, channel: str) -> None:
        self._complete.add(channel)

    def channel_info(self, channel: str) -> ChannelInfo:
        return ChannelInfo(
            name=channel,
            topic=self.topics.get(channel),
            users=tuple(sorted(self.rosters.get(channel, ()))),
            roster_complete=channel in self._complete,
        )

    def channel_infos(self) -> list[ChannelInfo]:
        return [self.channel_info(ch) for ch in self._joined]

    def clear(self) -> None:
        self._joined.clear()
        self.topics.clear()
        self.rosters.clear()
        self._complete.clear()
