"""Event-oriented logger used across the client."""

from __future__ import annotations

import logging

from ..logging_config import debug_enabled
from .event_catalog import EVENT_TEMPLATES

# Width of the "[nick #channel]" column and of the debug event-name column.
PREFIX_WIDTH = 24
EVENT_NAME_WIDTH = 32


class ClientLogger:
    """Logs named ``(domain, action)`` events through a stdlib logger.

    The message text is rendered from the event template catalog unless
    ``human`` is given. ``nick`` and ``channel`` keyword arguments become the
    line prefix; with ``DEBUG`` set, the event name and all remaining keyword
    arguments are appended as well. Records propagate to the root logger,
    which ``LoggerConfigurator`` decorates.
    """

    def __init__(self, name: str = "relaychat") -> None:
        self.logger = logging.getLogger(name)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        if human is None:
            human = self._render(domain, action, kwargs)
        nick = kwargs.pop("nick", None)
        channel = kwargs.pop("channel", None)
        prefix = self._prefix(
            nick if isinstance(nick, str) else None,
            channel if isinstance(channel, str) else None,
        )
        if debug_enabled():
            msg = self._debug_line(f"{domain}_{action}".lower(), prefix, human, kwargs)
        else:
            msg = f"{prefix} {human}"
        self.logger.log(level, msg, exc_info=exc_info)

    @staticmethod
    def _render(domain: str, action: str, kwargs: dict[str, object]) -> str:
        template = EVENT_TEMPLATES.get((domain, action))
        if template is None:
            kwargs.setdefault("derived", True)
            return f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}"
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError, ValueError):
            return template

    @staticmethod
    def _prefix(nick: str | None, channel: str | None) -> str:
        label = f"{nick or 'system'} {channel}" if channel else nick or "system"
        return f"[{label.ljust(PREFIX_WIDTH)[:PREFIX_WIDTH]}]"

    @staticmethod
    def _debug_line(
        event_name: str, prefix: str, human: str, context: dict[str, object]
    ) -> str:
        if len(event_name) > EVENT_NAME_WIDTH:
            event_name = event_name[: EVENT_NAME_WIDTH - 1] + "…"
        line = f"{event_name.ljust(EVENT_NAME_WIDTH)} {prefix} {human}"
        if context:
            line += " (" + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"
        return line


logger = ClientLogger()
