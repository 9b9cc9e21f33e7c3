"""Outward-facing event sink with explicit listener registration."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

from ..logs.logger import logger
from .models import IRCEvent

EventListener = Callable[[IRCEvent], Any]


class EventSink:
    """Fans every event out to the registered listeners, synchronously.

    Listeners run in registration order. A listener that returns an
    awaitable has it scheduled on the running loop. Listener failures are
    logged and never propagate back into the read path.
    """

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []
        self._pending: set[asyncio.Task[Any]] = set()

    def subscribe(self, listener: EventListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, event: IRCEvent) -> None:
        # Copy: a listener may unsubscribe itself while being called.
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    self._schedule(result)
            except Exception as e:  # noqa: BLE001
                logger.log_event(
                    "events",
                    "listener_error",
                    level=logging.ERROR,
                    error=str(e),
                    error_type=type(e).__name__,
                    event_type=type(event).__name__,
                )

    def _schedule(self, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running loop; close the coroutine so it is not left unawaited.
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.log_event("events", "listener_no_loop", level=logging.WARNING)
            return
        task = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.log_event(
                "events",
                "listener_error",
                level=logging.ERROR,
                error=str(exc),
                error_type=type(exc).__name__,
                event_type="async",
            )

    async def drain(self) -> None:
        """Wait for scheduled asynchronous listeners to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
