"""Timer-based coalescing of rapidly changing search text."""

from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger()

DEFAULT_QUIET_INTERVAL_SECONDS = 0.4


class SearchDebouncer:
    """Deliver text to subscribers once it has been stable for ``interval`` seconds.

    Each ``on_input`` call cancels the pending delivery, if any, and schedules
    a new one. Only the last value of a burst is ever delivered. Must be used
    from a running event loop; callbacks run on that loop. A callback that
    returns an awaitable is scheduled as a task.
    """

    def __init__(self, interval: float = DEFAULT_QUIET_INTERVAL_SECONDS) -> None:
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.interval = interval
        self._subscribers: list[Callable[[str], object]] = []
        self._handle: asyncio.TimerHandle | None = None
        self._pending_text: str | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def subscribe(self, callback: Callable[[str], object]) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def on_input(self, text: str) -> None:
        self.cancel()
        self._pending_text = text
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.interval, self._fire)

    def cancel(self) -> None:
        """Drop the pending delivery without delivering it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending_text = None

    def flush(self) -> None:
        """Deliver the pending text immediately, if there is one."""
        if self._handle is not None:
            self._handle.cancel()
            self._fire()

    def _fire(self) -> None:
        text = self._pending_text
        self._handle = None
        self._pending_text = None
        if text is None:
            return
        log.debug("search_text_stable", length=len(text))
        for callback in list(self._subscribers):
            result = callback(text)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
