"""Cancellable, re-schedulable delayed actions on the asyncio event loop."""

import asyncio
import logging
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

Action = Callable[[], Coroutine[Any, Any, None]]


class Debouncer:
    """
    Run an async action once input has been quiet for ``delay`` seconds.

    Scheduling again before the delay elapses cancels the earlier timer, so
    at most one timer is live at a time. Actions that already started are
    left running (they are only cancelled by ``close``).
    """

    def __init__(self, name: str, delay: float) -> None:
        self._name = name
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def scheduled(self) -> bool:
        return self._handle is not None

    @property
    def busy(self) -> bool:
        """True while a timer is pending or a started action is still running."""
        return self._handle is not None or bool(self._tasks)

    def schedule(self, action: Action) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire, action)
        logger.debug("Debounce scheduled", extra={"channel": self._name, "delay": self._delay})

    def cancel(self) -> bool:
        """Drop the pending timer, if any. Returns whether one was dropped."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        logger.debug("Debounce cancelled", extra={"channel": self._name})
        return True

    def close(self) -> None:
        """Cancel the pending timer and every action still in flight."""
        self.cancel()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    async def join(self) -> None:
        """Wait for actions that already started."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _fire(self, action: Action) -> None:
        self._handle = None
        task = asyncio.create_task(action(), name=f"{self._name}-lookup")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
