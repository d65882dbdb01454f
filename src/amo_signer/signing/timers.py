"""Cancellable timer service used by the status poller."""

import asyncio
from typing import Any, Callable, Optional, Protocol


class TimerService(Protocol):
    """Schedules callbacks and cancels them by handle."""

    def after(self, delay: float, callback: Callable[[], None]) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...


class LoopTimers:
    """
    TimerService on top of the running asyncio loop.

    Callbacks with delay <= 0 go through call_soon so that callbacks
    registered in the same tick run in registration order.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def after(self, delay: float, callback: Callable[[], None]) -> asyncio.Handle:
        loop = self._get_loop()
        if delay <= 0:
            return loop.call_soon(callback)
        return loop.call_later(delay, callback)

    def cancel(self, handle: asyncio.Handle) -> None:
        handle.cancel()
