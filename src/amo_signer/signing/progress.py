"""Cosmetic progress indicator shown while a signing job is polled."""

import asyncio
import sys
from typing import Optional, TextIO


class PseudoProgress:
    """
    A bouncing bar that says "still working" without knowing how far along.

    Usage:
        progress = PseudoProgress(preamble="Validating add-on ")
        progress.animate()
        ...
        progress.finish()

    Non-TTY outputs get the preamble once and no animation.
    """

    def __init__(
        self,
        preamble: str = "",
        stdout: Optional[TextIO] = None,
        interval: float = 0.1,
        width: int = 20,
    ):
        self.preamble = preamble
        self.stdout = stdout if stdout is not None else sys.stdout
        self.interval = interval
        self.width = width
        self._task: Optional[asyncio.Task] = None
        self._shown = False
        self._position = 0
        self._step = 1

    @property
    def is_tty(self) -> bool:
        isatty = getattr(self.stdout, "isatty", None)
        return bool(isatty and isatty())

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def render(self) -> str:
        """Current frame: preamble plus a bar with one moving block."""
        bar = [" "] * self.width
        bar[self._position] = "▓"
        return f"\r{self.preamble}[{''.join(bar)}]"

    def _advance(self) -> None:
        if not 0 <= self._position + self._step < self.width:
            self._step = -self._step
        self._position += self._step

    async def _tick(self) -> None:
        while True:
            self.stdout.write(self.render())
            self.stdout.flush()
            self._advance()
            await asyncio.sleep(self.interval)

    def animate(self) -> None:
        """Start ticking; must be called from within a running event loop."""
        if self._shown:
            return
        self._shown = True
        if not self.is_tty:
            self.stdout.write(self.preamble)
            self.stdout.flush()
            return
        self._task = asyncio.get_running_loop().create_task(self._tick())

    def finish(self) -> None:
        """Stop ticking and end the line. Safe to call more than once."""
        if not self._shown:
            return
        self._shown = False
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        self.stdout.write("\n")
        self.stdout.flush()
