"""
Trailing-edge debounce timer on the running asyncio event loop.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Fires ``callback`` once after ``delay`` seconds with no further triggers.

    Every ``trigger()`` cancels the pending timer before scheduling a new
    one, so the timer can never fire twice for one window. ``cancel()`` is
    unconditional and idempotent.
    """

    def __init__(self, delay: float, callback: Callable[[], None], name: str = "debounce"):
        self.delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self.name = name

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        """(Re)start the window."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)
        logger.debug(f"[Debouncer] {self.name} window restarted ({self.delay}s)")

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        logger.debug(f"[Debouncer] {self.name} window elapsed")
        self._callback()
