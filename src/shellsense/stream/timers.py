"""Cancellable timers bound to the running event loop.

Each session owns its timers explicitly; teardown cancels them so no
callback fires after the session is gone.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from shellsense.core.logging import get_logger

_logger = get_logger("timers")


class CancellableTimer:
    """A one-shot timer that can be (re)started and cancelled.

    Starting an armed timer re-arms it, so the same object serves as a
    debounce timer: every ``start()`` pushes the deadline back.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[], None],
        *,
        name: str = "timer",
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.delay = delay
        self.name = name
        self._callback = callback
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._closed = False

    @property
    def active(self) -> bool:
        """True while the timer is armed and has not fired."""
        return self._handle is not None

    def start(self, delay: float | None = None) -> None:
        """Arm the timer, replacing any pending deadline."""
        if self._closed:
            return
        if self._handle is not None:
            self._handle.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay if delay is None else delay, self._fire)

    def cancel(self) -> None:
        """Disarm the timer. Safe to call when it is not armed."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def close(self) -> None:
        """Cancel and refuse any later ``start()``."""
        self.cancel()
        self._closed = True

    def _fire(self) -> None:
        self._handle = None
        if self._closed:
            return
        try:
            self._callback()
        except Exception:
            _logger.exception("timer.callback_failed", timer=self.name)


__all__ = ["CancellableTimer"]
