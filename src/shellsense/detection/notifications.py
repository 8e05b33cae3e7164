"""Time-boxed de-duplication of error notifications."""

from __future__ import annotations

import time
from collections.abc import Callable

from shellsense.core.constants import NOTIFICATION_DEDUP_SECONDS
from shellsense.detection.models import DetectedError


class NotificationDeduper:
    """Suppresses repeat notifications for the same (type, message).

    An entry expires ``expiry_seconds`` after it was first notified; the
    next identical error after that notifies again.
    """

    def __init__(
        self,
        expiry_seconds: float = NOTIFICATION_DEDUP_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.expiry_seconds = expiry_seconds
        self._clock = clock
        self._seen: dict[tuple[str, str], float] = {}

    def __len__(self) -> int:
        self._expire()
        return len(self._seen)

    def should_notify(self, error: DetectedError) -> bool:
        """Record ``error`` and report whether it is new in the window."""
        self._expire()
        key = error.key
        if key in self._seen:
            return False
        self._seen[key] = self._clock()
        return True

    def filter(self, errors: list[DetectedError]) -> list[DetectedError]:
        return [e for e in errors if self.should_notify(e)]

    def clear(self) -> None:
        self._seen.clear()

    def _expire(self) -> None:
        now = self._clock()
        expired = [k for k, at in self._seen.items() if now - at >= self.expiry_seconds]
        for key in expired:
            del self._seen[key]


__all__ = ["NotificationDeduper"]
