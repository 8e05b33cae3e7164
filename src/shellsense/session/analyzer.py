"""Detection-and-resolution pipeline plus per-session pass scheduling.

ErrorAnalyzer wires the pattern matcher, aggregator and dispatcher together
and can be shared by any number of sessions. AnalysisScheduler belongs to
one session: it collects lines, waits for output to go quiet (debounce),
runs at most one pass at a time, and hands new resolutions to listeners.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from shellsense.core.config import ShellSenseConfig
from shellsense.core.constants import DEBOUNCE_DELAY_SECONDS, NOTIFICATION_DEDUP_SECONDS
from shellsense.core.logging import SessionContext, get_logger, with_context
from shellsense.core.task_utils import spawn_logged
from shellsense.detection import (
    DetectedError,
    ErrorAggregator,
    NotificationDeduper,
    PatternMatcher,
    PatternSource,
    load_patterns,
)
from shellsense.resolution import ErrorResolution, ResolutionDispatcher, create_default_registry
from shellsense.stream.timers import CancellableTimer

_logger = get_logger("analyzer")

ResolutionListener = Callable[[ErrorResolution], None]


class ErrorAnalyzer:
    """Stateless pipeline: lines in, ranked ErrorResolutions out."""

    def __init__(self, aggregator: ErrorAggregator, dispatcher: ResolutionDispatcher) -> None:
        self.aggregator = aggregator
        self.dispatcher = dispatcher

    @classmethod
    def from_config(
        cls,
        config: ShellSenseConfig | None = None,
        *,
        completion_clients: Mapping[str, Any] | None = None,
        extra_sources: Sequence[PatternSource] = (),
    ) -> ErrorAnalyzer:
        """Build the default pipeline from configuration."""
        config = config or ShellSenseConfig()
        patterns = load_patterns(config.patterns, extra_sources)
        matcher = PatternMatcher(
            patterns,
            case_insensitive=config.patterns.case_insensitive,
            max_context_lines=config.patterns.max_context_lines,
        )
        registry = create_default_registry(config.resolution, completion_clients)
        dispatcher = ResolutionDispatcher(
            registry,
            max_per_error=config.resolution.max_per_error,
            timeout=config.resolution.provider_timeout_seconds,
        )
        return cls(ErrorAggregator(matcher), dispatcher)

    def detect(self, output: str | Sequence[str]) -> list[DetectedError]:
        return self.aggregator.analyze(output)

    async def resolve(self, errors: Sequence[DetectedError]) -> list[ErrorResolution]:
        return await self.dispatcher.resolve_all(errors)

    async def analyze_text(self, text: str) -> list[ErrorResolution]:
        """One-shot analysis of pasted or captured output."""
        return await self.resolve(self.detect(text))


class AnalysisScheduler:
    """Debounced, single-flight analysis for one session.

    Lines fed while a pass runs wait for the next window. Once closed, no
    listener is called again, even for a pass that was already running.
    """

    def __init__(
        self,
        analyzer: ErrorAnalyzer,
        *,
        session_id: str,
        debounce_seconds: float = DEBOUNCE_DELAY_SECONDS,
        dedup_seconds: float = NOTIFICATION_DEDUP_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.analyzer = analyzer
        self.session_id = session_id
        self.deduper = NotificationDeduper(dedup_seconds, clock=clock)
        self.enabled = True
        self._pending: list[str] = []
        self._listeners: list[ResolutionListener] = []
        self._timer = CancellableTimer(debounce_seconds, self._on_quiet, name="debounce")
        self._task: asyncio.Task[Any] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._closed = False
        self.passes = 0

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_lines(self) -> int:
        return len(self._pending)

    def add_listener(self, listener: ResolutionListener) -> None:
        self._listeners.append(listener)

    def feed(self, lines: Sequence[str]) -> None:
        """Queue lines and restart the quiet-period timer."""
        if self._closed or not self.enabled or not lines:
            return
        self._pending.extend(lines)
        self._timer.start()

    def pause(self) -> None:
        self.enabled = False
        self._timer.cancel()
        self._pending.clear()

    def resume(self) -> None:
        self.enabled = True

    def clear_notifications(self) -> None:
        self.deduper.clear()

    async def flush(self) -> list[ErrorResolution]:
        """Run a pass over pending lines now, after any running pass."""
        while self.busy:
            await asyncio.gather(self._task, return_exceptions=True)
        self._timer.cancel()
        if self._closed:
            return []
        self._task = spawn_logged(
            self._pass_then_reschedule(),
            _logger,
            "analysis.pass_failed",
            name=f"analysis-{self.session_id}-flush",
            tracked=self._tasks,
        )
        try:
            return await self._task
        except asyncio.CancelledError:
            if self._closed:
                return []
            raise
        except Exception:
            return []

    async def close(self) -> None:
        """Cancel the timer and any in-flight pass; suppress late results."""
        self._closed = True
        self._timer.close()
        self._pending.clear()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _on_quiet(self) -> None:
        if self._closed or self.busy or not self._pending:
            return
        self._task = spawn_logged(
            self._pass_then_reschedule(),
            _logger,
            "analysis.pass_failed",
            name=f"analysis-{self.session_id}",
            tracked=self._tasks,
        )

    async def _pass_then_reschedule(self) -> list[ErrorResolution]:
        resolutions = await self._run_pass()
        if self._pending and not self._closed:
            self._timer.start()
        return resolutions

    async def _run_pass(self) -> list[ErrorResolution]:
        if not self._pending or self._closed:
            return []
        lines, self._pending = self._pending, []
        self.passes += 1
        ctx = SessionContext(session_id=self.session_id, component="analyzer").with_pass()
        with with_context(ctx):
            errors = self.analyzer.detect(lines)
            fresh = self.deduper.filter(errors)
            if not fresh:
                return []
            _logger.info("analysis.errors_found", detected=len(errors), new=len(fresh))
            resolutions = await self.analyzer.resolve(fresh)
            if self._closed:
                return []
            for resolution in resolutions:
                self._deliver(resolution)
            return resolutions

    def _deliver(self, resolution: ErrorResolution) -> None:
        for listener in self._listeners:
            try:
                listener(resolution)
            except Exception:
                _logger.exception("analysis.listener_failed", error_type=resolution.error.type)


__all__ = ["AnalysisScheduler", "ErrorAnalyzer", "ResolutionListener"]
