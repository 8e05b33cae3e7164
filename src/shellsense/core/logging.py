"""Structured logging infrastructure for ShellSense.

Provides structured logging using structlog with ShellSense-specific context
such as session_id, pass_id and component names. Supports console and JSON
output, optionally to a rotating (gzip-compressed) log file.

Example usage:
    from shellsense.core.logging import get_logger, configure_logging, with_context

    # Configure once at startup
    configure_logging(level="DEBUG", format="console")

    # Get a component-specific logger
    logger = get_logger("session")

    # Log with auto-context
    logger.info("session.spawned", pid=1234)

    # Use a session context for automatic correlation
    ctx = SessionContext(session_id="term-1")
    with with_context(ctx):
        logger.info("analysis.started")  # Automatically includes session_id
"""

from __future__ import annotations

import gzip
import logging
import os
import shutil
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Field names whose values never reach a log sink
SENSITIVE_PATTERNS = frozenset({
    "api_key",
    "apikey",
    "api-key",
    "token",
    "secret",
    "password",
    "credential",
    "auth",
    "bearer",
    "authorization",
})

_current_log_path: Path | None = None


def get_current_log_path() -> Path | None:
    """Get the currently configured log file path, if file logging is enabled."""
    return _current_log_path


class CompressingRotatingFileHandler(RotatingFileHandler):
    """Rotating file handler that gzips rotated log files.

    ``shellsense.log.1`` becomes ``shellsense.log.1.gz`` on rotation; older
    archives are shifted up and anything beyond ``backupCount`` is removed.
    """

    def __init__(
        self,
        filename: str | Path,
        mode: str = "a",
        maxBytes: int = 0,
        backupCount: int = 0,
        encoding: str | None = None,
        delay: bool = False,
        compress_level: int = 9,
    ) -> None:
        self.compress_level = compress_level
        super().__init__(
            filename,
            mode=mode,
            maxBytes=maxBytes,
            backupCount=backupCount,
            encoding=encoding,
            delay=delay,
        )

    def doRollover(self) -> None:
        """Rotate the current file into ``.1.gz`` and shift older archives."""
        if self.stream:
            self.stream.close()
            self.stream = None  # type: ignore[assignment]

        for i in range(self.backupCount - 1, 0, -1):
            src = f"{self.baseFilename}.{i}.gz"
            dst = f"{self.baseFilename}.{i + 1}.gz"
            if os.path.exists(src):
                if os.path.exists(dst):
                    os.remove(dst)
                os.rename(src, dst)

        if os.path.exists(self.baseFilename):
            compressed_path = f"{self.baseFilename}.1.gz"
            try:
                with (
                    open(self.baseFilename, "rb") as f_in,
                    gzip.open(compressed_path, "wb", compresslevel=self.compress_level) as f_out,
                ):
                    shutil.copyfileobj(f_in, f_out)
                os.remove(self.baseFilename)
            except OSError:
                # Keep an uncompressed backup rather than losing the file
                if os.path.exists(compressed_path):
                    os.remove(compressed_path)
                os.replace(self.baseFilename, f"{self.baseFilename}.1")

        for i in range(self.backupCount + 1, self.backupCount + 10):
            for old_file in (f"{self.baseFilename}.{i}.gz", f"{self.baseFilename}.{i}"):
                if os.path.exists(old_file):
                    os.remove(old_file)

        if not self.delay:
            self.stream = self._open()


@dataclass(frozen=True)
class SessionContext:
    """Immutable correlation context for log entries.

    Attributes:
        session_id: Identifier of the shell session producing the events.
        pass_id: Identifier of the current analysis pass (None outside a pass).
        component: Component name for the current operation.
    """

    session_id: str
    pass_id: str | None = None
    component: str = "unknown"
    trace_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    def with_pass(self, pass_id: str | None = None) -> SessionContext:
        """Return a copy scoped to one analysis pass."""
        return replace(self, pass_id=pass_id or uuid.uuid4().hex[:8])

    def to_dict(self) -> dict[str, Any]:
        """Context fields for log entries (None values omitted)."""
        result: dict[str, Any] = {
            "session_id": self.session_id,
            "trace_id": self.trace_id,
            "component": self.component,
        }
        if self.pass_id is not None:
            result["pass_id"] = self.pass_id
        return result


# ContextVar keeps concurrent sessions' contexts isolated across tasks
_current_context: ContextVar[SessionContext | None] = ContextVar(
    "shellsense_context", default=None
)


def get_current_context() -> SessionContext | None:
    """Get the active SessionContext, if any."""
    return _current_context.get()


@contextmanager
def with_context(ctx: SessionContext) -> Iterator[SessionContext]:
    """Set a SessionContext for the duration of a block.

    Example:
        with with_context(SessionContext(session_id="term-1")):
            logger.info("analysis.started")  # includes session_id
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _sanitize_value(key: str, value: Any) -> Any:
    key_lower = key.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in key_lower:
            return "[REDACTED]"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that redacts credential-looking fields."""
    sanitized: EventDict = {}
    for key, value in event_dict.items():
        if isinstance(value, dict):
            sanitized[key] = {k: _sanitize_value(k, v) for k, v in value.items()}
        else:
            sanitized[key] = _sanitize_value(key, value)
    return sanitized


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that merges the active SessionContext.

    Explicitly bound keys take precedence over context fields.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            event_dict.setdefault(key, value)
    return event_dict


class ShellSenseLogger:
    """Component logger wrapping structlog.

    The underlying structlog logger is fetched lazily on every call so that
    loggers created at import time honour a later ``configure_logging()``.
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> ShellSenseLogger:
        """Return a new logger with additional bound context."""
        new_logger = ShellSenseLogger.__new__(ShellSenseLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an error with traceback; call from inside an except block."""
        self._get_logger().exception(event, **kw)


def _build_processors(
    renderer: Processor,
    include_timestamps: bool,
    include_context: bool,
) -> list[Processor]:
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _sanitize_event_dict,
    ]
    if include_context:
        processors.append(_add_context)
    if include_timestamps:
        processors.append(_add_timestamp)
    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ])
    return processors


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: Literal["json", "console", "both"] = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 50,
    backup_count: int = 5,
    include_timestamps: bool = True,
    include_context: bool = True,
    compress_logs: bool = True,
) -> None:
    """Configure ShellSense structured logging.

    Call once at application startup.

    Args:
        level: Minimum log level to capture.
        format: "console" for human-readable stderr output, "json" for
            structured output (to file_path, or stdout when no file is given),
            "both" for console on stderr plus JSON to file_path.
        file_path: Log file path. Required when format="both".
        max_file_size_mb: Size threshold for rotation.
        backup_count: Number of rotated files to keep.
        include_timestamps: Add ISO8601 UTC timestamps.
        include_context: Merge SessionContext fields into entries.
        compress_logs: Gzip rotated files.

    Raises:
        ValueError: If format="both" but file_path is not provided.
    """
    global _current_log_path

    if format == "both" and file_path is None:
        raise ValueError("file_path is required when format='both'")

    log_level = getattr(logging, level)
    handlers: list[logging.Handler] = []

    if format in ("console", "both"):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        handlers.append(console_handler)

    if format in ("json", "both"):
        if file_path:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            _current_log_path = file_path
            handler_cls = CompressingRotatingFileHandler if compress_logs else RotatingFileHandler
            file_handler: logging.Handler = handler_cls(
                file_path,
                maxBytes=max_file_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            handlers.append(file_handler)
        else:
            json_handler = logging.StreamHandler(sys.stdout)
            json_handler.setLevel(log_level)
            handlers.append(json_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)

    renderer: Processor
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    # cache_logger_on_first_use=False so module-level loggers follow reconfiguration
    structlog.configure(
        processors=_build_processors(renderer, include_timestamps, include_context),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> ShellSenseLogger:
    """Get a ShellSense logger for a component.

    Example:
        logger = get_logger("dispatcher")
        logger.warning("provider.failed", provider="rca", error="boom")
    """
    return ShellSenseLogger(component, **initial_context)


__all__ = [
    "CompressingRotatingFileHandler",
    "SENSITIVE_PATTERNS",
    "SessionContext",
    "ShellSenseLogger",
    "configure_logging",
    "get_current_context",
    "get_current_log_path",
    "get_logger",
    "with_context",
]
