"""Shared utilities for ShellSense CLI commands.

Holds the global output level and logging options set by the root
callback, plus config and pattern-file loading used by several commands.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

import typer
import yaml
from rich.console import Console

from shellsense.core.config import ShellSenseConfig
from shellsense.core.errors import ConfigFault
from shellsense.core.logging import configure_logging, get_logger
from shellsense.detection import PatternSource

_logger = get_logger("cli")


class ErrorMessages:
    """User-facing error strings shared by commands."""

    CONFIG_LOAD_ERROR = "Error loading config"
    PATTERNS_LOAD_ERROR = "Error loading patterns"
    INPUT_READ_ERROR = "Cannot read input"


# =============================================================================
# Output level management
# =============================================================================


class OutputLevel(str, Enum):
    """Output verbosity level."""

    QUIET = "quiet"  # errors only
    NORMAL = "normal"
    VERBOSE = "verbose"  # adds context and code snippets


_output_level: OutputLevel = OutputLevel.NORMAL


def get_output_level() -> OutputLevel:
    return _output_level


def set_output_level(level: OutputLevel) -> None:
    global _output_level
    _output_level = level


def is_verbose() -> bool:
    return _output_level == OutputLevel.VERBOSE


def is_quiet() -> bool:
    return _output_level == OutputLevel.QUIET


# =============================================================================
# Logging configuration
# =============================================================================


@dataclass
class CliLoggingConfig:
    """Logging options collected from the global CLI flags."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    file: Path | None = None
    format: Literal["json", "console", "both"] = "console"
    configured: bool = False
    # True once any --log-* option (or its env var) was given
    explicit: bool = False


_log_config = CliLoggingConfig()


def get_log_level() -> str:
    return _log_config.level


def set_log_level(level: str) -> None:
    """Set the log level (DEBUG, INFO, WARNING, ERROR)."""
    _log_config.level = level.upper()  # type: ignore[assignment]
    _log_config.explicit = True


def get_log_file() -> Path | None:
    return _log_config.file


def set_log_file(path: Path | None) -> None:
    """Set the log file path.

    A log file switches the default format to JSON so structured entries
    land in the file while Rich output stays on the terminal.
    """
    _log_config.file = path
    _log_config.explicit = True
    if path and _log_config.format == "console":
        _log_config.format = "json"


def get_log_format() -> str:
    return _log_config.format


def set_log_format(fmt: str) -> None:
    _log_config.format = fmt  # type: ignore[assignment]
    _log_config.explicit = True


def configure_global_logging(console: Console) -> None:
    """Configure logging from the global CLI options, once per process.

    Raises:
        typer.Exit: If the logging options are inconsistent.
    """
    if _log_config.configured:
        return
    try:
        configure_logging(
            level=_log_config.level,
            format=_log_config.format,
            file_path=_log_config.file,
        )
        _log_config.configured = True
    except (ValueError, AttributeError) as e:
        console.print(f"[red]Logging configuration error:[/red] {e}")
        raise typer.Exit(1) from None


def reset_logging_state() -> None:
    """Reset the CLI logging options (used by tests)."""
    global _log_config
    _log_config = CliLoggingConfig()


# =============================================================================
# Config and pattern files
# =============================================================================


def load_config(path: Path | None, console: Console) -> ShellSenseConfig:
    """Load a config file, or the defaults when no path is given.

    The file's ``logging`` section replaces the logging setup unless a
    --log-* option was given on the command line.

    Raises:
        typer.Exit: If the file is unusable.
    """
    if path is None:
        return ShellSenseConfig()
    try:
        config = ShellSenseConfig.from_yaml(path)
    except ConfigFault as e:
        console.print(f"[red]{ErrorMessages.CONFIG_LOAD_ERROR}:[/red] {e}")
        raise typer.Exit(2) from None
    if not _log_config.explicit and "logging" in config.model_fields_set:
        log = config.logging
        configure_logging(
            level=log.level,
            format=log.format,
            file_path=log.file_path,
            max_file_size_mb=log.max_file_size_mb,
            backup_count=log.backup_count,
        )
        _log_config.configured = True
    return config


def load_pattern_files(paths: list[Path] | None) -> list[PatternSource]:
    """Read pattern files into sources, in the order given.

    Unreadable files are logged and skipped; the merge step rejects
    malformed contents.
    """
    sources: list[PatternSource] = []
    for path in paths or []:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            _logger.warning("cli.pattern_file_skipped", path=str(path), error=str(e))
            continue
        sources.append(PatternSource(name=str(path), data=data))
    return sources


__all__ = [
    "CliLoggingConfig",
    "ErrorMessages",
    "OutputLevel",
    "configure_global_logging",
    "get_log_file",
    "get_log_format",
    "get_log_level",
    "get_output_level",
    "is_quiet",
    "is_verbose",
    "load_config",
    "load_pattern_files",
    "reset_logging_state",
    "set_log_file",
    "set_log_format",
    "set_log_level",
    "set_output_level",
]
