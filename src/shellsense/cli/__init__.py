"""ShellSense CLI.

Package structure:
    cli/
    ├── __init__.py       # app assembly and global options
    ├── helpers.py        # output level, logging options, config loading
    ├── output.py         # Rich formatting
    └── commands/
        ├── analyze.py    # analyze command
        ├── patterns.py   # patterns command
        └── shell.py      # shell command
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from shellsense import __version__

from . import helpers as helpers
from .commands import analyze, patterns, shell
from .helpers import (
    OutputLevel,
    configure_global_logging,
    set_log_file,
    set_log_format,
    set_log_level,
    set_output_level,
)
from .output import console

app = typer.Typer(
    name="shellsense",
    help="Shell error detection and resolution",
    add_completion=False,
)


# =============================================================================
# Global option callbacks
# =============================================================================


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"ShellSense v{__version__}")
        raise typer.Exit()


def verbose_callback(value: bool) -> None:
    if value:
        set_output_level(OutputLevel.VERBOSE)


def quiet_callback(value: bool) -> None:
    if value:
        set_output_level(OutputLevel.QUIET)


def log_level_callback(value: str | None) -> str | None:
    if value:
        set_log_level(value)
    return value


def log_file_callback(value: Path | None) -> Path | None:
    if value:
        set_log_file(value)
    return value


def log_format_callback(value: str | None) -> str | None:
    if value:
        set_log_format(value)
    return value


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        callback=verbose_callback,
        is_eager=True,
        help="Show error context and the best resolution in full",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        callback=quiet_callback,
        is_eager=True,
        help="Show minimal output",
    ),
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            callback=log_level_callback,
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="SHELLSENSE_LOG_LEVEL",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            callback=log_file_callback,
            help="Path for log file output",
            envvar="SHELLSENSE_LOG_FILE",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            callback=log_format_callback,
            help="Log format: json, console, or both",
            envvar="SHELLSENSE_LOG_FORMAT",
        ),
    ] = None,
) -> None:
    """ShellSense - detect errors in shell output and suggest fixes."""
    configure_global_logging(console)


app.command()(analyze)
app.command()(patterns)
app.command()(shell)


__all__ = ["app", "helpers", "main"]
