"""Shell command: run a monitored shell in the current terminal.

On a TTY the terminal is switched to raw mode and every keystroke goes
through the session's line editor. With piped stdin each input line is
submitted as a command. Detected errors are printed with their ranked
resolutions as analysis passes complete.
"""

from __future__ import annotations

import asyncio
import io
import os
import sys
import termios
import tty
from pathlib import Path

import typer
from rich.console import Console

from shellsense.core.config import ShellSenseConfig
from shellsense.core.errors import StreamFault
from shellsense.core.logging import get_logger
from shellsense.resolution.models import ErrorResolution
from shellsense.session import ErrorAnalyzer, SessionManager, ShellSession

from ..helpers import configure_global_logging, is_verbose, load_config, load_pattern_files
from ..output import console, output_error, print_error_resolution

_logger = get_logger("cli.shell")

_STDIN_READ_BYTES = 1024


def _write_terminal(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def _render(result: ErrorResolution, *, raw: bool) -> str:
    """Render a notification to text; raw terminals need explicit CRs."""
    buffer = io.StringIO()
    width = console.width
    print_error_resolution(
        result,
        verbose=is_verbose(),
        console_instance=Console(file=buffer, width=width, force_terminal=console.is_terminal),
    )
    text = buffer.getvalue()
    return text.replace("\n", "\r\n") if raw else text


async def _pump_stdin(session: ShellSession, *, raw: bool) -> None:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)

    while session.running:
        if raw:
            data = await reader.read(_STDIN_READ_BYTES)
        else:
            data = await reader.readline()
        if not data:
            break
        text = data.decode("utf-8", errors="replace")
        if not raw:
            text = text.rstrip("\r\n") + "\r"
        if not await session.send_input(text):
            break


async def _run_shell(config: ShellSenseConfig, analyzer: ErrorAnalyzer, *, raw: bool) -> int | None:
    manager = SessionManager(analyzer, config.session)
    session = await manager.create(display=_write_terminal, local_echo=raw)

    def _notify(result: ErrorResolution) -> None:
        _write_terminal("\r\n" + _render(result, raw=raw))
        _write_terminal(session.input.prompt().data)

    session.add_resolution_listener(_notify)
    pump = asyncio.create_task(_pump_stdin(session, raw=raw), name="stdin-pump")
    waiter = asyncio.create_task(session.wait(), name="shell-wait")
    try:
        await asyncio.wait({pump, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if pump.done() and session.running:
            # stdin closed; let any queued analysis finish before teardown
            if session.scheduler is not None:
                await session.scheduler.flush()
    finally:
        for task in (pump, waiter):
            task.cancel()
        await asyncio.gather(pump, waiter, return_exceptions=True)
        await manager.close_all()
    return session.exit_code


def shell(
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file",
        exists=True,
        readable=True,
    ),
    pattern_files: list[Path] | None = typer.Option(
        None,
        "--patterns",
        "-p",
        help="Extra YAML pattern file; later files override earlier ones by name",
    ),
    shell_path: str | None = typer.Option(
        None,
        "--shell",
        "-s",
        help="Shell executable to spawn (overrides the config)",
    ),
) -> None:
    """Run a monitored shell and show fixes for errors as they appear."""
    configure_global_logging(console)
    config = load_config(config_file, console)
    if shell_path:
        config = config.model_copy(
            update={"session": config.session.model_copy(update={"shell": shell_path})}
        )
    analyzer = ErrorAnalyzer.from_config(config, extra_sources=load_pattern_files(pattern_files))

    raw = sys.stdin.isatty()
    saved_attrs = None
    if raw:
        fd = sys.stdin.fileno()
        saved_attrs = termios.tcgetattr(fd)
        tty.setraw(fd)
    try:
        exit_code = asyncio.run(_run_shell(config, analyzer, raw=raw))
    except StreamFault as e:
        output_error(str(e))
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        exit_code = 130
    finally:
        if saved_attrs is not None:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, saved_attrs)
            _write_terminal(os.linesep)

    _logger.debug("cli.shell_finished", exit_code=exit_code)
    raise typer.Exit(exit_code or 0)
