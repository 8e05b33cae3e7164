"""Analyze command: one detection-and-resolution pass over captured output.

Reads a file (or stdin), finds errors with the active pattern set and
prints ranked resolutions for each.

Exit codes:
    0: no errors detected
    1: one or more errors detected
    2: input or configuration unusable
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import typer

from shellsense.session import ErrorAnalyzer

from ..helpers import (
    ErrorMessages,
    configure_global_logging,
    is_quiet,
    is_verbose,
    load_config,
    load_pattern_files,
)
from ..output import console, output_error, print_error_resolution, print_resolutions_json


def analyze(
    input_file: Path | None = typer.Argument(
        None,
        help="File containing shell output. Reads stdin when omitted or '-'.",
        show_default=False,
    ),
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
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output results as JSON",
    ),
) -> None:
    """Detect errors in captured output and suggest resolutions."""
    configure_global_logging(console)
    config = load_config(config_file, console)

    try:
        if input_file is None or str(input_file) == "-":
            text = sys.stdin.read()
        else:
            text = input_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        output_error(f"{ErrorMessages.INPUT_READ_ERROR}: {e}", json_output=json_output)
        raise typer.Exit(2) from None

    analyzer = ErrorAnalyzer.from_config(config, extra_sources=load_pattern_files(pattern_files))
    results = asyncio.run(analyzer.analyze_text(text))

    if json_output:
        print_resolutions_json(results)
    elif not results:
        if not is_quiet():
            console.print("[green]No errors detected.[/green]")
    else:
        for result in results:
            print_error_resolution(result, verbose=is_verbose())
        if not is_quiet():
            console.print(f"\n[bold]{len(results)}[/bold] error(s) detected.")

    if results:
        raise typer.Exit(1)
