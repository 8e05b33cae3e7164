"""Patterns command: show the active error patterns in match order."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from shellsense.detection import load_patterns

from ..helpers import configure_global_logging, load_config, load_pattern_files
from ..output import add_pattern_row, console, create_patterns_table


def patterns(
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
        help="Output patterns as JSON",
    ),
) -> None:
    """List active error patterns, highest priority first."""
    configure_global_logging(console)
    config = load_config(config_file, console)
    active = load_patterns(config.patterns, load_pattern_files(pattern_files))

    if json_output:
        console.print_json(json.dumps([
            p.model_dump(mode="json", by_alias=True) for p in active
        ]))
        return

    table = create_patterns_table()
    for pattern in active:
        add_pattern_row(table, pattern)
    console.print(table)
    console.print(f"\n[bold]{len(active)}[/bold] active pattern(s).")
