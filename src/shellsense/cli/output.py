"""Rich output formatting for the ShellSense CLI.

Color schemes, table builders and panels shared by the commands.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Literal

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from shellsense.detection.models import DetectedError, ErrorPattern
from shellsense.resolution.models import ErrorResolution, Resolution, SourceKind

# Commands print through this console; quiet and JSON modes are handled by
# the commands themselves.
console = Console()

# Separate console for diagnostics so JSON on stdout stays parseable
err_console = Console(stderr=True)


class StatusColors:
    """Color mappings for resolution sources and confidence bands."""

    SOURCE_KIND: dict[SourceKind, str] = {
        SourceKind.CODE: "cyan",
        SourceKind.RCA: "magenta",
        SourceKind.WEB: "blue",
        SourceKind.AI: "green",
    }

    # (lower bound, color), highest first
    CONFIDENCE_BANDS: tuple[tuple[int, str], ...] = (
        (80, "green"),
        (60, "yellow"),
        (0, "red"),
    )

    @classmethod
    def get_source_color(cls, kind: SourceKind) -> str:
        return cls.SOURCE_KIND.get(kind, "white")

    @classmethod
    def get_confidence_color(cls, confidence: int) -> str:
        for bound, color in cls.CONFIDENCE_BANDS:
            if confidence >= bound:
                return color
        return "white"


def format_confidence(confidence: int) -> str:
    color = StatusColors.get_confidence_color(confidence)
    return f"[{color}]{confidence}%[/{color}]"


def format_location(file: str | None, line: int | None) -> str:
    if not file:
        return ""
    return f"{file}:{line}" if line is not None else file


# =============================================================================
# Table builders
# =============================================================================


def create_resolutions_table(title: str | None = None) -> Table:
    """Create a styled table for ranked resolutions."""
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("#", justify="right", width=3)
    table.add_column("Confidence", justify="right", width=10)
    table.add_column("Source", width=8)
    table.add_column("Title", no_wrap=False)
    table.add_column("Where", no_wrap=False)
    return table


def create_patterns_table(title: str = "Active Error Patterns") -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Priority", justify="right", width=8)
    table.add_column("Name", style="cyan")
    table.add_column("Type", width=12)
    table.add_column("Group", width=5)
    table.add_column("Regex", no_wrap=False, style="dim")
    return table


def add_resolution_row(table: Table, index: int, resolution: Resolution) -> None:
    color = StatusColors.get_source_color(resolution.source_kind)
    where = resolution.url or format_location(resolution.file, resolution.line)
    table.add_row(
        str(index),
        format_confidence(resolution.confidence),
        f"[{color}]{resolution.source_kind.value}[/{color}]",
        escape(resolution.title),
        escape(where),
    )


def add_pattern_row(table: Table, pattern: ErrorPattern) -> None:
    table.add_row(
        str(pattern.effective_priority),
        pattern.name,
        pattern.type,
        "yes" if pattern.group_consecutive else "",
        escape(pattern.regex),
    )


# =============================================================================
# Panels
# =============================================================================


def create_error_panel(error: DetectedError, *, show_context: bool = False) -> Panel:
    """Panel describing one detected error."""
    lines = [f"[bold red]{escape(error.type)}[/bold red]: {escape(error.message)}"]
    location = format_location(error.file, error.line)
    if location:
        lines.append(f"[dim]at[/dim] {escape(location)}")
    if show_context and error.context:
        lines.append("")
        lines.append(f"[dim]{escape(error.context)}[/dim]")
    if show_context and error.stack_trace:
        lines.append("")
        lines.append(escape(error.stack_trace))
    return Panel(
        "\n".join(lines),
        title=f"[bold]Error[/bold] [dim]({escape(error.pattern_name)})[/dim]",
        border_style="red",
    )


def print_error_resolution(
    result: ErrorResolution,
    *,
    verbose: bool = False,
    console_instance: Console | None = None,
) -> None:
    """Print an error panel followed by its ranked resolutions."""
    out = console_instance or console
    out.print(create_error_panel(result.error, show_context=verbose))
    if not result.resolutions:
        out.print("[dim]No resolutions found.[/dim]")
        return
    table = create_resolutions_table()
    for index, resolution in enumerate(result.resolutions, start=1):
        add_resolution_row(table, index, resolution)
    out.print(table)
    best = result.best
    if verbose and best is not None:
        out.print(Panel(escape(best.description), title="Best match", border_style="green"))
        if best.code_snippet:
            out.print(Panel(escape(best.code_snippet), title="Snippet", border_style="dim"))


def print_resolutions_json(
    results: Sequence[ErrorResolution],
    *,
    console_instance: Console | None = None,
) -> None:
    out = console_instance or console
    payload = {
        "errors": len(results),
        "results": [r.to_dict() for r in results],
    }
    out.print_json(json.dumps(payload))


def output_error(
    message: str,
    *,
    hints: list[str] | None = None,
    severity: Literal["error", "warning"] = "error",
    json_output: bool = False,
    console_instance: Console | None = None,
) -> None:
    """Print an error or warning with optional hints, or its JSON form."""
    out = console_instance or console
    if json_output:
        result: dict[str, object] = {"success": False, "message": message}
        if hints:
            result["hints"] = hints
        out.print_json(json.dumps(result))
        return

    color = "red" if severity == "error" else "yellow"
    label = "Error" if severity == "error" else "Warning"
    out.print(f"[{color}]{label}:[/{color}] {escape(message)}")
    if hints:
        out.print()
        out.print("[dim]Hints:[/dim]")
        for hint in hints:
            out.print(f"  - {hint}")


__all__ = [
    "StatusColors",
    "add_pattern_row",
    "add_resolution_row",
    "console",
    "create_error_panel",
    "create_patterns_table",
    "create_resolutions_table",
    "err_console",
    "format_confidence",
    "format_location",
    "output_error",
    "print_error_resolution",
    "print_resolutions_json",
]
