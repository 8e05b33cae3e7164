"""Built-in pattern catalogue and pattern-source merging.

A pattern source is a named collection of already-parsed pattern records,
either a list of mappings or a mapping with a ``patterns`` list (the
layout of an ``error-patterns.yaml`` file). Sources are merged in order:
a later source overrides an earlier pattern with the same name, disabled
patterns are dropped, and the result is sorted by priority, highest first.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from shellsense.core.config import PatternSettings
from shellsense.core.constants import PATTERN_DEFAULT_PRIORITY
from shellsense.core.errors import ConfigFault
from shellsense.core.logging import get_logger
from shellsense.detection.models import ErrorPattern

_logger = get_logger("patterns")

BUILTIN_SOURCE_NAME = "builtin"

BUILTIN_PATTERNS: list[dict[str, Any]] = [
    {
        "name": "npm-error",
        "type": "npm",
        "pattern": r"npm (?:ERR!|error) (.*)",
        "priority": 10,
        "groupConsecutive": True,
        "contextExtraction": {"linesAbove": 2, "linesBelow": 8},
    },
    {
        "name": "python-module-not-found",
        "type": "python",
        "pattern": r"(ModuleNotFoundError: .*)",
        "priority": 10,
        "groupConsecutive": True,
        "contextExtraction": {"linesAbove": 5, "linesBelow": 2},
    },
    {
        "name": "python-traceback",
        "type": "python",
        "pattern": r"^Traceback \(most recent call last\)",
        "priority": 9,
        "groupConsecutive": True,
        "contextExtraction": {
            "linesAbove": 0,
            "linesBelow": 12,
            "includeStackTrace": True,
            "stackTraceDepth": 20,
        },
    },
    {
        "name": "node-module-not-found",
        "type": "node",
        "pattern": r"(Error: Cannot find module .*)",
        "priority": 9,
        "contextExtraction": {"includeStackTrace": True},
    },
    {
        "name": "address-in-use",
        "type": "network",
        "pattern": r"((?:listen )?EADDRINUSE.*|[Aa]ddress already in use.*)",
        "priority": 9,
    },
    {
        "name": "typescript-error",
        "type": "typescript",
        "pattern": r"error (TS\d+: .*)",
        "priority": 8,
        "groupConsecutive": True,
        "extractFields": {
            "filePath": {"regex": r"([\w./-]+\.tsx?)[(:]", "group": 1},
            "lineNumber": {"regex": r"\.tsx?[(:](\d+)", "group": 1},
        },
    },
    {
        "name": "compiler-error",
        "type": "compiler",
        "pattern": r"\d+:\d+: (?:fatal )?error: (.*)",
        "priority": 8,
        "extractFields": {
            "filePath": {"regex": r"^([\w./-]+\.\w+):\d+", "group": 1},
            "lineNumber": {"regex": r"^[\w./-]+\.\w+:(\d+)", "group": 1},
        },
    },
    {
        "name": "rust-error",
        "type": "rust",
        "pattern": r"^(error\[E\d+\]: .*)",
        "priority": 8,
        "contextExtraction": {"linesBelow": 6},
    },
    {
        "name": "java-exception",
        "type": "java",
        "pattern": r"^(?:Exception in thread \"[^\"]*\" )?((?:[a-z]\w*\.)+\w*(?:Exception|Error)(?:: .*)?)$",
        "priority": 8,
        "contextExtraction": {"includeStackTrace": True},
    },
    {
        "name": "go-panic",
        "type": "go",
        "pattern": r"^panic: (.*)",
        "priority": 8,
        "contextExtraction": {"linesBelow": 10},
    },
    {
        "name": "permission-denied",
        "type": "permission",
        "pattern": r"((?:EACCES|[Pp]ermission denied).*)",
        "priority": 8,
    },
    {
        "name": "command-not-found",
        "type": "shell",
        "pattern": r"^(.*(?:command not found|: not found).*)$",
        "priority": 7,
        "contextExtraction": {"linesAbove": 0, "linesBelow": 0},
    },
    {
        "name": "segmentation-fault",
        "type": "crash",
        "pattern": r"(Segmentation fault.*|core dumped.*)",
        "priority": 7,
    },
    {
        "name": "generic-exception",
        "type": "exception",
        "pattern": r"^\s*(?:Uncaught )?([A-Z]\w*(?:Error|Exception): .+)",
        "priority": 6,
        "contextExtraction": {"includeStackTrace": True},
    },
    {
        "name": "generic-error",
        "type": "generic",
        "pattern": r"^\s*(?:error|fatal):\s*(.+)",
        "priority": 3,
    },
]


@dataclass(frozen=True)
class PatternSource:
    """A named collection of pattern records awaiting validation."""

    name: str
    data: Any


def parse_source(source: PatternSource) -> list[ErrorPattern]:
    """Validate one source into ErrorPattern models.

    A source is all-or-nothing: one bad record rejects the whole source.

    Raises:
        ConfigFault: If the layout or any record is invalid.
    """
    data = source.data
    if isinstance(data, Mapping):
        data = data.get("patterns")
    if not isinstance(data, Sequence) or isinstance(data, str | bytes):
        raise ConfigFault("Missing or invalid patterns list", source=source.name)
    patterns: list[ErrorPattern] = []
    for index, record in enumerate(data):
        if not isinstance(record, Mapping):
            raise ConfigFault(f"Pattern #{index} is not a mapping", source=source.name)
        try:
            patterns.append(ErrorPattern.model_validate(dict(record)))
        except ValidationError as e:
            raise ConfigFault(
                f"Pattern #{index} is invalid: {e.error_count()} error(s)",
                source=source.name,
            ) from e
    return patterns


def merge_patterns(
    sources: Iterable[PatternSource],
    *,
    default_priority: int = PATTERN_DEFAULT_PRIORITY,
) -> list[ErrorPattern]:
    """Merge sources into the active, priority-ordered pattern list.

    Invalid sources are logged and skipped; the remaining ones still merge.
    """
    parsed: list[list[ErrorPattern]] = []
    for source in sources:
        try:
            parsed.append(parse_source(source))
        except ConfigFault as e:
            _logger.warning("patterns.source_skipped", source=e.source, error=str(e))

    seen: set[str] = set()
    merged: list[ErrorPattern] = []
    for patterns in reversed(parsed):
        for pattern in patterns:
            if pattern.name in seen:
                continue
            seen.add(pattern.name)
            if pattern.priority is None:
                pattern = pattern.model_copy(update={"priority": default_priority})
            merged.append(pattern)

    active = [p for p in merged if p.enabled]
    # sorted() is stable, so equal priorities keep merge order
    return sorted(active, key=lambda p: p.effective_priority, reverse=True)


def builtin_source() -> PatternSource:
    return PatternSource(name=BUILTIN_SOURCE_NAME, data=BUILTIN_PATTERNS)


def load_patterns(
    settings: PatternSettings | None = None,
    extra_sources: Sequence[PatternSource] = (),
) -> list[ErrorPattern]:
    """Build the active pattern list from the built-ins, settings and extra sources.

    Order of precedence, lowest first: built-in catalogue, ``settings.custom``,
    then ``extra_sources`` in the order given.
    """
    settings = settings or PatternSettings()
    sources: list[PatternSource] = []
    if settings.builtin_enabled:
        sources.append(builtin_source())
    if settings.custom:
        sources.append(PatternSource(name="settings", data=settings.custom))
    sources.extend(extra_sources)
    patterns = merge_patterns(sources, default_priority=settings.default_priority)
    _logger.debug("patterns.loaded", count=len(patterns), sources=len(sources))
    return patterns


__all__ = [
    "BUILTIN_PATTERNS",
    "BUILTIN_SOURCE_NAME",
    "PatternSource",
    "builtin_source",
    "load_patterns",
    "merge_patterns",
    "parse_source",
]
