"""Pattern evaluation against single lines of shell output.

Patterns are compiled once, in priority order. ``match()`` returns the
first pattern that matches a line and nothing else: one line never yields
two errors.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from shellsense.core.constants import MAX_CONTEXT_LINES
from shellsense.core.errors import PatternFault
from shellsense.core.logging import get_logger
from shellsense.detection.models import ErrorPattern

_logger = get_logger("matcher")

# Lines that continue a stack trace
_TRACE_FRAME_PATTERNS = [
    re.compile(r"^\s+at "),
    re.compile(r'^\s+File "'),
    re.compile(r"^\s+in "),
    re.compile(r"^\s+\d+: "),
]

_FILE_FIELDS = frozenset({"filePath", "file"})
_LINE_FIELDS = frozenset({"lineNumber"})
_MESSAGE_FIELDS = frozenset({"errorMessage"})


@dataclass(frozen=True)
class _CompiledExtractor:
    field: str
    regex: re.Pattern[str]
    group: int


@dataclass(frozen=True)
class _CompiledPattern:
    pattern: ErrorPattern
    regex: re.Pattern[str]
    extractors: tuple[_CompiledExtractor, ...]


@dataclass
class PatternMatch:
    """Result of matching one line."""

    pattern: ErrorPattern
    message: str
    file: str | None = None
    line: int | None = None


def is_trace_frame(line: str) -> bool:
    if any(p.match(line) for p in _TRACE_FRAME_PATTERNS):
        return True
    return line.strip().startswith(">")


class PatternMatcher:
    """Evaluates an ordered pattern list against lines.

    Patterns whose regex does not compile are dropped with a
    ``pattern.compile_failed`` log event; the rest keep working.
    """

    def __init__(
        self,
        patterns: Sequence[ErrorPattern],
        *,
        case_insensitive: bool = True,
        max_context_lines: int = MAX_CONTEXT_LINES,
    ) -> None:
        self._flags = re.IGNORECASE if case_insensitive else 0
        self.max_context_lines = max_context_lines
        self._compiled: list[_CompiledPattern] = []
        for pattern in patterns:
            try:
                self._compiled.append(self._compile(pattern))
            except PatternFault as e:
                _logger.warning(
                    "pattern.compile_failed",
                    pattern=e.pattern_name,
                    regex=e.regex,
                    error=str(e),
                )

    @property
    def patterns(self) -> list[ErrorPattern]:
        """Patterns that compiled, in evaluation order."""
        return [c.pattern for c in self._compiled]

    def _compile(self, pattern: ErrorPattern) -> _CompiledPattern:
        try:
            regex = re.compile(pattern.regex, self._flags)
        except re.error as e:
            raise PatternFault(
                f"Invalid regex: {e}", pattern_name=pattern.name, regex=pattern.regex
            ) from e

        extractors: list[_CompiledExtractor] = []
        for field_name, extractor in pattern.field_extractors.items():
            try:
                extractors.append(
                    _CompiledExtractor(
                        field=field_name,
                        regex=re.compile(extractor.regex, self._flags),
                        group=extractor.group,
                    )
                )
            except re.error as e:
                _logger.warning(
                    "pattern.extractor_skipped",
                    pattern=pattern.name,
                    field=field_name,
                    error=str(e),
                )
        return _CompiledPattern(pattern=pattern, regex=regex, extractors=tuple(extractors))

    def match(self, line: str) -> PatternMatch | None:
        """Return the match of the highest-priority pattern, or None."""
        for compiled in self._compiled:
            m = compiled.regex.search(line)
            if m is None:
                continue
            message = (m.group(1) if compiled.regex.groups else None) or m.group(0)
            result = PatternMatch(pattern=compiled.pattern, message=message)
            self._apply_extractors(compiled, line, result)
            return result
        return None

    def _apply_extractors(self, compiled: _CompiledPattern, line: str, result: PatternMatch) -> None:
        default_message = result.message
        for extractor in compiled.extractors:
            if extractor.group > extractor.regex.groups:
                continue
            m = extractor.regex.search(line)
            if m is None:
                continue
            value = m.group(extractor.group)
            if not value:
                continue
            if extractor.field in _FILE_FIELDS:
                result.file = value
            elif extractor.field in _LINE_FIELDS:
                try:
                    result.line = int(value)
                except ValueError:
                    continue
            elif extractor.field in _MESSAGE_FIELDS:
                if len(value) > len(default_message):
                    result.message = value

    def context_for(self, lines: Sequence[str], index: int, pattern: ErrorPattern) -> str:
        """Lines around ``index`` per the pattern's window, capped at max_context_lines."""
        start = max(0, index - pattern.context.above)
        end = min(len(lines), index + pattern.context.below + 1)
        end = min(end, start + self.max_context_lines)
        return "\n".join(lines[start:end])

    @staticmethod
    def stack_trace(lines: Sequence[str], index: int, depth: int) -> str | None:
        """Collect trace frames following ``index``.

        Blank lines inside the trace are skipped; the scan ends at the first
        other line or after ``depth`` lines.
        """
        frames: list[str] = []
        i = index + 1
        limit = min(len(lines), index + 1 + depth)
        while i < limit:
            line = lines[i]
            if is_trace_frame(line):
                frames.append(line)
            elif line.strip():
                break
            i += 1
        return "\n".join(frames) if frames else None


__all__ = ["PatternMatch", "PatternMatcher", "is_trace_frame"]
