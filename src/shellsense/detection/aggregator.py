"""One analysis pass over a batch of output lines.

Turns per-line pattern matches into DetectedError records: consecutive
matches of a grouping pattern merge into the previous error, and repeats
of the same (type, message) within the pass are dropped.
"""

from __future__ import annotations

from collections.abc import Sequence

from shellsense.core.constants import (
    DEDUP_MESSAGE_CHARS,
    GROUPING_MAX_LINE_DISTANCE,
    GROUPING_MESSAGE_SEPARATOR,
    GROUPING_PREFIX_CHARS,
)
from shellsense.core.logging import get_logger
from shellsense.detection.matcher import PatternMatch, PatternMatcher
from shellsense.detection.models import DetectedError

_logger = get_logger("aggregator")

# Extra lines of context kept on each side when a group widens
_GROUP_CONTEXT_MARGIN = 3


def split_lines(output: str) -> list[str]:
    """Split raw output into lines, treating CRLF like LF."""
    return output.replace("\r\n", "\n").split("\n")


class ErrorAggregator:
    """Runs analysis passes using a PatternMatcher."""

    def __init__(
        self,
        matcher: PatternMatcher,
        *,
        max_distance: int = GROUPING_MAX_LINE_DISTANCE,
    ) -> None:
        self.matcher = matcher
        self.max_distance = max_distance

    def analyze(self, output: str | Sequence[str]) -> list[DetectedError]:
        """Detect errors in a batch of lines, in order of first occurrence."""
        lines = split_lines(output) if isinstance(output, str) else list(output)
        errors: list[DetectedError] = []
        seen: set[str] = set()
        last_type: str | None = None
        last_index = -1

        for index, line in enumerate(lines):
            match = self.matcher.match(line)
            if match is None:
                continue
            pattern = match.pattern

            if (
                pattern.group_consecutive
                and last_type == pattern.type
                and index - last_index <= self.max_distance
            ):
                if errors and errors[-1].type == pattern.type:
                    self._merge(errors[-1], match, lines, last_index, index)
                continue

            key = f"{pattern.type}:{match.message[:DEDUP_MESSAGE_CHARS]}"
            if key in seen:
                continue
            seen.add(key)

            error = DetectedError(
                message=match.message,
                type=pattern.type,
                context=self.matcher.context_for(lines, index, pattern),
                file=match.file,
                line=match.line,
                line_index=index,
                pattern_name=pattern.name,
            )
            if pattern.context.include_stack_trace:
                error.stack_trace = self.matcher.stack_trace(
                    lines, index, pattern.context.stack_trace_depth
                )
            errors.append(error)
            last_type = pattern.type
            last_index = index

        if errors:
            _logger.debug("analysis.errors_detected", count=len(errors), lines=len(lines))
        return errors

    def _merge(
        self,
        error: DetectedError,
        match: PatternMatch,
        lines: Sequence[str],
        anchor: int,
        index: int,
    ) -> None:
        radius = (index - anchor) + _GROUP_CONTEXT_MARGIN
        start = max(0, anchor - radius)
        end = min(len(lines), anchor + radius + 1)
        error.context = "\n".join(lines[start:end])
        if match.message[:GROUPING_PREFIX_CHARS] not in error.message:
            error.message += GROUPING_MESSAGE_SEPARATOR + match.message
        if error.file is None and match.file is not None:
            error.file = match.file
            error.line = match.line


__all__ = ["ErrorAggregator", "split_lines"]
