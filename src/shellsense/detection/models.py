"""Data models for error detection.

ErrorPattern records arrive as plain mappings (parsed YAML or JSON) using
the camelCase keys of the pattern file format; they are validated into
frozen pydantic models. DetectedError is a plain dataclass because the
aggregator mutates it while grouping consecutive matches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shellsense.core.constants import (
    PATTERN_DEFAULT_LINES_ABOVE,
    PATTERN_DEFAULT_LINES_BELOW,
    PATTERN_DEFAULT_STACK_DEPTH,
)


class ContextWindow(BaseModel):
    """Lines captured around a match, plus optional stack-trace capture."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    above: int = Field(default=PATTERN_DEFAULT_LINES_ABOVE, ge=0, alias="linesAbove")
    below: int = Field(default=PATTERN_DEFAULT_LINES_BELOW, ge=0, alias="linesBelow")
    include_stack_trace: bool = Field(default=False, alias="includeStackTrace")
    stack_trace_depth: int = Field(
        default=PATTERN_DEFAULT_STACK_DEPTH, ge=1, alias="stackTraceDepth"
    )


class FieldExtractor(BaseModel):
    """A secondary regex whose capture group fills one DetectedError field."""

    model_config = ConfigDict(frozen=True)

    regex: str
    group: int = Field(default=1, ge=0)


class ErrorPattern(BaseModel):
    """One configurable error pattern.

    Extractor names map onto DetectedError fields: ``filePath``/``file`` to
    ``file``, ``lineNumber`` to ``line`` and ``errorMessage`` to a more
    specific ``message``. Other names are accepted and ignored.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(min_length=1)
    enabled: bool = True
    type: str = Field(min_length=1)
    regex: str = Field(min_length=1, alias="pattern")
    priority: int | None = Field(
        default=None,
        description="Higher runs first. None is replaced by the default priority on merge.",
    )
    group_consecutive: bool = Field(default=False, alias="groupConsecutive")
    context: ContextWindow = Field(default_factory=ContextWindow, alias="contextExtraction")
    field_extractors: dict[str, FieldExtractor] = Field(
        default_factory=dict, alias="extractFields"
    )

    @property
    def effective_priority(self) -> int:
        return self.priority if self.priority is not None else 0


@dataclass
class DetectedError:
    """An error found in shell output.

    Attributes:
        message: Primary message (first capture group or the whole match).
        type: Error type taken from the matching pattern.
        context: Lines around the match, newline-joined.
        stack_trace: Trace frames following the match, if captured.
        file: Source file named by the error, if extracted.
        line: Source line number named by the error, if extracted.
        line_index: Position of the match in the analysed batch.
        pattern_name: Name of the pattern that produced the error.
    """

    message: str
    type: str
    context: str = ""
    stack_trace: str | None = None
    file: str | None = None
    line: int | None = None
    line_index: int = 0
    pattern_name: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def key(self) -> tuple[str, str]:
        """Identity used for notification de-duplication."""
        return (self.type, self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "type": self.type,
            "context": self.context,
            "stack_trace": self.stack_trace,
            "file": self.file,
            "line": self.line,
            "pattern": self.pattern_name,
            "created_at": self.created_at.isoformat(),
        }


__all__ = ["ContextWindow", "DetectedError", "ErrorPattern", "FieldExtractor"]
