"""Pattern evaluation settings."""

from __future__ import annotations

from pydantic import BaseModel, Field

from shellsense.core.constants import MAX_CONTEXT_LINES, PATTERN_DEFAULT_PRIORITY


class PatternSettings(BaseModel):
    """Settings applied to every pattern in the active set."""

    max_context_lines: int = Field(
        default=MAX_CONTEXT_LINES,
        ge=0,
        le=1000,
        description="Upper bound on the context lines captured around a match",
    )
    default_priority: int = Field(
        default=PATTERN_DEFAULT_PRIORITY,
        description="Priority given to pattern records that omit one",
    )
    case_insensitive: bool = Field(
        default=True,
        description="Compile pattern regexes with re.IGNORECASE",
    )
    builtin_enabled: bool = Field(
        default=True,
        description="Include the built-in pattern catalogue as the first source",
    )
    custom: list[dict[str, object]] = Field(
        default_factory=list,
        description="Extra pattern records merged after the built-ins",
    )
